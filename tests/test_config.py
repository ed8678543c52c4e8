from __future__ import annotations

import os

import pytest

from fitplan.config import Settings, load_env
from fitplan.repair import DEFAULT_END_MARKER

ENV_KEYS = [
    "SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_SERVICE_KEY", "SUPABASE_KEY",
    "SUPABASE_ANON_KEY", "OPENAI_API_KEY", "OPENAI_MODEL", "OPENAI_BASE_URL", "OPENAI_API_BASE",
    "OPENAI_TEMPERATURE", "DATABASE_URL", "FITPLAN_END_MARKER", "FITPLAN_MAX_ATTEMPTS", "FITPLAN_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestSettings:
    def test_defaults(self):
        s = Settings.from_env(dotenv=False)
        assert s.supabase_url is None
        assert s.openai_model == "gpt-4o-mini"
        assert s.database_url == "sqlite:///fitplan.db"
        assert s.end_marker == DEFAULT_END_MARKER
        assert s.max_attempts == 3
        assert s.log_level == "INFO"

    def test_supabase_key_priority(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
        monkeypatch.setenv("SUPABASE_KEY", "plain")
        assert Settings.from_env(dotenv=False).supabase_key == "plain"
        monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service")
        assert Settings.from_env(dotenv=False).supabase_key == "service"

    def test_blank_values_ignored(self, monkeypatch):
        monkeypatch.setenv("OPENAI_MODEL", "   ")
        monkeypatch.setenv("OPENAI_API_BASE", "http://proxy/v1")
        s = Settings.from_env(dotenv=False)
        assert s.openai_model == "gpt-4o-mini"
        assert s.openai_base_url == "http://proxy/v1"

    def test_numeric_values(self, monkeypatch):
        monkeypatch.setenv("OPENAI_TEMPERATURE", "0.2")
        monkeypatch.setenv("FITPLAN_MAX_ATTEMPTS", "0")
        s = Settings.from_env(dotenv=False)
        assert s.openai_temperature == 0.2
        assert s.max_attempts == 1

    def test_bad_numbers_fall_back(self, monkeypatch):
        monkeypatch.setenv("OPENAI_TEMPERATURE", "warm")
        monkeypatch.setenv("FITPLAN_MAX_ATTEMPTS", "many")
        s = Settings.from_env(dotenv=False)
        assert (s.openai_temperature, s.max_attempts) == (0.7, 3)

    def test_config_status_hides_secrets(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-secret")
        status = Settings.from_env(dotenv=False).config_status()
        assert status["has_openai_key"] is True
        assert status["has_supabase_key"] is False
        assert status["database_url_scheme"] == "sqlite"
        assert "sk-secret" not in str(status)


class TestDotenv:
    def test_env_file_does_not_override(self, tmp_path, monkeypatch):
        # load_dotenv writes into os.environ; keep its writes inside this test
        monkeypatch.setattr(os, "environ", dict(os.environ))
        env_file = tmp_path / ".env"
        env_file.write_text("OPENAI_MODEL=from-file\nFITPLAN_LOG_LEVEL=debug\n", encoding="utf-8")
        monkeypatch.setenv("OPENAI_MODEL", "from-env")
        load_env(env_file)
        s = Settings.from_env(dotenv=False)
        assert s.openai_model == "from-env"
        assert s.log_level == "DEBUG"
