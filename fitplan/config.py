"""Project configuration helpers.

Locally, values come from a `.env` file at the project root; in deployed
environments they come from the process environment. Existing environment
variables always win over `.env`.

Components never read the environment themselves: build a :class:`Settings`
once (``Settings.from_env()``) and pass it to whatever needs credentials.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from .repair import DEFAULT_END_MARKER


def project_root() -> Path:
    # fitplan/ lives one level below the project root.
    return Path(__file__).resolve().parents[1]


def load_env(path: Optional[Path] = None) -> None:
    """Load `.env` into ``os.environ`` without overriding existing values."""
    load_dotenv(path or project_root() / ".env", override=False)


def _get(key: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(key)
    if v is None or not v.strip():
        return default
    return v.strip()


def _first(*keys: str) -> Optional[str]:
    for k in keys:
        v = _get(k)
        if v:
            return v
    return None


@dataclass(frozen=True)
class Settings:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_base_url: Optional[str] = None
    openai_temperature: float = 0.7
    database_url: str = "sqlite:///fitplan.db"
    end_marker: str = DEFAULT_END_MARKER
    max_attempts: int = 3
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> "Settings":
        if dotenv:
            load_env()
        try:
            temperature = float(_get("OPENAI_TEMPERATURE", "0.7"))
        except ValueError:
            temperature = 0.7
        try:
            attempts = max(1, int(_get("FITPLAN_MAX_ATTEMPTS", "3")))
        except ValueError:
            attempts = 3
        return cls(
            supabase_url=_get("SUPABASE_URL"),
            # people name the service key differently across projects
            supabase_key=_first(
                "SUPABASE_SERVICE_ROLE_KEY",
                "SUPABASE_SERVICE_KEY",
                "SUPABASE_KEY",
                "SUPABASE_ANON_KEY",
            ),
            openai_api_key=_get("OPENAI_API_KEY"),
            openai_model=_get("OPENAI_MODEL", "gpt-4o-mini"),
            openai_base_url=_first("OPENAI_BASE_URL", "OPENAI_API_BASE"),
            openai_temperature=temperature,
            database_url=_get("DATABASE_URL", "sqlite:///fitplan.db"),
            end_marker=_get("FITPLAN_END_MARKER", DEFAULT_END_MARKER),
            max_attempts=attempts,
            log_level=_get("FITPLAN_LOG_LEVEL", "INFO").upper(),
        )

    def config_status(self) -> dict[str, Any]:
        """Return a safe, non-sensitive view of which settings are present."""
        return {
            "has_supabase_url": bool(self.supabase_url),
            "has_supabase_key": bool(self.supabase_key),
            "has_openai_key": bool(self.openai_api_key),
            "openai_model": self.openai_model,
            "database_url_scheme": self.database_url.split(":", 1)[0],
        }
