from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from openai import OpenAIError

from fitplan.errors import IntakeNotFound, PersistenceError
from fitplan.generator import GENERATION_LOG, generate_program, log_generation
from fitplan.llm import Completion, Usage
from fitplan.persister import PROGRAMS

PROFILE = {"goal": "Hyrox", "days_per_week": 3}


def _llm(*results):
    llm = MagicMock()
    llm.generate_plan.side_effect = list(results)
    return llm


def _completion(text, prompt=100, completion=50):
    return Completion(text=text, usage=Usage(prompt, completion))


class TestGenerateProgram:
    def test_first_attempt_succeeds(self, scenario_a_text, owner, store):
        outcome = generate_program(_llm(_completion(scenario_a_text)), store, owner, PROFILE)
        assert outcome.source == "real"
        assert outcome.is_fallback is False
        assert outcome.attempts == 1
        assert outcome.result.title == "Test"
        (log,) = store.tables[GENERATION_LOG]
        assert log["program_id"] == outcome.result.program_id
        assert log["error"] is None
        assert log["generation_type"] == "initial"
        assert log["total_tokens"] == 150

    def test_retries_after_unusable_output(self, scenario_a_text, owner, store):
        llm = _llm(_completion("no plan, sorry"), _completion(scenario_a_text))
        outcome = generate_program(llm, store, owner, PROFILE)
        assert outcome.source == "real"
        assert outcome.attempts == 2
        assert len(outcome.errors) == 1
        assert (outcome.usage.prompt_tokens, outcome.usage.completion_tokens) == (200, 100)
        logs = store.tables[GENERATION_LOG]
        assert logs[0]["program_id"] is None
        assert logs[0]["error"]

    def test_api_error_consumes_attempt(self, scenario_a_text, owner, store):
        outcome = generate_program(_llm(OpenAIError("down"), _completion(scenario_a_text)), store, owner, PROFILE)
        assert outcome.attempts == 2
        assert "down" in outcome.errors[0]

    def test_falls_back_after_max_attempts(self, owner, store):
        bad = [_completion("nothing here") for _ in range(3)]
        outcome = generate_program(_llm(*bad), store, owner, PROFILE, max_attempts=3)
        assert outcome.is_fallback is True
        assert outcome.attempts == 3
        assert len(outcome.errors) == 3
        assert outcome.result.title == "12-Week Hyrox Hero"
        assert len(store.tables[GENERATION_LOG]) == 3
        assert store.count(PROGRAMS) == 1

    def test_persistence_error_propagates(self, scenario_a_text, owner, failing_store):
        store = failing_store(lambda t, rows: t == PROGRAMS)
        llm = _llm(_completion(scenario_a_text), _completion(scenario_a_text))
        with pytest.raises(PersistenceError):
            generate_program(llm, store, owner, PROFILE)
        assert llm.generate_plan.call_count == 1

    def test_profile_built_from_intake(self, scenario_a_text, owner, store):
        store.insert("program_intake", [{"user_id": owner.user_id, "intake_id": "i1", "primary_goal": "Hyrox"}])
        llm = _llm(_completion(scenario_a_text))
        generate_program(llm, store, owner)
        profile = llm.generate_plan.call_args.args[0]
        assert profile["goal"] == "Hyrox"

    def test_missing_intake(self, owner, store):
        with pytest.raises(IntakeNotFound):
            generate_program(_llm(), store, owner)


class TestGenerationLog:
    def test_log_failure_is_tolerated(self, scenario_a_text, owner, failing_store):
        store = failing_store(lambda t, rows: t == GENERATION_LOG)
        outcome = generate_program(_llm(_completion(scenario_a_text)), store, owner, PROFILE)
        assert outcome.source == "real"
        assert GENERATION_LOG not in store.tables

    def test_regeneration_type(self, store):
        log_id = log_generation(
            store, user_id="u", completion=_completion("{}"), program_id="p", version_number=2,
        )
        (row,) = store.tables[GENERATION_LOG]
        assert row["program_generation_id"] == log_id
        assert row["generation_type"] == "regeneration"
        assert row["estimated_cost_usd"] == 0.0025
