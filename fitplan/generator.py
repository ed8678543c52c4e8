"""Caller-side generation loop: ask the model, ingest, retry, fall back.

The ingestion core never calls the model. This module does, a bounded
number of times, and falls back to the canned program when every attempt
produced unusable output. The outcome says which of the two happened.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from openai import OpenAIError

from .errors import ModelOutputError, StoreError
from .fallback import fallback_program
from .llm import Completion, LLMClient, Usage
from .models import OwnerContext
from .pipeline import IngestResult, ingest_and_persist
from .profile import build_client_profile
from .repair import DEFAULT_END_MARKER
from .store import DataStore

logger = logging.getLogger(__name__)

GENERATION_LOG = "program_generation_log"


@dataclass
class GenerationOutcome:
    source: Literal["real", "fallback"]
    result: IngestResult
    usage: Usage = field(default_factory=Usage)
    attempts: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def is_fallback(self) -> bool:
        return self.source == "fallback"


def log_generation(
    store: DataStore,
    *,
    user_id: str,
    completion: Completion,
    program_id: Optional[str],
    version_number: int = 1,
    profile: Optional[Dict[str, Any]] = None,
    error: Optional[str] = None,
) -> Optional[str]:
    """Record one model call in the generation log. Failures only warn."""
    log_id = str(uuid.uuid4())
    row = {
        "program_generation_id": log_id,
        "user_id": user_id,
        "program_id": program_id,
        "source": "openai",
        "version_number": version_number,
        "generation_type": "initial" if version_number == 1 else "regeneration",
        "prompt_input": profile,
        "prompt_output": completion.text,
        "prompt_tokens": completion.usage.prompt_tokens,
        "completion_tokens": completion.usage.completion_tokens,
        "total_tokens": completion.usage.total_tokens,
        "estimated_cost_usd": completion.usage.estimated_cost_usd,
        "error": error,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    try:
        store.insert(GENERATION_LOG, [row])
    except StoreError as exc:
        logger.warning("Could not write %s: %s", GENERATION_LOG, exc)
        return None
    return log_id


def generate_program(
    llm: LLMClient,
    store: DataStore,
    owner: OwnerContext,
    profile: Optional[Dict[str, Any]] = None,
    *,
    max_attempts: int = 3,
    end_marker: str = DEFAULT_END_MARKER,
) -> GenerationOutcome:
    """Generate and store a program for *owner*.

    Model-output errors and API errors consume an attempt; persistence errors
    propagate immediately.
    """
    if profile is None:
        profile = build_client_profile(store, owner.user_id)

    usage = Usage()
    errors: List[str] = []
    for attempt in range(1, max_attempts + 1):
        try:
            completion = llm.generate_plan(profile)
        except OpenAIError as exc:
            logger.warning("Model call failed (attempt %d/%d): %s", attempt, max_attempts, exc)
            errors.append(f"attempt {attempt}: {exc}")
            continue
        usage = usage + completion.usage

        try:
            result = ingest_and_persist(completion.text, owner, store, end_marker=end_marker)
        except ModelOutputError as exc:
            logger.warning("Unusable completion (attempt %d/%d): %s", attempt, max_attempts, exc)
            errors.append(f"attempt {attempt}: {exc}")
            log_generation(
                store, user_id=owner.user_id, completion=completion, program_id=None,
                profile=profile, error=str(exc),
            )
            continue

        log_generation(
            store, user_id=owner.user_id, completion=completion, program_id=result.program_id,
            version_number=result.version_number, profile=profile,
        )
        return GenerationOutcome("real", result, usage, attempt, errors)

    logger.warning("Model failed after %d attempt(s); using fallback program", max_attempts)
    result = ingest_and_persist(json.dumps(fallback_program()), owner, store, end_marker=end_marker)
    return GenerationOutcome("fallback", result, usage, max_attempts, errors)
