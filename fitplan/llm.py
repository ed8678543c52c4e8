from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from openai import OpenAI

from .config import Settings

logger = logging.getLogger(__name__)

__all__ = ["Completion", "LLMClient", "Usage", "build_system"]

# USD per 1k tokens
PROMPT_COST_PER_1K = 0.01
COMPLETION_COST_PER_1K = 0.03


@dataclass
class Usage:
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    @property
    def estimated_cost_usd(self) -> float:
        cost = (self.prompt_tokens / 1000) * PROMPT_COST_PER_1K + (self.completion_tokens / 1000) * COMPLETION_COST_PER_1K
        return round(cost, 4)

    def __add__(self, other: "Usage") -> "Usage":
        return Usage(self.prompt_tokens + other.prompt_tokens, self.completion_tokens + other.completion_tokens)


@dataclass
class Completion:
    text: str
    usage: Usage = field(default_factory=Usage)


def build_system(end_marker: str) -> str:
    return (
        "You are an expert personal trainer. Respond only with a JSON object "
        "(program_title, blocks[].weeks[].days[]) and finish with " + end_marker
    )


class LLMClient:
    """Thin wrapper over the OpenAI chat completions API."""

    def __init__(self, settings: Settings, client: Optional[OpenAI] = None) -> None:
        self.settings = settings
        if client is None:
            if settings.openai_base_url:
                client = OpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)
            else:
                client = OpenAI(api_key=settings.openai_api_key)
        self._client = client

    def complete(self, system: str, user: str, *, temperature: Optional[float] = None) -> Completion:
        resp = self._client.chat.completions.create(
            model=self.settings.openai_model,
            temperature=self.settings.openai_temperature if temperature is None else temperature,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        )
        text = (resp.choices[0].message.content or "") if resp.choices else ""
        usage = Usage(
            prompt_tokens=getattr(resp.usage, "prompt_tokens", 0) or 0,
            completion_tokens=getattr(resp.usage, "completion_tokens", 0) or 0,
        )
        if self.settings.end_marker and not text.rstrip().endswith(self.settings.end_marker):
            logger.warning("Completion may be incomplete: missing %s marker", self.settings.end_marker)
        logger.info("Completion received (%d prompt / %d completion tokens)", usage.prompt_tokens, usage.completion_tokens)
        return Completion(text=text, usage=usage)

    def generate_plan(self, profile: Dict[str, Any]) -> Completion:
        user = "Client profile:\n" + json.dumps(profile, ensure_ascii=False, indent=2, default=str)
        return self.complete(build_system(self.settings.end_marker), user)
