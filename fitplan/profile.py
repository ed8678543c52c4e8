"""Assemble the client profile sent to the model from the intake tables."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from .errors import IntakeNotFound
from .store import DataStore

logger = logging.getLogger(__name__)

INTAKE_TABLES = (
    "program_intake",
    "full_service_gyms",
    "boutique_credits",
    "home_equipment",
    "limitations",
    "benchmark_log",
    "availability",
    "blackout_dates",
    "workout_styles",
)


def fetch_intake(store: DataStore, user_id: str) -> Dict[str, List[Dict[str, Any]]]:
    return {t: store.query(t, {"user_id": user_id}) for t in INTAKE_TABLES}


def _first(rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    return rows[0] if rows else {}


def build_client_profile(store: DataStore, user_id: str) -> Dict[str, Any]:
    data = fetch_intake(store, user_id)
    if not data["program_intake"]:
        raise IntakeNotFound(f"No intake found for user {user_id}")

    intake = data["program_intake"][0]
    limitations = _first(data["limitations"])
    benchmarks = _first(data["benchmark_log"])
    availability = _first(data["availability"])
    blackout = _first(data["blackout_dates"])
    styles = _first(data["workout_styles"])
    equipment = [item for e in data["home_equipment"] for item in (e.get("equipment_list") or [])]

    profile = {
        "user_id": user_id,
        "intake_id": intake.get("intake_id"),
        "goal": intake.get("primary_goal"),
        "target_date": intake.get("primary_goal_date"),
        "program_duration_weeks": intake.get("program_duration_weeks"),
        "days_per_week": availability.get("days_per_week") or 4,
        "session_length_minutes": availability.get("session_length_minutes") or 45,
        "unavailable_days": blackout.get("recurring_day") or [],
        "limitations": limitations.get("limitations_list") or "none",
        "fitness_level": benchmarks.get("fitness_level") or "Intermediate",
        "training_preferences": styles.get("styles_likes") or "Not specified",
        "training_dislikes": styles.get("styles_dislikes") or "None",
        "full_service_gyms": [
            {"gym_name": g.get("gym_name"), "access": g.get("access")} for g in data["full_service_gyms"]
        ],
        "boutique_studios": [
            {"studio_name": b.get("studio_name"), "credits_remaining": b.get("credits_remaining")}
            for b in data["boutique_credits"]
        ],
        "home_equipment": equipment or ["bodyweight only"],
    }
    logger.debug("Built client profile for %s", user_id)
    return profile
