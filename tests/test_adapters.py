"""Tests for fitplan.adapters: folding historical shapes into blocks/weeks/days."""

from __future__ import annotations

import copy

from fitplan.adapters import adapt
from fitplan.fallback import fallback_program


def _blocks():
    return [
        {"title": "Base", "summary": "Aerobic base", "week_range": [1, 2]},
        {"title": "Build", "week_range": [3, 4]},
    ]


class TestWorkoutsMap:
    def test_weeks_attach_to_owning_block(self, make_day):
        legacy = make_day("Tuesday", quote_text="Breathe")
        del legacy["quote"]
        obj = {
            "program_title": "P",
            "blocks": _blocks(),
            "workouts": {
                "3": {"days": [make_day("Monday")]},
                "1": {"days": [legacy]},
            },
        }
        out = adapt(obj)
        assert "workouts" not in out
        base, build = out["blocks"]
        assert [w["week_number"] for w in base["weeks"]] == [1]
        assert [w["week_number"] for w in build["weeks"]] == [3]
        assert base["weeks"][0]["days"][0]["quote"] == "Breathe"
        assert "quote_text" not in base["weeks"][0]["days"][0]

    def test_summary_becomes_block_goal(self):
        out = adapt({"program_title": "P", "blocks": _blocks(), "workouts": {}})
        assert out["blocks"][0]["block_goal"] == "Aerobic base"
        assert "block_goal" not in out["blocks"][1]

    def test_week_outside_ranges_goes_to_last_block(self, make_day):
        obj = {"program_title": "P", "blocks": _blocks(), "workouts": {"9": {"days": [make_day()]}}}
        out = adapt(obj)
        assert out["blocks"][1]["weeks"] == [{"week_number": 9, "days": [make_day()]}]

    def test_input_not_mutated(self):
        original = fallback_program()
        snapshot = copy.deepcopy(original)
        adapt(original)
        assert original == snapshot

    def test_unreadable_week_key_leaves_map_alone(self, make_day):
        obj = {"program_title": "P", "blocks": _blocks(), "workouts": {"week one": {"days": [make_day()]}}}
        out = adapt(obj)
        assert "workouts" in out
        assert all("weeks" not in b for b in out["blocks"])


class TestDailyWorkouts:
    def test_entries_grouped_by_week(self, make_day):
        first = make_day("Monday", week_number=1)
        second = make_day("Wednesday", week_number=1)
        third = make_day("Monday", week_number=3)
        out = adapt({"program_title": "P", "blocks": _blocks(), "daily_workouts": [first, second, third]})
        assert "daily_workouts" not in out
        assert [d["day"] for d in out["blocks"][0]["weeks"][0]["days"]] == ["Monday", "Wednesday"]
        assert out["blocks"][1]["weeks"][0]["week_number"] == 3

    def test_title_used_as_day_label(self, make_day):
        entry = make_day(week_number=1, title="Leg Day")
        del entry["day"]
        out = adapt({"program_title": "P", "blocks": _blocks(), "daily_workouts": [entry]})
        assert out["blocks"][0]["weeks"][0]["days"][0]["day"] == "Leg Day"


class TestCanonical:
    def test_canonical_shape_passes_through(self, scenario_a):
        out = adapt(scenario_a)
        assert out == scenario_a

    def test_quote_text_renamed_in_canonical_days(self, make_program, make_day):
        day = make_day()
        del day["quote"]
        day["quote_text"] = "Legacy"
        out = adapt(make_program({1: [day]}))
        assert out["blocks"][0]["weeks"][0]["days"][0]["quote"] == "Legacy"

    def test_non_program_values_untouched(self):
        assert adapt([1, 2]) == [1, 2]
        assert adapt({"program_title": "P"}) == {"program_title": "P"}
