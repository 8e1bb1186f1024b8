"""Tests for sherpa/learning/models.py and sherpa/learning/serialization.py

Stored data is hand-editable JSON, so from_dict has to cope with missing
fields, wrong types and legacy shapes without raising.
"""

import json
from datetime import date, datetime
from enum import Enum

import pytest

from sherpa.learning.models import (
    Achievement,
    BehaviorMetrics,
    ContextPattern,
    FlowState,
    Preferences,
    UserProfile,
    WorkflowPattern,
    as_number,
)
from sherpa.learning.serialization import dumps, format_timestamp, parse_timestamp, write_json_atomic


# ─────────────────────────────────────────────────────────────────────────────
# Timestamps
# ─────────────────────────────────────────────────────────────────────────────


class TestParseTimestamp:
    def test_iso_string(self):
        assert parse_timestamp("2026-03-02T09:30:00") == datetime(2026, 3, 2, 9, 30)

    def test_utc_suffix_becomes_naive(self):
        parsed = parse_timestamp("2026-03-02T09:30:00Z")
        assert parsed.tzinfo is None

    def test_epoch_millis(self):
        expected = datetime(2026, 3, 2, 9, 30)
        assert parse_timestamp(expected.timestamp() * 1000) == expected

    def test_datetime_passthrough(self, base_time):
        assert parse_timestamp(base_time) is base_time

    @pytest.mark.parametrize("value", [None, "", "yesterday", True, {"a": 1}])
    def test_garbage_gives_default(self, value, base_time):
        assert parse_timestamp(value) is None
        assert parse_timestamp(value, default=base_time) == base_time

    def test_format_round_trip(self, base_time):
        assert parse_timestamp(format_timestamp(base_time)) == base_time
        assert format_timestamp(None) is None


class TestJsonHelpers:
    def test_dumps_handles_dates_enums_sets(self):
        class Color(str, Enum):
            RED = "red"

        text = dumps({"day": date(2026, 3, 2), "color": Color.RED, "tags": {"b", "a"}})
        assert json.loads(text) == {"day": "2026-03-02", "color": "red", "tags": ["a", "b"]}

    def test_atomic_write_leaves_no_temp_files(self, tmp_path):
        target = tmp_path / "nested" / "state.json"
        write_json_atomic(target, {"ok": True})
        write_json_atomic(target, {"ok": False})

        assert json.loads(target.read_text()) == {"ok": False}
        assert [p.name for p in target.parent.iterdir()] == ["state.json"]

    def test_atomic_write_keeps_old_file_on_error(self, tmp_path):
        target = tmp_path / "state.json"
        write_json_atomic(target, {"version": 1})
        with pytest.raises(TypeError):
            write_json_atomic(target, {"bad": object()})
        assert json.loads(target.read_text()) == {"version": 1}


# ─────────────────────────────────────────────────────────────────────────────
# Number coercion
# ─────────────────────────────────────────────────────────────────────────────


class TestAsNumber:
    @pytest.mark.parametrize(
        "value,expected",
        [(3, 3.0), ("2.5", 2.5), (None, 0.0), ("abc", 0.0), (float("nan"), 0.0), (float("inf"), 0.0), (True, 0.0)],
    )
    def test_coercion(self, value, expected):
        assert as_number(value) == expected


# ─────────────────────────────────────────────────────────────────────────────
# Sanitizing loads
# ─────────────────────────────────────────────────────────────────────────────


class TestWorkflowPatternFromDict:
    def test_rate_recomputed_from_counts(self):
        """Should trust counters over a stored rate."""
        pattern = WorkflowPattern.from_dict(
            {"workflow_type": "tdd", "total_completions": 4, "successful_completions": 3, "completion_rate": 0.1}
        )
        assert pattern.completion_rate == pytest.approx(0.75)

    def test_legacy_rate_only(self):
        """Should derive successes from a rate when counts are missing."""
        pattern = WorkflowPattern.from_dict({"workflow_type": "tdd", "total_completions": 4, "completion_rate": 0.5})
        assert pattern.successful_completions == 2

    def test_no_completions_means_no_rate(self):
        pattern = WorkflowPattern.from_dict({"workflow_type": "tdd", "completion_rate": 0.9})
        assert pattern.completion_rate is None

    @pytest.mark.parametrize("data", [None, [], {"workflow_type": ""}, {"total_completions": 3}])
    def test_invalid_dropped(self, data):
        assert WorkflowPattern.from_dict(data) is None

    def test_noisy_fields_cleaned(self):
        pattern = WorkflowPattern.from_dict(
            {
                "workflow_type": "rapid",
                "average_time_minutes": -4,
                "common_stuck_points": ["Plan", "Plan", 7, "", "Ship"],
                "last_used": "not a date",
            }
        )
        assert pattern.average_time_minutes == 0.0
        assert pattern.common_stuck_points == ["Plan", "Ship"]
        assert isinstance(pattern.last_used, datetime)


class TestContextPatternFromDict:
    def test_trigger_words_normalized(self):
        pattern = ContextPattern.from_dict({"chosen_workflow": "tdd", "trigger_words": ["Parser", "parser", "Speed"]})
        assert pattern.trigger_words == ["parser", "speed"]

    def test_similarity(self):
        pattern = ContextPattern(chosen_workflow="tdd", trigger_words=["parser", "speed"])
        assert pattern.similarity({"parser", "tests"}) == pytest.approx(0.5)
        assert pattern.similarity({"parser"}) == 1.0
        assert pattern.similarity(set()) == 0.0


class TestPreferencesFromDict:
    def test_wrong_types_fall_back(self):
        prefs = Preferences.from_dict({"flow_mode_enabled": "yes", "default_workflow": 3, "learning_enabled": False})
        assert prefs.flow_mode_enabled is False
        assert prefs.default_workflow == "general"
        assert prefs.learning_enabled is False


class TestUserProfile:
    def test_default_profile(self, base_time):
        profile = UserProfile.create_default(now=base_time)
        assert profile.user_id.startswith("user_")
        assert profile.created_at == base_time
        assert profile.behavior_metrics == BehaviorMetrics()
        assert profile.preferences == Preferences()

    def test_unlock_achievement_once(self, profile, base_time):
        first = Achievement(id="mastery_tdd", name="TDD Master", description="", category="workflow_mastery")
        again = Achievement(id="mastery_tdd", name="TDD Master", description="", category="workflow_mastery")
        assert profile.unlock_achievement(first) is True
        assert profile.unlock_achievement(again) is False
        assert profile.achievements == [first]

    def test_round_trip_through_json(self, profile, base_time):
        """Should come back equal, with every timestamp a datetime."""
        pattern = profile.get_or_create_workflow_pattern("tdd", base_time)
        pattern.total_completions = 2
        pattern.successful_completions = 1
        pattern.completion_rate = 0.5
        context = profile.get_or_create_context_pattern("tdd", base_time)
        context.add_trigger_words(["parser"])
        context.frequency = 1
        profile.unlock_achievement(
            Achievement(id="x", name="X", description="d", category="engagement", unlocked_at=base_time)
        )

        restored = UserProfile.from_dict(json.loads(dumps(profile.to_dict())))
        assert restored == profile
        assert isinstance(restored.workflow_patterns["tdd"].last_used, datetime)
        assert isinstance(restored.achievements[0].unlocked_at, datetime)

    def test_from_garbage(self):
        profile = UserProfile.from_dict("nope")
        assert profile.user_id


class TestFlowState:
    def test_to_dict(self):
        data = FlowState().to_dict()
        assert data["intensity"] == "gentle"
        assert data["hint_cooldown_ms"] == 30_000
        assert data["last_hint_time"] is None
