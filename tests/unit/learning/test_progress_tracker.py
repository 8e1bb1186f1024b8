"""Tests for sherpa/learning/progress_tracker.py

The progress ledger counts steps and workflows, keeps a daily streak, and
reports milestones in the call that crosses them. State survives restarts
via progress-tracker.json.
"""

import json
from datetime import date, timedelta

import pytest

from sherpa.learning.progress_tracker import PROGRESS_FILENAME, ProgressTracker


@pytest.fixture
def tracker(sherpa_home):
    return ProgressTracker(sherpa_home)


# ─────────────────────────────────────────────────────────────────────────────
# Counting
# ─────────────────────────────────────────────────────────────────────────────


class TestRecording:
    """Tests for step and workflow counters."""

    def test_step_completion_counts(self, tracker, base_time):
        """Should count steps and per-type usage."""
        tracker.record_step_completion("tdd", "write failing test", now=base_time)
        tracker.record_step_completion("tdd", "make it pass", now=base_time)

        assert tracker.stats.total_steps_completed == 2
        assert tracker.stats.workflow_type_usage == {"tdd": 2}
        assert tracker.stats.last_activity == base_time

    def test_workflow_completion_running_mean(self, tracker, base_time):
        """Should keep a running mean of steps per workflow."""
        tracker.record_workflow_completion("tdd", 4, 20, now=base_time)
        tracker.record_workflow_completion("tdd", 6, 40, now=base_time)

        assert tracker.stats.total_workflows_completed == 2
        assert tracker.stats.average_steps_per_workflow == pytest.approx(5.0)
        assert tracker.stats.time_spent_in_workflows == pytest.approx(60.0)

    def test_negative_duration_ignored(self, tracker, base_time):
        """Should treat negative durations as zero minutes."""
        tracker.record_workflow_completion("general", 3, -15, now=base_time)
        assert tracker.stats.time_spent_in_workflows == 0.0

    def test_progress_check_only_touches_activity(self, tracker, base_time):
        """Should update last activity and cross nothing."""
        later = base_time + timedelta(hours=2)
        assert tracker.record_progress_check(now=later) == []
        assert tracker.stats.last_activity == later
        assert tracker.stats.total_steps_completed == 0


# ─────────────────────────────────────────────────────────────────────────────
# Streak
# ─────────────────────────────────────────────────────────────────────────────


class TestStreak:
    """Tests for the calendar-day streak."""

    def test_first_activity_starts_streak(self, tracker, base_time):
        """Should start the streak at 1."""
        tracker.record_step_completion("tdd", now=base_time)
        assert tracker.stats.current_streak == 1

    def test_same_day_counts_once(self, tracker, base_time):
        """Should increment at most once per calendar day."""
        for minutes in range(0, 600, 60):
            tracker.record_step_completion("tdd", now=base_time + timedelta(minutes=minutes))
        assert tracker.stats.current_streak == 1

    def test_next_day_extends(self, tracker, base_time):
        """Should extend the streak on consecutive days."""
        tracker.record_step_completion("tdd", now=base_time)
        tracker.record_step_completion("tdd", now=base_time + timedelta(days=1))
        tracker.record_step_completion("tdd", now=base_time + timedelta(days=1, hours=3))
        assert tracker.stats.current_streak == 2

    def test_gap_resets(self, tracker, base_time):
        """Should restart at 1 after a missed day."""
        tracker.record_step_completion("tdd", now=base_time)
        tracker.record_step_completion("tdd", now=base_time + timedelta(days=1))
        tracker.record_step_completion("tdd", now=base_time + timedelta(days=4))
        assert tracker.stats.current_streak == 1

    def test_midnight_boundary(self, tracker, base_time):
        """Should use calendar days, not 24-hour windows."""
        late = base_time.replace(hour=23, minute=50)
        tracker.record_step_completion("tdd", now=late)
        tracker.record_step_completion("tdd", now=late + timedelta(minutes=20))
        assert tracker.stats.current_streak == 2


# ─────────────────────────────────────────────────────────────────────────────
# Milestones
# ─────────────────────────────────────────────────────────────────────────────


class TestMilestones:
    """Tests for milestone detection."""

    def test_first_workflow_crossed_once(self, tracker, base_time):
        """Should return first_workflow_completion only in the crossing call."""
        first = tracker.record_workflow_completion("tdd", 5, 45, now=base_time)
        second = tracker.record_workflow_completion("tdd", 5, 45, now=base_time)

        assert [m.id for m in first] == ["first_workflow_completion"]
        assert first[0].achieved_at == base_time
        assert second == []

    def test_efficiency_master(self, tracker, base_time):
        """Should cross when the mean workflow time drops under 30 minutes."""
        crossed = tracker.record_workflow_completion("rapid", 3, 12, now=base_time)
        assert "efficiency_master" in {m.id for m in crossed}

    def test_rapid_adoption_and_veteran(self, tracker, base_time):
        """Should cross count milestones at 3 and 5 workflows."""
        crossed_ids = []
        for _ in range(5):
            crossed_ids += [m.id for m in tracker.record_workflow_completion("tdd", 5, 60, now=base_time)]

        assert crossed_ids.count("rapid_adoption") == 1
        assert crossed_ids.count("five_workflows_completed") == 1

    def test_workflow_diversity(self, tracker, base_time):
        """Should cross once all core workflow types are used."""
        crossed = []
        for workflow in ["tdd", "bug-hunt", "general", "rapid", "refactor"]:
            crossed = tracker.record_step_completion(workflow, now=base_time)
        assert [m.id for m in crossed] == ["workflow_diversity"]

    def test_consistent_usage(self, tracker, base_time):
        """Should cross on the seventh consecutive day."""
        for day in range(6):
            assert tracker.record_step_completion("tdd", now=base_time + timedelta(days=day)) == []
        crossed = tracker.record_step_completion("tdd", now=base_time + timedelta(days=6))
        assert [m.id for m in crossed] == ["consistent_usage"]

    def test_next_milestone(self, tracker, base_time):
        """Should report the first unachieved milestone."""
        assert tracker.get_next_milestone().id == "first_workflow_completion"
        tracker.record_workflow_completion("tdd", 5, 45, now=base_time)
        assert tracker.get_next_milestone().id == "five_workflows_completed"


# ─────────────────────────────────────────────────────────────────────────────
# Persistence
# ─────────────────────────────────────────────────────────────────────────────


class TestPersistence:
    """Tests for progress-tracker.json."""

    def test_state_survives_restart(self, sherpa_home, base_time):
        """Should reload counters, streak date and milestones."""
        tracker = ProgressTracker(sherpa_home)
        tracker.record_workflow_completion("tdd", 5, 20, now=base_time)

        reloaded = ProgressTracker(sherpa_home)
        assert reloaded.stats.total_workflows_completed == 1
        assert reloaded.stats.current_streak == 1
        assert reloaded.stats.last_streak_date == date(2026, 3, 2)
        assert isinstance(reloaded.stats.last_activity, type(base_time))
        assert {m.id for m in reloaded.get_achieved_milestones()} == {
            "first_workflow_completion",
            "efficiency_master",
        }

    def test_streak_continues_after_restart(self, sherpa_home, base_time):
        """Should extend a persisted streak on the next day."""
        ProgressTracker(sherpa_home).record_step_completion("tdd", now=base_time)
        reloaded = ProgressTracker(sherpa_home)
        reloaded.record_step_completion("tdd", now=base_time + timedelta(days=1))
        assert reloaded.stats.current_streak == 2

    def test_missing_file_gives_fresh_state(self, sherpa_home):
        """Should start from zero when nothing is stored."""
        tracker = ProgressTracker(sherpa_home)
        assert tracker.stats.total_steps_completed == 0
        assert tracker.get_achieved_milestones() == []

    def test_corrupt_file_gives_fresh_state(self, sherpa_home):
        """Should ignore an unparseable file instead of raising."""
        (sherpa_home / PROGRESS_FILENAME).write_text("{not json")
        tracker = ProgressTracker(sherpa_home)
        assert tracker.stats.total_workflows_completed == 0

    def test_wrong_field_types_give_sanitized_state(self, sherpa_home):
        """Should skip mistyped entries in valid JSON and keep the good ones."""
        payload = {
            "stats": {
                "total_workflows_completed": "lots",
                "current_streak": [3],
                "workflow_type_usage": ["tdd"],
                "last_streak_date": 42.5,
            },
            "milestones": [
                {"id": ["x"], "achieved": True},
                {"id": {"nested": 1}, "achieved": True},
                {"id": None, "achieved": True},
                "first_workflow_completion",
                {"id": "first_workflow_completion", "achieved": True, "achieved_at": "2026-03-01T08:00:00"},
            ],
        }
        (sherpa_home / PROGRESS_FILENAME).write_text(json.dumps(payload))

        tracker = ProgressTracker(sherpa_home)
        assert tracker.stats.total_workflows_completed == 0
        assert tracker.stats.current_streak == 0
        assert tracker.stats.workflow_type_usage == {}
        assert [m.id for m in tracker.get_achieved_milestones()] == ["first_workflow_completion"]

    def test_written_file_is_json(self, tracker, sherpa_home, base_time):
        """Should write a versioned JSON document."""
        tracker.record_step_completion("tdd", now=base_time)
        data = json.loads((sherpa_home / PROGRESS_FILENAME).read_text())
        assert data["schema_version"] == 1
        assert data["stats"]["total_steps_completed"] == 1
        assert data["stats"]["last_streak_date"] == "2026-03-02"

    def test_reset_stats(self, tracker, sherpa_home, base_time):
        """Should clear stats and milestones, on disk too."""
        tracker.record_workflow_completion("tdd", 5, 20, now=base_time)
        tracker.reset_stats()
        reloaded = ProgressTracker(sherpa_home)
        assert reloaded.stats.total_workflows_completed == 0
        assert reloaded.get_achieved_milestones() == []

    def test_in_memory_tracker(self, base_time):
        """Should work without a storage directory."""
        tracker = ProgressTracker(None)
        assert tracker.record_workflow_completion("tdd", 5, 20, now=base_time)
        assert tracker.save_state() is True


# ─────────────────────────────────────────────────────────────────────────────
# Encouragement
# ─────────────────────────────────────────────────────────────────────────────


class TestEncouragement:
    def test_before_first_workflow(self, tracker):
        """Should invite the user to start."""
        assert "first workflow" in tracker.get_progress_encouragement()

    def test_long_streak(self, tracker, base_time):
        """Should mention a streak longer than three days."""
        for day in range(4):
            tracker.record_workflow_completion("tdd", 5, 40, now=base_time + timedelta(days=day))
        assert "4-day streak" in tracker.get_progress_encouragement()

    def test_tips_for_single_workflow_user(self, tracker, base_time):
        """Should suggest exploring other workflows."""
        tracker.record_workflow_completion("tdd", 2, 40, now=base_time)
        tips = tracker.get_personalized_tips()
        assert any("different workflows" in tip for tip in tips)
        assert any("more steps" in tip for tip in tips)
