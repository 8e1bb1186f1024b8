"""
Tool: Progress Tracker
Purpose: Count completed steps and workflows, keep a daily streak, and
         report milestones the moment they are crossed

No learning happens here - pure aggregation. Every record_* call returns the
milestones it newly crossed, so callers can celebrate without polling.

Streak rules (calendar days, local time):
- First ever activity starts the streak at 1
- More activity on the same day leaves it unchanged
- Activity on the next day extends it by 1
- A gap of more than one day restarts it at 1

Usage:
    from sherpa.learning.progress_tracker import ProgressTracker

    tracker = ProgressTracker(Path.home() / ".sherpa")
    tracker.record_step_completion("tdd", "wrote failing test")
    crossed = tracker.record_workflow_completion("tdd", step_count=5, duration_minutes=25)

Dependencies:
    - json (stdlib, via sherpa.learning.serialization)

Output:
    State persisted to <root>/progress-tracker.json after every change
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

from sherpa.learning import CORE_WORKFLOWS
from sherpa.learning.models import as_count, as_number
from sherpa.learning.serialization import format_timestamp, parse_timestamp, write_json_atomic
from sherpa.logging_config import get_logger

logger = get_logger(__name__)

PROGRESS_FILENAME = "progress-tracker.json"
SCHEMA_VERSION = 1

# Workflow types that together make up "workflow diversity"
CORE_WORKFLOW_TYPES = CORE_WORKFLOWS

CONSISTENT_STREAK_DAYS = 7
EFFICIENT_AVERAGE_MINUTES = 30


@dataclass
class ProgressStats:
    total_workflows_completed: int = 0
    total_steps_completed: int = 0
    current_streak: int = 0
    last_activity: datetime = field(default_factory=datetime.now)
    last_streak_date: date | None = None
    workflow_type_usage: dict[str, int] = field(default_factory=dict)
    average_steps_per_workflow: float = 0.0
    time_spent_in_workflows: float = 0.0  # minutes

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_workflows_completed": self.total_workflows_completed,
            "total_steps_completed": self.total_steps_completed,
            "current_streak": self.current_streak,
            "last_activity": format_timestamp(self.last_activity),
            "last_streak_date": self.last_streak_date.isoformat() if self.last_streak_date else None,
            "workflow_type_usage": dict(self.workflow_type_usage),
            "average_steps_per_workflow": self.average_steps_per_workflow,
            "time_spent_in_workflows": self.time_spent_in_workflows,
        }

    @classmethod
    def from_dict(cls, data: Any) -> ProgressStats:
        if not isinstance(data, dict):
            return cls()
        streak_day = parse_timestamp(data.get("last_streak_date"))
        usage = data.get("workflow_type_usage")
        return cls(
            total_workflows_completed=as_count(data.get("total_workflows_completed")),
            total_steps_completed=as_count(data.get("total_steps_completed")),
            current_streak=as_count(data.get("current_streak")),
            last_activity=parse_timestamp(data.get("last_activity"), default=datetime.now()),
            last_streak_date=streak_day.date() if streak_day else None,
            workflow_type_usage=(
                {str(k): as_count(v) for k, v in usage.items()} if isinstance(usage, dict) else {}
            ),
            average_steps_per_workflow=max(0.0, as_number(data.get("average_steps_per_workflow"))),
            time_spent_in_workflows=max(0.0, as_number(data.get("time_spent_in_workflows"))),
        )


@dataclass
class Milestone:
    id: str
    name: str
    description: str
    icon: str
    achieved: bool = False
    achieved_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "achieved": self.achieved,
            "achieved_at": format_timestamp(self.achieved_at),
        }


def _all_core_types_used(stats: ProgressStats) -> bool:
    return all(t in stats.workflow_type_usage for t in CORE_WORKFLOW_TYPES)


def _is_efficient(stats: ProgressStats) -> bool:
    if stats.total_workflows_completed == 0 or stats.average_steps_per_workflow <= 0:
        return False
    return stats.time_spent_in_workflows / stats.total_workflows_completed < EFFICIENT_AVERAGE_MINUTES


# id, name, description, icon, crossed?
MILESTONE_TABLE: list[tuple[str, str, str, str, Callable[[ProgressStats], bool]]] = [
    (
        "first_workflow_completion",
        "First Workflow Mastery",
        "Complete your first full workflow",
        "🎉",
        lambda s: s.total_workflows_completed >= 1,
    ),
    (
        "five_workflows_completed",
        "Workflow Veteran",
        "Complete 5 workflows",
        "🏆",
        lambda s: s.total_workflows_completed >= 5,
    ),
    (
        "consistent_usage",
        "Workflow Discipline",
        "Use workflows consistently for a week",
        "⭐",
        lambda s: s.current_streak >= CONSISTENT_STREAK_DAYS,
    ),
    (
        "workflow_diversity",
        "Multi-Workflow Mastery",
        "Use all 5 core workflow types",
        "🌟",
        _all_core_types_used,
    ),
    (
        "rapid_adoption",
        "Quick Learner",
        "Complete 3 workflows",
        "🚀",
        lambda s: s.total_workflows_completed >= 3,
    ),
    (
        "efficiency_master",
        "Efficiency Master",
        f"Average under {EFFICIENT_AVERAGE_MINUTES} minutes per workflow",
        "⚡",
        _is_efficient,
    ),
]

_MILESTONE_CHECKS = {row[0]: row[4] for row in MILESTONE_TABLE}


def _fresh_milestones() -> list[Milestone]:
    return [Milestone(id=i, name=n, description=d, icon=ic) for i, n, d, ic, _ in MILESTONE_TABLE]


class ProgressTracker:
    """
    Append-only progress ledger with milestone detection.

    Attributes:
        root_dir: Storage directory, or None for an in-memory ledger
        stats: Current ProgressStats
        milestones: All milestones, achieved or not, in table order
    """

    def __init__(self, root_dir: str | Path | None = None):
        self.root_dir = Path(root_dir) if root_dir is not None else None
        self.stats = ProgressStats()
        self.milestones = _fresh_milestones()
        self.load_state()

    @property
    def state_path(self) -> Path | None:
        if self.root_dir is None:
            return None
        return self.root_dir / PROGRESS_FILENAME

    # ─────────────────────────────────────────────────────────────────────
    # Recording
    # ─────────────────────────────────────────────────────────────────────

    def record_step_completion(
        self, workflow_type: str, description: str = "", now: datetime | None = None
    ) -> list[Milestone]:
        now = now or datetime.now()
        self.stats.total_steps_completed += 1
        self._update_streak(now)
        self.stats.last_activity = now
        self._track_usage(workflow_type)
        logger.debug("step_recorded", workflow=workflow_type, description=description)
        return self._commit(now)

    def record_workflow_completion(
        self,
        workflow_type: str,
        step_count: int,
        duration_minutes: float,
        now: datetime | None = None,
    ) -> list[Milestone]:
        now = now or datetime.now()
        stats = self.stats
        stats.total_workflows_completed += 1
        stats.time_spent_in_workflows += max(0.0, as_number(duration_minutes))

        steps = as_count(step_count)
        total_steps = stats.average_steps_per_workflow * (stats.total_workflows_completed - 1) + steps
        stats.average_steps_per_workflow = total_steps / stats.total_workflows_completed

        self._track_usage(workflow_type)
        self._update_streak(now)
        stats.last_activity = now
        return self._commit(now)

    def record_progress_check(self, now: datetime | None = None) -> list[Milestone]:
        self.stats.last_activity = now or datetime.now()
        self.save_state()
        return []

    def _update_streak(self, now: datetime) -> None:
        today = now.date()
        last_day = self.stats.last_streak_date

        if last_day is None or self.stats.current_streak == 0:
            self.stats.current_streak = 1
        else:
            gap = (today - last_day).days
            if gap == 1:
                self.stats.current_streak += 1
            elif gap > 1:
                self.stats.current_streak = 1
            # gap <= 0: same day (or clock went backwards) - unchanged

        if last_day is None or today > last_day:
            self.stats.last_streak_date = today

    def _track_usage(self, workflow_type: str) -> None:
        key = workflow_type or "general"
        self.stats.workflow_type_usage[key] = self.stats.workflow_type_usage.get(key, 0) + 1

    def _commit(self, now: datetime) -> list[Milestone]:
        crossed = self._check_milestones(now)
        for milestone in crossed:
            logger.info("milestone_reached", milestone=milestone.id)
        self.save_state()
        return crossed

    def _check_milestones(self, now: datetime) -> list[Milestone]:
        newly_achieved = []
        for milestone in self.milestones:
            check = _MILESTONE_CHECKS.get(milestone.id)
            if not milestone.achieved and check is not None and check(self.stats):
                milestone.achieved = True
                milestone.achieved_at = now
                newly_achieved.append(milestone)
        return newly_achieved

    # ─────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────

    def get_progress_stats(self) -> dict[str, Any]:
        return self.stats.to_dict()

    def get_achieved_milestones(self) -> list[Milestone]:
        return [m for m in self.milestones if m.achieved]

    def get_next_milestone(self) -> Milestone | None:
        return next((m for m in self.milestones if not m.achieved), None)

    def get_progress_encouragement(self) -> str:
        stats = self.stats
        if stats.total_workflows_completed == 0:
            return "Ready to start your first workflow? Each step builds momentum."
        if stats.current_streak > 3:
            return f"{stats.current_streak}-day streak - you're building solid workflow habits."
        if stats.total_steps_completed > 50:
            return f"{stats.total_steps_completed} steps completed. That's real workflow mastery."
        return (
            f"Great progress: {stats.total_workflows_completed} workflows completed, "
            f"{stats.total_steps_completed} steps taken."
        )

    def get_personalized_tips(self) -> list[str]:
        tips = []
        if len(self.stats.workflow_type_usage) == 1:
            tips.append("Try exploring different workflows - each fits a different kind of task.")
        if self.stats.current_streak < 3:
            tips.append("Using workflows a little every day makes the habit stick.")
        if 0 < self.stats.average_steps_per_workflow < 3:
            tips.append("Working through more steps per workflow gets you more out of it.")
        return tips

    def reset_stats(self) -> None:
        self.stats = ProgressStats()
        self.milestones = _fresh_milestones()
        self.save_state()

    # ─────────────────────────────────────────────────────────────────────
    # Persistence
    # ─────────────────────────────────────────────────────────────────────

    def load_state(self) -> bool:
        """Load saved stats and milestones. Missing or corrupt files leave fresh state."""
        path = self.state_path
        if path is None or not path.exists():
            return False

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("progress_load_failed", path=str(path), error=str(e))
            return False

        if not isinstance(data, dict):
            logger.warning("progress_load_failed", path=str(path), error="not a JSON object")
            return False

        self.stats = ProgressStats.from_dict(data.get("stats"))
        self.milestones = _fresh_milestones()
        saved = data.get("milestones")
        achieved = {}
        if isinstance(saved, list):
            achieved = {
                m.get("id"): parse_timestamp(m.get("achieved_at"), default=datetime.now())
                for m in saved
                if isinstance(m, dict) and isinstance(m.get("id"), str) and m.get("achieved")
            }
        for milestone in self.milestones:
            if milestone.id in achieved:
                milestone.achieved = True
                milestone.achieved_at = achieved[milestone.id]
        return True

    def save_state(self) -> bool:
        path = self.state_path
        if path is None:
            return True

        data = {
            "schema_version": SCHEMA_VERSION,
            "saved_at": format_timestamp(datetime.now()),
            "stats": self.stats.to_dict(),
            "milestones": [m.to_dict() for m in self.milestones],
        }
        try:
            write_json_atomic(path, data)
            return True
        except (OSError, TypeError) as e:
            logger.error("progress_save_failed", path=str(path), error=str(e))
            return False
