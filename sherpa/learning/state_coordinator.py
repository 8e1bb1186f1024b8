"""Save, load, and report on every persisted learning store at once.

Each store is attempted even when an earlier one fails, so one bad disk
write never leaves the others stale.
"""

from __future__ import annotations

from typing import Any

from sherpa.learning.engine import AdaptiveLearningEngine
from sherpa.learning.progress_tracker import ProgressTracker
from sherpa.logging_config import get_logger

logger = get_logger(__name__)


class StateCoordinator:
    def __init__(self, progress_tracker: ProgressTracker, engine: AdaptiveLearningEngine):
        self.progress_tracker = progress_tracker
        self.engine = engine

    def save_all(self) -> dict[str, Any]:
        errors = []
        if not self.progress_tracker.save_state():
            errors.append("ProgressTracker: save failed")
        if not self.engine.save_user_profile():
            errors.append("AdaptiveLearningEngine: save failed")

        if errors:
            logger.warning("state_save_incomplete", errors=errors)
        return {"success": not errors, "errors": errors}

    def load_all(self) -> dict[str, Any]:
        progress_loaded = self.progress_tracker.load_state()
        learning_loaded = self.engine.store.exists()
        self.engine.load_user_profile()
        return {"progress_loaded": progress_loaded, "learning_loaded": learning_loaded}

    def clear_progress(self) -> None:
        """Reset the progress ledger. The learned profile is left alone."""
        self.progress_tracker.reset_stats()

    def get_state_status(self) -> dict[str, Any]:
        stats = self.progress_tracker.stats
        profile = self.engine.get_user_profile()
        flow = self.engine.get_flow_state()
        return {
            "progress": {
                "total_workflows": stats.total_workflows_completed,
                "total_steps": stats.total_steps_completed,
                "current_streak": stats.current_streak,
                "milestones_achieved": len(self.progress_tracker.get_achieved_milestones()),
            },
            "learning": {
                "user_id": profile.user_id,
                "total_sessions": profile.behavior_metrics.session_count,
                "workflows_tracked": len(profile.workflow_patterns),
                "achievements": len(profile.achievements),
            },
            "flow": {
                "active": flow.is_active,
                "intensity": flow.intensity.value,
            },
        }
