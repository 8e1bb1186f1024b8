"""
Tool: Session Tracker
Purpose: Per-run record of actions, hint interactions, and productivity

Nothing here is persisted directly. Behaviour metrics that outlive the run
(tool usage, hint acceptance, switch counts) are written straight into the
profile; the session itself is folded into the profile once, by end_session.

Hint acceptance is an exponential moving average, so recent behaviour
dominates:

    rate = rate * (1 - alpha) + (1 if accepted else 0) * alpha
"""

from __future__ import annotations

from collections import deque
from datetime import datetime
from typing import Any

from sherpa.learning.config_models import LearningConfig
from sherpa.learning.models import AdaptiveHint, LearningSession, UserProfile, as_number
from sherpa.logging_config import get_logger

logger = get_logger(__name__)


class SessionTracker:
    """
    Owns the current LearningSession and the bounded recent-action history.

    Attributes:
        session: The current LearningSession
        recent_actions: Newest-last history of completed steps
        last_action_time: When the last completed step was recorded, if ever
    """

    def __init__(self, config: LearningConfig | None = None, now: datetime | None = None):
        self.config = config or LearningConfig()
        self.session = LearningSession(start_time=now or datetime.now())
        self.recent_actions: deque[str] = deque(maxlen=self.config.session.recent_action_capacity)
        self.last_action_time: datetime | None = None
        self._last_workflow: str | None = None
        self._flow_since: datetime | None = None

    def record_tool_usage(
        self, profile: UserProfile, tool: str, payload: Any = None, now: datetime | None = None
    ) -> bool:
        """Count a tool call. Returns True when the payload marks a completed step."""
        now = now or datetime.now()
        tool = tool if isinstance(tool, str) and tool else "unknown"
        metrics = profile.behavior_metrics
        metrics.tool_usage_frequency[tool] = metrics.tool_usage_frequency.get(tool, 0) + 1
        profile.last_active = now

        if not (isinstance(payload, dict) and payload.get("completed")):
            return False

        self.session.productivity.steps_completed += 1
        self.recent_actions.append(f"{tool}:action")
        self.last_action_time = now
        return True

    def record_workflow(self, profile: UserProfile, workflow_type: str, context: str | None = None) -> None:
        if workflow_type not in self.session.workflows_used:
            self.session.workflows_used.append(workflow_type)
        if isinstance(context, str) and context and context not in self.session.contexts_provided:
            self.session.contexts_provided.append(context)

        if self._last_workflow is not None and self._last_workflow != workflow_type:
            profile.behavior_metrics.workflow_switch_frequency += 1
        self._last_workflow = workflow_type

    def record_completion(self, minutes: float, success: bool) -> None:
        productivity = self.session.productivity
        productivity.completions += 1
        if not success:
            productivity.failed_completions += 1
        productivity.time_to_completion = max(0.0, as_number(minutes))
        productivity.error_rate = productivity.failed_completions / productivity.completions

    def record_hint_interaction(self, profile: UserProfile, hint: AdaptiveHint | None, accepted: bool) -> float:
        """Update counters and the acceptance EMA. Returns the new rate."""
        if accepted:
            self.session.hints_accepted += 1
        else:
            self.session.hints_rejected += 1

        alpha = self.config.session.hint_acceptance_alpha
        metrics = profile.behavior_metrics
        metrics.hint_acceptance_rate = metrics.hint_acceptance_rate * (1 - alpha) + (1.0 if accepted else 0.0) * alpha
        metrics.hint_interactions += 1

        logger.debug(
            "hint_interaction",
            hint_type=hint.type.value if hint else None,
            accepted=accepted,
            acceptance_rate=round(metrics.hint_acceptance_rate, 3),
        )
        return metrics.hint_acceptance_rate

    def record_flow_change(self, active: bool, now: datetime | None = None) -> None:
        now = now or datetime.now()
        if active:
            if self._flow_since is None:
                self._flow_since = now
            return
        self._accumulate_flow_time(now)

    def _accumulate_flow_time(self, now: datetime) -> None:
        if self._flow_since is not None:
            elapsed = max(0.0, (now - self._flow_since).total_seconds() * 1000)
            self.session.productivity.flow_state_time_ms += elapsed
            self._flow_since = None

    def record_satisfaction_signals(self, count: int) -> None:
        if count > 0:
            self.session.user_satisfaction_signals += count

    def working_time_ms(self, now: datetime | None = None) -> float:
        now = now or datetime.now()
        end = self.session.end_time or now
        return max(0.0, (end - self.session.start_time).total_seconds() * 1000)

    def end_session(self, profile: UserProfile, now: datetime | None = None) -> bool:
        """Fold this session into the profile. Only the first call has any effect."""
        if self.session.is_ended:
            return False

        now = now or datetime.now()
        self._accumulate_flow_time(now)
        self.session.end_time = now

        duration_ms = self.working_time_ms(now)
        metrics = profile.behavior_metrics
        metrics.total_session_time_ms += duration_ms
        metrics.session_count += 1
        metrics.average_session_length_ms = metrics.total_session_time_ms / metrics.session_count
        metrics.preferred_celebration_level = self.session.celebration_level
        profile.last_active = now

        logger.info(
            "session_ended",
            session_id=self.session.session_id,
            duration_ms=round(duration_ms),
            steps=self.session.productivity.steps_completed,
        )
        return True
