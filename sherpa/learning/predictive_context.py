"""
Tool: Predictive Context Builder
Purpose: Snapshot the user's situation for one hint decision

Stuck detection:
    The user is stuck when they have spent longer than the threshold in the
    current phase AND no completed step has been seen within the threshold.

Confidence:
    Starts neutral (0.5) and moves toward the workflow's completion rate as
    completions accumulate, never reaching certainty:

        confidence = 0.5 + (rate - 0.5) * n / (n + k)

    With k = 5, five completions give history half the weight.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from sherpa.learning.config_models import LearningConfig
from sherpa.learning.models import PredictiveContext, UserProfile, WorkflowPattern, as_number
from sherpa.learning.pattern_learner import normalize_workflow
from sherpa.learning.session_tracker import SessionTracker


def compute_confidence(pattern: WorkflowPattern | None, config: LearningConfig | None = None) -> float:
    settings = (config or LearningConfig()).confidence
    if pattern is None or pattern.completion_rate is None or pattern.total_completions == 0:
        return settings.neutral

    n = pattern.total_completions
    weight = n / (n + settings.sample_half_weight)
    confidence = settings.neutral + (pattern.completion_rate - settings.neutral) * weight
    return min(max(confidence, 0.0), settings.max_confidence)


class PredictiveContextBuilder:
    """Tracks phase entry and builds PredictiveContext snapshots."""

    def __init__(self, config: LearningConfig | None = None):
        self.config = config or LearningConfig()
        self._phase_key: tuple[str, str] | None = None
        self._phase_entered_at: datetime | None = None

    @property
    def stuck_threshold(self) -> timedelta:
        return timedelta(minutes=self.config.stuck.threshold_minutes)

    def time_in_phase_ms(
        self, workflow: str, phase: str, override_ms: float | None = None, now: datetime | None = None
    ) -> float:
        now = now or datetime.now()
        key = (workflow, phase)
        if key != self._phase_key or self._phase_entered_at is None:
            self._phase_key = key
            self._phase_entered_at = now

        if override_ms is not None:
            return max(0.0, as_number(override_ms))
        return max(0.0, (now - self._phase_entered_at).total_seconds() * 1000)

    def is_stuck(self, time_in_phase_ms: float, last_action_time: datetime | None, now: datetime) -> bool:
        threshold = self.stuck_threshold
        if time_in_phase_ms <= threshold.total_seconds() * 1000:
            return False
        if last_action_time is None:
            return True
        return now - last_action_time > threshold

    def generate_predictive_context(
        self,
        profile: UserProfile,
        session: SessionTracker,
        workflow: str,
        phase: str,
        context: str | None = None,
        time_in_phase_ms: float | None = None,
        now: datetime | None = None,
    ) -> PredictiveContext:
        now = now or datetime.now()
        workflow = normalize_workflow(workflow)
        phase = phase if isinstance(phase, str) else ""

        elapsed = self.time_in_phase_ms(workflow, phase, time_in_phase_ms, now)

        return PredictiveContext(
            current_workflow=workflow,
            current_phase=phase,
            time_in_phase_ms=elapsed,
            recent_actions=list(session.recent_actions),
            behavior_profile=profile.behavior_metrics.copy(),
            session_context=context if isinstance(context, str) else "",
            working_time_ms=session.working_time_ms(now),
            is_stuck=self.is_stuck(elapsed, session.last_action_time, now),
            confidence=compute_confidence(profile.get_workflow_pattern(workflow), self.config),
        )
