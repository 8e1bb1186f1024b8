"""
Tool: Hint Engine
Purpose: Decide whether to nudge the user right now, and how

Decision order (first match wins, at most one hint per call):
    0. Predictive hints disabled in preferences  -> nothing
    1. Inside the cooldown window                -> nothing
    2. Stuck now, or in a phase that stuck before -> prevention (high, immediate)
    3. A proven workflow fits the context better  -> workflow-suggestion (medium)
    4. Running well past the usual time           -> optimization (low)
    5. Otherwise                                  -> nothing

Flow intensity:
    Flow mode controls how often hints may surface. Modes: on, off, whisper,
    gentle, active ("on" means gentle). Each intensity maps to a cooldown:

        whisper  120s
        gentle    30s
        active    15s
"""

from __future__ import annotations

from datetime import datetime

from sherpa.learning.config_models import LearningConfig
from sherpa.learning.models import (
    DEFAULT_COOLDOWN_MS,
    AdaptiveHint,
    ContextPattern,
    FlowIntensity,
    FlowState,
    HintPriority,
    HintTiming,
    HintType,
    PredictiveContext,
    UserProfile,
    WorkflowPattern,
)
from sherpa.learning.pattern_learner import extract_trigger_words
from sherpa.logging_config import get_logger

logger = get_logger(__name__)

COOLDOWN_BY_INTENSITY = DEFAULT_COOLDOWN_MS

FLOW_MODES = ("on", "off", "whisper", "gentle", "active")


def _cooldown_table(config: LearningConfig) -> dict[FlowIntensity, int]:
    table = dict(COOLDOWN_BY_INTENSITY)
    for name, seconds in config.flow.cooldown_seconds.items():
        try:
            table[FlowIntensity(name)] = int(seconds * 1000)
        except ValueError:
            logger.warning("unknown_flow_intensity_in_config", intensity=name)
    return table


class HintEngine:
    """
    Scores PredictiveContext snapshots into at most one AdaptiveHint.

    Owns the FlowState, since cooldown and interruption counting are
    properties of hint delivery.
    """

    def __init__(self, config: LearningConfig | None = None, flow_enabled: bool = False):
        self.config = config or LearningConfig()
        self.cooldowns = _cooldown_table(self.config)

        try:
            intensity = FlowIntensity(self.config.flow.default_intensity)
        except ValueError:
            intensity = FlowIntensity.GENTLE
        self.flow_state = FlowState(
            is_active=flow_enabled,
            intensity=intensity,
            hint_cooldown_ms=self.cooldowns[intensity],
        )

    # ─────────────────────────────────────────────────────────────────────
    # Flow state machine
    # ─────────────────────────────────────────────────────────────────────

    def update_flow_state(self, profile: UserProfile, mode: str) -> FlowState:
        """Apply a flow mode. Unknown modes are logged and leave state untouched."""
        mode = mode.strip().lower() if isinstance(mode, str) else ""
        if mode not in FLOW_MODES:
            logger.warning("unknown_flow_mode", mode=mode)
            return self.flow_state

        state = self.flow_state
        if mode == "off":
            state.is_active = False
            profile.preferences.flow_mode_enabled = False
        else:
            intensity = FlowIntensity.GENTLE if mode == "on" else FlowIntensity(mode)
            if not state.is_active:
                profile.behavior_metrics.flow_mode_usage += 1
            state.is_active = True
            state.intensity = intensity
            state.hint_cooldown_ms = self.cooldowns[intensity]
            profile.preferences.flow_mode_enabled = True

        logger.info(
            "flow_mode_changed",
            mode=mode,
            active=state.is_active,
            intensity=state.intensity.value,
            cooldown_ms=state.hint_cooldown_ms,
        )
        return state

    def in_cooldown(self, now: datetime) -> bool:
        last = self.flow_state.last_hint_time
        if last is None:
            return False
        elapsed_ms = (now - last).total_seconds() * 1000
        return elapsed_ms < self.flow_state.hint_cooldown_ms

    # ─────────────────────────────────────────────────────────────────────
    # Hint selection
    # ─────────────────────────────────────────────────────────────────────

    def generate_adaptive_hint(
        self, profile: UserProfile, context: PredictiveContext, now: datetime | None = None
    ) -> AdaptiveHint | None:
        now = now or datetime.now()

        if not profile.preferences.predictive_hints_enabled:
            return None
        if self.in_cooldown(now):
            return None

        pattern = profile.get_workflow_pattern(context.current_workflow)
        hint = (
            self._prevention_hint(context, pattern)
            or self._workflow_suggestion_hint(profile, context)
            or self._optimization_hint(context, pattern)
        )
        if hint is None:
            return None

        hint.confidence = min(hint.confidence, context.confidence)
        self.flow_state.last_hint_time = now
        if self.flow_state.is_active:
            self.flow_state.interruption_count += 1

        logger.debug(
            "hint_emitted",
            hint_type=hint.type.value,
            workflow=context.current_workflow,
            phase=context.current_phase,
            confidence=round(hint.confidence, 3),
        )
        return hint

    def _prevention_hint(self, context: PredictiveContext, pattern: WorkflowPattern | None) -> AdaptiveHint | None:
        hints = self.config.hints

        if context.is_stuck:
            content = "Consider taking a step back and reviewing your current approach"
            if pattern and pattern.successful_strategies:
                content = f"Based on your past success: {pattern.successful_strategies[-1]}"
            return AdaptiveHint(
                type=HintType.PREVENTION,
                content=content,
                confidence=hints.stuck_confidence,
                timing=HintTiming.IMMEDIATE,
                priority=HintPriority.HIGH,
                context="User appears stuck in current phase",
                learning_basis=["time_in_phase_analysis", "historical_success_patterns"],
            )

        stuck_point = self._matching_stuck_point(context.current_phase, pattern)
        if stuck_point is None:
            return None
        return AdaptiveHint(
            type=HintType.PREVENTION,
            content=f'Watch out: you\'ve previously gotten stuck on "{stuck_point}". '
            "Consider preparing your approach first.",
            confidence=hints.stuck_point_confidence,
            timing=HintTiming.IMMEDIATE,
            priority=HintPriority.HIGH,
            context="Historical stuck point detected",
            learning_basis=["stuck_point_analysis", "historical_patterns"],
        )

    @staticmethod
    def _matching_stuck_point(phase: str, pattern: WorkflowPattern | None) -> str | None:
        if not phase or pattern is None:
            return None
        for stuck_point in pattern.common_stuck_points:
            if stuck_point == phase or stuck_point in phase:
                return stuck_point
        return None

    def _best_context_pattern(self, profile: UserProfile, context: PredictiveContext) -> ContextPattern | None:
        words = set(extract_trigger_words(context.session_context, self.config.session.min_trigger_word_length))
        if not words:
            return None

        hints = self.config.hints
        best: ContextPattern | None = None
        best_score = (0.0, 0.0)
        for candidate in profile.context_patterns.values():
            if candidate.chosen_workflow == context.current_workflow:
                continue
            # Unproven workflows are never recommended
            if candidate.success_rate is None or candidate.success_rate < hints.workflow_switch_min_success_rate:
                continue
            similarity = candidate.similarity(words)
            if similarity < hints.workflow_switch_min_similarity:
                continue
            score = (similarity, candidate.success_rate)
            if best is None or score > best_score:
                best, best_score = candidate, score
        return best

    def _workflow_suggestion_hint(self, profile: UserProfile, context: PredictiveContext) -> AdaptiveHint | None:
        better = self._best_context_pattern(profile, context)
        if better is None:
            return None
        return AdaptiveHint(
            type=HintType.WORKFLOW_SUGGESTION,
            content=f"Based on your patterns, {better.chosen_workflow} workflow might be more effective "
            "for this context",
            confidence=better.success_rate or 0.0,
            timing=HintTiming.PREDICTIVE,
            priority=HintPriority.MEDIUM,
            context="Context analysis suggests better workflow match",
            learning_basis=["context_pattern_analysis", "historical_success_rates"],
        )

    def _optimization_hint(self, context: PredictiveContext, pattern: WorkflowPattern | None) -> AdaptiveHint | None:
        hints = self.config.hints
        if pattern is None or pattern.total_completions < hints.optimization_min_completions:
            return None
        if pattern.average_time_minutes <= 0:
            return None

        usual_ms = pattern.average_time_minutes * 60_000
        if context.time_in_phase_ms < usual_ms * hints.optimization_slowdown_factor:
            return None
        return AdaptiveHint(
            type=HintType.OPTIMIZATION,
            content="You're taking longer than usual - consider breaking this into smaller steps",
            confidence=hints.optimization_confidence,
            timing=HintTiming.AFTER_DELAY,
            priority=HintPriority.LOW,
            context="Performance optimization opportunity detected",
            learning_basis=["timing_analysis", "efficiency_patterns"],
        )
