"""
Tool: Adaptive Learning Engine
Purpose: Single entry point for the protocol layer into adaptive learning

Wires the components together around one UserProfile:

    events ──► PatternLearner + SessionTracker ──► UserProfile
                                                     │
    decision point ──► PredictiveContextBuilder ─────┤
                              │                      │
                              ▼                      │
                         HintEngine ◄────────────────┘

The profile is durable (ProfileStore); the session and flow state live for
one engine instance.

Usage:
    from sherpa.learning.engine import AdaptiveLearningEngine

    engine = AdaptiveLearningEngine(Path.home() / ".sherpa")
    engine.record_workflow_usage("tdd", "add password reset validation")
    engine.record_tool_usage("guide", {"completed": True})

    context = engine.generate_predictive_context("tdd", "implement")
    hint = engine.generate_adaptive_hint(context)
    if hint:
        engine.record_hint_interaction(hint, accepted=True)

    engine.end_session()

Dependencies:
    - structlog (via sherpa.logging_config)
    - pydantic / pyyaml (via sherpa.learning.config_models)
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

from sherpa.learning.achievements import evaluate_achievements
from sherpa.learning.config_models import LearningConfig, load_learning_config
from sherpa.learning.hint_engine import HintEngine
from sherpa.learning.models import (
    Achievement,
    AdaptiveHint,
    FlowState,
    LearningSession,
    PredictiveContext,
    UserProfile,
    WorkflowPattern,
)
from sherpa.learning.pattern_learner import PatternLearner, normalize_workflow
from sherpa.learning.predictive_context import PredictiveContextBuilder
from sherpa.learning.profile_store import ProfileStore
from sherpa.learning.session_tracker import SessionTracker
from sherpa.learning.suggestions import build_personalized_suggestions
from sherpa.logging_config import bind_session, get_logger

logger = get_logger(__name__)

# Tool that selects a workflow; its "set" argument names the workflow chosen
WORKFLOW_SELECT_TOOL = "approach"


class AdaptiveLearningEngine:
    """
    Facade over profile, session, patterns, and hints.

    Args:
        root_dir: Directory for user-profile.json. None keeps everything in memory.
        config: Tuning constants. Defaults to args/learning.yaml.
        now: Session start time, for deterministic tests.
    """

    def __init__(
        self,
        root_dir: str | Path | None = None,
        config: LearningConfig | None = None,
        now: datetime | None = None,
    ):
        self.config = config or load_learning_config()
        self.store = ProfileStore(root_dir)
        self.profile = self.store.load()

        self.learner = PatternLearner(self.config)
        self.session = SessionTracker(self.config, now=now)
        self._sync_celebration_level()
        self.context_builder = PredictiveContextBuilder(self.config)
        self.hints = HintEngine(self.config, flow_enabled=self.profile.preferences.flow_mode_enabled)
        if self.hints.flow_state.is_active:
            self.session.record_flow_change(True, now)

        bind_session(self.profile.user_id, self.session.session.session_id)
        logger.debug("engine_started", root_dir=str(root_dir) if root_dir else None)

    @property
    def learning_active(self) -> bool:
        return self.config.enabled and self.profile.preferences.learning_enabled

    # ─────────────────────────────────────────────────────────────────────
    # Events
    # ─────────────────────────────────────────────────────────────────────

    def record_tool_usage(self, tool: str, payload: Any = None, now: datetime | None = None) -> bool:
        """Count a tool call. Returns True if it completed a workflow step."""
        now = now or datetime.now()
        completed = self.session.record_tool_usage(self.profile, tool, payload, now)

        if tool == WORKFLOW_SELECT_TOOL and isinstance(payload, dict):
            selected = payload.get("set")
            if isinstance(selected, str) and selected:
                self.record_workflow_usage(selected, payload.get("context"), now)
        return completed

    def record_workflow_usage(
        self, workflow_type: str, context: str | None = None, now: datetime | None = None
    ) -> WorkflowPattern | None:
        now = now or datetime.now()
        workflow_type = normalize_workflow(workflow_type)
        self.session.record_workflow(self.profile, workflow_type, context)
        if not self.learning_active:
            return None
        return self.learner.record_workflow_usage(self.profile, workflow_type, context, now)

    def record_workflow_completion(
        self,
        workflow_type: str,
        minutes: float,
        success: bool = True,
        now: datetime | None = None,
    ) -> list[Achievement]:
        """Learn from a finished workflow. Returns achievements it unlocked."""
        now = now or datetime.now()
        self.session.record_completion(minutes, success)
        if not self.learning_active:
            return []
        self.learner.record_workflow_completion(self.profile, workflow_type, minutes, success, now)
        return self._evaluate_achievements(now)

    def record_successful_strategy(self, workflow_type: str, strategy: str) -> bool:
        if not self.learning_active:
            return False
        return self.learner.record_successful_strategy(self.profile, workflow_type, strategy)

    def record_hint_interaction(
        self, hint: AdaptiveHint | None, accepted: bool, now: datetime | None = None
    ) -> list[Achievement]:
        now = now or datetime.now()
        self.session.record_hint_interaction(self.profile, hint, accepted)
        if not self.learning_active:
            return []
        return self._evaluate_achievements(now)

    def _evaluate_achievements(self, now: datetime) -> list[Achievement]:
        unlocked = evaluate_achievements(self.profile, self.config, now)
        self.session.record_satisfaction_signals(len(unlocked))
        return unlocked

    def update_flow_state(self, mode: str, now: datetime | None = None) -> FlowState:
        state = self.hints.update_flow_state(self.profile, mode)
        self.session.record_flow_change(state.is_active, now)
        self.save_user_profile()
        return state

    # ─────────────────────────────────────────────────────────────────────
    # Decisions
    # ─────────────────────────────────────────────────────────────────────

    def generate_predictive_context(
        self,
        workflow: str,
        phase: str,
        context: str | None = None,
        time_in_phase_ms: float | None = None,
        now: datetime | None = None,
    ) -> PredictiveContext:
        return self.context_builder.generate_predictive_context(
            self.profile, self.session, workflow, phase, context, time_in_phase_ms, now
        )

    def generate_adaptive_hint(self, context: PredictiveContext, now: datetime | None = None) -> AdaptiveHint | None:
        hint = self.hints.generate_adaptive_hint(self.profile, context, now)
        if context.is_stuck and self.learning_active:
            self.learner.record_stuck_point(self.profile, context.current_workflow, context.current_phase)
        return hint

    def get_personalized_suggestions(self) -> list[str]:
        suggestions = build_personalized_suggestions(self.profile, self.config)
        self.profile.personalized_suggestions = suggestions
        return suggestions

    # ─────────────────────────────────────────────────────────────────────
    # Accessors and lifecycle
    # ─────────────────────────────────────────────────────────────────────

    def get_user_profile(self) -> UserProfile:
        return self.profile

    def get_current_session(self) -> LearningSession:
        return self.session.session

    def get_flow_state(self) -> FlowState:
        return self.hints.flow_state

    def save_user_profile(self) -> bool:
        return self.store.save(self.profile)

    def load_user_profile(self) -> UserProfile:
        """Replace the in-memory profile with the stored one (or a fresh default)."""
        self.profile = self.store.load()
        self._sync_celebration_level()
        bind_session(self.profile.user_id, self.session.session.session_id)
        return self.profile

    def _sync_celebration_level(self) -> None:
        self.session.session.celebration_level = self.profile.preferences.celebration_level

    def end_session(self, now: datetime | None = None) -> bool:
        """Fold the session into the profile and persist. Later calls do nothing."""
        if not self.session.session.is_ended:
            self._sync_celebration_level()
        if not self.session.end_session(self.profile, now):
            return False
        self.save_user_profile()
        return True
