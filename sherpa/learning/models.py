"""Learning subsystem data models.

Durable state (persisted in user-profile.json):
    UserProfile → WorkflowPattern, ContextPattern, BehaviorMetrics,
    Preferences, Achievement

Per-process state:
    LearningSession, FlowState

Per-decision values:
    PredictiveContext → AdaptiveHint

UserProfile is the single choke point for pattern and achievement
creation: patterns are looked up or created by key, achievements are
unlocked by id, so duplicates cannot arise.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from sherpa.learning.serialization import format_timestamp, parse_timestamp

DEFAULT_WORKFLOW = "general"
DEFAULT_CELEBRATION_LEVEL = "full"


class HintType(str, Enum):
    NEXT_STEP = "next-step"
    WORKFLOW_SUGGESTION = "workflow-suggestion"
    OPTIMIZATION = "optimization"
    PREVENTION = "prevention"
    ENCOURAGEMENT = "encouragement"


class HintTiming(str, Enum):
    IMMEDIATE = "immediate"
    AFTER_DELAY = "after-delay"
    ON_REQUEST = "on-request"
    PREDICTIVE = "predictive"


class HintPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class FlowIntensity(str, Enum):
    """How eagerly hints surface. Each level maps to a hint cooldown."""

    WHISPER = "whisper"
    GENTLE = "gentle"
    ACTIVE = "active"


# Milliseconds between hints for each intensity
DEFAULT_COOLDOWN_MS: dict[FlowIntensity, int] = {
    FlowIntensity.WHISPER: 120_000,
    FlowIntensity.GENTLE: 30_000,
    FlowIntensity.ACTIVE: 15_000,
}


def _generate_id(prefix: str) -> str:
    stamp = int(datetime.now().timestamp() * 1000)
    return f"{prefix}_{stamp}_{uuid.uuid4().hex[:9]}"


def as_number(value: Any, default: float = 0.0) -> float:
    """Coerce noisy numeric input to a finite float."""
    if isinstance(value, bool):
        return default
    if not isinstance(value, (int, float)):
        try:
            value = float(value)
        except (TypeError, ValueError):
            return default
    value = float(value)
    if math.isnan(value) or math.isinf(value):
        return default
    return value


def as_count(value: Any) -> int:
    return max(0, int(as_number(value)))


def _as_rate(value: Any) -> float | None:
    if value is None:
        return None
    rate = as_number(value, default=-1.0)
    if rate < 0:
        return None
    return min(rate, 1.0)


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    seen: list[str] = []
    for item in value:
        if isinstance(item, str) and item and item not in seen:
            seen.append(item)
    return seen


# =============================================================================
# Durable profile
# =============================================================================


@dataclass
class WorkflowPattern:
    """What we have learned about one workflow type."""

    workflow_type: str
    completion_rate: float | None = None
    average_time_minutes: float = 0.0
    common_stuck_points: list[str] = field(default_factory=list)
    successful_strategies: list[str] = field(default_factory=list)
    last_used: datetime = field(default_factory=datetime.now)
    total_completions: int = 0
    successful_completions: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "workflow_type": self.workflow_type,
            "completion_rate": self.completion_rate,
            "average_time_minutes": self.average_time_minutes,
            "common_stuck_points": list(self.common_stuck_points),
            "successful_strategies": list(self.successful_strategies),
            "last_used": format_timestamp(self.last_used),
            "total_completions": self.total_completions,
            "successful_completions": self.successful_completions,
        }

    @classmethod
    def from_dict(cls, data: Any) -> WorkflowPattern | None:
        if not isinstance(data, dict):
            return None
        workflow_type = data.get("workflow_type")
        if not isinstance(workflow_type, str) or not workflow_type:
            return None

        total = as_count(data.get("total_completions"))
        rate: float | None = None
        successes = 0
        if total:
            if "successful_completions" in data:
                successes = min(as_count(data.get("successful_completions")), total)
            else:
                successes = round((_as_rate(data.get("completion_rate")) or 0.0) * total)
            rate = successes / total

        return cls(
            workflow_type=workflow_type,
            completion_rate=rate,
            average_time_minutes=max(0.0, as_number(data.get("average_time_minutes"))),
            common_stuck_points=_string_list(data.get("common_stuck_points")),
            successful_strategies=_string_list(data.get("successful_strategies")),
            last_used=parse_timestamp(data.get("last_used"), default=datetime.now()),
            total_completions=total,
            successful_completions=successes,
        )


@dataclass
class ContextPattern:
    """Free-text vocabulary that has led to choosing a workflow."""

    chosen_workflow: str
    trigger_words: list[str] = field(default_factory=list)
    frequency: int = 0
    success_rate: float | None = None
    last_matched: datetime = field(default_factory=datetime.now)

    def add_trigger_words(self, words: list[str]) -> int:
        """Union words into the trigger set, keeping first-seen order."""
        added = 0
        for word in words:
            if word not in self.trigger_words:
                self.trigger_words.append(word)
                added += 1
        return added

    def similarity(self, words: set[str]) -> float:
        """Share of ``words`` that are known trigger words.

        Measured against the incoming words only, so a trigger set that
        keeps growing with use never dilutes the match.
        """
        triggers = set(self.trigger_words)
        if not triggers or not words:
            return 0.0
        return len(triggers & words) / len(words)

    def to_dict(self) -> dict[str, Any]:
        return {
            "chosen_workflow": self.chosen_workflow,
            "trigger_words": list(self.trigger_words),
            "frequency": self.frequency,
            "success_rate": self.success_rate,
            "last_matched": format_timestamp(self.last_matched),
        }

    @classmethod
    def from_dict(cls, data: Any) -> ContextPattern | None:
        if not isinstance(data, dict):
            return None
        chosen = data.get("chosen_workflow")
        if not isinstance(chosen, str) or not chosen:
            return None
        return cls(
            chosen_workflow=chosen,
            trigger_words=list(dict.fromkeys(w.lower() for w in _string_list(data.get("trigger_words")))),
            frequency=as_count(data.get("frequency")),
            success_rate=_as_rate(data.get("success_rate")),
            last_matched=parse_timestamp(data.get("last_matched"), default=datetime.now()),
        )


@dataclass
class BehaviorMetrics:
    total_session_time_ms: float = 0.0
    average_session_length_ms: float = 0.0
    session_count: int = 0
    tool_usage_frequency: dict[str, int] = field(default_factory=dict)
    preferred_celebration_level: str = DEFAULT_CELEBRATION_LEVEL
    workflow_switch_frequency: int = 0
    hint_acceptance_rate: float = 0.0
    hint_interactions: int = 0
    flow_mode_usage: int = 0

    def copy(self) -> BehaviorMetrics:
        return BehaviorMetrics(
            total_session_time_ms=self.total_session_time_ms,
            average_session_length_ms=self.average_session_length_ms,
            session_count=self.session_count,
            tool_usage_frequency=dict(self.tool_usage_frequency),
            preferred_celebration_level=self.preferred_celebration_level,
            workflow_switch_frequency=self.workflow_switch_frequency,
            hint_acceptance_rate=self.hint_acceptance_rate,
            hint_interactions=self.hint_interactions,
            flow_mode_usage=self.flow_mode_usage,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_session_time_ms": self.total_session_time_ms,
            "average_session_length_ms": self.average_session_length_ms,
            "session_count": self.session_count,
            "tool_usage_frequency": dict(self.tool_usage_frequency),
            "preferred_celebration_level": self.preferred_celebration_level,
            "workflow_switch_frequency": self.workflow_switch_frequency,
            "hint_acceptance_rate": self.hint_acceptance_rate,
            "hint_interactions": self.hint_interactions,
            "flow_mode_usage": self.flow_mode_usage,
        }

    @classmethod
    def from_dict(cls, data: Any) -> BehaviorMetrics:
        if not isinstance(data, dict):
            return cls()
        raw_usage = data.get("tool_usage_frequency")
        usage = {}
        if isinstance(raw_usage, dict):
            usage = {str(k): as_count(v) for k, v in raw_usage.items()}
        celebration = data.get("preferred_celebration_level")
        return cls(
            total_session_time_ms=max(0.0, as_number(data.get("total_session_time_ms"))),
            average_session_length_ms=max(0.0, as_number(data.get("average_session_length_ms"))),
            session_count=as_count(data.get("session_count")),
            tool_usage_frequency=usage,
            preferred_celebration_level=(
                celebration if isinstance(celebration, str) else DEFAULT_CELEBRATION_LEVEL
            ),
            workflow_switch_frequency=as_count(data.get("workflow_switch_frequency")),
            hint_acceptance_rate=_as_rate(data.get("hint_acceptance_rate")) or 0.0,
            hint_interactions=as_count(data.get("hint_interactions")),
            flow_mode_usage=as_count(data.get("flow_mode_usage")),
        )


@dataclass
class Preferences:
    default_workflow: str = DEFAULT_WORKFLOW
    celebration_level: str = DEFAULT_CELEBRATION_LEVEL
    flow_mode_enabled: bool = False
    predictive_hints_enabled: bool = True
    learning_enabled: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "default_workflow": self.default_workflow,
            "celebration_level": self.celebration_level,
            "flow_mode_enabled": self.flow_mode_enabled,
            "predictive_hints_enabled": self.predictive_hints_enabled,
            "learning_enabled": self.learning_enabled,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Preferences:
        defaults = cls()
        if not isinstance(data, dict):
            return defaults

        def pick(key: str, kind: type) -> Any:
            value = data.get(key)
            return value if isinstance(value, kind) else getattr(defaults, key)

        return cls(
            default_workflow=pick("default_workflow", str),
            celebration_level=pick("celebration_level", str),
            flow_mode_enabled=pick("flow_mode_enabled", bool),
            predictive_hints_enabled=pick("predictive_hints_enabled", bool),
            learning_enabled=pick("learning_enabled", bool),
        )


@dataclass
class Achievement:
    id: str
    name: str
    description: str
    category: str
    unlocked_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "unlocked_at": format_timestamp(self.unlocked_at),
        }

    @classmethod
    def from_dict(cls, data: Any) -> Achievement | None:
        if not isinstance(data, dict):
            return None
        achievement_id = data.get("id")
        if not isinstance(achievement_id, str) or not achievement_id:
            return None
        return cls(
            id=achievement_id,
            name=str(data.get("name") or achievement_id),
            description=str(data.get("description") or ""),
            category=str(data.get("category") or "general"),
            unlocked_at=parse_timestamp(data.get("unlocked_at"), default=datetime.now()),
        )


@dataclass
class UserProfile:
    user_id: str
    created_at: datetime = field(default_factory=datetime.now)
    last_active: datetime = field(default_factory=datetime.now)
    workflow_patterns: dict[str, WorkflowPattern] = field(default_factory=dict)
    context_patterns: dict[str, ContextPattern] = field(default_factory=dict)
    behavior_metrics: BehaviorMetrics = field(default_factory=BehaviorMetrics)
    preferences: Preferences = field(default_factory=Preferences)
    achievements: list[Achievement] = field(default_factory=list)
    personalized_suggestions: list[str] = field(default_factory=list)

    @classmethod
    def create_default(cls, now: datetime | None = None) -> UserProfile:
        now = now or datetime.now()
        return cls(user_id=_generate_id("user"), created_at=now, last_active=now)

    def get_workflow_pattern(self, workflow_type: str) -> WorkflowPattern | None:
        return self.workflow_patterns.get(workflow_type)

    def get_or_create_workflow_pattern(
        self, workflow_type: str, now: datetime | None = None
    ) -> WorkflowPattern:
        pattern = self.workflow_patterns.get(workflow_type)
        if pattern is None:
            pattern = WorkflowPattern(workflow_type=workflow_type, last_used=now or datetime.now())
            self.workflow_patterns[workflow_type] = pattern
        return pattern

    def get_or_create_context_pattern(
        self, chosen_workflow: str, now: datetime | None = None
    ) -> ContextPattern:
        pattern = self.context_patterns.get(chosen_workflow)
        if pattern is None:
            pattern = ContextPattern(chosen_workflow=chosen_workflow, last_matched=now or datetime.now())
            self.context_patterns[chosen_workflow] = pattern
        return pattern

    def has_achievement(self, achievement_id: str) -> bool:
        return any(a.id == achievement_id for a in self.achievements)

    def unlock_achievement(self, achievement: Achievement) -> bool:
        """Add an achievement unless its id is already unlocked."""
        if self.has_achievement(achievement.id):
            return False
        self.achievements.append(achievement)
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "created_at": format_timestamp(self.created_at),
            "last_active": format_timestamp(self.last_active),
            "workflow_patterns": [p.to_dict() for p in self.workflow_patterns.values()],
            "context_patterns": [p.to_dict() for p in self.context_patterns.values()],
            "behavior_metrics": self.behavior_metrics.to_dict(),
            "preferences": self.preferences.to_dict(),
            "achievements": [a.to_dict() for a in self.achievements],
            "personalized_suggestions": list(self.personalized_suggestions),
        }

    @classmethod
    def from_dict(cls, data: Any) -> UserProfile:
        """Rebuild a profile from stored data, dropping whatever is malformed.

        Duplicate pattern keys or achievement ids in a hand-edited file are
        collapsed to their first occurrence.
        """
        if not isinstance(data, dict):
            return cls.create_default()

        now = datetime.now()
        user_id = data.get("user_id")
        profile = cls(
            user_id=user_id if isinstance(user_id, str) and user_id else _generate_id("user"),
            created_at=parse_timestamp(data.get("created_at"), default=now),
            last_active=parse_timestamp(data.get("last_active"), default=now),
            behavior_metrics=BehaviorMetrics.from_dict(data.get("behavior_metrics")),
            preferences=Preferences.from_dict(data.get("preferences")),
            personalized_suggestions=_string_list(data.get("personalized_suggestions")),
        )

        raw_workflows = data.get("workflow_patterns")
        for raw in raw_workflows if isinstance(raw_workflows, list) else []:
            pattern = WorkflowPattern.from_dict(raw)
            if pattern and pattern.workflow_type not in profile.workflow_patterns:
                profile.workflow_patterns[pattern.workflow_type] = pattern

        raw_contexts = data.get("context_patterns")
        for raw in raw_contexts if isinstance(raw_contexts, list) else []:
            context_pattern = ContextPattern.from_dict(raw)
            if context_pattern and context_pattern.chosen_workflow not in profile.context_patterns:
                profile.context_patterns[context_pattern.chosen_workflow] = context_pattern

        raw_achievements = data.get("achievements")
        for raw in raw_achievements if isinstance(raw_achievements, list) else []:
            achievement = Achievement.from_dict(raw)
            if achievement:
                profile.unlock_achievement(achievement)

        return profile


# =============================================================================
# Session and flow
# =============================================================================


@dataclass
class ProductivityMetrics:
    steps_completed: int = 0
    time_to_completion: float = 0.0
    error_rate: float = 0.0
    flow_state_time_ms: float = 0.0
    completions: int = 0
    failed_completions: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "steps_completed": self.steps_completed,
            "time_to_completion": self.time_to_completion,
            "error_rate": self.error_rate,
            "flow_state_time_ms": self.flow_state_time_ms,
            "completions": self.completions,
            "failed_completions": self.failed_completions,
        }


@dataclass
class LearningSession:
    """One process lifetime of activity. Never persisted on its own."""

    session_id: str = field(default_factory=lambda: _generate_id("session"))
    start_time: datetime = field(default_factory=datetime.now)
    end_time: datetime | None = None
    workflows_used: list[str] = field(default_factory=list)
    contexts_provided: list[str] = field(default_factory=list)
    hints_accepted: int = 0
    hints_rejected: int = 0
    celebration_level: str = DEFAULT_CELEBRATION_LEVEL
    user_satisfaction_signals: int = 0
    productivity: ProductivityMetrics = field(default_factory=ProductivityMetrics)

    @property
    def is_ended(self) -> bool:
        return self.end_time is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "start_time": format_timestamp(self.start_time),
            "end_time": format_timestamp(self.end_time),
            "workflows_used": list(self.workflows_used),
            "contexts_provided": list(self.contexts_provided),
            "hints_accepted": self.hints_accepted,
            "hints_rejected": self.hints_rejected,
            "celebration_level": self.celebration_level,
            "user_satisfaction_signals": self.user_satisfaction_signals,
            "productivity": self.productivity.to_dict(),
        }


@dataclass
class FlowState:
    is_active: bool = False
    intensity: FlowIntensity = FlowIntensity.GENTLE
    contextual_awareness: bool = True
    background_tracking: bool = True
    predictive_hints: bool = True
    last_hint_time: datetime | None = None
    hint_cooldown_ms: int = DEFAULT_COOLDOWN_MS[FlowIntensity.GENTLE]
    session_focus: str = ""
    interruption_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_active": self.is_active,
            "intensity": self.intensity.value,
            "contextual_awareness": self.contextual_awareness,
            "background_tracking": self.background_tracking,
            "predictive_hints": self.predictive_hints,
            "last_hint_time": format_timestamp(self.last_hint_time),
            "hint_cooldown_ms": self.hint_cooldown_ms,
            "session_focus": self.session_focus,
            "interruption_count": self.interruption_count,
        }


# =============================================================================
# Decision values
# =============================================================================


@dataclass
class PredictiveContext:
    current_workflow: str
    current_phase: str
    time_in_phase_ms: float
    recent_actions: list[str]
    behavior_profile: BehaviorMetrics
    session_context: str
    working_time_ms: float
    is_stuck: bool
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_workflow": self.current_workflow,
            "current_phase": self.current_phase,
            "time_in_phase_ms": self.time_in_phase_ms,
            "recent_actions": list(self.recent_actions),
            "behavior_profile": self.behavior_profile.to_dict(),
            "session_context": self.session_context,
            "working_time_ms": self.working_time_ms,
            "is_stuck": self.is_stuck,
            "confidence": self.confidence,
        }


@dataclass
class AdaptiveHint:
    type: HintType
    content: str
    confidence: float
    timing: HintTiming
    priority: HintPriority
    context: str
    learning_basis: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "content": self.content,
            "confidence": self.confidence,
            "timing": self.timing.value,
            "priority": self.priority.value,
            "context": self.context,
            "learning_basis": list(self.learning_basis),
        }
