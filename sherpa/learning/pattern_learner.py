"""
Tool: Pattern Learner
Purpose: Turn workflow usage and completion events into durable patterns

Learning here is online aggregation only:
- Completion rate = successful completions / total completions
- Average time = running mean over every completion, failed ones included
- Trigger words = vocabulary of the context text a workflow was chosen for

Patterns are created lazily through the profile's locate-or-create methods,
so there is never more than one pattern per workflow type.

Usage:
    learner = PatternLearner(config)
    learner.record_workflow_usage(profile, "bug-hunt", "fix login crash on submit")
    learner.record_workflow_completion(profile, "bug-hunt", minutes=18, success=True)
"""

from __future__ import annotations

import string
from datetime import datetime

from sherpa.learning.config_models import LearningConfig
from sherpa.learning.models import DEFAULT_WORKFLOW, UserProfile, WorkflowPattern, as_number
from sherpa.logging_config import get_logger

logger = get_logger(__name__)

_STRIP_CHARS = string.punctuation + "“”‘’"


def normalize_workflow(workflow_type: str | None) -> str:
    if not isinstance(workflow_type, str) or not workflow_type.strip():
        return DEFAULT_WORKFLOW
    return workflow_type.strip()


def extract_trigger_words(text: str | None, min_length: int = 4) -> list[str]:
    """Lower-cased, de-duplicated words of at least ``min_length`` characters.

    Surrounding punctuation is stripped, so "login," and "(login)" both
    yield "login". Order of first appearance is kept.
    """
    if not isinstance(text, str):
        return []
    words: list[str] = []
    for token in text.lower().split():
        word = token.strip(_STRIP_CHARS)
        if len(word) >= min_length and word not in words:
            words.append(word)
    return words


class PatternLearner:
    def __init__(self, config: LearningConfig | None = None):
        self.config = config or LearningConfig()

    def record_workflow_usage(
        self,
        profile: UserProfile,
        workflow_type: str,
        context: str | None = None,
        now: datetime | None = None,
    ) -> WorkflowPattern:
        now = now or datetime.now()
        workflow_type = normalize_workflow(workflow_type)

        pattern = profile.get_or_create_workflow_pattern(workflow_type, now)
        pattern.last_used = now

        words = extract_trigger_words(context, self.config.session.min_trigger_word_length)
        if words:
            context_pattern = profile.get_or_create_context_pattern(workflow_type, now)
            context_pattern.add_trigger_words(words)
            context_pattern.frequency += 1
            context_pattern.last_matched = now
            # A workflow that already has history carries its rate over
            if pattern.completion_rate is not None:
                context_pattern.success_rate = pattern.completion_rate

        profile.last_active = now
        return pattern

    def record_workflow_completion(
        self,
        profile: UserProfile,
        workflow_type: str,
        minutes: float,
        success: bool = True,
        now: datetime | None = None,
    ) -> WorkflowPattern:
        now = now or datetime.now()
        workflow_type = normalize_workflow(workflow_type)
        minutes = max(0.0, as_number(minutes))

        pattern = profile.get_or_create_workflow_pattern(workflow_type, now)
        pattern.total_completions += 1
        if success:
            pattern.successful_completions += 1
        pattern.completion_rate = pattern.successful_completions / pattern.total_completions
        pattern.average_time_minutes += (minutes - pattern.average_time_minutes) / pattern.total_completions
        pattern.last_used = now

        for context_pattern in profile.context_patterns.values():
            if context_pattern.chosen_workflow == workflow_type:
                context_pattern.success_rate = pattern.completion_rate

        profile.last_active = now
        logger.debug(
            "workflow_completion_recorded",
            workflow=workflow_type,
            total=pattern.total_completions,
            completion_rate=round(pattern.completion_rate, 3),
        )
        return pattern

    def record_stuck_point(self, profile: UserProfile, workflow_type: str, phase: str) -> bool:
        """Remember a phase the user got stuck in. Returns True if it was new."""
        if not isinstance(phase, str) or not phase.strip():
            return False
        pattern = profile.get_or_create_workflow_pattern(normalize_workflow(workflow_type))
        phase = phase.strip()
        if phase in pattern.common_stuck_points:
            return False
        pattern.common_stuck_points.append(phase)
        logger.info("stuck_point_recorded", workflow=pattern.workflow_type, phase=phase)
        return True

    def record_successful_strategy(self, profile: UserProfile, workflow_type: str, strategy: str) -> bool:
        if not isinstance(strategy, str) or not strategy.strip():
            return False
        pattern = profile.get_or_create_workflow_pattern(normalize_workflow(workflow_type))
        strategy = strategy.strip()
        if strategy in pattern.successful_strategies:
            return False
        pattern.successful_strategies.append(strategy)
        return True
