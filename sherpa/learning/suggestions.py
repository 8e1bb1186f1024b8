"""Personalized suggestions derived from the profile.

Stateless: the same profile always yields the same suggestions. Candidates
are scored and the best few returned, so a strong workflow track record
outranks a vague acceptance-rate observation.
"""

from __future__ import annotations

from sherpa.learning.config_models import LearningConfig
from sherpa.learning.models import UserProfile


def build_personalized_suggestions(profile: UserProfile, config: LearningConfig | None = None) -> list[str]:
    rules = (config or LearningConfig()).suggestions
    scored: list[tuple[float, str]] = []

    for pattern in profile.workflow_patterns.values():
        rate = pattern.completion_rate
        if rate is not None and rate > rules.excel_min_completion_rate:
            scored.append(
                (1.0 + rate, f"You excel at {pattern.workflow_type} workflow ({round(rate * 100)}% success rate)")
            )

    for context_pattern in profile.context_patterns.values():
        if context_pattern.frequency < rules.context_min_frequency or not context_pattern.trigger_words:
            continue
        words = ", ".join(context_pattern.trigger_words[: rules.trigger_words_shown])
        score = 1.0 + (context_pattern.success_rate or 0.0) * 0.5 + min(context_pattern.frequency, 10) / 100
        scored.append((score, f'Try "{context_pattern.chosen_workflow}" workflow when working on: {words}'))

    metrics = profile.behavior_metrics
    if metrics.hint_interactions >= rules.acceptance_min_interactions:
        if metrics.hint_acceptance_rate > rules.high_acceptance_rate:
            scored.append(
                (0.5, "You respond well to guidance - consider keeping flow mode enabled, or try 'active'")
            )
        elif metrics.hint_acceptance_rate < rules.low_acceptance_rate:
            scored.append((0.5, "You prefer independence - try 'whisper' flow mode for minimal interruption"))

    # sorted() is stable, so equal scores keep discovery order
    ranked = sorted(scored, key=lambda item: item[0], reverse=True)
    return [text for _, text in ranked[: rules.max_suggestions]]
