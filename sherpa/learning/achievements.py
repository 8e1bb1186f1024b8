"""Achievement evaluation.

Achievements are a pure function of profile state. Evaluation can run as
often as it likes: every id unlocks at most once, and the first unlock time
is never overwritten.

    mastery_<type>       >= 10 completions at >= 80% success   workflow_mastery
    learning_enthusiast  >= 60% hint acceptance over >= 5 hints  engagement
"""

from __future__ import annotations

from datetime import datetime

from sherpa.learning.config_models import LearningConfig
from sherpa.learning.models import Achievement, UserProfile
from sherpa.logging_config import get_logger

logger = get_logger(__name__)


def _mastery_candidates(profile: UserProfile, config: LearningConfig, now: datetime) -> list[Achievement]:
    rules = config.achievements
    found = []
    for pattern in profile.workflow_patterns.values():
        if pattern.completion_rate is None:
            continue
        if pattern.total_completions < rules.mastery_min_completions:
            continue
        if pattern.completion_rate < rules.mastery_min_completion_rate:
            continue
        found.append(
            Achievement(
                id=f"mastery_{pattern.workflow_type}",
                name=f"{pattern.workflow_type.upper()} Master",
                description=(
                    f"Achieved {round(pattern.completion_rate * 100)}% success rate "
                    f"with {pattern.total_completions} completions"
                ),
                category="workflow_mastery",
                unlocked_at=now,
            )
        )
    return found


def _engagement_candidates(profile: UserProfile, config: LearningConfig, now: datetime) -> list[Achievement]:
    rules = config.achievements
    metrics = profile.behavior_metrics
    if metrics.hint_interactions < rules.enthusiast_min_interactions:
        return []
    if metrics.hint_acceptance_rate < rules.enthusiast_min_acceptance_rate:
        return []
    return [
        Achievement(
            id="learning_enthusiast",
            name="Learning Enthusiast",
            description="High acceptance rate of adaptive hints",
            category="engagement",
            unlocked_at=now,
        )
    ]


def evaluate_achievements(
    profile: UserProfile, config: LearningConfig | None = None, now: datetime | None = None
) -> list[Achievement]:
    """Unlock every achievement the profile now qualifies for.

    Returns only the achievements unlocked by this call.
    """
    config = config or LearningConfig()
    now = now or datetime.now()

    unlocked = []
    for achievement in _mastery_candidates(profile, config, now) + _engagement_candidates(profile, config, now):
        if profile.unlock_achievement(achievement):
            logger.info("achievement_unlocked", achievement=achievement.id, category=achievement.category)
            unlocked.append(achievement)
    return unlocked
