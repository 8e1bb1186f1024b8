"""Validated tuning constants for the learning subsystem (args/learning.yaml).

Every threshold the engine uses lives here with its default. The YAML file
only needs to mention the values it overrides.
"""

from __future__ import annotations

from typing import Any, cast

import yaml
from pydantic import BaseModel, ConfigDict, Field

from sherpa import ARGS_DIR
from sherpa.logging_config import get_logger

logger = get_logger(__name__)


class StuckDetectionConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    threshold_minutes: float = Field(default=5.0, gt=0)


class ConfidenceConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    neutral: float = Field(default=0.5, ge=0.0, le=1.0)
    # Completions needed before history carries half the weight
    sample_half_weight: int = Field(default=5, ge=1)
    max_confidence: float = Field(default=0.99, ge=0.0, le=1.0)


class FlowConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    default_intensity: str = Field(default="gentle")
    cooldown_seconds: dict[str, float] = Field(
        default_factory=lambda: {"whisper": 120.0, "gentle": 30.0, "active": 15.0}
    )


class HintConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    workflow_switch_min_success_rate: float = Field(default=0.8, ge=0.0, le=1.0)
    workflow_switch_min_similarity: float = Field(default=0.2, ge=0.0, le=1.0)
    optimization_min_completions: int = Field(default=4, ge=1)
    optimization_slowdown_factor: float = Field(default=1.5, gt=0)
    stuck_confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    stuck_point_confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    optimization_confidence: float = Field(default=0.6, ge=0.0, le=1.0)


class AchievementConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    mastery_min_completions: int = Field(default=10, ge=1)
    mastery_min_completion_rate: float = Field(default=0.8, ge=0.0, le=1.0)
    enthusiast_min_acceptance_rate: float = Field(default=0.6, ge=0.0, le=1.0)
    enthusiast_min_interactions: int = Field(default=5, ge=1)


class SuggestionConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    max_suggestions: int = Field(default=3, ge=1)
    excel_min_completion_rate: float = Field(default=0.6, ge=0.0, le=1.0)
    context_min_frequency: int = Field(default=2, ge=1)
    trigger_words_shown: int = Field(default=3, ge=1)
    acceptance_min_interactions: int = Field(default=3, ge=1)
    low_acceptance_rate: float = Field(default=0.5, ge=0.0, le=1.0)
    high_acceptance_rate: float = Field(default=0.6, ge=0.0, le=1.0)


class SessionConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    recent_action_capacity: int = Field(default=50, ge=1)
    # Weight of the newest interaction in the hint acceptance moving average
    hint_acceptance_alpha: float = Field(default=0.1, gt=0.0, le=1.0)
    min_trigger_word_length: int = Field(default=4, ge=1)


class LearningConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    enabled: bool = Field(default=True)
    stuck: StuckDetectionConfig = Field(default_factory=StuckDetectionConfig)
    confidence: ConfidenceConfig = Field(default_factory=ConfidenceConfig)
    flow: FlowConfig = Field(default_factory=FlowConfig)
    hints: HintConfig = Field(default_factory=HintConfig)
    achievements: AchievementConfig = Field(default_factory=AchievementConfig)
    suggestions: SuggestionConfig = Field(default_factory=SuggestionConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)


_CONFIG_MAP: dict[str, type[BaseModel]] = {
    "learning": LearningConfig,
}


def load_and_validate(config_name: str, model_class: type[BaseModel] | None = None) -> BaseModel:
    if model_class is None:
        model_class = _CONFIG_MAP.get(config_name)
        if model_class is None:
            raise ValueError(f"Unknown config: {config_name}. Available: {list(_CONFIG_MAP.keys())}")

    yaml_path = ARGS_DIR / f"{config_name}.yaml"

    try:
        raw: dict[str, Any] = {}
        if yaml_path.exists():
            with open(yaml_path) as f:
                raw = yaml.safe_load(f) or {}
        # args/learning.yaml nests everything under a top-level "learning" key
        if config_name in raw and isinstance(raw[config_name], dict):
            raw = raw[config_name]
        return model_class.model_validate(raw)
    except Exception as e:
        logger.warning("config_validation_failed", config=config_name, error=str(e))
        return model_class()


def load_learning_config() -> LearningConfig:
    return cast(LearningConfig, load_and_validate("learning"))
