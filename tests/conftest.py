"""Shared test fixtures for Sherpa tests.

This module provides common fixtures used across all test modules:
- Storage isolation with temporary home directories
- A fixed clock so streaks, cooldowns and stuck detection are deterministic
- Default learning configuration (no YAML involved)

Usage:
    def test_something(engine, base_time):
        engine.record_workflow_completion("tdd", 25, True, now=base_time)
        ...
"""

from datetime import datetime
from pathlib import Path

import pytest

from sherpa.learning.config_models import LearningConfig
from sherpa.learning.engine import AdaptiveLearningEngine
from sherpa.learning.models import UserProfile
from sherpa.logging_config import setup_logging


# ─────────────────────────────────────────────────────────────────────────────
# Path Constants
# ─────────────────────────────────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).parent.parent
SHERPA_DIR = PROJECT_ROOT / "sherpa"


# ─────────────────────────────────────────────────────────────────────────────
# Storage Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def sherpa_home(tmp_path: Path) -> Path:
    """Create a temporary Sherpa home directory.

    Returns:
        Path to an existing, empty directory
    """
    home = tmp_path / "sherpa-home"
    home.mkdir(parents=True, exist_ok=True)
    return home


@pytest.fixture(autouse=True, scope="session")
def quiet_logging():
    """Route structlog through stderr at WARNING, as the CLI does."""
    setup_logging(level="WARNING")


@pytest.fixture(autouse=True)
def isolated_home(monkeypatch, tmp_path: Path):
    """Point SHERPA_HOME at a temp dir so no test touches ~/.sherpa."""
    monkeypatch.setenv("SHERPA_HOME", str(tmp_path / "env-home"))


# ─────────────────────────────────────────────────────────────────────────────
# Time Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def base_time() -> datetime:
    """A fixed mid-morning timestamp."""
    return datetime(2026, 3, 2, 9, 30, 0)


# ─────────────────────────────────────────────────────────────────────────────
# Learning Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def learning_config() -> LearningConfig:
    """Default tuning constants, independent of args/learning.yaml."""
    return LearningConfig()


@pytest.fixture
def profile(base_time: datetime) -> UserProfile:
    """Fresh profile created at base_time."""
    return UserProfile.create_default(now=base_time)


@pytest.fixture
def engine(learning_config: LearningConfig, base_time: datetime) -> AdaptiveLearningEngine:
    """In-memory engine (no persistence)."""
    return AdaptiveLearningEngine(None, config=learning_config, now=base_time)


@pytest.fixture
def persistent_engine(sherpa_home: Path, learning_config: LearningConfig, base_time: datetime) -> AdaptiveLearningEngine:
    """Engine that stores its profile under sherpa_home."""
    return AdaptiveLearningEngine(sherpa_home, config=learning_config, now=base_time)
