"""
Sherpa - workflow coaching that adapts to how you actually work

Packages:
    learning/: Adaptive learning and nudging
        - Progress ledger (steps, workflows, streaks, milestones)
        - User profile store (durable learned state)
        - Session tracking, pattern learning, predictive hints

Usage:
    from sherpa.learning.engine import AdaptiveLearningEngine

    engine = AdaptiveLearningEngine(Path.home() / ".sherpa")
    engine.record_workflow_usage("tdd", "add login validation")
"""

import os
from pathlib import Path

__version__ = "0.4.0"

# Path constants
PROJECT_ROOT = Path(__file__).parent.parent
ARGS_DIR = PROJECT_ROOT / "args"


def default_home() -> Path:
    """Default storage root for the CLI. Library callers pass their own."""
    env_home = os.environ.get("SHERPA_HOME")
    if env_home:
        return Path(env_home).expanduser()
    return Path.home() / ".sherpa"


__all__ = [
    "__version__",
    "PROJECT_ROOT",
    "ARGS_DIR",
    "default_home",
]
