"""Learning - Adaptive coaching from observed workflow behaviour

Philosophy:
    Learn from what the user does, not from what they tell us.
    Nudge rarely, and only when history says it will help.

Core Principle:
    Learning is online aggregation: running rates and averages, frequency
    counts, keyword co-occurrence. No models are trained. Every number the
    engine uses can be traced back to counted events.

Components:
    engine.py: AdaptiveLearningEngine - the single entry point
    pattern_learner.py: Workflow and context patterns
        - Completion rate and running mean duration per workflow
        - Trigger words that preceded choosing a workflow
        - Phases the user got stuck in
    session_tracker.py: Per-run actions, hint interactions, productivity
    predictive_context.py: Stuck detection and confidence for one decision
    hint_engine.py: Hint policy and flow-mode cooldowns
    achievements.py: One-time achievements from profile state
    suggestions.py: Personalized suggestions from profile state
    progress_tracker.py: Steps, workflows, daily streak, milestones
    profile_store.py: Durable user profile
    state_coordinator.py: Save/load/status across stores

Storage: <home>/user-profile.json, <home>/progress-tracker.json

Configuration: args/learning.yaml
"""

from sherpa import ARGS_DIR

CONFIG_PATH = ARGS_DIR / "learning.yaml"

# Built-in workflow types
CORE_WORKFLOWS = ["tdd", "bug-hunt", "general", "rapid", "refactor"]
