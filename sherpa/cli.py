#!/usr/bin/env python3
"""
Sherpa Command Line Interface

Inspect and adjust the adaptive learning state stored under the Sherpa home
directory ($SHERPA_HOME, or ~/.sherpa).

Usage:
    sherpa profile               # Learned profile as JSON
    sherpa suggestions           # Personalized suggestions
    sherpa progress              # Progress stats, milestones, tips
    sherpa flow --mode whisper   # Set flow mode (on/off/whisper/gentle/active)
    sherpa status                # Summary across all stores
    sherpa --version             # Show version
"""

import argparse
import sys
from pathlib import Path

from sherpa import __version__, default_home
from sherpa.learning.engine import AdaptiveLearningEngine
from sherpa.learning.hint_engine import FLOW_MODES
from sherpa.learning.progress_tracker import ProgressTracker
from sherpa.learning.serialization import dumps
from sherpa.learning.state_coordinator import StateCoordinator
from sherpa.logging_config import setup_logging


def _home(args) -> Path:
    return Path(args.home).expanduser() if args.home else default_home()


def cmd_profile(args):
    engine = AdaptiveLearningEngine(_home(args))
    print(dumps(engine.get_user_profile().to_dict()))


def cmd_suggestions(args):
    engine = AdaptiveLearningEngine(_home(args))
    suggestions = engine.get_personalized_suggestions()
    if args.json:
        print(dumps(suggestions))
        return
    if not suggestions:
        print("No suggestions yet - keep using workflows and Sherpa will learn your patterns.")
        return
    for suggestion in suggestions:
        print(f"- {suggestion}")


def cmd_progress(args):
    tracker = ProgressTracker(_home(args))
    next_milestone = tracker.get_next_milestone()
    print(
        dumps(
            {
                "stats": tracker.get_progress_stats(),
                "achieved_milestones": [m.to_dict() for m in tracker.get_achieved_milestones()],
                "next_milestone": next_milestone.to_dict() if next_milestone else None,
                "encouragement": tracker.get_progress_encouragement(),
                "tips": tracker.get_personalized_tips(),
            }
        )
    )


def cmd_flow(args):
    engine = AdaptiveLearningEngine(_home(args))
    state = engine.update_flow_state(args.mode)
    print(dumps(state.to_dict()))


def cmd_status(args):
    home = _home(args)
    coordinator = StateCoordinator(ProgressTracker(home), AdaptiveLearningEngine(home))
    status = coordinator.get_state_status()
    status["home"] = str(home)
    print(dumps(status))


def cmd_version(args):
    print(f"sherpa {__version__}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sherpa",
        description="Sherpa - adaptive workflow coaching",
    )
    parser.add_argument("--version", "-V", action="store_true", help="Show version and exit")
    parser.add_argument("--home", default=None, help="State directory (default: $SHERPA_HOME or ~/.sherpa)")
    parser.add_argument("--log-level", default=None, help="Log level (default: $SHERPA_LOG_LEVEL or WARNING)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    profile_parser = subparsers.add_parser("profile", help="Show the learned user profile")
    profile_parser.set_defaults(func=cmd_profile)

    suggestions_parser = subparsers.add_parser("suggestions", help="Show personalized suggestions")
    suggestions_parser.add_argument("--json", action="store_true", help="Print as a JSON list")
    suggestions_parser.set_defaults(func=cmd_suggestions)

    progress_parser = subparsers.add_parser("progress", help="Show progress stats and milestones")
    progress_parser.set_defaults(func=cmd_progress)

    flow_parser = subparsers.add_parser("flow", help="Set flow mode")
    flow_parser.add_argument("--mode", required=True, choices=FLOW_MODES, help="Flow mode to apply")
    flow_parser.set_defaults(func=cmd_flow)

    status_parser = subparsers.add_parser("status", help="Show a summary of all learning state")
    status_parser.set_defaults(func=cmd_status)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level)

    if args.version:
        cmd_version(args)
        return 0

    if not args.command:
        parser.print_help()
        return 0

    result = args.func(args)

    if isinstance(result, int) and result != 0:
        sys.exit(result)
    return 0


if __name__ == "__main__":
    main()
