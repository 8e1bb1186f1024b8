"""Sherpa Test Suite

Test organization:
- unit/learning/: Adaptive learning tests (patterns, sessions, hints,
  achievements, progress ledger, persistence)
- unit/test_cli.py: Command line interface

Running tests:
    # All tests
    pytest

    # Learning only
    pytest tests/unit/learning/
"""
