"""Smoke test to verify the project scaffolding works."""

from __future__ import annotations


def test_import() -> None:
    import ctxpilot

    assert ctxpilot.__version__ == "0.1.0"


def test_cli_entrypoint() -> None:
    from ctxpilot.cli import main

    assert callable(main)


def test_subpackage_imports() -> None:
    from ctxpilot.config import Settings, SettingsLoader, SettingsValidationError
    from ctxpilot.core.context import ContextBudgetPlanner, SlidingWindowRangeTracker, optimize_context
    from ctxpilot.core.interface import Message, StreamingClient, TruncationRange
    from ctxpilot.runtime import RequestMetrics, RequestOrchestrator, RequestState

    assert Settings is not None
    assert SettingsLoader is not None
    assert SettingsValidationError is not None
    assert ContextBudgetPlanner is not None
    assert SlidingWindowRangeTracker is not None
    assert optimize_context is not None
    assert Message is not None
    assert StreamingClient is not None
    assert TruncationRange is not None
    assert RequestMetrics is not None
    assert RequestOrchestrator is not None
    assert RequestState is not None


def test_lazy_import_from_ctxpilot() -> None:
    import ctxpilot

    assert ctxpilot.RequestOrchestrator is not None
    assert ctxpilot.ContextOptimizationSettings is not None
    assert ctxpilot.SettingsLoader is not None
