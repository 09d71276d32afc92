"""ctxpilot: context-window budgeting and streaming for coding-agent requests."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from ctxpilot.config.loader import SettingsLoader as SettingsLoader
    from ctxpilot.core.context.settings import (
        ContextOptimizationSettings as ContextOptimizationSettings,
    )
    from ctxpilot.runtime.orchestrator import RequestOrchestrator as RequestOrchestrator

_EXPORTS = {
    "RequestOrchestrator": "ctxpilot.runtime.orchestrator",
    "ContextOptimizationSettings": "ctxpilot.core.context.settings",
    "SettingsLoader": "ctxpilot.config.loader",
}


def __getattr__(name: str) -> object:
    module_path = _EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'ctxpilot' has no attribute {name!r}")
