"""Settings file schema and loader."""

from ctxpilot.config.errors import SettingsValidationError
from ctxpilot.config.loader import SettingsLoader
from ctxpilot.config.models import Settings

__all__ = [
    "Settings",
    "SettingsLoader",
    "SettingsValidationError",
]
