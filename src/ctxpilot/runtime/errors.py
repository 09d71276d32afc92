"""Shared error types and helpers for the request runtime."""

from __future__ import annotations

import json
from typing import Any


class RequestError(Exception):
    """Base error for all request orchestration failures."""


class DependencyMissingError(RequestError):
    """A required collaborator is absent; a lifecycle error, never retried."""

    def __init__(self, dependency: str) -> None:
        self.dependency = dependency
        super().__init__(f"{dependency} not available")


class DependencyTimeoutError(RequestError):
    """A collaborator did not become ready in time."""

    def __init__(self, dependency: str, timeout: float) -> None:
        self.dependency = dependency
        self.timeout = timeout
        super().__init__(f"{dependency} failed to connect within {timeout}s")


class InstructionsReadError(RequestError):
    """The custom instructions file exists but could not be read."""

    def __init__(self, path: str, detail: str = "") -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Failed to read instructions file {path}" + (f": {detail}" if detail else ""))


def _status_code(error: BaseException) -> Any:
    for attr in ("status", "status_code"):
        value = getattr(error, attr, None)
        if value:
            return value
    response = getattr(error, "response", None)
    if response is not None:
        return getattr(response, "status_code", None) or getattr(response, "status", None)
    return None


def format_error_with_status_code(error: BaseException) -> str:
    """Render *error* for display, prefixing the HTTP status when known.

    The status is only prepended when the message does not already
    mention it. Errors without a message are dumped as JSON.
    """
    message = str(error)
    if not message:
        fields = {k: v for k, v in vars(error).items() if not k.startswith("_")}
        message = json.dumps({"name": type(error).__name__, **fields}, indent=2, default=str)

    status = _status_code(error)
    if status and str(status) not in message:
        return f"{status} - {message}"
    return message
