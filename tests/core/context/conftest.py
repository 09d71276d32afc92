"""Shared history builders for context tests."""

from __future__ import annotations

import pytest

from ctxpilot.core.interface.models import Message


def make_history(n: int) -> list[Message]:
    """Alternating user/assistant history with no relevance markers."""
    return [
        Message.user(f"user message {i}") if i % 2 == 0 else Message.assistant(f"reply {i}")
        for i in range(n)
    ]


@pytest.fixture
def history_10() -> list[Message]:
    return make_history(10)


@pytest.fixture
def history_14() -> list[Message]:
    return make_history(14)
