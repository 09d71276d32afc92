"""History fixtures for CLI tests."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def history_file(tmp_path: Path) -> Path:
    messages = [{"role": "user", "content": [{"type": "text", "text": "<task>Fix the login bug</task>"}]}]
    for i in range(1, 12):
        role = "assistant" if i % 2 else "user"
        messages.append({"role": role, "content": [{"type": "text", "text": f"turn {i}"}]})
    messages[4]["content"].append(
        {"type": "tool_result", "tool_use_id": "t1", "content": "Error: tests failed"}
    )
    f = tmp_path / "history.json"
    f.write_text(json.dumps(messages))
    return f
