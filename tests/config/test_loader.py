"""Tests for SettingsLoader."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path

from ctxpilot.config.errors import SettingsValidationError
from ctxpilot.config.loader import SettingsLoader

_VALID_YAML = """\
model:
  model: openrouter/anthropic/claude-3.5-sonnet
  api_key: test-key
  context_window: 200000
context_optimization:
  useSmartTruncation: false
  max_terminal_lines: 20
custom_instructions: Prefer small diffs.
instructions_file: .agentrules
"""


class TestSettingsLoader:
    def test_load_valid(self, tmp_path: Path) -> None:
        f = tmp_path / "ctxpilot.yaml"
        f.write_text(_VALID_YAML)
        settings = SettingsLoader(f).load()
        assert settings.model is not None
        assert settings.model.provider == "openrouter"
        assert settings.model.context_window == 200_000
        assert settings.context_optimization.use_smart_truncation is False
        assert settings.context_optimization.max_terminal_lines == 20
        assert settings.custom_instructions == "Prefer small diffs."
        assert settings.instructions_file == ".agentrules"

    def test_env_var_interpolation(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENROUTER_KEY", "secret-123")
        f = tmp_path / "ctxpilot.yaml"
        f.write_text(_VALID_YAML.replace("test-key", "${OPENROUTER_KEY}"))
        settings = SettingsLoader(str(f)).load()
        assert settings.model is not None
        assert settings.model.api_key == "secret-123"

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        f = tmp_path / "empty.yaml"
        f.write_text("")
        settings = SettingsLoader(f).load()
        assert settings.model is None
        assert settings.context_optimization.enabled is True

    def test_file_not_found(self, tmp_path: Path) -> None:
        with pytest.raises(SettingsValidationError, match="Cannot read"):
            SettingsLoader(tmp_path / "missing.yaml").load()

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        f = tmp_path / "bad.yaml"
        f.write_text("{{{{invalid")
        with pytest.raises(SettingsValidationError, match="YAML parse error"):
            SettingsLoader(f).load()

    def test_yaml_not_mapping(self, tmp_path: Path) -> None:
        f = tmp_path / "list.yaml"
        f.write_text("- item1\n- item2\n")
        with pytest.raises(SettingsValidationError, match="must be a mapping"):
            SettingsLoader(f).load()

    def test_schema_violation(self, tmp_path: Path) -> None:
        f = tmp_path / "bad_schema.yaml"
        f.write_text("context_optimization:\n  maxFiles: -5\n")
        with pytest.raises(SettingsValidationError, match="max"):
            SettingsLoader(f).load()
