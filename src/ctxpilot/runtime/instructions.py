"""Custom instructions: settings text plus an optional rules file in the workspace.

Both sources are optional. The rules file is read best-effort: if it
exists but cannot be read, the failure is logged and the request goes
ahead without it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ctxpilot.core.context.optimizer import SECTION_SEPARATOR
from ctxpilot.runtime.errors import InstructionsReadError

logger = logging.getLogger(__name__)

RULES_FILE_NAME = ".ctxpilotrules"
CUSTOM_INSTRUCTIONS_HEADING = "USER'S CUSTOM INSTRUCTIONS"


def read_rules_file(cwd: str | Path, file_name: str = RULES_FILE_NAME) -> str | None:
    """Return the formatted rules-file block for *cwd*, or ``None``.

    Raises:
        InstructionsReadError: The file exists but could not be decoded or read.
    """
    path = Path(cwd) / file_name
    if not path.is_file():
        return None
    try:
        content = path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as exc:
        raise InstructionsReadError(str(path), str(exc)) from exc
    if not content:
        return None
    return (
        f"# {file_name}\n\n"
        f"The following is provided by a root-level {file_name} file where the user has "
        f"specified instructions for this working directory ({Path(cwd).as_posix()})\n\n"
        f"{content}"
    )


def load_custom_instructions(
    cwd: str | Path,
    settings_instructions: str | None = None,
    file_name: str = RULES_FILE_NAME,
) -> str | None:
    """Combine settings instructions and the rules file; ``None`` if both are empty."""
    parts: list[str] = []
    if settings_instructions and settings_instructions.strip():
        parts.append(settings_instructions.strip())

    try:
        rules = read_rules_file(cwd, file_name)
    except InstructionsReadError as exc:
        logger.error("%s", exc)
        rules = None
    if rules:
        parts.append(rules)

    if not parts:
        return None
    return "\n\n".join(parts)


def add_user_instructions(system_prompt: str, instructions: str | None) -> str:
    """Append *instructions* as their own system prompt section.

    The section is headed :data:`CUSTOM_INSTRUCTIONS_HEADING`. The default
    follow-up section policy does not keep that heading, so on later
    requests the section is dropped unless the policy names it.
    """
    if not instructions:
        return system_prompt
    return (
        f"{system_prompt.rstrip()}\n\n{SECTION_SEPARATOR}"
        f"{CUSTOM_INSTRUCTIONS_HEADING}\n\n"
        "The following additional instructions are provided by the user, and should be "
        "followed to the best of your ability without interfering with the TOOL USE "
        f"guidelines.\n\n{instructions}"
    )
