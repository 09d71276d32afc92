"""Context optimization pipeline.

Shrinks the three parts of an outbound request (history, system prompt,
environment details) according to :class:`ContextOptimizationSettings`
and the request's position in the task. With ``enabled=False`` every
function is the identity.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict

from ctxpilot.core.context.budget import TruncationDecision, target_reduction
from ctxpilot.core.context.settings import ContextOptimizationSettings
from ctxpilot.core.context.smart_truncation import smart_truncate_messages
from ctxpilot.core.interface.models import Message

SECTION_SEPARATOR = "====\n\n"

# "# Current Working Directory (<path>) Files" up to the next top-level heading.
_FILE_DETAILS_SECTION = re.compile(r"# Current Working Directory \([^)]+\) Files\n[\s\S]*?(?=\n\n# |$)")


class SectionPolicy(BaseModel):
    """Which system prompt sections survive on follow-up requests.

    A section is kept when its heading (first line) contains any of the
    keywords, case-sensitively. Sections added to the prompt later are
    dropped unless their heading carries one of these keywords.
    """

    model_config = ConfigDict(frozen=True)

    keywords: tuple[str, ...] = ("TOOL USE", "RULES", "OBJECTIVE")

    def keeps(self, section: str) -> bool:
        heading = section.split("\n", 1)[0]
        return any(keyword in heading for keyword in self.keywords)


DEFAULT_SECTION_POLICY = SectionPolicy()


class OptimizedContext(BaseModel):
    """The three request parts after optimization."""

    messages: list[Message]
    system_prompt: str
    environment_details: str


def optimize_conversation_history(
    messages: Sequence[Message],
    settings: ContextOptimizationSettings,
    decision: TruncationDecision | None = None,
) -> list[Message]:
    """Apply smart truncation when enabled; otherwise pass through.

    With a budget *decision*, truncation only happens when the decision
    calls for it, at the reduction its ``keep`` directive implies. Without
    one, every history is truncated at 0.5.
    """
    if not settings.enabled or not settings.use_smart_truncation:
        return list(messages)
    if decision is None:
        return smart_truncate_messages(messages, 0.5)
    if not decision.should_truncate:
        return list(messages)
    return smart_truncate_messages(messages, target_reduction(decision.keep))


def optimize_system_prompt(
    system_prompt: str,
    settings: ContextOptimizationSettings,
    is_first_request: bool,
    policy: SectionPolicy = DEFAULT_SECTION_POLICY,
) -> str:
    """Keep only the policy's sections on follow-up requests."""
    if not settings.enabled or is_first_request:
        return system_prompt

    sections = system_prompt.split(SECTION_SEPARATOR)
    return SECTION_SEPARATOR.join(s for s in sections if policy.keeps(s))


def optimize_environment_details(
    environment_details: str,
    settings: ContextOptimizationSettings,
    is_first_request: bool,
) -> str:
    """Drop or slim the environment snapshot on follow-up requests."""
    if not settings.enabled or is_first_request:
        return environment_details

    if not settings.include_environment_details_in_every_request:
        return ""

    if settings.include_file_details_in_first_request_only:
        return _FILE_DETAILS_SECTION.sub("", environment_details, count=1)

    return environment_details


def optimize_context(
    messages: Sequence[Message],
    system_prompt: str,
    environment_details: str,
    settings: ContextOptimizationSettings,
    is_first_request: bool,
    decision: TruncationDecision | None = None,
    policy: SectionPolicy = DEFAULT_SECTION_POLICY,
) -> OptimizedContext:
    """Run the whole pipeline; identity when optimization is disabled."""
    if not settings.enabled:
        return OptimizedContext(
            messages=list(messages),
            system_prompt=system_prompt,
            environment_details=environment_details,
        )

    return OptimizedContext(
        messages=optimize_conversation_history(messages, settings, decision),
        system_prompt=optimize_system_prompt(system_prompt, settings, is_first_request, policy),
        environment_details=optimize_environment_details(
            environment_details, settings, is_first_request
        ),
    )
