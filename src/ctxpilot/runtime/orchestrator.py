"""RequestOrchestrator: assembles, budgets and streams one model request.

For every outbound request the orchestrator:

1. waits (bounded) for the tool hub to finish connecting,
2. builds the system prompt and appends custom instructions (on follow-up
   requests only when the section policy keeps them),
3. counts the request and decides whether the history must be truncated,
4. runs the context optimization pipeline and attaches environment details,
5. opens the stream and awaits only the first chunk,
6. on a first-chunk failure retries once (retry-eligible providers only)
   from step 1, otherwise reports and re-raises,
7. relays every later chunk untouched.

Mid-stream errors are not intercepted; they reach the consumer as-is.
The orchestrator belongs to a single task and must not serve concurrent
requests; call :meth:`RequestOrchestrator.reset` when a new task starts.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ctxpilot.config.errors import SettingsValidationError
from ctxpilot.config.loader import SettingsLoader
from ctxpilot.config.models import Settings
from ctxpilot.core.context.budget import (
    ContextBudgetPlanner,
    ContextWindowLimits,
    Keep,
    TruncationDecision,
    calculate_context_window_limits,
    should_truncate_conversation,
)
from ctxpilot.core.context.counter_registry import get_counter
from ctxpilot.core.context.optimizer import DEFAULT_SECTION_POLICY, SectionPolicy, optimize_context
from ctxpilot.core.context.settings import (
    DEFAULT_CONTEXT_OPTIMIZATION_SETTINGS,
    ContextOptimizationSettings,
)
from ctxpilot.core.context.sliding_window import SlidingWindowRangeTracker, get_next_truncation_range
from ctxpilot.core.interface.client import StreamingClient
from ctxpilot.core.interface.models import Message, TextBlock
from ctxpilot.runtime.errors import DependencyMissingError, DependencyTimeoutError
from ctxpilot.runtime.instructions import (
    CUSTOM_INSTRUCTIONS_HEADING,
    RULES_FILE_NAME,
    add_user_instructions,
    load_custom_instructions,
)
from ctxpilot.runtime.state import RequestPhase, RequestState
from ctxpilot.utils.telemetry import (
    ATTR_CONTEXT_WINDOW,
    ATTR_FIRST_REQUEST,
    ATTR_MESSAGES_IN,
    ATTR_MESSAGES_OUT,
    ATTR_MODEL,
    ATTR_PROVIDER,
    ATTR_REQUEST_INDEX,
    ATTR_RETRY,
    ATTR_TOKENS_TOTAL,
    ATTR_TRUNCATION_KEEP,
    ATTR_TRUNCATION_MODE,
    get_tracer,
    set_span_attributes,
)

if TYPE_CHECKING:
    from opentelemetry.trace import Span

    from ctxpilot.core.context.counter import TokenCounter
    from ctxpilot.core.interface.config import ModelConfig
    from ctxpilot.core.interface.models import ConversationHistory, StreamChunk, TruncationRange
    from ctxpilot.runtime.dependencies import HostServices, MessageStream, SystemPromptBuilder, ToolHub
    from ctxpilot.runtime.tracking import RequestMetrics

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

DEFAULT_DEPENDENCY_TIMEOUT = 10.0
DEFAULT_RETRY_DELAY = 1.0
_DEPENDENCY_POLL_INTERVAL = 0.1
# One initial attempt plus at most one automatic retry.
_MAX_ATTEMPTS = 2

# Providers whose first-chunk failures are usually transient routing errors.
RETRY_ELIGIBLE_PROVIDERS = frozenset({"openrouter"})

FirstChunkErrorHook = Callable[[BaseException], Awaitable[None]]


class RequestOrchestrator:
    """Top-level driver for context-budgeted streaming requests.

    Usage::

        orchestrator = RequestOrchestrator(
            StreamingClient(config), host, build_prompt, cwd="/work/repo"
        )
        async for chunk in orchestrator.attempt_api_request(history):
            ...
    """

    def __init__(
        self,
        stream: MessageStream,
        host: HostServices,
        build_system_prompt: SystemPromptBuilder,
        *,
        cwd: str,
        settings: ContextOptimizationSettings | None = None,
        custom_instructions: str | None = None,
        browser_settings: dict[str, Any] | None = None,
        counter: TokenCounter | None = None,
        deleted_range: TruncationRange | None = None,
        rules_file_name: str = RULES_FILE_NAME,
        section_policy: SectionPolicy = DEFAULT_SECTION_POLICY,
        dependency_timeout: float = DEFAULT_DEPENDENCY_TIMEOUT,
        retry_delay: float = DEFAULT_RETRY_DELAY,
    ) -> None:
        self._stream = stream
        self._host = host
        self._build_system_prompt = build_system_prompt
        self._cwd = cwd
        self._settings = settings or DEFAULT_CONTEXT_OPTIMIZATION_SETTINGS
        self._custom_instructions = custom_instructions
        self._browser_settings = browser_settings or {}
        self._counter = counter or get_counter(stream.config)
        self._tracker = SlidingWindowRangeTracker(deleted_range)
        self._rules_file_name = rules_file_name
        self._section_policy = section_policy
        self._dependency_timeout = dependency_timeout
        self._retry_delay = retry_delay
        self._planner = ContextBudgetPlanner(stream.config.resolve_context_window())
        self.state = RequestState()

    @classmethod
    def from_settings(
        cls,
        settings: Settings | str | Path,
        host: HostServices,
        build_system_prompt: SystemPromptBuilder,
        *,
        cwd: str,
        stream: MessageStream | None = None,
        **kwargs: Any,
    ) -> RequestOrchestrator:
        """Build an orchestrator from a settings object or settings YAML path.

        Without an explicit *stream* a :class:`StreamingClient` is created
        for the settings' model.

        Raises:
            SettingsValidationError: The file is invalid, or no stream was
                given and the settings name no model.
        """
        if not isinstance(settings, Settings):
            settings = SettingsLoader(settings).load()
        if stream is None:
            if settings.model is None:
                raise SettingsValidationError("Settings must define a model")
            stream = StreamingClient(settings.model)
        if settings.instructions_file:
            kwargs.setdefault("rules_file_name", settings.instructions_file)
        return cls(
            stream,
            host,
            build_system_prompt,
            cwd=cwd,
            settings=settings.context_optimization,
            custom_instructions=settings.custom_instructions,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Accessors and lifecycle
    # ------------------------------------------------------------------

    def get_model(self) -> ModelConfig:
        return self._stream.config

    @property
    def settings(self) -> ContextOptimizationSettings:
        return self._settings

    @property
    def context_window(self) -> int:
        return self._planner.context_window

    @property
    def deleted_range(self) -> TruncationRange | None:
        """The persistent sliding-window range; store it with the task."""
        return self._tracker.current_range

    def update_context_optimization_settings(self, settings: ContextOptimizationSettings) -> None:
        self._settings = settings

    def reset_api_request_count(self) -> None:
        self.state.api_request_count = 0

    def reset(self) -> None:
        """Clear all per-task state, including the deleted range."""
        self.state.reset()
        self._tracker.reset()

    # ------------------------------------------------------------------
    # Budget helpers
    # ------------------------------------------------------------------

    def calculate_context_window_limits(self, context_window: int | None = None) -> ContextWindowLimits:
        return calculate_context_window_limits(context_window or self.context_window)

    def should_truncate_conversation(
        self, total_tokens: int, context_window: int | None = None
    ) -> TruncationDecision:
        return should_truncate_conversation(total_tokens, context_window or self.context_window)

    def get_next_truncation_range(
        self,
        messages: Sequence[Message],
        current_range: TruncationRange | None,
        keep: Keep,
    ) -> TruncationRange | None:
        return get_next_truncation_range(messages, current_range, keep)

    # ------------------------------------------------------------------
    # Request
    # ------------------------------------------------------------------

    async def attempt_api_request(
        self,
        history: Sequence[Message] | ConversationHistory,
        *,
        environment_details: str | None = None,
        previous_metrics: RequestMetrics | None = None,
        on_first_chunk_error: FirstChunkErrorHook | None = None,
    ) -> AsyncIterator[StreamChunk]:
        """Stream one request's chunks, retrying a first-chunk failure at most once.

        Args:
            history: The full conversation history; never mutated.
            environment_details: Workspace snapshot to attach to the last user turn.
            previous_metrics: Usage of the previous request; when given, its
                total decides truncation instead of counting the history.
            on_first_chunk_error: Awaited with the error before it is re-raised.
        """
        messages = list(history)

        for attempt in range(_MAX_ATTEMPTS):
            with _tracer.start_as_current_span("request.attempt") as span:
                set_span_attributes(
                    span,
                    {
                        ATTR_MODEL: self.get_model().model,
                        ATTR_PROVIDER: self.get_model().provider,
                        ATTR_RETRY: attempt > 0,
                    },
                )

                outbound, system_prompt = await self._prepare_request(
                    messages, environment_details, previous_metrics, span
                )
                iterator = aiter(self._stream.create_message(system_prompt, outbound))

                self.state.phase = RequestPhase.WAITING_FIRST_CHUNK
                self.state.is_waiting_for_first_chunk = True
                try:
                    first = await anext(iterator)
                except StopAsyncIteration:
                    self.state.is_waiting_for_first_chunk = False
                    self.state.phase = RequestPhase.DONE
                    return
                except Exception as error:
                    self.state.is_waiting_for_first_chunk = False
                    if attempt + 1 < _MAX_ATTEMPTS and self._can_retry():
                        logger.warning(
                            "First chunk failed (%s), waiting %.1fs before retrying",
                            error,
                            self._retry_delay,
                        )
                        self.state.phase = RequestPhase.RETRY_ONCE
                        await asyncio.sleep(self._retry_delay)
                        self.state.did_automatically_retry_failed_api_request = True
                        continue

                    self.state.phase = RequestPhase.FAILED
                    if on_first_chunk_error is not None:
                        await on_first_chunk_error(error)
                    raise

                self.state.is_waiting_for_first_chunk = False
                self.state.phase = RequestPhase.FORWARDING

            yield first
            async for chunk in iterator:
                yield chunk
            self.state.phase = RequestPhase.DONE
            return

    def _keeps_custom_instructions(self, is_first_request: bool) -> bool:
        if is_first_request or not self._settings.enabled:
            return True
        return self._section_policy.keeps(CUSTOM_INSTRUCTIONS_HEADING)

    def _can_retry(self) -> bool:
        return (
            self.get_model().provider in RETRY_ELIGIBLE_PROVIDERS
            and not self.state.did_automatically_retry_failed_api_request
        )

    async def _prepare_request(
        self,
        history: list[Message],
        environment_details: str | None,
        previous_metrics: RequestMetrics | None,
        span: Span,
    ) -> tuple[list[Message], str]:
        """Run the pre-stream phases and return the outbound messages and prompt."""
        self.state.phase = RequestPhase.AWAITING_DEPENDENCY
        tool_hub = await self._await_tool_hub()

        self.state.phase = RequestPhase.BUILDING_PROMPT
        system_prompt = await self._build_system_prompt(
            self._cwd,
            self.get_model().supports_computer_use,
            tool_hub,
            self._browser_settings,
        )
        is_first_request = self.state.api_request_count == 0
        if self._keeps_custom_instructions(is_first_request):
            instructions = load_custom_instructions(
                self._cwd, self._custom_instructions, self._rules_file_name
            )
            system_prompt = add_user_instructions(system_prompt, instructions)

        self.state.phase = RequestPhase.OPTIMIZING
        self.state.api_request_count += 1
        set_span_attributes(
            span,
            {ATTR_REQUEST_INDEX: self.state.api_request_count, ATTR_FIRST_REQUEST: is_first_request},
        )

        messages, decision = self._manage_context_window(
            history, system_prompt, previous_metrics, span
        )
        optimized = optimize_context(
            messages,
            system_prompt,
            environment_details or "",
            self._settings,
            is_first_request,
            decision=decision,
            policy=self._section_policy,
        )
        outbound = _attach_environment_details(optimized.messages, optimized.environment_details)

        set_span_attributes(span, {ATTR_MESSAGES_IN: len(history), ATTR_MESSAGES_OUT: len(outbound)})
        return outbound, optimized.system_prompt

    def _manage_context_window(
        self,
        history: list[Message],
        system_prompt: str,
        previous_metrics: RequestMetrics | None,
        span: Span,
    ) -> tuple[list[Message], TruncationDecision]:
        """Decide on truncation; apply the sliding window in classic mode.

        Smart truncation is left to the optimization pipeline, which gets
        the decision. Messages already in the deleted range stay deleted in
        either mode and are not counted against the budget.
        """
        messages = self._tracker.apply(history)
        if previous_metrics is not None:
            total_tokens = previous_metrics.total_tokens
        else:
            total_tokens = self._counter.count_messages(messages) + self._counter.count_text(
                system_prompt
            )
        decision = self._planner.decide(total_tokens)
        smart = self._settings.enabled and self._settings.use_smart_truncation

        set_span_attributes(
            span,
            {
                ATTR_TOKENS_TOTAL: total_tokens,
                ATTR_CONTEXT_WINDOW: self.context_window,
                ATTR_TRUNCATION_MODE: "smart" if smart else "sliding_window",
                ATTR_TRUNCATION_KEEP: decision.keep if decision.should_truncate else None,
            },
        )

        if decision.should_truncate:
            logger.debug(
                "History at %d tokens exceeds %s allowed, keeping %s",
                total_tokens,
                self._planner.limits.max_allowed_size,
                decision.keep,
            )
            if not smart:
                self._tracker.advance(history, decision.keep)
                messages = self._tracker.apply(history)

        return messages, decision

    async def _await_tool_hub(self) -> ToolHub:
        try:
            await asyncio.wait_for(self._wait_for_tool_hub(), timeout=self._dependency_timeout)
        except TimeoutError:
            logger.error("%s", DependencyTimeoutError("Tool hub", self._dependency_timeout))

        tool_hub = self._host.get_tool_hub()
        if tool_hub is None:
            raise DependencyMissingError("Tool hub")
        return tool_hub

    async def _wait_for_tool_hub(self) -> None:
        while True:
            tool_hub = self._host.get_tool_hub()
            if tool_hub is None or not tool_hub.is_connecting:
                return
            await asyncio.sleep(_DEPENDENCY_POLL_INTERVAL)


def _attach_environment_details(messages: list[Message], details: str) -> list[Message]:
    """Append *details* to a copy of the last user message with block content."""
    if not details:
        return messages
    for index in range(len(messages) - 1, -1, -1):
        message = messages[index]
        if message.role != "user":
            continue
        if isinstance(message.content, str):
            return messages
        result = list(messages)
        result[index] = message.with_block(TextBlock(text=details))
        return result
    return messages
