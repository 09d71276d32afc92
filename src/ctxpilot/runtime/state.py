"""Mutable per-task request state owned by one orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class RequestPhase(str, Enum):
    """Where the orchestrator is in the request state machine."""

    IDLE = "idle"
    AWAITING_DEPENDENCY = "awaiting_dependency"
    BUILDING_PROMPT = "building_prompt"
    OPTIMIZING = "optimizing"
    WAITING_FIRST_CHUNK = "waiting_first_chunk"
    FORWARDING = "forwarding"
    RETRY_ONCE = "retry_once"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RequestState:
    """Counters and flags that live for one agent task.

    ``did_automatically_retry_failed_api_request`` is sticky: once set it
    stays set until :meth:`reset` is called for a new task.
    """

    api_request_count: int = 0
    is_waiting_for_first_chunk: bool = False
    did_automatically_retry_failed_api_request: bool = False
    phase: RequestPhase = RequestPhase.IDLE

    def reset(self) -> None:
        self.api_request_count = 0
        self.is_waiting_for_first_chunk = False
        self.did_automatically_retry_failed_api_request = False
        self.phase = RequestPhase.IDLE
