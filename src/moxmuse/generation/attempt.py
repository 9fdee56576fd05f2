"""
Generation attempt lifecycle.

An attempt is exactly one of:
    Idle -> Running(phase, retries) -> Succeeded(result)
                                    -> Failed(error, retries) -> Running (retry)
    Idle / Running / Failed -> Cancelled

`reduce` is the only way to move between them. Succeeded and Cancelled are
terminal: every event is ignored, which is what makes duplicate success
signals and late responses after cancel harmless.
"""

from dataclasses import dataclass
from typing import Any, Union

from .errors import ClassifiedError


# =============================================================================
# States
# =============================================================================


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Running:
    phase_index: int = 0
    retry_count: int = 0


@dataclass(frozen=True)
class Succeeded:
    result: Any
    retry_count: int = 0


@dataclass(frozen=True)
class Failed:
    error: ClassifiedError
    retry_count: int = 0


@dataclass(frozen=True)
class Cancelled:
    pass


AttemptState = Union[Idle, Running, Succeeded, Failed, Cancelled]


# =============================================================================
# Events
# =============================================================================


@dataclass(frozen=True)
class Start:
    pass


@dataclass(frozen=True)
class Advance:
    phase_index: int


@dataclass(frozen=True)
class Succeed:
    result: Any


@dataclass(frozen=True)
class Fail:
    error: ClassifiedError


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class Retry:
    pass


AttemptEvent = Union[Start, Advance, Succeed, Fail, Cancel, Retry]


def reduce(state: AttemptState, event: AttemptEvent) -> AttemptState:
    """Next state. Events that don't apply return `state` unchanged."""
    if isinstance(state, Idle):
        if isinstance(event, Start):
            return Running(0, 0)
        if isinstance(event, Cancel):
            return Cancelled()
        return state

    if isinstance(state, Running):
        if isinstance(event, Advance):
            # Progress only moves forward within a run
            if event.phase_index > state.phase_index:
                return Running(event.phase_index, state.retry_count)
            return state
        if isinstance(event, Succeed):
            return Succeeded(event.result, state.retry_count)
        if isinstance(event, Fail):
            return Failed(event.error, state.retry_count)
        if isinstance(event, Cancel):
            return Cancelled()
        return state

    if isinstance(state, Failed):
        if isinstance(event, Retry):
            return Running(0, state.retry_count + 1)
        if isinstance(event, Cancel):
            return Cancelled()
        return state

    # Succeeded, Cancelled
    return state


def is_in_flight(state: AttemptState) -> bool:
    return isinstance(state, Running)
