"""
Generation error taxonomy.

Three kinds of terminal failure:
- TRANSIENT: network trouble, timeouts, the AI service being unavailable.
  Safe to retry automatically.
- ASSEMBLY: the service answered but the payload can't be turned into a deck.
  Never auto-retried; a manual retry re-runs the whole attempt.
- FATAL: anything else. Surfaced to the caller as-is.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum

# Substrings that mark an otherwise unknown error as transient
TRANSIENT_MARKERS = (
    "Network Error",
    "timeout",
    "fetch",
    "AI service",
    "generation failed",
)

# Upstream gateway statuses that mean "try again shortly"
TRANSIENT_STATUS_CODES = frozenset({502, 503, 504})


class GenerationError(Exception):
    """Base class for deck generation failures."""


class TransientGenerationError(GenerationError):
    """Network, timeout or service-unavailable failure. Eligible for auto-retry."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AssemblyError(GenerationError):
    """The generation response could not be assembled into a deck."""


class ErrorKind(str, Enum):
    TRANSIENT = "transient"
    ASSEMBLY = "assembly"
    FATAL = "fatal"


@dataclass(frozen=True)
class ClassifiedError:
    """An error plus the verdict on how to handle it."""
    kind: ErrorKind
    message: str
    retryable: bool
    error: BaseException

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message, "retryable": self.retryable}


def classify_error(error: BaseException) -> ClassifiedError:
    """Sort any exception raised during generation into an ErrorKind."""
    message = str(error) or type(error).__name__

    if isinstance(error, AssemblyError):
        return ClassifiedError(ErrorKind.ASSEMBLY, message, False, error)

    if isinstance(error, TransientGenerationError):
        return ClassifiedError(ErrorKind.TRANSIENT, message, True, error)

    if isinstance(error, GenerationError):
        return ClassifiedError(ErrorKind.FATAL, message, False, error)

    if isinstance(error, (TimeoutError, asyncio.TimeoutError, ConnectionError)):
        return ClassifiedError(ErrorKind.TRANSIENT, message, True, error)

    if any(marker in message for marker in TRANSIENT_MARKERS):
        return ClassifiedError(ErrorKind.TRANSIENT, message, True, error)

    return ClassifiedError(ErrorKind.FATAL, message, False, error)


def is_transient(error: BaseException) -> bool:
    return classify_error(error).kind == ErrorKind.TRANSIENT
