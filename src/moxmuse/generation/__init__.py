"""
MoxMuse - Deck generation.

The orchestrator calls the remote deck service, retries transient
failures, and hands the response to the assembler.
"""

from .assembler import assemble
from .attempt import AttemptState, Cancelled, Failed, Idle, Running, Succeeded
from .client import DeckServiceClient, GenerationConstraints, GenerationRequest
from .errors import (
    AssemblyError,
    ClassifiedError,
    ErrorKind,
    GenerationError,
    TransientGenerationError,
    classify_error,
)
from .orchestrator import GenerationOrchestrator
from .phases import GENERATION_PHASES, GenerationProgress
from .retry import RetryPolicy

__all__ = [
    "assemble",
    "AttemptState",
    "Idle",
    "Running",
    "Succeeded",
    "Failed",
    "Cancelled",
    "DeckServiceClient",
    "GenerationConstraints",
    "GenerationRequest",
    "AssemblyError",
    "ClassifiedError",
    "ErrorKind",
    "GenerationError",
    "TransientGenerationError",
    "classify_error",
    "GenerationOrchestrator",
    "GENERATION_PHASES",
    "GenerationProgress",
    "RetryPolicy",
]
