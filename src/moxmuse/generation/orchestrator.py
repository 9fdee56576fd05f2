"""
Generation Orchestrator.

Drives one deck generation at a time through the fixed phases:

    Analyzing Strategy (10) -> Generating Cards (30) -> Assembling Deck (60)
    -> Calculating Statistics (80) -> Finalizing (100)

Guarantees:
- A second generate() while one is running is a no-op
- Exactly one service request per run; success callbacks fire at most once
  per attempt, however many completion signals arrive
- Transient failures retry with backoff (bounded), everything else is
  surfaced through on_error and can be retried manually
- cancel() and dispose() turn every pending timer and response into a
  no-op; no callback fires afterwards

Every continuation after a suspension point checks a run token, so a late
response from a cancelled or superseded run can't touch current state.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from consultation.record import ConsultationRecord
from consultation.state import generate_session_id
from moxmuse.models.deck import GeneratedDeckRecord

from .assembler import assemble
from .attempt import (
    Advance,
    AttemptEvent,
    AttemptState,
    Cancel,
    Cancelled,
    Fail,
    Failed,
    Idle,
    Retry,
    Running,
    Start,
    Succeed,
    Succeeded,
    reduce,
)
from .client import DeckService, GenerationConstraints, GenerationRequest
from .errors import ClassifiedError, classify_error
from .phases import ANALYZING, ASSEMBLING, CALCULATING, FINALIZING, GENERATING, GenerationProgress
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[GenerationProgress], None]
SuccessCallback = Callable[[GeneratedDeckRecord], None]
ErrorCallback = Callable[[ClassifiedError], None]
Assembler = Callable[[dict[str, Any], ConsultationRecord, str], GeneratedDeckRecord]

# Returned internally when a continuation finds its run no longer current
_STALE = object()


class GenerationOrchestrator:
    """
    Owns one GenerationAttempt and the callbacks that observe it.

    `sleep` is injectable so tests can run phases and backoff instantly.
    """

    def __init__(
        self,
        client: DeckService,
        *,
        policy: RetryPolicy | None = None,
        on_progress: ProgressCallback | None = None,
        on_success: SuccessCallback | None = None,
        on_error: ErrorCallback | None = None,
        assembler: Assembler = assemble,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        analyze_delay: float = 0.8,
        finalize_delay: float = 0.5,
    ):
        self.client = client
        self.policy = policy or RetryPolicy()
        self.on_progress = on_progress
        self.on_success = on_success
        self.on_error = on_error
        self.assembler = assembler
        self._sleep = sleep
        self.analyze_delay = analyze_delay
        self.finalize_delay = finalize_delay

        self._state: AttemptState = Idle()
        self._alive = True
        self._token = 0
        self._completing = False  # the "already succeeded" guard
        self._record: ConsultationRecord | None = None
        self._request: GenerationRequest | None = None
        self.request_count = 0

    @classmethod
    def from_settings(cls, client: DeckService, **callbacks: Any) -> "GenerationOrchestrator":
        from moxmuse.config import settings

        return cls(
            client,
            policy=RetryPolicy.from_settings(),
            analyze_delay=settings.analyze_delay_seconds,
            finalize_delay=settings.finalize_delay_seconds,
            **callbacks,
        )

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> AttemptState:
        return self._state

    @property
    def is_running(self) -> bool:
        return isinstance(self._state, Running)

    @property
    def retry_count(self) -> int:
        return getattr(self._state, "retry_count", 0)

    @property
    def result(self) -> GeneratedDeckRecord | None:
        return self._state.result if isinstance(self._state, Succeeded) else None

    @property
    def last_error(self) -> ClassifiedError | None:
        return self._state.error if isinstance(self._state, Failed) else None

    def _dispatch(self, event: AttemptEvent) -> None:
        self._state = reduce(self._state, event)
        if isinstance(event, (Start, Retry)):
            self._completing = False

    def _is_current(self, token: int) -> bool:
        return self._alive and token == self._token and not isinstance(self._state, Cancelled)

    # =========================================================================
    # Public API
    # =========================================================================

    async def generate(
        self,
        record: ConsultationRecord,
        commander: str,
        constraints: GenerationConstraints | None = None,
        session_id: str | None = None,
    ) -> GeneratedDeckRecord | None:
        """
        Run a generation to completion (including automatic retries).

        Returns the deck, or None if the run failed, was cancelled, or
        another run was already in flight.
        """
        if not self._alive:
            return None
        if self.is_running:
            logger.info("Generation already in progress, ignoring generate()")
            return None

        self._record = record
        self._request = GenerationRequest(
            session_id=session_id or generate_session_id("generation"),
            consultation_data=record.to_wire(),
            commander=commander,
            constraints=constraints or GenerationConstraints.from_record(record),
        )
        self._token += 1
        self._state = Idle()
        self._dispatch(Start())
        return await self._run(self._token)

    async def retry(self) -> GeneratedDeckRecord | None:
        """Manual retry after a surfaced failure. Restarts from the first phase."""
        if not self._alive or not isinstance(self._state, Failed):
            return None
        logger.info(f"Manual retry (retry {self.retry_count + 1})")
        self._token += 1
        self._dispatch(Retry())
        return await self._run(self._token)

    def cancel(self) -> bool:
        """Abandon the current attempt. Late responses are dropped silently."""
        if not isinstance(self._state, (Idle, Running, Failed)):
            return False
        self._dispatch(Cancel())
        self._token += 1
        logger.info("Generation cancelled")
        return True

    def dispose(self) -> None:
        """Owner teardown: nothing scheduled by this orchestrator acts again."""
        self._alive = False
        self._token += 1

    async def notify_success(self, response: dict[str, Any]) -> GeneratedDeckRecord | None:
        """
        Deliver a completion signal from the transport.

        Only the first signal of an attempt is acted on; duplicates return
        the already-assembled deck (or None) without firing callbacks.
        """
        outcome = await self._complete(response, self._token)
        if isinstance(outcome, GeneratedDeckRecord):
            return outcome
        return self.result

    # =========================================================================
    # Run loop
    # =========================================================================

    async def _run(self, token: int) -> GeneratedDeckRecord | None:
        while True:
            outcome = await self._attempt(token)

            if outcome is _STALE:
                if not self._is_current(token):
                    return None
                if not isinstance(self._state, Failed):
                    return self.result
                # A pushed signal failed this attempt; surface it like any other failure
                outcome = self.last_error
            if isinstance(outcome, GeneratedDeckRecord):
                return outcome

            error: ClassifiedError = outcome
            retry_count = self.retry_count
            if not self.policy.should_auto_retry(error, retry_count):
                logger.error(f"Generation failed ({error.kind.value}): {error.message}")
                if self.on_error:
                    self.on_error(error)
                return None

            delay = self.policy.delay_for(retry_count)
            logger.info(f"Transient failure, retrying in {delay:.1f}s: {error.message}")
            await self._sleep(delay)
            if not self._is_current(token):
                return None
            self._dispatch(Retry())

    async def _attempt(self, token: int) -> Any:
        """One request. Returns a deck, a ClassifiedError, or _STALE."""
        self._report(ANALYZING)
        await self._sleep(self.analyze_delay)
        if not self._is_current(token):
            return _STALE

        self._advance(GENERATING)
        self.request_count += 1
        try:
            response = await self.client.generate_deck(self._request)
        except Exception as e:
            # A pushed success may have finished the attempt while the request was out
            if not self._is_current(token) or not self.is_running:
                logger.info(f"Ignoring failure for a finished attempt: {e}")
                return _STALE
            return self._fail(e)

        return await self._complete(response, token)

    async def _complete(self, response: dict[str, Any], token: int) -> Any:
        if not self._is_current(token) or not self.is_running or self._completing:
            logger.info("Ignoring duplicate or stale success signal")
            return _STALE
        self._completing = True

        self._advance(ASSEMBLING)
        try:
            deck = self.assembler(response, self._record, self._request.commander)
        except Exception as e:
            return self._fail(e)

        self._advance(CALCULATING)
        self._advance(FINALIZING)
        await self._sleep(self.finalize_delay)
        if not self._is_current(token):
            return _STALE

        self._dispatch(Succeed(deck))
        logger.info(f"Generated deck {deck.id} after {self.retry_count} retries")
        if self.on_success:
            self.on_success(deck)
        return deck

    def _fail(self, error: Exception) -> ClassifiedError:
        classified = classify_error(error)
        logger.warning(f"Generation attempt failed: {classified.message}")
        self._dispatch(Fail(classified))
        self._completing = False
        return classified

    # =========================================================================
    # Progress
    # =========================================================================

    def _advance(self, phase_index: int) -> None:
        self._dispatch(Advance(phase_index))
        self._report(phase_index)

    def _report(self, phase_index: int) -> None:
        state = self._state
        if not isinstance(state, Running) or state.phase_index != phase_index:
            return
        if self.on_progress:
            self.on_progress(GenerationProgress.for_phase(phase_index, state.retry_count))
