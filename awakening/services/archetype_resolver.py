"""
Neuropul Awakening: ArchetypeResolver, the resolution orchestrator

Drives one archetype resolution per session:

    idle -> requesting -> parsing -> validating -> success
                 ^                                   |
                 +------ retry_pending <-- failure --+--> fallback_analysis -> success

- ``requesting``: the generator call runs under ``asyncio.wait_for``; on
  expiry it is cancelled and counts as a ``NetworkTimeout``.
- Any ``ResolutionError`` (timeout, transport, empty text, unparseable text,
  invalid category) fails the attempt.  Tenacity retries the full round trip
  once after a fixed delay.
- When attempts are exhausted the local classifier decides; it cannot fail
  in normal operation, so every resolution reaches ``success``.
- A ``SingleFlightGuard`` makes the entry point idempotent: duplicate calls
  share the first call's outcome and never issue a second remote request.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Sequence

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from awakening.config import get_settings
from awakening.exceptions import (
    EmptyResponse,
    FallbackFailure,
    NetworkTimeout,
    ParseFailure,
    ResolutionError,
    TransportError,
)
from awakening.models.archetype import (
    ArchetypeResult,
    QuizAnswer,
    ResolutionOutcome,
    ScoreVector,
    Strategy,
)
from awakening.services.fallback_classifier import LocalFallbackClassifier
from awakening.services.gemini_service import TextGenerator
from awakening.services.prompts import ARCHETYPE_SYSTEM_PROMPT, build_archetype_prompt
from awakening.services.response_parser import ResponseParser
from awakening.services.result_validator import ResultValidator
from awakening.services.score_aggregator import ScoreAggregator
from awakening.services.single_flight import SingleFlightGuard

logger = structlog.get_logger(__name__)


class ResolutionState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    PARSING = "parsing"
    VALIDATING = "validating"
    RETRY_PENDING = "retry_pending"
    FALLBACK_ANALYSIS = "fallback_analysis"
    SUCCESS = "success"


class ArchetypeResolver:
    """Resolve quiz answers to an archetype, remote first, local as fallback."""

    def __init__(
        self,
        generator: TextGenerator,
        *,
        timeout_seconds: float | None = None,
        retry_delay_seconds: float | None = None,
        max_attempts: int | None = None,
        aggregator: ScoreAggregator | None = None,
        parser: ResponseParser | None = None,
        validator: ResultValidator | None = None,
        fallback: LocalFallbackClassifier | None = None,
    ) -> None:
        settings = get_settings()
        self._generator = generator
        self._timeout = (
            settings.ARCHETYPE_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        )
        self._retry_delay = (
            settings.RETRY_DELAY_SECONDS if retry_delay_seconds is None else retry_delay_seconds
        )
        self._max_attempts = settings.MAX_REMOTE_ATTEMPTS if max_attempts is None else max_attempts

        self._aggregator = aggregator or ScoreAggregator()
        self._parser = parser or ResponseParser()
        self._validator = validator or ResultValidator()
        self._fallback = fallback or LocalFallbackClassifier(self._aggregator)

        self._guard: SingleFlightGuard[ResolutionOutcome] = SingleFlightGuard("archetype")
        self.state = ResolutionState.IDLE
        self.attempts = 0
        self.outcome: ResolutionOutcome | None = None

    # ══════════════════════════════════════════════════════════════════
    # Public API
    # ══════════════════════════════════════════════════════════════════

    @property
    def guard_set(self) -> bool:
        return self._guard.is_set

    async def resolve(self, answers: Sequence[QuizAnswer]) -> ResolutionOutcome:
        """Resolve ``answers`` once; later calls return the same outcome."""
        snapshot = list(answers)
        return await self._guard.run(lambda: self._run(snapshot))

    def reset(self) -> None:
        """Clear the guard and all intermediate state (full onboarding restart)."""
        self._guard.reset()
        self.state = ResolutionState.IDLE
        self.attempts = 0
        self.outcome = None
        logger.info("archetype_resolver_reset")

    # ══════════════════════════════════════════════════════════════════
    # Pipeline
    # ══════════════════════════════════════════════════════════════════

    async def _run(self, answers: list[QuizAnswer]) -> ResolutionOutcome:
        log = logger.bind(answer_count=len(answers))
        scores = self._aggregator.aggregate(answers)
        self.attempts = 0

        if not answers:
            log.info("archetype_remote_skipped", reason="no_answers")
            return self._finish(self._run_fallback(answers, scores), Strategy.LOCAL_FALLBACK)

        prompt = build_archetype_prompt(answers)
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(ResolutionError),
                stop=stop_after_attempt(self._max_attempts),
                wait=wait_fixed(self._retry_delay),
                before_sleep=self._before_retry,
                reraise=True,
            ):
                with attempt:
                    result, strategy = await self._attempt(prompt)
                    return self._finish(result, strategy)
        except ResolutionError as exc:
            log.warning(
                "archetype_remote_exhausted",
                attempts=self.attempts,
                error_type=type(exc).__name__,
                error=str(exc),
            )

        return self._finish(self._run_fallback(answers, scores), Strategy.LOCAL_FALLBACK)

    async def _attempt(self, prompt: str) -> tuple[ArchetypeResult, Strategy]:
        self.attempts += 1
        self.state = ResolutionState.REQUESTING
        log = logger.bind(attempt=self.attempts)

        try:
            raw_text = await asyncio.wait_for(
                self._generator.generate(prompt, ARCHETYPE_SYSTEM_PROMPT),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            log.warning("archetype_attempt_failed", error_type="NetworkTimeout", timeout=self._timeout)
            raise NetworkTimeout(f"Archetype request exceeded {self._timeout}s") from exc
        except ResolutionError as exc:
            log.warning("archetype_attempt_failed", error_type=type(exc).__name__, error=str(exc))
            raise
        except Exception as exc:
            log.warning("archetype_attempt_failed", error_type="TransportError", error=str(exc))
            raise TransportError(str(exc)) from exc

        if not isinstance(raw_text, str) or not raw_text.strip():
            log.warning("archetype_attempt_failed", error_type="EmptyResponse")
            raise EmptyResponse("Generator returned no text")

        self.state = ResolutionState.PARSING
        try:
            parsed = self._parser.parse(raw_text)
        except Exception as exc:
            log.warning("archetype_attempt_failed", error_type="ParseFailure", error=str(exc))
            raise ParseFailure(f"Parser raised {type(exc).__name__}") from exc
        if parsed is None:
            log.warning("archetype_attempt_failed", error_type="ParseFailure", preview=raw_text[:120])
            raise ParseFailure("All parsing strategies failed")

        self.state = ResolutionState.VALIDATING
        try:
            result = self._validator.validate(parsed.candidate)
        except ResolutionError as exc:
            log.warning("archetype_attempt_failed", error_type=type(exc).__name__, error=str(exc))
            raise
        return result, parsed.strategy

    def _before_retry(self, retry_state: RetryCallState) -> None:
        self.state = ResolutionState.RETRY_PENDING
        logger.info(
            "archetype_retry_scheduled",
            next_attempt=retry_state.attempt_number + 1,
            delay_seconds=self._retry_delay,
        )

    def _run_fallback(self, answers: list[QuizAnswer], scores: ScoreVector) -> ArchetypeResult:
        self.state = ResolutionState.FALLBACK_ANALYSIS
        try:
            return self._fallback.classify(answers, scores)
        except Exception as exc:
            logger.exception("archetype_fallback_failed")
            raise FallbackFailure("Local archetype classification failed") from exc

    def _finish(self, result: ArchetypeResult, strategy: Strategy) -> ResolutionOutcome:
        self.state = ResolutionState.SUCCESS
        self.outcome = ResolutionOutcome(
            result=result,
            strategy_used=strategy,
            attempts=self.attempts,
        )
        logger.info(
            "archetype_resolved",
            type=result.type.value,
            strategy=strategy.value,
            attempts=self.attempts,
        )
        return self.outcome
