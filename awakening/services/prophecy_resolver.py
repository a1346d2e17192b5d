"""
Neuropul Awakening: ProphecyResolver

Same retry / fallback shape as ``ArchetypeResolver`` but keyed by an already
resolved category: any non-empty text from the generator is accepted, and
the fallback is the category's fixed prophecy from the catalog.  Its
single-flight guard is independent of the archetype guard.
"""

from __future__ import annotations

import asyncio

import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from awakening.catalog import FALLBACK_PROPHECIES
from awakening.config import get_settings
from awakening.exceptions import EmptyResponse, NetworkTimeout, ResolutionError, TransportError
from awakening.models.archetype import Category
from awakening.services.gemini_service import TextGenerator
from awakening.services.prompts import PROPHECY_SYSTEM_PROMPT, build_prophecy_prompt
from awakening.services.single_flight import SingleFlightGuard

logger = structlog.get_logger(__name__)

_WRAPPING_QUOTES = "\"'«»“”„"


def clean_prophecy(raw_text: object) -> str | None:
    """Return the stripped prophecy text, or ``None`` when nothing is left."""
    if not isinstance(raw_text, str):
        return None
    text = raw_text.strip().strip(_WRAPPING_QUOTES).strip()
    return text or None


class ProphecyResolver:
    STRATEGY_REMOTE = "remote"
    STRATEGY_FALLBACK = "fallback"

    def __init__(
        self,
        generator: TextGenerator,
        *,
        timeout_seconds: float | None = None,
        retry_delay_seconds: float | None = None,
        max_attempts: int | None = None,
    ) -> None:
        settings = get_settings()
        self._generator = generator
        self._timeout = (
            settings.PROPHECY_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        )
        self._retry_delay = (
            settings.RETRY_DELAY_SECONDS if retry_delay_seconds is None else retry_delay_seconds
        )
        self._max_attempts = settings.MAX_REMOTE_ATTEMPTS if max_attempts is None else max_attempts

        self._guard: SingleFlightGuard[str] = SingleFlightGuard("prophecy")
        self.strategy: str | None = None
        self.attempts = 0
        self.prophecy: str | None = None

    @property
    def guard_set(self) -> bool:
        return self._guard.is_set

    async def resolve(self, category: Category) -> str:
        resolved = Category.parse(category)
        if resolved is None:
            raise ValueError(f"Unknown archetype category: {category!r}")
        category = resolved
        return await self._guard.run(lambda: self._run(category))

    def reset(self) -> None:
        self._guard.reset()
        self.strategy = None
        self.attempts = 0
        self.prophecy = None

    async def _run(self, category: Category) -> str:
        log = logger.bind(type=category.value)
        self.attempts = 0
        prompt = build_prophecy_prompt(category)

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(ResolutionError),
                stop=stop_after_attempt(self._max_attempts),
                wait=wait_fixed(self._retry_delay),
                before_sleep=lambda rs: log.info(
                    "prophecy_retry_scheduled",
                    next_attempt=rs.attempt_number + 1,
                    error=str(rs.outcome.exception()),
                ),
                reraise=True,
            ):
                with attempt:
                    text = await self._attempt(prompt)
                    return self._finish(text, self.STRATEGY_REMOTE, log)
        except ResolutionError as exc:
            log.warning(
                "prophecy_fallback_used",
                attempts=self.attempts,
                error_type=type(exc).__name__,
                error=str(exc),
            )

        return self._finish(FALLBACK_PROPHECIES[category], self.STRATEGY_FALLBACK, log)

    async def _attempt(self, prompt: str) -> str:
        self.attempts += 1
        try:
            raw_text = await asyncio.wait_for(
                self._generator.generate(prompt, PROPHECY_SYSTEM_PROMPT),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            raise NetworkTimeout(f"Prophecy request exceeded {self._timeout}s") from exc
        except ResolutionError:
            raise
        except Exception as exc:
            raise TransportError(str(exc)) from exc

        text = clean_prophecy(raw_text)
        if text is None:
            raise EmptyResponse("Generator returned an empty prophecy")
        return text

    def _finish(self, text: str, strategy: str, log) -> str:
        self.prophecy = text
        self.strategy = strategy
        log.info("prophecy_resolved", strategy=strategy, attempts=self.attempts)
        return text
