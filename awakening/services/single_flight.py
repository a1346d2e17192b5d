"""
Neuropul Awakening: Single-flight guard

One latch per resolver per session.  The first ``run`` starts the work as a
task; every later call, concurrent or not, awaits that same task instead of
starting another remote round trip.  Only ``reset`` (an explicit restart of
the onboarding flow) clears the latch, except after a hard failure, which
clears it so the caller may try again.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Generic, TypeVar

import structlog

from awakening.exceptions import ResolutionReset

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class SingleFlightGuard(Generic[T]):
    def __init__(self, name: str) -> None:
        self.name = name
        self._task: asyncio.Future[T] | None = None

    @property
    def is_set(self) -> bool:
        return self._task is not None

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run(self, factory: Callable[[], Awaitable[T]]) -> T:
        if self._task is None:
            self._task = asyncio.ensure_future(factory())
        else:
            logger.info(
                "single_flight_reused",
                guard=self.name,
                in_flight=not self._task.done(),
            )

        task = self._task
        try:
            # Shielded: a cancelled caller must not abort the shared work.
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            # Only reset() cancels the shared task; callers that are still
            # waiting get a defined outcome instead of a stray cancellation.
            if task.cancelled():
                logger.info("single_flight_reset_observed", guard=self.name)
                raise ResolutionReset(f"{self.name} resolution was reset") from None
            raise
        except Exception:
            if self._task is task and task.done():
                self._task = None
            raise

    def reset(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
            logger.info("single_flight_cancelled", guard=self.name)
        self._task = None
