"""
Neuropul Awakening: Awakening sessions

An ``AwakeningSession`` is one pass through the onboarding flow: it collects
quiz answers, owns one ``ArchetypeResolver`` and one ``ProphecyResolver``
(each with its own single-flight guard) and can be reset when the user
restarts the flow.  ``SessionRegistry`` keeps sessions in process memory and
evicts idle ones.
"""

from __future__ import annotations

import time
import uuid
from typing import Any

import structlog

from awakening.catalog import QUIZ_QUESTIONS, get_question
from awakening.config import get_settings
from awakening.models.archetype import QuizAnswer, ResolutionOutcome
from awakening.services.archetype_resolver import ArchetypeResolver
from awakening.services.gemini_service import TextGenerator
from awakening.services.prophecy_resolver import ProphecyResolver

logger = structlog.get_logger(__name__)


class SessionStateError(RuntimeError):
    """The requested step is not available yet in this session."""


class AwakeningSession:
    def __init__(
        self,
        generator: TextGenerator,
        session_id: str | None = None,
        **resolver_options: Any,
    ) -> None:
        self.session_id = session_id or str(uuid.uuid4())
        self.archetype_resolver = ArchetypeResolver(generator, **resolver_options)
        self.prophecy_resolver = ProphecyResolver(generator, **resolver_options)
        self._answers: dict[int, QuizAnswer] = {}
        self.created_at = time.time()
        self.last_active = self.created_at

    # ── Quiz ──────────────────────────────────────────────────────────

    @property
    def answers(self) -> list[QuizAnswer]:
        return [self._answers[qid] for qid in sorted(self._answers)]

    @property
    def quiz_completed(self) -> bool:
        return all(q["id"] in self._answers for q in QUIZ_QUESTIONS)

    def record_answer(self, question_id: int, answer_index: int) -> QuizAnswer:
        """Record the catalog answer; re-answering a question replaces it."""
        question = get_question(question_id)
        if question is None:
            raise ValueError(f"Unknown question {question_id}")
        if not 0 <= answer_index < len(question["answers"]):
            raise ValueError(f"Question {question_id} has no answer {answer_index}")

        choice = question["answers"][answer_index]
        answer = QuizAnswer(
            question_id=question_id,
            answer_text=choice["text"],
            weight=choice["weight"],
        )
        self._answers[question_id] = answer
        self.touch()
        logger.info(
            "quiz_answer_recorded",
            session_id=self.session_id,
            question_id=question_id,
            answer_index=answer_index,
        )
        return answer

    # ── Resolution ────────────────────────────────────────────────────

    async def resolve_archetype(self) -> ResolutionOutcome:
        self.touch()
        if not self._answers and not self.archetype_resolver.guard_set:
            raise SessionStateError("No quiz answers available for analysis")
        return await self.archetype_resolver.resolve(self.answers)

    async def resolve_prophecy(self) -> str:
        self.touch()
        outcome = self.archetype_resolver.outcome
        if outcome is None:
            raise SessionStateError("Archetype has not been resolved yet")
        return await self.prophecy_resolver.resolve(outcome.result.type)

    def reset(self) -> None:
        """Restart the onboarding flow: answers, both guards, all results."""
        self._answers.clear()
        self.archetype_resolver.reset()
        self.prophecy_resolver.reset()
        self.touch()
        logger.info("awakening_session_reset", session_id=self.session_id)

    def touch(self) -> None:
        self.last_active = time.time()

    def snapshot(self) -> dict:
        outcome = self.archetype_resolver.outcome
        return {
            "session_id": self.session_id,
            "answers": [
                {"question_id": a.question_id, "answer_text": a.answer_text}
                for a in self.answers
            ],
            "quiz_completed": self.quiz_completed,
            "archetype": outcome.result if outcome else None,
            "strategy_used": outcome.strategy_used if outcome else None,
            "attempts": outcome.attempts if outcome else 0,
            "prophecy": self.prophecy_resolver.prophecy,
            "prophecy_strategy": self.prophecy_resolver.strategy,
        }


class SessionRegistry:
    """In-memory session store keyed by session id."""

    def __init__(self, generator: TextGenerator, ttl_seconds: int | None = None, **resolver_options: Any) -> None:
        self._generator = generator
        self._ttl = get_settings().SESSION_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._resolver_options = resolver_options
        self._sessions: dict[str, AwakeningSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self) -> AwakeningSession:
        self.evict_expired()
        session = AwakeningSession(self._generator, **self._resolver_options)
        self._sessions[session.session_id] = session
        logger.info("awakening_session_created", session_id=session.session_id)
        return session

    def get(self, session_id: str) -> AwakeningSession | None:
        self.evict_expired()
        return self._sessions.get(session_id)

    def drop(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.reset()
        return True

    def evict_expired(self, now: float | None = None) -> int:
        now = time.time() if now is None else now
        expired = [
            sid for sid, s in self._sessions.items()
            if now - s.last_active > self._ttl
        ]
        for sid in expired:
            self._sessions.pop(sid).reset()
        if expired:
            logger.info("awakening_sessions_evicted", count=len(expired))
        return len(expired)

    def clear(self) -> None:
        for session in self._sessions.values():
            session.reset()
        self._sessions.clear()
