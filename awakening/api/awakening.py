"""
Neuropul Awakening: Awakening API

Endpoints for the onboarding quiz and the archetype / prophecy resolution
pipeline.  Session endpoints keep per-user state (answers, single-flight
guards, results); the ``/resolve`` endpoints run a one-shot resolution for
callers that keep their own state.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response, status

from awakening.catalog import QUIZ_QUESTIONS
from awakening.config import get_settings
from awakening.exceptions import FallbackFailure, ResolutionReset
from awakening.models.archetype import ResolutionOutcome
from awakening.schemas.awakening import (
    AnswerRecordedResponse,
    AnswerSubmit,
    ArchetypeResolveRequest,
    ProphecyResolveRequest,
    ProphecyResponse,
    QuizAnswerOption,
    QuizQuestionResponse,
    ResolutionOutcomeResponse,
    SessionCreatedResponse,
    SessionStateResponse,
)
from awakening.services.archetype_resolver import ArchetypeResolver
from awakening.services.gemini_service import GeminiService, TextGenerator
from awakening.services.prophecy_resolver import ProphecyResolver
from awakening.services.session_service import (
    AwakeningSession,
    SessionRegistry,
    SessionStateError,
)

logger = structlog.get_logger("awakening.api.awakening")

router = APIRouter()

FALLBACK_FAILURE_DETAIL = "Не удалось определить архетип. Попробуй снова."

# ── Service singletons (lazy, constructed on first use) ───────────────────────

_generator: TextGenerator | None = None
_registry: SessionRegistry | None = None


def get_text_generator() -> TextGenerator:
    global _generator
    if _generator is None:
        _generator = GeminiService()
    return _generator


def get_session_registry(
    generator: TextGenerator = Depends(get_text_generator),
) -> SessionRegistry:
    global _registry
    if _registry is None:
        _registry = SessionRegistry(generator, ttl_seconds=get_settings().SESSION_TTL_SECONDS)
    return _registry


def reset_singletons() -> None:
    """Drop cached services; used on shutdown."""
    global _generator, _registry
    if _registry is not None:
        _registry.clear()
    _registry = None
    _generator = None


def _load_session(session_id: str, registry: SessionRegistry) -> AwakeningSession:
    session = registry.get(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found.",
        )
    return session


def _outcome_response(outcome: ResolutionOutcome) -> ResolutionOutcomeResponse:
    return ResolutionOutcomeResponse(
        archetype=outcome.result,
        strategy_used=outcome.strategy_used,
        attempts=outcome.attempts,
    )


# ──────────────────────────────────────────────────────────────────────────────
# GET /quiz/questions
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/quiz/questions",
    response_model=list[QuizQuestionResponse],
    summary="Get the onboarding quiz questions",
)
async def get_questions() -> list[QuizQuestionResponse]:
    """Return the fixed quiz; answer weights stay server-side."""
    return [
        QuizQuestionResponse(
            id=q["id"],
            question=q["question"],
            answers=[
                QuizAnswerOption(index=i, text=a["text"])
                for i, a in enumerate(q["answers"])
            ],
        )
        for q in QUIZ_QUESTIONS
    ]


# ──────────────────────────────────────────────────────────────────────────────
# Sessions
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/sessions",
    response_model=SessionCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start an awakening session",
)
async def create_session(
    registry: SessionRegistry = Depends(get_session_registry),
) -> SessionCreatedResponse:
    session = registry.create()
    return SessionCreatedResponse(session_id=session.session_id)


@router.get(
    "/sessions/{session_id}",
    response_model=SessionStateResponse,
    summary="Get session progress",
)
async def get_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> SessionStateResponse:
    session = _load_session(session_id, registry)
    return SessionStateResponse(**session.snapshot())


@router.delete(
    "/sessions/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Discard a session",
)
async def delete_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> Response:
    if not registry.drop(session_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found.",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/sessions/{session_id}/answers",
    response_model=AnswerRecordedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a quiz answer",
)
async def submit_answer(
    session_id: str,
    payload: AnswerSubmit,
    registry: SessionRegistry = Depends(get_session_registry),
) -> AnswerRecordedResponse:
    session = _load_session(session_id, registry)
    try:
        answer = session.record_answer(payload.question_id, payload.answer_index)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc

    return AnswerRecordedResponse(
        question_id=answer.question_id,
        answer_text=answer.answer_text,
        answered=len(session.answers),
        quiz_completed=session.quiz_completed,
    )


@router.post(
    "/sessions/{session_id}/archetype",
    response_model=ResolutionOutcomeResponse,
    summary="Resolve the session's archetype",
)
async def resolve_session_archetype(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> ResolutionOutcomeResponse:
    """Idempotent: repeated calls return the first resolution's outcome."""
    session = _load_session(session_id, registry)
    log = logger.bind(session_id=session_id)
    try:
        outcome = await session.resolve_archetype()
    except (SessionStateError, ResolutionReset) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except FallbackFailure as exc:
        log.error("archetype_resolution_failed", error=str(exc))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=FALLBACK_FAILURE_DETAIL,
        ) from exc
    return _outcome_response(outcome)


@router.post(
    "/sessions/{session_id}/prophecy",
    response_model=ProphecyResponse,
    summary="Resolve the session's prophecy",
)
async def resolve_session_prophecy(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> ProphecyResponse:
    session = _load_session(session_id, registry)
    try:
        prophecy = await session.resolve_prophecy()
    except (SessionStateError, ResolutionReset) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    return ProphecyResponse(
        type=session.archetype_resolver.outcome.result.type,
        prophecy=prophecy,
        strategy=session.prophecy_resolver.strategy,
    )


@router.post(
    "/sessions/{session_id}/reset",
    response_model=SessionStateResponse,
    summary="Restart the onboarding flow",
)
async def reset_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> SessionStateResponse:
    session = _load_session(session_id, registry)
    session.reset()
    return SessionStateResponse(**session.snapshot())


# ──────────────────────────────────────────────────────────────────────────────
# One-shot resolution
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/archetype/resolve",
    response_model=ResolutionOutcomeResponse,
    summary="Resolve an archetype from explicit answers",
)
async def resolve_archetype(
    payload: ArchetypeResolveRequest,
    generator: TextGenerator = Depends(get_text_generator),
) -> ResolutionOutcomeResponse:
    try:
        outcome = await ArchetypeResolver(generator).resolve(payload.answers)
    except FallbackFailure as exc:
        logger.error("archetype_resolution_failed", error=str(exc))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=FALLBACK_FAILURE_DETAIL,
        ) from exc
    return _outcome_response(outcome)


@router.post(
    "/prophecy/resolve",
    response_model=ProphecyResponse,
    summary="Resolve a prophecy for a category",
)
async def resolve_prophecy(
    payload: ProphecyResolveRequest,
    generator: TextGenerator = Depends(get_text_generator),
) -> ProphecyResponse:
    resolver = ProphecyResolver(generator)
    prophecy = await resolver.resolve(payload.category)
    return ProphecyResponse(type=payload.category, prophecy=prophecy, strategy=resolver.strategy)
