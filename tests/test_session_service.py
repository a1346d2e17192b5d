"""Unit tests for AwakeningSession and SessionRegistry."""
import asyncio

import pytest

from awakening.catalog import FALLBACK_PROPHECIES, QUIZ_QUESTIONS
from awakening.exceptions import ResolutionReset
from awakening.models.archetype import Category, Strategy
from awakening.services.session_service import (
    AwakeningSession,
    SessionRegistry,
    SessionStateError,
)


@pytest.fixture
def build_session(generator_factory, fast_resolver_options):
    def _build(*responses):
        generator = generator_factory(*responses)
        return AwakeningSession(generator, **fast_resolver_options), generator
    return _build


def _answer_all(session, index=0):
    for question in QUIZ_QUESTIONS:
        session.record_answer(question["id"], index)


class TestQuiz:
    def test_record_answer_uses_catalog_weights(self, build_session):
        session, _ = build_session()
        answer = session.record_answer(1, 0)
        assert answer.answer_text == QUIZ_QUESTIONS[0]["answers"][0]["text"]
        assert answer.weight[Category.WARRIOR] == 3
        assert not session.quiz_completed

    def test_reanswer_replaces(self, build_session):
        session, _ = build_session()
        session.record_answer(2, 0)
        session.record_answer(2, 3)
        assert len(session.answers) == 1
        assert session.answers[0].answer_text == QUIZ_QUESTIONS[1]["answers"][3]["text"]

    def test_answers_sorted_by_question(self, build_session):
        session, _ = build_session()
        session.record_answer(3, 0)
        session.record_answer(1, 0)
        assert [a.question_id for a in session.answers] == [1, 3]

    def test_quiz_completed(self, build_session):
        session, _ = build_session()
        _answer_all(session)
        assert session.quiz_completed

    @pytest.mark.parametrize("question_id, index", [(99, 0), (1, 4), (1, -1)])
    def test_invalid_answer_rejected(self, build_session, question_id, index):
        session, _ = build_session()
        with pytest.raises(ValueError):
            session.record_answer(question_id, index)


class TestResolution:
    @pytest.mark.asyncio
    async def test_archetype_requires_answers(self, build_session):
        session, generator = build_session()
        with pytest.raises(SessionStateError):
            await session.resolve_archetype()
        generator.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_prophecy_requires_archetype(self, build_session):
        session, _ = build_session()
        with pytest.raises(SessionStateError):
            await session.resolve_prophecy()

    @pytest.mark.asyncio
    async def test_full_flow(self, build_session):
        session, generator = build_session('{"type":"Маг","description":"d","CTA":"c"}', "Знание с тобой.")
        _answer_all(session, index=1)
        outcome = await session.resolve_archetype()
        assert outcome.result.type is Category.MAGE
        assert await session.resolve_prophecy() == "Знание с тобой."

        snapshot = session.snapshot()
        assert snapshot["archetype"].type is Category.MAGE
        assert snapshot["strategy_used"] is Strategy.DIRECT_PARSE
        assert snapshot["prophecy"] == "Знание с тобой."
        assert snapshot["prophecy_strategy"] == "remote"
        assert generator.generate.await_count == 2

    @pytest.mark.asyncio
    async def test_offline_flow_uses_local_paths(self, build_session):
        session, _ = build_session("<hang>", "<hang>", "<hang>", "<hang>")
        _answer_all(session, index=0)
        outcome = await session.resolve_archetype()
        assert outcome.strategy_used is Strategy.LOCAL_FALLBACK
        assert outcome.result.type is Category.WARRIOR
        assert await session.resolve_prophecy() == FALLBACK_PROPHECIES[Category.WARRIOR]

    @pytest.mark.asyncio
    async def test_reset_restarts_flow(self, build_session):
        session, generator = build_session('{"type":"Воин"}', "Вперёд.", '{"type":"Тень"}')
        _answer_all(session)
        await session.resolve_archetype()
        await session.resolve_prophecy()

        session.reset()
        snapshot = session.snapshot()
        assert snapshot["answers"] == []
        assert snapshot["archetype"] is None
        assert snapshot["prophecy"] is None
        assert not session.archetype_resolver.guard_set
        assert not session.prophecy_resolver.guard_set

        _answer_all(session, index=3)
        outcome = await session.resolve_archetype()
        assert outcome.result.type is Category.SHADOW
        assert generator.generate.await_count == 3

    @pytest.mark.asyncio
    async def test_reset_while_resolving_is_reported(self, generator_factory):
        session = AwakeningSession(
            generator_factory("<hang>", '{"type":"Маг"}'),
            timeout_seconds=1,
            retry_delay_seconds=0,
            max_attempts=2,
        )
        _answer_all(session)
        pending = asyncio.ensure_future(session.resolve_archetype())
        await asyncio.sleep(0.01)

        session.reset()
        with pytest.raises(ResolutionReset):
            await pending
        assert session.snapshot()["archetype"] is None


class TestRegistry:
    def test_create_get_drop(self, generator_factory):
        registry = SessionRegistry(generator_factory(), ttl_seconds=60)
        session = registry.create()
        assert registry.get(session.session_id) is session
        assert len(registry) == 1
        assert registry.drop(session.session_id)
        assert registry.get(session.session_id) is None
        assert not registry.drop(session.session_id)

    def test_evict_expired(self, generator_factory):
        registry = SessionRegistry(generator_factory(), ttl_seconds=60)
        stale = registry.create()
        fresh = registry.create()
        stale.last_active -= 120
        assert registry.evict_expired() == 1
        assert registry.get(stale.session_id) is None
        assert registry.get(fresh.session_id) is fresh

    def test_clear(self, generator_factory):
        registry = SessionRegistry(generator_factory(), ttl_seconds=60)
        registry.create()
        registry.create()
        registry.clear()
        assert len(registry) == 0
