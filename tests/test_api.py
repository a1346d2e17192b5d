"""HTTP tests for the awakening router, with the text generator mocked."""
import pytest
from fastapi.testclient import TestClient

from awakening.api.awakening import get_session_registry, get_text_generator
from awakening.catalog import FALLBACK_PROPHECIES, QUIZ_QUESTIONS
from awakening.main import app
from awakening.models.archetype import Category
from awakening.services.session_service import SessionRegistry

BASE = "/api/v1/awakening"


@pytest.fixture
def client_for(generator_factory, fast_resolver_options):
    """Build a TestClient whose generator replays ``responses``.

    The client is not entered as a context manager, so the lifespan (and the
    real Gemini client it warms up) never runs.
    """
    def _build(*responses):
        generator = generator_factory(*responses)
        registry = SessionRegistry(generator, ttl_seconds=60, **fast_resolver_options)
        app.dependency_overrides[get_text_generator] = lambda: generator
        app.dependency_overrides[get_session_registry] = lambda: registry
        return TestClient(app), generator

    yield _build
    app.dependency_overrides.clear()


def _new_session(client):
    response = client.post(f"{BASE}/sessions")
    assert response.status_code == 201
    return response.json()["session_id"]


def _answer_all(client, session_id, index=0):
    for question in QUIZ_QUESTIONS:
        response = client.post(
            f"{BASE}/sessions/{session_id}/answers",
            json={"question_id": question["id"], "answer_index": index},
        )
        assert response.status_code == 201


class TestQuizEndpoints:
    def test_health(self, client_for):
        client, _ = client_for()
        assert client.get("/health").json() == {"status": "healthy"}

    def test_questions_hide_weights(self, client_for):
        client, _ = client_for()
        body = client.get(f"{BASE}/quiz/questions").json()
        assert len(body) == len(QUIZ_QUESTIONS)
        assert body[0]["answers"][0] == {"index": 0, "text": QUIZ_QUESTIONS[0]["answers"][0]["text"]}
        assert "weight" not in body[0]["answers"][0]

    def test_record_answer(self, client_for):
        client, _ = client_for()
        session_id = _new_session(client)
        response = client.post(
            f"{BASE}/sessions/{session_id}/answers",
            json={"question_id": 1, "answer_index": 2},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["answered"] == 1
        assert body["quiz_completed"] is False

    def test_unknown_answer_index(self, client_for):
        client, _ = client_for()
        session_id = _new_session(client)
        response = client.post(
            f"{BASE}/sessions/{session_id}/answers",
            json={"question_id": 1, "answer_index": 9},
        )
        assert response.status_code == 422

    def test_unknown_session(self, client_for):
        client, _ = client_for()
        assert client.get(f"{BASE}/sessions/missing").status_code == 404
        assert client.post(f"{BASE}/sessions/missing/archetype").status_code == 404
        assert client.delete(f"{BASE}/sessions/missing").status_code == 404


class TestSessionResolution:
    def test_archetype_before_answers_conflicts(self, client_for):
        client, generator = client_for()
        session_id = _new_session(client)
        assert client.post(f"{BASE}/sessions/{session_id}/archetype").status_code == 409
        generator.generate.assert_not_awaited()

    def test_prophecy_before_archetype_conflicts(self, client_for):
        client, _ = client_for()
        session_id = _new_session(client)
        assert client.post(f"{BASE}/sessions/{session_id}/prophecy").status_code == 409

    def test_full_flow(self, client_for):
        client, generator = client_for(
            '{"type":"Искатель","description":"d","CTA":"c"}',
            "«Мир ждёт тебя.»",
        )
        session_id = _new_session(client)
        _answer_all(client, session_id, index=2)

        response = client.post(f"{BASE}/sessions/{session_id}/archetype")
        assert response.status_code == 200
        body = response.json()
        assert body["archetype"] == {"type": "Искатель", "description": "d", "CTA": "c"}
        assert body["strategy_used"] == "direct_parse"
        assert body["attempts"] == 1

        response = client.post(f"{BASE}/sessions/{session_id}/prophecy")
        assert response.json() == {"type": "Искатель", "prophecy": "Мир ждёт тебя.", "strategy": "remote"}

        state = client.get(f"{BASE}/sessions/{session_id}").json()
        assert state["quiz_completed"] is True
        assert state["archetype"]["CTA"] == "c"
        assert state["prophecy"] == "Мир ждёт тебя."

    def test_repeat_archetype_request_is_idempotent(self, client_for):
        client, generator = client_for('{"type":"Воин"}', '{"type":"Маг"}')
        session_id = _new_session(client)
        _answer_all(client, session_id)
        first = client.post(f"{BASE}/sessions/{session_id}/archetype").json()
        second = client.post(f"{BASE}/sessions/{session_id}/archetype").json()
        assert first == second
        assert generator.generate.await_count == 1

    def test_offline_resolution_falls_back(self, client_for):
        client, _ = client_for("<hang>", "<hang>", "<hang>", "<hang>")
        session_id = _new_session(client)
        _answer_all(client, session_id, index=0)

        body = client.post(f"{BASE}/sessions/{session_id}/archetype").json()
        assert body["archetype"]["type"] == "Воин"
        assert body["strategy_used"] == "local_fallback"
        assert body["attempts"] == 2

        body = client.post(f"{BASE}/sessions/{session_id}/prophecy").json()
        assert body["prophecy"] == FALLBACK_PROPHECIES[Category.WARRIOR]
        assert body["strategy"] == "fallback"

    def test_reset(self, client_for):
        client, _ = client_for('{"type":"Воин"}')
        session_id = _new_session(client)
        _answer_all(client, session_id)
        client.post(f"{BASE}/sessions/{session_id}/archetype")

        body = client.post(f"{BASE}/sessions/{session_id}/reset").json()
        assert body["answers"] == []
        assert body["archetype"] is None
        assert body["attempts"] == 0

    def test_delete_session(self, client_for):
        client, _ = client_for()
        session_id = _new_session(client)
        assert client.delete(f"{BASE}/sessions/{session_id}").status_code == 204
        assert client.get(f"{BASE}/sessions/{session_id}").status_code == 404


class TestOneShotResolution:
    def test_archetype_resolve(self, client_for):
        client, _ = client_for('Результат: {"type":"Тень"}')
        response = client.post(
            f"{BASE}/archetype/resolve",
            json={"answers": [{"question_id": 1, "answer_text": "Анализирую риски", "weight": {"shadow": 3}}]},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["archetype"]["type"] == "Тень"
        assert body["strategy_used"] == "regex_extraction"
        assert set(body["archetype"]) == {"type", "description", "CTA"}

    def test_archetype_resolve_requires_answers(self, client_for):
        client, _ = client_for()
        assert client.post(f"{BASE}/archetype/resolve", json={"answers": []}).status_code == 422

    @pytest.mark.parametrize("category", ["mage", "Маг"])
    def test_prophecy_resolve_accepts_key_or_label(self, client_for, category):
        client, _ = client_for("Знание течёт.")
        response = client.post(f"{BASE}/prophecy/resolve", json={"category": category})
        assert response.status_code == 200
        assert response.json() == {"type": "Маг", "prophecy": "Знание течёт.", "strategy": "remote"}

    def test_prophecy_resolve_rejects_unknown(self, client_for):
        client, _ = client_for()
        response = client.post(f"{BASE}/prophecy/resolve", json={"category": "Рыцарь"})
        assert response.status_code == 422
