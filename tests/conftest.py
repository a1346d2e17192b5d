"""Shared pytest fixtures for awakening tests."""
import asyncio

import pytest
from unittest.mock import AsyncMock

from awakening.models.archetype import QuizAnswer


def make_generator(*responses):
    """Build a mock ``TextGenerator`` replaying ``responses`` in order.

    Each item is returned as text, raised if it is an exception, or slept on
    (forcing a timeout) if it is the string ``"<hang>"``.
    """
    queue = list(responses)

    async def _generate(prompt, system_prompt):
        item = queue.pop(0) if queue else "<hang>"
        if isinstance(item, BaseException):
            raise item
        if item == "<hang>":
            await asyncio.sleep(10)
        return item

    generator = AsyncMock()
    generator.generate.side_effect = _generate
    return generator


@pytest.fixture
def generator_factory():
    return make_generator


@pytest.fixture
def warrior_answers():
    """Single warrior-dominant answer, used for the double-timeout fallback."""
    return [
        QuizAnswer(
            question_id=1,
            answer_text="Я предпочитаю действовать быстро",
            weight={"warrior": 3, "mage": 0, "seeker": 0, "shadow": 0},
        )
    ]


@pytest.fixture
def full_quiz_answers():
    """Three answers as the quiz would produce them, warrior leaning."""
    return [
        QuizAnswer(
            question_id=1,
            answer_text="Сразу начинаю экспериментировать и тестировать",
            weight={"warrior": 3, "mage": 1, "seeker": 2, "shadow": 0},
        ),
        QuizAnswer(
            question_id=2,
            answer_text="Понять глубинные принципы работы AI",
            weight={"warrior": 0, "mage": 3, "seeker": 1, "shadow": 2},
        ),
        QuizAnswer(
            question_id=3,
            answer_text="Быстро и решительно, добиваясь результата",
            weight={"warrior": 3, "mage": 0, "seeker": 1, "shadow": 2},
        ),
    ]


@pytest.fixture
def fast_resolver_options():
    """Resolver overrides that keep tests fast: no retry delay, short deadline."""
    return {"timeout_seconds": 0.05, "retry_delay_seconds": 0, "max_attempts": 2}
