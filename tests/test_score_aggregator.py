"""Unit tests for ScoreAggregator and QuizAnswer weight handling."""
import itertools

import pytest
from pydantic import ValidationError

from awakening.models.archetype import Category, QuizAnswer
from awakening.services.score_aggregator import ScoreAggregator


@pytest.fixture
def aggregator():
    return ScoreAggregator()


class TestAggregate:
    def test_empty_answers_yield_zero_vector(self, aggregator):
        scores = aggregator.aggregate([])
        assert scores == {c: 0 for c in Category}

    def test_sum_equals_total_weight(self, aggregator, full_quiz_answers):
        scores = aggregator.aggregate(full_quiz_answers)
        total = sum(sum(a.weight.values()) for a in full_quiz_answers)
        assert sum(scores.values()) == total
        assert scores[Category.WARRIOR] == 6
        assert scores[Category.MAGE] == 4

    def test_order_independent(self, aggregator, full_quiz_answers):
        expected = aggregator.aggregate(full_quiz_answers)
        for perm in itertools.permutations(full_quiz_answers):
            assert aggregator.aggregate(perm) == expected

    def test_answer_without_weights_contributes_nothing(self, aggregator):
        scores = aggregator.aggregate([QuizAnswer(question_id=1, answer_text="просто текст")])
        assert all(v == 0 for v in scores.values())


class TestQuizAnswerWeights:
    def test_keys_accept_labels_and_keys(self):
        answer = QuizAnswer(question_id=1, answer_text="x", weight={"warrior": 2, "Маг": 1})
        assert answer.weight == {Category.WARRIOR: 2, Category.MAGE: 1}

    def test_unknown_keys_ignored(self):
        answer = QuizAnswer(question_id=1, answer_text="x", weight={"paladin": 5, "shadow": 1})
        assert answer.weight == {Category.SHADOW: 1}

    def test_negative_weight_rejected(self):
        with pytest.raises(ValidationError):
            QuizAnswer(question_id=1, answer_text="x", weight={"warrior": -1})
