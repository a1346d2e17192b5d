"""
Neuropul Awakening: Score aggregation

Folds weighted quiz answers into a per-category score vector.  Addition is
the only operation, so the result is independent of answer order and its
total equals the sum of every folded weight.
"""

from __future__ import annotations

from typing import Iterable

import structlog

from awakening.models.archetype import Category, QuizAnswer, ScoreVector

logger = structlog.get_logger(__name__)


class ScoreAggregator:
    """Stateless fold of ``QuizAnswer`` weights into a ``ScoreVector``."""

    @staticmethod
    def empty_vector() -> ScoreVector:
        return {category: 0 for category in Category}

    def aggregate(self, answers: Iterable[QuizAnswer]) -> ScoreVector:
        scores = self.empty_vector()
        count = 0
        for answer in answers:
            count += 1
            for category, value in answer.weight.items():
                scores[category] += value

        logger.debug(
            "scores_aggregated",
            answer_count=count,
            scores={category.key: value for category, value in scores.items()},
        )
        return scores
