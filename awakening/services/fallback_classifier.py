"""
Neuropul Awakening: Local fallback classifier

Deterministic, network-free archetype classification used when the remote
path cannot produce a valid result.  ``classify`` is total: for any answers,
including none, it returns a whitelisted ``ArchetypeResult`` with the same
default texts the validator uses.

Selection:
  1. Leader = highest score, ties broken by ``TIE_BREAK_ORDER``.
  2. Categories within ``NEAR_TIE_MARGIN`` of the leader's score are
     near-tie candidates.
  3. Keyword stems found in the answer text are counted per category; the
     near-tie candidate with the most hits wins (ties go to the higher
     score, then priority order).
     With no hits among the candidates the leader stands.
"""

from __future__ import annotations

from typing import Sequence

import structlog

from awakening.catalog import (
    DEFAULT_CALLS_TO_ACTION,
    DEFAULT_DESCRIPTIONS,
    FALLBACK_KEYWORDS,
    NEAR_TIE_MARGIN,
    TIE_BREAK_ORDER,
)
from awakening.models.archetype import ArchetypeResult, Category, QuizAnswer, ScoreVector
from awakening.services.score_aggregator import ScoreAggregator

logger = structlog.get_logger(__name__)


class LocalFallbackClassifier:
    TIE_BREAK_ORDER: tuple[Category, ...] = TIE_BREAK_ORDER
    KEYWORDS: dict[Category, tuple[str, ...]] = FALLBACK_KEYWORDS
    NEAR_TIE_MARGIN: int = NEAR_TIE_MARGIN

    def __init__(self, aggregator: ScoreAggregator | None = None) -> None:
        self._aggregator = aggregator or ScoreAggregator()

    def classify(
        self,
        answers: Sequence[QuizAnswer],
        scores: ScoreVector | None = None,
    ) -> ArchetypeResult:
        if scores is None:
            scores = self._aggregator.aggregate(answers)

        ranked = sorted(
            self.TIE_BREAK_ORDER,
            key=lambda c: (-scores.get(c, 0), self.TIE_BREAK_ORDER.index(c)),
        )
        leader = ranked[0]
        top_score = scores.get(leader, 0)

        hits = self.keyword_hits(answers)
        near_ties = [c for c in ranked if top_score - scores.get(c, 0) <= self.NEAR_TIE_MARGIN]
        best_hits = max(hits[c] for c in near_ties)

        chosen = leader
        if best_hits > 0:
            # ``ranked`` already respects score then priority order
            chosen = next(c for c in near_ties if hits[c] == best_hits)

        logger.info(
            "fallback_classified",
            type=chosen.value,
            leader=leader.value,
            keyword_override=chosen is not leader,
            scores={c.key: scores.get(c, 0) for c in self.TIE_BREAK_ORDER},
            keyword_hits={c.key: n for c, n in hits.items() if n},
        )
        return ArchetypeResult(
            type=chosen,
            description=DEFAULT_DESCRIPTIONS[chosen],
            call_to_action=DEFAULT_CALLS_TO_ACTION[chosen],
        )

    def keyword_hits(self, answers: Sequence[QuizAnswer]) -> dict[Category, int]:
        """Count distinct keyword stems per category in the joined answer text."""
        text = " ".join(answer.answer_text for answer in answers).lower()
        return {
            category: sum(1 for stem in self.KEYWORDS.get(category, ()) if stem in text)
            for category in self.TIE_BREAK_ORDER
        }
