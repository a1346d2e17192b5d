"""
Neuropul Awakening: domain model registry.
"""

from awakening.models.archetype import (
    ArchetypeResult,
    Candidate,
    Category,
    ParsedCandidate,
    QuizAnswer,
    ResolutionOutcome,
    ScoreVector,
    Strategy,
)

__all__ = [
    "ArchetypeResult",
    "Candidate",
    "Category",
    "ParsedCandidate",
    "QuizAnswer",
    "ResolutionOutcome",
    "ScoreVector",
    "Strategy",
]
