"""
Neuropul Awakening: Archetype domain types

Immutable value objects shared by every stage of the resolution pipeline.
The four ``Category`` labels are the whitelist: no other string may ever be
stored as an archetype ``type``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Category(str, Enum):
    """Closed set of archetype labels, in tie-break priority order."""

    WARRIOR = "Воин"
    MAGE = "Маг"
    SEEKER = "Искатель"
    SHADOW = "Тень"

    @property
    def key(self) -> str:
        """Stable lowercase key used in quiz weight maps (``warrior``...)."""
        return self.name.lower()

    @classmethod
    def parse(cls, value: Any) -> Optional["Category"]:
        """Resolve a label, key or ``Category`` to a member; ``None`` if unknown."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        text = value.strip()
        for member in cls:
            if text == member.value or text.lower() == member.key:
                return member
        return None


ScoreVector = Dict[Category, int]


class Strategy(str, Enum):
    """Which path produced an archetype, retained for diagnostics."""

    DIRECT_PARSE = "direct_parse"
    REGEX_EXTRACTION = "regex_extraction"
    FIELD_EXTRACTION = "field_extraction"
    KEYWORD_ANALYSIS = "keyword_analysis"
    LOCAL_FALLBACK = "local_fallback"


class QuizAnswer(BaseModel):
    """One answered quiz question with its per-category weights."""

    model_config = ConfigDict(frozen=True)

    question_id: int
    answer_text: str
    weight: Dict[Category, int] = Field(default_factory=dict)

    @field_validator("weight", mode="before")
    @classmethod
    def _normalise_weight_keys(cls, v: Any) -> Dict[Category, int]:
        if v is None:
            return {}
        if not isinstance(v, dict):
            raise ValueError("weight must be a mapping of category -> integer")
        weights: Dict[Category, int] = {}
        for raw_key, raw_value in v.items():
            category = Category.parse(raw_key)
            if category is None:
                continue  # unknown keys carry no signal
            value = int(raw_value)
            if value < 0:
                raise ValueError(f"Weight for {category.key} must be non-negative, got {value}")
            weights[category] = weights.get(category, 0) + value
        return weights


class Candidate(BaseModel):
    """Unvalidated archetype fields extracted from generator output."""

    model_config = ConfigDict(frozen=True)

    type: str
    description: Optional[str] = None
    call_to_action: Optional[str] = None


class ParsedCandidate(BaseModel):
    """A candidate tagged with the parsing strategy that produced it."""

    model_config = ConfigDict(frozen=True)

    candidate: Candidate
    strategy: Strategy


class ArchetypeResult(BaseModel):
    """Validated archetype; ``call_to_action`` serialises as ``CTA``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Category
    description: str = Field(min_length=1)
    call_to_action: str = Field(min_length=1, alias="CTA")


class ResolutionOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    result: ArchetypeResult
    strategy_used: Strategy
    attempts: int = Field(ge=0)
