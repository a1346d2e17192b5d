"""
Neuropul Awakening: Candidate validation

An unknown category is a hard rejection; missing narrative text is a soft
defect repaired from the catalog defaults.
"""

from __future__ import annotations

import structlog

from awakening.catalog import DEFAULT_CALLS_TO_ACTION, DEFAULT_DESCRIPTIONS
from awakening.exceptions import InvalidCategory
from awakening.models.archetype import ArchetypeResult, Candidate, Category

logger = structlog.get_logger(__name__)


class ResultValidator:
    def validate(self, candidate: Candidate) -> ArchetypeResult:
        """Return a whitelisted ``ArchetypeResult`` or raise ``InvalidCategory``."""
        category = next((c for c in Category if c.value == candidate.type), None)
        if category is None:
            logger.warning("archetype_invalid_category", type=candidate.type)
            raise InvalidCategory(candidate.type)

        description = (candidate.description or "").strip()
        if not description:
            logger.info("archetype_description_defaulted", type=category.value)
            description = DEFAULT_DESCRIPTIONS[category]

        call_to_action = (candidate.call_to_action or "").strip()
        if not call_to_action:
            logger.info("archetype_cta_defaulted", type=category.value)
            call_to_action = DEFAULT_CALLS_TO_ACTION[category]

        return ArchetypeResult(
            type=category,
            description=description,
            call_to_action=call_to_action,
        )
