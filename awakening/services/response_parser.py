"""
Neuropul Awakening: Generator response parsing

Turns arbitrary generator text into an archetype candidate.  Four strategies
are tried in a fixed order, each an independent pure function of the raw
text; the first one that yields a non-empty ``type`` wins:

1. ``direct_parse``      the whole text is a JSON object
2. ``regex_extraction``  the first brace-delimited object embedded in prose
3. ``field_extraction``  ``"type": "..."`` style fields in broken JSON
4. ``keyword_analysis``  a bare category label anywhere in the text

The parser does not judge whether the ``type`` is a legal category; that is
the validator's job.
"""

from __future__ import annotations

import json
import re
from typing import Any, Callable

import structlog

from awakening.models.archetype import Candidate, Category, ParsedCandidate, Strategy

logger = structlog.get_logger(__name__)

# Objects with at most one level of nested braces.
_OBJECT_PATTERN = re.compile(r"\{(?:[^{}]|\{[^{}]*\})*\}")

_TYPE_FIELD = re.compile(r'"type"\s*:\s*"([^"]*)"')
_DESCRIPTION_FIELD = re.compile(r'"description"\s*:\s*"([^"]*)"')
_CTA_FIELD = re.compile(r'"(?:CTA|callToAction|call_to_action)"\s*:\s*"([^"]*)"')

_CTA_KEYS: tuple[str, ...] = ("CTA", "callToAction", "call_to_action")


def _text_or_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _candidate_from_object(obj: Any) -> Candidate | None:
    """Build a candidate from a decoded JSON value, if it carries a ``type``."""
    if not isinstance(obj, dict):
        return None
    type_value = obj.get("type")
    if not isinstance(type_value, str) or not type_value.strip():
        return None

    call_to_action = None
    for key in _CTA_KEYS:
        call_to_action = _text_or_none(obj.get(key))
        if call_to_action:
            break

    return Candidate(
        type=type_value.strip(),
        description=_text_or_none(obj.get("description")),
        call_to_action=call_to_action,
    )


def direct_parse(text: str) -> Candidate | None:
    try:
        obj = json.loads(text.strip())
    except (ValueError, RecursionError, TypeError):
        # ValueError also covers JSONDecodeError and oversized integer literals.
        return None
    return _candidate_from_object(obj)


def regex_extraction(text: str) -> Candidate | None:
    for match in _OBJECT_PATTERN.finditer(text):
        candidate = direct_parse(match.group(0))
        if candidate is not None:
            return candidate
    return None


def field_extraction(text: str) -> Candidate | None:
    type_match = _TYPE_FIELD.search(text)
    if type_match is None or not type_match.group(1).strip():
        return None

    description_match = _DESCRIPTION_FIELD.search(text)
    cta_match = _CTA_FIELD.search(text)
    return Candidate(
        type=type_match.group(1).strip(),
        description=_text_or_none(description_match.group(1)) if description_match else None,
        call_to_action=_text_or_none(cta_match.group(1)) if cta_match else None,
    )


def keyword_analysis(text: str) -> Candidate | None:
    # Category iteration order is the fixed priority order.
    for category in Category:
        if category.value in text:
            return Candidate(type=category.value)
    return None


class ResponseParser:
    """Runs the strategy cascade and tags the winning candidate."""

    STRATEGIES: tuple[tuple[Strategy, Callable[[str], Candidate | None]], ...] = (
        (Strategy.DIRECT_PARSE, direct_parse),
        (Strategy.REGEX_EXTRACTION, regex_extraction),
        (Strategy.FIELD_EXTRACTION, field_extraction),
        (Strategy.KEYWORD_ANALYSIS, keyword_analysis),
    )

    def parse(self, raw_text: str | None) -> ParsedCandidate | None:
        if not raw_text or not raw_text.strip():
            return None

        for strategy, extract in self.STRATEGIES:
            candidate = extract(raw_text)
            if candidate is not None:
                logger.debug(
                    "response_parsed",
                    strategy=strategy.value,
                    type=candidate.type,
                )
                return ParsedCandidate(candidate=candidate, strategy=strategy)

        logger.info("response_unparseable", preview=raw_text[:120])
        return None
