"""
Neuropul Awakening: Resolution error taxonomy

Every ``ResolutionError`` is local to a single remote attempt.  Resolvers fold
them into their retry / fallback policy and never surface them to end users.
``FallbackFailure`` is the one hard fault: the local classifier could not run.
"""

from __future__ import annotations


class ResolutionError(Exception):
    """Base class for a failed remote resolution attempt."""


class NetworkTimeout(ResolutionError):
    """The remote call exceeded its deadline and was cancelled."""


class TransportError(ResolutionError):
    """Non-timeout network, SDK or configuration failure of the remote call."""


class EmptyResponse(ResolutionError):
    """The remote call succeeded but produced no usable text."""


class ParseFailure(ResolutionError):
    """None of the response parsing strategies produced a candidate."""


class InvalidCategory(ResolutionError):
    """The parsed ``type`` is not one of the whitelisted categories."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Invalid archetype type: {value!r}")
        self.value = value


class FallbackFailure(RuntimeError):
    """The local fallback classifier raised; a programming-level fault."""


class ResolutionReset(RuntimeError):
    """A shared resolution was cancelled by a reset while callers awaited it."""
