"""Typed errors raised by the statistics engine.

Every engine function either returns a complete result or raises exactly one of
these. They subclass ``ValueError`` so callers that already guard numeric input
with ``except ValueError`` keep working.
"""

from __future__ import annotations


class StatsEngineError(ValueError):
    """Base class for all engine input errors."""


class InsufficientDataError(StatsEngineError):
    """Too few observations, groups or timepoints for the requested test."""


class UnequalSampleSizeError(StatsEngineError):
    """Paired, blocked or repeated-measures inputs are not balanced."""


class InvalidParameterError(StatsEngineError):
    """A parameter is outside its valid domain (index, probability, option)."""
