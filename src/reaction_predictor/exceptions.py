"""Exception hierarchy for the reaction predictor.

Each error also derives from the closest builtin so callers that only know
about ``ValueError`` or ``RuntimeError`` keep working.
"""

from __future__ import annotations


class ReactorError(Exception):
    """Base class for reaction predictor errors."""


class InvalidConfiguration(ReactorError, ValueError):
    """A model or reactor was configured with an unusable label set or setting."""


class InvalidArgument(ReactorError, ValueError):
    """An operation received an out-of-range argument (e.g. a non-positive weight)."""


class UnknownLabel(ReactorError, KeyError):
    """A training update targeted a label outside the model's configured set."""

    def __init__(self, label: str) -> None:
        self.label = label
        super().__init__(label)

    def __str__(self) -> str:
        return f"unknown label: {self.label!r}"


class ModelNotReady(ReactorError, RuntimeError):
    """A prediction was requested before any training session started."""


class PipelineClosed(ReactorError, RuntimeError):
    """A message was submitted to a training pipeline that has been closed."""


class HistoryError(ReactorError):
    """A message history export could not be parsed."""
