"""Exception hierarchy for the chart analysis assistant."""

from __future__ import annotations


class ChartSignalError(Exception):
    """Base class for errors raised by this package."""


class InvalidRequestError(ChartSignalError, ValueError):
    """The analysis request cannot be sent (e.g. no chart image)."""


class UpstreamError(ChartSignalError):
    """A model attempt failed at the transport or envelope level."""

    def __init__(self, model: str, reason: str) -> None:
        super().__init__(f"{model}: {reason}")
        self.model = model
        self.reason = reason


class AnalysisParseError(ChartSignalError):
    """The model replied but the reply holds no usable analysis."""


class AnalysisInProgressError(ChartSignalError):
    """An analysis is already running for this session."""


class HistoryItemNotFoundError(ChartSignalError, KeyError):
    """No stored analysis carries the requested id."""
