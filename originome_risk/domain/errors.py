"""Structured errors surfaced by the risk engine.

The engine never renders these for humans; the API layer maps them to
status codes and the dashboard decides what to show.
"""

from __future__ import annotations

from datetime import datetime


class RiskEngineError(Exception):
    """Base class for every error raised by the engine."""


class OutOfOrderSampleError(RiskEngineError):
    """A sample's timestamp does not advance past the buffer's latest.

    Recoverable by the caller: resubmit in order.  Never retried internally.
    """

    def __init__(self, parameter: str, timestamp: datetime, latest: datetime) -> None:
        self.parameter = parameter
        self.timestamp = timestamp
        self.latest = latest
        super().__init__(
            f"Sample for '{parameter}' at {timestamp.isoformat()} does not advance "
            f"past latest recorded {latest.isoformat()}"
        )


class AlertNotFoundError(RiskEngineError):
    """acknowledge/resolve referenced an unknown event id."""

    def __init__(self, event_id: str) -> None:
        self.event_id = event_id
        super().__init__(f"Risk event {event_id} not found")


class InvalidRuleConfigurationError(RiskEngineError):
    """A compound rule in the static catalogue is malformed.  Fatal at startup."""

    def __init__(self, rule_id: str, reason: str) -> None:
        self.rule_id = rule_id
        self.reason = reason
        super().__init__(f"Rule '{rule_id}' is invalid: {reason}")


class UnknownParameterHistoryError(RiskEngineError):
    """A forecast was requested for a parameter with no recorded samples."""

    def __init__(self, parameter: str) -> None:
        self.parameter = parameter
        super().__init__(f"No samples recorded for '{parameter}'")
