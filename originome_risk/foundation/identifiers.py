"""ID generation for risk events."""

from __future__ import annotations

from uuid import uuid4


def new_id() -> str:
    """Generate a new random identifier for a risk event."""
    return uuid4().hex
