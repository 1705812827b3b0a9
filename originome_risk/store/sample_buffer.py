"""Bounded per-parameter sample history with async-safe access.

Design notes:
    - One SampleBuffer per ParameterId, fixed capacity, FIFO eviction.
    - Timestamps must strictly advance within a buffer.  Late or duplicate
      samples are rejected, never reordered.
    - SampleStore keeps one asyncio.Lock per parameter so independent
      streams proceed concurrently while each stream stays serialized.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from datetime import datetime

from originome_risk.domain.enums import ParameterId
from originome_risk.domain.errors import OutOfOrderSampleError
from originome_risk.domain.sample import Sample

logger = logging.getLogger(__name__)


class SampleBuffer:
    """Fixed-capacity ring of samples for one parameter.

    Not locked itself; SampleStore serializes access per parameter.
    """

    __slots__ = ("parameter", "capacity", "_samples")

    def __init__(self, parameter: ParameterId, capacity: int = 20) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.parameter = parameter
        self.capacity = capacity
        self._samples: deque[Sample] = deque(maxlen=capacity)

    # ── Mutation ─────────────────────────────────────────────────────────

    def record(self, sample: Sample) -> None:
        """Append *sample*, evicting the oldest entry once full.

        Raises:
            OutOfOrderSampleError: If the timestamp does not advance past
                the latest recorded one.
            ValueError: If the sample belongs to another parameter.
        """
        if sample.parameter is not self.parameter:
            raise ValueError(
                f"sample for '{sample.parameter.value}' recorded into '{self.parameter.value}' buffer"
            )
        latest = self.latest_timestamp
        if latest is not None and sample.timestamp <= latest:
            raise OutOfOrderSampleError(self.parameter.value, sample.timestamp, latest)
        self._samples.append(sample)

    # ── Queries ──────────────────────────────────────────────────────────

    def snapshot(self) -> list[Sample]:
        """Current contents, oldest first.  Pure read."""
        return list(self._samples)

    @property
    def latest(self) -> Sample | None:
        return self._samples[-1] if self._samples else None

    @property
    def latest_timestamp(self) -> datetime | None:
        return self._samples[-1].timestamp if self._samples else None

    def __len__(self) -> int:
        return len(self._samples)

    def __repr__(self) -> str:
        return f"SampleBuffer(parameter={self.parameter.value}, size={len(self)}/{self.capacity})"


class SampleStore:
    """Owns every SampleBuffer.  External callers only submit and read.

    Args:
        capacity: Per-parameter buffer capacity.
    """

    def __init__(self, capacity: int = 20) -> None:
        self._capacity = capacity
        self._buffers: dict[ParameterId, SampleBuffer] = {
            p: SampleBuffer(p, capacity) for p in ParameterId
        }
        self._locks: dict[ParameterId, asyncio.Lock] = {p: asyncio.Lock() for p in ParameterId}

    @property
    def capacity(self) -> int:
        return self._capacity

    async def record(self, sample: Sample) -> list[Sample]:
        """Record *sample* and return the resulting snapshot atomically."""
        async with self._locks[sample.parameter]:
            buffer = self._buffers[sample.parameter]
            try:
                buffer.record(sample)
            except OutOfOrderSampleError:
                logger.warning(
                    "Rejected out-of-order sample for %s at %s",
                    sample.parameter.value,
                    sample.timestamp.isoformat(),
                )
                raise
            logger.debug("Recorded %s=%s (%d buffered)", sample.parameter.value, sample.value, len(buffer))
            return buffer.snapshot()

    async def snapshot(self, parameter: ParameterId) -> list[Sample]:
        async with self._locks[parameter]:
            return self._buffers[parameter].snapshot()

    def sizes(self) -> dict[ParameterId, int]:
        return {p: len(b) for p, b in self._buffers.items()}
