"""
Height clocks: the monotonic time source for voting windows and audit stamps.

The ledger never reads wall time directly. The execution host hands it a
clock, and every operation snapshots ``current_height()`` exactly once.
"""

from __future__ import annotations

import logging
import time
from typing import Protocol

logger = logging.getLogger(__name__)


class HeightClock(Protocol):
    """Anything that can report the current block height."""

    def current_height(self) -> int:
        ...


class ManualClock:
    """
    A clock driven explicitly by the host (or a test).

    Heights may only move forward.
    """

    def __init__(self, height: int = 0) -> None:
        if height < 0:
            raise ValueError("Height cannot be negative")
        self._height = height

    def current_height(self) -> int:
        return self._height

    def advance(self, blocks: int = 1) -> int:
        if blocks < 0:
            raise ValueError("Clock cannot move backwards")
        self._height += blocks
        return self._height

    def set_height(self, height: int) -> None:
        if height < self._height:
            raise ValueError(
                f"Clock cannot move backwards: {height} < {self._height}"
            )
        self._height = height


class SystemClock:
    """
    Height derived from wall time: one height unit per ``seconds_per_height``
    elapsed since ``genesis_timestamp``.

    Never reports a height lower than one it has already reported, even if
    the system clock is stepped back.
    """

    def __init__(self, seconds_per_height: int = 600, genesis_timestamp: float = 0.0) -> None:
        if seconds_per_height <= 0:
            raise ValueError("seconds_per_height must be positive")
        self.seconds_per_height = seconds_per_height
        self.genesis_timestamp = genesis_timestamp
        self._last_height = 0

    def current_height(self) -> int:
        elapsed = max(0.0, time.time() - self.genesis_timestamp)
        height = int(elapsed // self.seconds_per_height)
        if height < self._last_height:
            logger.warning(
                "Wall clock stepped back: computed=%d last=%d", height, self._last_height
            )
            return self._last_height
        self._last_height = height
        return height
