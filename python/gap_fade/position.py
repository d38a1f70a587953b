"""Single-position tracker (no hedging, no pyramiding)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Optional

from .errors import InvalidState
from .types import LONG, SHORT


@dataclass(frozen=True)
class OpenPosition:
    direction: str  # 'LONG'/'SHORT'
    entry_price: float
    quantity: int
    entry_time: time


class PositionTracker:
    """Holds at most one open position and marks it to market."""

    def __init__(self) -> None:
        self._position: Optional[OpenPosition] = None

    @property
    def is_open(self) -> bool:
        return self._position is not None

    @property
    def position(self) -> Optional[OpenPosition]:
        return self._position

    def open(self, direction: str, price: float, quantity: int, timestamp: time) -> OpenPosition:
        if self._position is not None:
            raise InvalidState(f"position already open since {self._position.entry_time}")
        if direction not in (LONG, SHORT):
            raise ValueError(f"unknown direction {direction!r}")
        if int(quantity) < 0:
            raise ValueError(f"quantity must be >= 0, got {quantity}")
        self._position = OpenPosition(
            direction=direction,
            entry_price=float(price),
            quantity=int(quantity),
            entry_time=timestamp,
        )
        return self._position

    def close(self) -> OpenPosition:
        """Clear the position and return what was held."""
        if self._position is None:
            raise InvalidState("no open position to close")
        closed, self._position = self._position, None
        return closed

    def unrealized_pnl(self, current_price: float) -> float:
        pos = self._position
        if pos is None:
            return 0.0
        if pos.direction == SHORT:
            return (pos.entry_price - float(current_price)) * pos.quantity
        return (float(current_price) - pos.entry_price) * pos.quantity
