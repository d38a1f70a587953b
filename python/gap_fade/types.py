"""Shared types for the gap-fade simulator.

The guiding principle is to keep the runtime objects small and explicit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Optional, Tuple

from .errors import InvalidConfiguration

LONG = "LONG"
SHORT = "SHORT"

ENTRY = "ENTRY"
EXIT = "EXIT"


@dataclass(frozen=True)
class Bar:
    """OHLC bar stamped with its time of day (minute resolution)."""

    timestamp: time
    open: float
    high: float
    low: float
    close: float


@dataclass(frozen=True)
class SessionContext:
    """Everything one trading day needs: instrument, prior close, capital, bars."""

    instrument: str
    previous_close: float
    capital: float
    bars: Tuple[Bar, ...]

    def __post_init__(self) -> None:
        # accept any sequence, store a tuple so the context stays immutable
        object.__setattr__(self, "bars", tuple(self.bars))
        if not self.capital > 0:
            raise InvalidConfiguration(f"starting capital must be positive, got {self.capital}")
        if not self.previous_close > 0:
            raise InvalidConfiguration(f"previous close must be positive, got {self.previous_close}")
        if len(self.bars) == 0:
            raise InvalidConfiguration("session has no bars")


@dataclass(frozen=True)
class TradeRecord:
    """A single executed event (entry or exit)."""

    timestamp: time
    direction: str  # 'LONG'/'SHORT' of the position the trade belongs to
    kind: str  # 'ENTRY'/'EXIT'
    price: float
    quantity: int
    pnl: float = 0.0  # realized, exits only
    reason: str = ""

    @property
    def side(self) -> str:
        """Order side: a short is opened with a SELL and covered with a BUY."""
        opening = self.kind == ENTRY
        if self.direction == SHORT:
            return "SELL" if opening else "BUY"
        return "BUY" if opening else "SELL"


@dataclass(frozen=True)
class Snapshot:
    """Per-bar observability record."""

    bar: Bar
    ema_fast: float
    ema_slow: float
    signal: bool
    position_open: bool
    unrealized_pnl: float
    capital: float
    exit_reason: Optional[str] = None
