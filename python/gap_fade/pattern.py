"""Two-candle gap-up rejection detector.

State machine:
1. Idle: wait for a first candle that gaps up by ``gap_threshold`` over the
   previous close and whose low holds above the slow EMA.
2. Armed(reference): wait for a later candle whose low breaks the
   reference candle's low; emit a SHORT signal and go back to Idle.

The detector owns the EMAs and updates them on every bar regardless of
state. It never trades.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .config import IndicatorConfig, StrategyConfig
from .indicators import EmaCalculator
from .types import SHORT, Bar


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Armed:
    reference: Bar


PatternState = Union[Idle, Armed]


class PatternDetector:
    """Fast/slow EMA pair plus the Idle/Armed state for one session."""

    def __init__(
        self,
        previous_close: float,
        ind_cfg: IndicatorConfig = IndicatorConfig(),
        strat_cfg: StrategyConfig = StrategyConfig(),
    ):
        ind_cfg.validate()
        strat_cfg.validate()
        self.ind_cfg = ind_cfg
        self.strat_cfg = strat_cfg
        self.previous_close = float(previous_close)
        self.fast = EmaCalculator(ind_cfg.fast_period)
        self.slow = EmaCalculator(ind_cfg.slow_period)
        self.state: PatternState = Idle()

    @property
    def gap_level(self) -> float:
        """Minimum opening price that counts as a gap-up."""
        return self.previous_close * (1.0 + float(self.strat_cfg.gap_threshold))

    def reset(self, previous_close: Optional[float] = None) -> None:
        """Start a new session: clear the EMAs and drop any reference bar."""
        if previous_close is not None:
            self.previous_close = float(previous_close)
        self.fast.reset()
        self.slow.reset()
        self.state = Idle()

    def indicators_ready(self) -> bool:
        if self.ind_cfg.require_fast_ready and not self.fast.is_ready():
            return False
        return self.slow.is_ready()

    def process(self, bar: Bar) -> Optional[str]:
        """Feed one bar. Returns ``'SHORT'`` when a breakdown confirms, else None."""
        self.fast.update(bar.close)
        self.slow.update(bar.close)

        if not self.indicators_ready():
            return None

        state = self.state
        if isinstance(state, Armed):
            if bar.low < state.reference.low:
                self.state = Idle()
                return SHORT
            return None

        gap_up = bar.open >= self.gap_level
        holds_above_ema = bar.low > self.slow.value()
        if gap_up and holds_above_ema:
            self.state = Armed(reference=bar)
        return None
