"""Indicator computation utilities.

The engine consumes bars one at a time, so the EMA is kept incrementally
(``EmaCalculator``). ``ema`` is the vectorized equivalent over a whole close
series and is what snapshot tables are cross-checked against.
"""

from __future__ import annotations

import pandas as pd

from .errors import InvalidConfiguration


def ema(series: pd.Series, span: int) -> pd.Series:
    """Exponential moving average with a stable definition.

    Uses pandas ewm with adjust=False (recursive form), seeded at the first
    sample exactly like ``EmaCalculator``.
    """
    if span <= 0:
        raise InvalidConfiguration("span must be positive")
    return series.astype(float).ewm(span=span, adjust=False, min_periods=1).mean()


class EmaCalculator:
    """O(1) incremental EMA: ``value = price * w + value * (1 - w)``.

    The first update seeds the value with the price itself.
    """

    def __init__(self, period: int):
        if int(period) <= 0:
            raise InvalidConfiguration(f"EMA period must be positive, got {period}")
        self.period = int(period)
        self.weight = 2.0 / (self.period + 1.0)
        self._value = 0.0
        self._initialized = False

    def update(self, price: float) -> None:
        if not self._initialized:
            self._value = float(price)
            self._initialized = True
        else:
            self._value = float(price) * self.weight + self._value * (1.0 - self.weight)

    def value(self) -> float:
        return self._value

    def is_ready(self) -> bool:
        return self._initialized

    def reset(self) -> None:
        self._value = 0.0
        self._initialized = False

    def __repr__(self) -> str:
        return f"EmaCalculator(period={self.period}, value={self._value:.4f}, ready={self._initialized})"
