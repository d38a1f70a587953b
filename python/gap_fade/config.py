"""Configuration objects.

Style rules:
- keep signatures stable (no alias chaos)
- prefer explicit field names
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import time
from typing import Dict

from .errors import InvalidConfiguration


def parse_hhmm(value: str) -> time:
    """Parse an ``HH:MM`` string into a ``datetime.time``."""
    try:
        hh, mm = str(value).strip().split(":")[:2]
        return time(int(hh), int(mm))
    except (ValueError, TypeError) as exc:
        raise InvalidConfiguration(f"expected HH:MM time, got {value!r}") from exc


def _from_mapping(cls, mapping: Dict[str, str], d: dict):
    kwargs = {}
    for k, v in (d or {}).items():
        if k in mapping:
            kwargs[mapping[k]] = v
    return cls(**kwargs)


@dataclass(frozen=True)
class IndicatorConfig:
    """EMA periods tracked by the engine."""

    fast_period: int = 3
    slow_period: int = 5
    # Arming only waits for the slow EMA by default.
    require_fast_ready: bool = False

    def validate(self) -> None:
        if int(self.fast_period) <= 0 or int(self.slow_period) <= 0:
            raise InvalidConfiguration(
                f"EMA periods must be positive (fast={self.fast_period}, slow={self.slow_period})"
            )

    @classmethod
    def from_params_dict(cls, d: dict) -> "IndicatorConfig":
        """Create from a PascalCase params dict. Unknown keys are ignored."""
        mapping = {
            "FastPeriod": "fast_period",
            "SlowPeriod": "slow_period",
            "RequireFastReady": "require_fast_ready",
        }
        return _from_mapping(cls, mapping, d)


@dataclass(frozen=True)
class StrategyConfig:
    """Two-candle gap-up rejection parameters."""

    # first candle must open at least this far above the previous close
    gap_threshold: float = 0.03

    def validate(self) -> None:
        if not math.isfinite(float(self.gap_threshold)):
            raise InvalidConfiguration(f"gap_threshold must be finite, got {self.gap_threshold}")

    @classmethod
    def from_params_dict(cls, d: dict) -> "StrategyConfig":
        mapping = {"GapThreshold": "gap_threshold"}
        return _from_mapping(cls, mapping, d)


@dataclass(frozen=True)
class RiskConfig:
    """Capital-based risk limits.

    Stop and target amounts are fractions of *starting* capital, so the
    per-trade risk does not drift as capital changes within the session.
    """

    stop_loss_fraction: float = 0.02
    take_profit_fraction: float = 0.07
    max_daily_trades: int = 2

    def validate(self) -> None:
        if not float(self.stop_loss_fraction) > 0:
            raise InvalidConfiguration(f"stop_loss_fraction must be positive, got {self.stop_loss_fraction}")
        if not float(self.take_profit_fraction) > 0:
            raise InvalidConfiguration(f"take_profit_fraction must be positive, got {self.take_profit_fraction}")
        if int(self.max_daily_trades) < 0:
            raise InvalidConfiguration(f"max_daily_trades must be >= 0, got {self.max_daily_trades}")

    @classmethod
    def from_params_dict(cls, d: dict) -> "RiskConfig":
        mapping = {
            "StopLossPct": "stop_loss_fraction",
            "TakeProfitPct": "take_profit_fraction",
            "MaxDailyTrades": "max_daily_trades",
        }
        return _from_mapping(cls, mapping, d)


@dataclass(frozen=True)
class BacktestConfig:
    """Session-level run configuration."""

    # positions still open at or after this bar time are squared off
    session_close: str = "15:00"

    # reject unordered bars / inverted ranges before simulating
    validate_bars: bool = True

    def validate(self) -> None:
        parse_hhmm(self.session_close)

    @property
    def session_close_time(self) -> time:
        return parse_hhmm(self.session_close)

    @classmethod
    def from_params_dict(cls, d: dict) -> "BacktestConfig":
        mapping = {
            "SessionClose": "session_close",
            "ValidateBars": "validate_bars",
        }
        return _from_mapping(cls, mapping, d)
