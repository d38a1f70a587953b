"""Performance metrics."""

from __future__ import annotations

from typing import Iterable

import numpy as np
import pandas as pd

from .engine import SessionResult
from .types import EXIT, TradeRecord


def max_drawdown(equity: pd.Series) -> float:
    """Maximum drawdown (as positive fraction)."""
    x = equity.astype(float).to_numpy()
    if len(x) == 0:
        return float("nan")
    peak = np.maximum.accumulate(x)
    dd = 1.0 - (x / np.maximum(peak, np.finfo(float).tiny))
    return float(np.nanmax(dd))


def win_rate(trades: Iterable[TradeRecord]) -> float:
    """Fraction of exits with positive realized PnL (NaN with no exits)."""
    exits = [t for t in trades if t.kind == EXIT]
    if not exits:
        return float("nan")
    return sum(1 for t in exits if t.pnl > 0) / len(exits)


def equity_series(result: SessionResult) -> pd.Series:
    if not result.equity_curve:
        return pd.Series(dtype=float, name="Equity")
    ts, eq = zip(*result.equity_curve)
    return pd.Series(eq, index=[t.strftime("%H:%M") for t in ts], name="Equity", dtype=float)


def summarize(result: SessionResult) -> dict:
    """Flat summary row for one session."""
    return {
        "instrument": result.instrument,
        "trades_opened": result.trades_opened,
        "initial_capital": result.initial_capital,
        "final_capital": result.final_capital,
        "total_pnl": result.total_pnl,
        "return_pct": result.return_pct,
        "win_rate": win_rate(result.trade_log),
        "max_dd": max_drawdown(equity_series(result)),
        "ended_by_cutoff": result.ended_by_cutoff,
    }
