"""Plain-text end-of-day report."""

from __future__ import annotations

from typing import Iterable

from .engine import SessionResult
from .types import EXIT, TradeRecord

RULE = "=" * 64
THIN_RULE = "-" * 60


def format_trade(trade: TradeRecord) -> str:
    line = f"{trade.timestamp.strftime('%H:%M')} | {trade.kind} | {trade.side} | {trade.quantity} @ {trade.price:.2f}"
    if trade.kind == EXIT:
        line += f" | P&L: {trade.pnl:.2f} ({trade.reason})"
    return line


def format_trade_log(trades: Iterable[TradeRecord]) -> str:
    lines = [format_trade(t) for t in trades]
    if not lines:
        return "No trades."
    return "\n".join(["Trade Log:", THIN_RULE, *lines, THIN_RULE])


def format_summary(result: SessionResult) -> str:
    mark = "+" if result.total_pnl >= 0 else "-"
    lines = [
        RULE,
        "END OF DAY SUMMARY".center(64),
        RULE,
        f"Instrument:          {result.instrument}",
        f"Total Trades:        {result.trades_opened}",
        f"Initial Capital:     {result.initial_capital:.2f}",
        f"Final Capital:       {result.final_capital:.2f}",
        f"Total P&L:           {result.total_pnl:.2f} [{mark}]",
        f"Return:              {result.return_pct:.2f}%",
        RULE,
    ]
    return "\n".join(lines)


def format_report(result: SessionResult) -> str:
    return format_summary(result) + "\n\n" + format_trade_log(result.trade_log)
