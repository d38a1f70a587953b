"""Single-session gap-fade simulation engine.

Per bar, strictly in this order:
- update the EMAs and run the pattern detector (signal captured, not acted on)
- if a position is open: stop loss, then take profit, then session-close cutoff
- if flat, a signal fired and the daily cap allows it: open a short at Close(t)
- record a snapshot and the marked-to-market equity

A position still open after the last bar is closed at that bar's close.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import time
from typing import List, Optional, Tuple

from .config import BacktestConfig, IndicatorConfig, RiskConfig, StrategyConfig
from .data_provider import validate_bars
from .pattern import PatternDetector
from .position import PositionTracker
from .risk import RiskController
from .types import ENTRY, EXIT, Bar, SessionContext, Snapshot, TradeRecord

logger = logging.getLogger(__name__)

STOP_LOSS = "STOP_LOSS"
TAKE_PROFIT = "TAKE_PROFIT"
SESSION_CLOSE = "SESSION_CLOSE"
END_OF_DATA = "END_OF_DATA"


@dataclass(frozen=True)
class SessionResult:
    """What one completed run hands back to its caller."""

    instrument: str
    initial_capital: float
    final_capital: float
    trades_opened: int
    trade_log: Tuple[TradeRecord, ...]
    equity_curve: Tuple[Tuple[time, float], ...]
    snapshots: Tuple[Snapshot, ...] = field(repr=False, default=())
    ended_by_cutoff: bool = False

    @property
    def total_pnl(self) -> float:
        return self.final_capital - self.initial_capital

    @property
    def return_pct(self) -> float:
        return (self.final_capital - self.initial_capital) / self.initial_capital * 100.0


class SimulationEngine:
    """Drives detector, risk controller and position tracker over one session.

    ``run()`` starts from a clean state every time, so calling it twice on
    the same engine gives identical results. ``step()``/``finish()`` are
    exposed for callers that want to feed bars themselves.
    """

    def __init__(
        self,
        ctx: SessionContext,
        ind_cfg: IndicatorConfig = IndicatorConfig(),
        strat_cfg: StrategyConfig = StrategyConfig(),
        risk_cfg: RiskConfig = RiskConfig(),
        bt_cfg: BacktestConfig = BacktestConfig(),
    ):
        ind_cfg.validate()
        strat_cfg.validate()
        risk_cfg.validate()
        bt_cfg.validate()
        if bt_cfg.validate_bars:
            validate_bars(ctx.bars)

        self.ctx = ctx
        self.ind_cfg = ind_cfg
        self.strat_cfg = strat_cfg
        self.risk_cfg = risk_cfg
        self.bt_cfg = bt_cfg
        self._cutoff = bt_cfg.session_close_time

        self._reset()

    def _reset(self) -> None:
        self.detector = PatternDetector(self.ctx.previous_close, self.ind_cfg, self.strat_cfg)
        self.risk = RiskController(self.ctx.capital, self.risk_cfg)
        self.position = PositionTracker()

        self.trade_log: List[TradeRecord] = []
        self.equity_curve: List[Tuple[time, float]] = []
        self.snapshots: List[Snapshot] = []

        self.session_active = True
        self.ended_by_cutoff = False
        self._last_bar: Optional[Bar] = None

    # ---------- public API ----------

    def run(self) -> SessionResult:
        """Simulate the whole session and return its result."""
        self._reset()
        logger.info(
            "Session start %s: prev close %.2f, capital %.2f, stop %.2f, target %.2f",
            self.ctx.instrument,
            self.ctx.previous_close,
            self.risk.initial_capital,
            self.risk.stop_loss_amount,
            self.risk.take_profit_amount,
        )
        for bar in self.ctx.bars:
            if not self.step(bar):
                break
        return self.finish()

    def step(self, bar: Bar) -> bool:
        """Process one bar. Returns False once the session has ended."""
        if not self.session_active:
            return False
        self._last_bar = bar

        # 1-2) indicators + pattern
        signal = self.detector.process(bar)

        # 3) exits
        exit_reason = None
        if self.position.is_open:
            exit_reason = self._check_exit(bar)

        # 4) entry
        if signal is not None:
            self._handle_signal(bar, signal)

        # 5) bookkeeping
        self._record_snapshot(bar, signal is not None, exit_reason)
        return self.session_active

    def finish(self) -> SessionResult:
        """Square off anything still open and package the result.

        The session is over afterwards: further ``step()`` calls return False.
        """
        if self.position.is_open and self._last_bar is not None:
            # equity at the last bar was already marked at this close
            self._close_position(self._last_bar, END_OF_DATA)
        self.session_active = False

        logger.info(
            "Session end %s: %d trade(s), final capital %.2f, pnl %.2f (%.2f%%)",
            self.ctx.instrument,
            self.risk.trades_opened,
            self.risk.current_capital,
            self.risk.total_pnl,
            self.risk.return_pct,
        )
        return SessionResult(
            instrument=self.ctx.instrument,
            initial_capital=self.risk.initial_capital,
            final_capital=self.risk.current_capital,
            trades_opened=self.risk.trades_opened,
            trade_log=tuple(self.trade_log),
            equity_curve=tuple(self.equity_curve),
            snapshots=tuple(self.snapshots),
            ended_by_cutoff=self.ended_by_cutoff,
        )

    # ---------- internal helpers ----------

    def _check_exit(self, bar: Bar) -> Optional[str]:
        unrealized = self.position.unrealized_pnl(bar.close)

        if self.risk.is_stop_loss_hit(unrealized):
            reason = STOP_LOSS
        elif self.risk.is_take_profit_hit(unrealized):
            reason = TAKE_PROFIT
        elif bar.timestamp >= self._cutoff:
            reason = SESSION_CLOSE
        else:
            return None

        self._close_position(bar, reason)
        if reason == SESSION_CLOSE:
            self.session_active = False
            self.ended_by_cutoff = True
        return reason

    def _handle_signal(self, bar: Bar, direction: str) -> None:
        if not self.session_active:
            logger.info("[%s] signal ignored: session closed", bar.timestamp.strftime("%H:%M"))
            return
        if self.position.is_open:
            logger.info("[%s] signal ignored: position already open", bar.timestamp.strftime("%H:%M"))
            return
        if not self.risk.can_open():
            logger.info("[%s] signal ignored: daily trade limit reached", bar.timestamp.strftime("%H:%M"))
            return

        # execution at candle close
        price = float(bar.close)
        qty = self.risk.position_size(price)
        if qty <= 0:
            logger.info("[%s] signal ignored: insufficient capital at %.2f", bar.timestamp.strftime("%H:%M"), price)
            return

        self.position.open(direction, price, qty, bar.timestamp)
        self.risk.record_open()
        trade = TradeRecord(
            timestamp=bar.timestamp,
            direction=direction,
            kind=ENTRY,
            price=price,
            quantity=qty,
        )
        self.trade_log.append(trade)
        logger.info(
            "[%s] ENTRY %s %d @ %.2f",
            bar.timestamp.strftime("%H:%M"),
            trade.side,
            qty,
            price,
        )

    def _close_position(self, bar: Bar, reason: str) -> None:
        price = float(bar.close)
        pnl = self.position.unrealized_pnl(price)
        closed = self.position.close()
        self.risk.apply_realized_pnl(pnl)

        trade = TradeRecord(
            timestamp=bar.timestamp,
            direction=closed.direction,
            kind=EXIT,
            price=price,
            quantity=closed.quantity,
            pnl=pnl,
            reason=reason,
        )
        self.trade_log.append(trade)
        logger.info(
            "[%s] EXIT %s %d @ %.2f (%s) pnl %.2f (%+.2f%%)",
            bar.timestamp.strftime("%H:%M"),
            trade.side,
            closed.quantity,
            price,
            reason,
            pnl,
            pnl / self.risk.initial_capital * 100.0,
        )

    def _record_snapshot(self, bar: Bar, signal: bool, exit_reason: Optional[str]) -> None:
        unrealized = self.position.unrealized_pnl(bar.close)
        snap = Snapshot(
            bar=bar,
            ema_fast=self.detector.fast.value(),
            ema_slow=self.detector.slow.value(),
            signal=signal,
            position_open=self.position.is_open,
            unrealized_pnl=unrealized,
            capital=self.risk.current_capital,
            exit_reason=exit_reason,
        )
        self.snapshots.append(snap)
        self.equity_curve.append((bar.timestamp, self.risk.current_capital + unrealized))
        logger.debug(
            "[%s] O:%.2f H:%.2f L:%.2f C:%.2f | EMA%d:%.2f EMA%d:%.2f | %s",
            bar.timestamp.strftime("%H:%M"),
            bar.open,
            bar.high,
            bar.low,
            bar.close,
            self.detector.fast.period,
            snap.ema_fast,
            self.detector.slow.period,
            snap.ema_slow,
            f"OPEN u/pnl {unrealized:.2f}" if snap.position_open else "FLAT",
        )
