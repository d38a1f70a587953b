"""Capital-based risk controller.

Risk model:
- stop loss: ``stop_loss_fraction`` of starting capital (not position size)
- take profit: ``take_profit_fraction`` of starting capital
- position size: all current capital at the entry price, whole shares
- at most ``max_daily_trades`` entries per session
"""

from __future__ import annotations

import math

from .config import RiskConfig
from .errors import InvalidConfiguration


class RiskController:
    """Sizes entries and checks PnL thresholds for one session."""

    def __init__(self, capital: float, cfg: RiskConfig = RiskConfig()):
        if not float(capital) > 0:
            raise InvalidConfiguration(f"starting capital must be positive, got {capital}")
        cfg.validate()
        self.cfg = cfg

        self.initial_capital = float(capital)
        self.current_capital = float(capital)
        self.trades_opened = 0

        # fixed for the run; rounding drops float noise (100000 * 0.07 != 7000.0)
        self.stop_loss_amount = round(self.initial_capital * float(cfg.stop_loss_fraction), 10)
        self.take_profit_amount = round(self.initial_capital * float(cfg.take_profit_fraction), 10)

    def position_size(self, entry_price: float) -> int:
        if entry_price <= 0:
            return 0
        return int(math.floor(self.current_capital / float(entry_price)))

    def can_open(self) -> bool:
        return self.trades_opened < int(self.cfg.max_daily_trades)

    def record_open(self) -> None:
        self.trades_opened += 1

    def is_stop_loss_hit(self, unrealized_pnl: float) -> bool:
        return unrealized_pnl <= -self.stop_loss_amount

    def is_take_profit_hit(self, unrealized_pnl: float) -> bool:
        return unrealized_pnl >= self.take_profit_amount

    def apply_realized_pnl(self, pnl: float) -> None:
        self.current_capital += float(pnl)

    @property
    def total_pnl(self) -> float:
        return self.current_capital - self.initial_capital

    @property
    def return_pct(self) -> float:
        return (self.current_capital - self.initial_capital) / self.initial_capital * 100.0
