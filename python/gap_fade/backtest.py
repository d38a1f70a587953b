"""Backtest runner utilities."""

from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
from typing import Iterable, Optional, Tuple

import pandas as pd

from .config import BacktestConfig, IndicatorConfig, RiskConfig, StrategyConfig
from .data_provider import CsvSessionProvider, JsonSessionProvider
from .engine import SessionResult, SimulationEngine
from .metrics import summarize
from .types import SessionContext


def run_session(
    ctx: SessionContext,
    ind_cfg: IndicatorConfig = IndicatorConfig(),
    strat_cfg: StrategyConfig = StrategyConfig(),
    risk_cfg: RiskConfig = RiskConfig(),
    bt_cfg: BacktestConfig = BacktestConfig(),
) -> SessionResult:
    """Simulate one session with a fresh engine."""
    engine = SimulationEngine(ctx, ind_cfg=ind_cfg, strat_cfg=strat_cfg, risk_cfg=risk_cfg, bt_cfg=bt_cfg)
    return engine.run()


def run_session_from_json(
    json_path: str | Path,
    output_dir: Optional[str | Path] = None,
    ind_cfg: IndicatorConfig = IndicatorConfig(),
    strat_cfg: StrategyConfig = StrategyConfig(),
    risk_cfg: RiskConfig = RiskConfig(),
    bt_cfg: BacktestConfig = BacktestConfig(),
) -> Tuple[SessionResult, dict[str, Path]]:
    ctx = JsonSessionProvider().fetch(json_path)
    return _run_core(ctx, output_dir, ind_cfg, strat_cfg, risk_cfg, bt_cfg)


def run_session_from_csv(
    csv_path: str | Path,
    instrument: str,
    previous_close: float,
    capital: float,
    output_dir: Optional[str | Path] = None,
    ind_cfg: IndicatorConfig = IndicatorConfig(),
    strat_cfg: StrategyConfig = StrategyConfig(),
    risk_cfg: RiskConfig = RiskConfig(),
    bt_cfg: BacktestConfig = BacktestConfig(),
) -> Tuple[SessionResult, dict[str, Path]]:
    ctx = CsvSessionProvider().fetch(csv_path, instrument=instrument, previous_close=previous_close, capital=capital)
    return _run_core(ctx, output_dir, ind_cfg, strat_cfg, risk_cfg, bt_cfg)


def run_sessions(
    contexts: Iterable[SessionContext],
    ind_cfg: IndicatorConfig = IndicatorConfig(),
    strat_cfg: StrategyConfig = StrategyConfig(),
    risk_cfg: RiskConfig = RiskConfig(),
    bt_cfg: BacktestConfig = BacktestConfig(),
) -> pd.DataFrame:
    """Run independent sessions (one engine each) and tabulate their summaries."""
    rows = [summarize(run_session(ctx, ind_cfg, strat_cfg, risk_cfg, bt_cfg)) for ctx in contexts]
    return pd.DataFrame(rows)


def trades_frame(result: SessionResult) -> pd.DataFrame:
    rows = []
    for t in result.trade_log:
        d = asdict(t)
        d["timestamp"] = t.timestamp.strftime("%H:%M")
        d["side"] = t.side
        rows.append(d)
    cols = ["timestamp", "direction", "kind", "side", "price", "quantity", "pnl", "reason"]
    return pd.DataFrame(rows, columns=cols)


def equity_frame(result: SessionResult) -> pd.DataFrame:
    eq = pd.DataFrame(
        [(ts.strftime("%H:%M"), v) for ts, v in result.equity_curve],
        columns=["Time", "Equity"],
    )
    return eq.set_index("Time")


def snapshots_frame(result: SessionResult) -> pd.DataFrame:
    rows = []
    for s in result.snapshots:
        rows.append(
            {
                "timestamp": s.bar.timestamp.strftime("%H:%M"),
                "open": s.bar.open,
                "high": s.bar.high,
                "low": s.bar.low,
                "close": s.bar.close,
                "ema_fast": s.ema_fast,
                "ema_slow": s.ema_slow,
                "signal": s.signal,
                "position_open": s.position_open,
                "unrealized_pnl": s.unrealized_pnl,
                "capital": s.capital,
                "exit_reason": s.exit_reason or "",
            }
        )
    return pd.DataFrame(rows)


def _run_core(
    ctx: SessionContext,
    output_dir: Optional[str | Path],
    ind_cfg: IndicatorConfig,
    strat_cfg: StrategyConfig,
    risk_cfg: RiskConfig,
    bt_cfg: BacktestConfig,
) -> Tuple[SessionResult, dict[str, Path]]:
    result = run_session(ctx, ind_cfg, strat_cfg, risk_cfg, bt_cfg)
    if output_dir is None:
        return result, {}

    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    tag = (ctx.instrument or "session").replace(".", "_").replace("/", "_")
    tr_path = out_dir / f"trades_{tag}.csv"
    eq_path = out_dir / f"equity_{tag}.csv"
    snap_path = out_dir / f"snapshots_{tag}.csv"
    trades_frame(result).to_csv(tr_path, index=False, encoding="utf-8")
    equity_frame(result).to_csv(eq_path, encoding="utf-8")
    snapshots_frame(result).to_csv(snap_path, index=False, encoding="utf-8")

    return result, {"trades": tr_path, "equity": eq_path, "snapshots": snap_path}
