"""Command-line entry point: load a session file, simulate, print the report."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .backtest import run_session_from_csv, run_session_from_json
from .config import BacktestConfig, IndicatorConfig, RiskConfig, StrategyConfig
from .errors import GapFadeError
from .report import format_report

logger = logging.getLogger(__name__)


def load_params_json(path: str) -> dict:
    with open(path, encoding="utf-8") as fh:
        params = json.load(fh)
    if not isinstance(params, dict):
        raise ValueError("params JSON must be an object")
    return params


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Backtest the two-candle gap-up fade on one session.")
    p.add_argument("data", nargs="?", default="market_data.json", help="Session JSON (or bar CSV) path.")
    p.add_argument("--instrument", type=str, default=None, help="Instrument id for CSV input.")
    p.add_argument("--previous_close", type=float, default=None, help="Previous session close (CSV input).")
    p.add_argument("--capital", type=float, default=None, help="Starting capital (CSV input).")
    p.add_argument("--params_json", type=str, default=None, help="PascalCase parameter overrides, e.g. {\"GapThreshold\": 0.02}.")
    p.add_argument("--output_dir", type=str, default=None, help="Write trades/equity/snapshot CSVs here.")
    p.add_argument("--log_level", type=str, default="INFO", help="DEBUG shows every bar.")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        params = load_params_json(args.params_json) if args.params_json else {}
        cfgs = dict(
            ind_cfg=IndicatorConfig.from_params_dict(params),
            strat_cfg=StrategyConfig.from_params_dict(params),
            risk_cfg=RiskConfig.from_params_dict(params),
            bt_cfg=BacktestConfig.from_params_dict(params),
        )

        logger.info("Loading market data from: %s", args.data)
        if Path(args.data).suffix.lower() == ".csv":
            if args.previous_close is None or args.capital is None:
                raise ValueError("CSV input needs --previous_close and --capital")
            instrument = args.instrument or Path(args.data).stem
            result, paths = run_session_from_csv(
                args.data,
                instrument=instrument,
                previous_close=args.previous_close,
                capital=args.capital,
                output_dir=args.output_dir,
                **cfgs,
            )
        else:
            result, paths = run_session_from_json(args.data, output_dir=args.output_dir, **cfgs)
    except (GapFadeError, OSError, ValueError, TypeError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    print(format_report(result))
    for path in paths.values():
        print(path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
