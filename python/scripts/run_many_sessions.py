"""Run every session JSON in a directory and print one summary row per file."""

from __future__ import annotations

import argparse
from pathlib import Path

import pandas as pd

from gap_fade.backtest import run_sessions
from gap_fade.data_provider import JsonSessionProvider


def main():
    p = argparse.ArgumentParser()
    p.add_argument("data_dir", type=str, help="Directory of session JSON files.")
    p.add_argument("--output", type=str, default=None, help="Optional CSV path for the summary table.")
    args = p.parse_args()

    paths = sorted(Path(args.data_dir).glob("*.json"))
    provider = JsonSessionProvider()
    summary = run_sessions(provider.fetch(x) for x in paths)
    summary.insert(0, "file", [x.name for x in paths])

    with pd.option_context("display.width", 160, "display.max_columns", None):
        print(summary)
    if args.output:
        summary.to_csv(args.output, index=False, encoding="utf-8")
        print(args.output)


if __name__ == "__main__":
    main()
