"""Session loaders (JSON / CSV) and bar validation."""

from __future__ import annotations

import json
from datetime import datetime, time
from pathlib import Path
from typing import Iterable, List, Sequence

import pandas as pd

from .config import parse_hhmm
from .errors import InvalidConfiguration
from .types import Bar, SessionContext


def _to_time(value) -> time:
    """Reduce an ``HH:MM`` string or a datetime-like value to its time of day."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    if isinstance(value, datetime):
        return value.time().replace(second=0, microsecond=0)
    text = str(value).strip()
    if len(text) <= 5 and ":" in text:
        return parse_hhmm(text)
    try:
        ts = pd.to_datetime(text)
    except (ValueError, TypeError) as exc:
        raise InvalidConfiguration(f"unparseable bar timestamp {value!r}") from exc
    return ts.to_pydatetime().time().replace(second=0, microsecond=0)


def validate_bars(bars: Sequence[Bar]) -> None:
    """Fail fast on bars a loader should never have produced."""
    prev_ts = None
    for i, bar in enumerate(bars):
        prices = (bar.open, bar.high, bar.low, bar.close)
        if any(p < 0 for p in prices):
            raise InvalidConfiguration(f"bar {i} at {bar.timestamp} has a negative price")
        if bar.high < bar.low:
            raise InvalidConfiguration(f"bar {i} at {bar.timestamp} has high < low")
        if not (bar.low <= bar.open <= bar.high and bar.low <= bar.close <= bar.high):
            raise InvalidConfiguration(f"bar {i} at {bar.timestamp} has open/close outside [low, high]")
        if prev_ts is not None and bar.timestamp < prev_ts:
            raise InvalidConfiguration(f"bar {i} at {bar.timestamp} is earlier than the bar before it ({prev_ts})")
        prev_ts = bar.timestamp


def bars_from_records(records: Iterable[dict]) -> List[Bar]:
    bars = []
    for rec in records:
        try:
            bars.append(
                Bar(
                    timestamp=_to_time(rec["timestamp"]),
                    open=float(rec["open"]),
                    high=float(rec["high"]),
                    low=float(rec["low"]),
                    close=float(rec["close"]),
                )
            )
        except KeyError as exc:
            raise InvalidConfiguration(f"bar record is missing field {exc}") from exc
    return bars


class JsonSessionProvider:
    """Load a session from the market-data JSON layout.

    ``{"instrument": ..., "previous_day_close": ..., "capital": ...,
    "candles": [{"timestamp": "HH:MM", "open": ..., ...}, ...]}``
    Unknown keys are ignored.
    """

    def fetch(self, json_path: str | Path) -> SessionContext:
        path = Path(json_path)
        if not path.exists():
            raise FileNotFoundError(str(path))

        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise InvalidConfiguration(f"{path} is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise InvalidConfiguration(f"{path} must contain a JSON object")

        return SessionContext(
            instrument=str(payload.get("instrument", "")),
            previous_close=float(payload.get("previous_day_close", 0.0)),
            capital=float(payload.get("capital", 0.0)),
            bars=bars_from_records(payload.get("candles") or []),
        )


class CsvSessionProvider:
    """Load one session's bars from a CSV file.

    Session-level values (previous close, capital) are not part of a bar CSV
    and must be passed in.
    """

    def fetch(
        self,
        csv_path: str | Path,
        instrument: str,
        previous_close: float,
        capital: float,
        datetime_col: str = "timestamp",
    ) -> SessionContext:
        path = Path(csv_path)
        if not path.exists():
            raise FileNotFoundError(str(path))

        df = pd.read_csv(path)
        df.columns = [str(c).strip().lower() for c in df.columns]
        datetime_col = datetime_col.lower()
        if datetime_col not in df.columns:
            # try common alternatives
            for cand in ["time", "datetime", "date", "ts"]:
                if cand in df.columns:
                    datetime_col = cand
                    break
        if datetime_col not in df.columns:
            raise InvalidConfiguration(f"CSV must contain a timestamp column. Tried '{datetime_col}' and common aliases.")

        missing = [c for c in ["open", "high", "low", "close"] if c not in df.columns]
        if missing:
            raise InvalidConfiguration(f"Missing required OHLC columns: {missing}")

        df = df.rename(columns={datetime_col: "timestamp"})
        records = df[["timestamp", "open", "high", "low", "close"]].to_dict("records")
        return SessionContext(
            instrument=str(instrument),
            previous_close=float(previous_close),
            capital=float(capital),
            bars=bars_from_records(records),
        )
