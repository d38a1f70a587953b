"""
Pytest configuration and shared fixtures.

Scenario prices are picked so that quantities and PnL are exact in floating
point (short 125 @ 800 against 100,000 capital).
"""

import json

import pytest

from gap_fade.config import parse_hhmm
from gap_fade.types import Bar, SessionContext


def make_bar(ts, o, h, l, c):
    return Bar(timestamp=parse_hhmm(ts), open=float(o), high=float(h), low=float(l), close=float(c))


# Gap-up at 09:20 (open 826 >= 824, low 825 > EMA5 ~809.33),
# breakdown at 09:25 (low 799 < 825) -> short 125 @ 800.
SETUP_BARS = [
    make_bar("09:15", 801, 802, 795, 800),
    make_bar("09:20", 826, 830, 825, 828),
    make_bar("09:25", 824, 826, 799, 800),
]


@pytest.fixture
def bar():
    return make_bar


@pytest.fixture
def setup_bars():
    return list(SETUP_BARS)


@pytest.fixture
def make_session():
    def _make(bars, previous_close=800.0, capital=100_000.0, instrument="TESTCO"):
        return SessionContext(
            instrument=instrument,
            previous_close=previous_close,
            capital=capital,
            bars=bars,
        )

    return _make


@pytest.fixture
def end_of_data_session(make_session):
    bars = SETUP_BARS + [
        make_bar("09:30", 800, 801, 789, 790),
        make_bar("09:35", 790, 792, 785, 788),
    ]
    return make_session(bars)


@pytest.fixture
def flat_session(make_session):
    """Every open within 1% of the previous close: nothing can arm."""
    bars = [
        make_bar("09:15", 800, 803, 797, 801),
        make_bar("09:20", 801, 805, 799, 804),
        make_bar("09:25", 804, 806, 796, 798),
        make_bar("09:30", 798, 802, 790, 792),
        make_bar("09:35", 792, 800, 791, 799),
    ]
    return make_session(bars)


@pytest.fixture
def two_trade_session(make_session):
    """Two stopped-out shorts, then a third signal that the daily cap blocks."""
    bars = SETUP_BARS + [
        # re-arms and stops out the first short: (800 - 830) * 125 = -3750
        make_bar("09:30", 826, 832, 825, 830),
        # breakdown -> short floor(96250 / 812) = 118 @ 812
        make_bar("09:35", 824, 825, 810, 812),
        # re-arms and stops out: (812 - 830) * 118 = -2124
        make_bar("09:40", 826, 832, 825, 830),
        # breakdown again, but two trades already opened today
        make_bar("09:45", 824, 825, 815, 818),
    ]
    return make_session(bars)


@pytest.fixture
def session_payload():
    return {
        "instrument": "TESTCO",
        "previous_day_close": 800.0,
        "capital": 100000.0,
        "candles": [
            {"timestamp": "09:15", "open": 801, "high": 802, "low": 795, "close": 800},
            {"timestamp": "09:20", "open": 826, "high": 830, "low": 825, "close": 828},
            {"timestamp": "09:25", "open": 824, "high": 826, "low": 799, "close": 800},
            {"timestamp": "09:30", "open": 800, "high": 801, "low": 789, "close": 790, "volume": 1200},
        ],
        "exchange": "NSE",
    }


@pytest.fixture
def session_json(tmp_path, session_payload):
    path = tmp_path / "market_data.json"
    path.write_text(json.dumps(session_payload), encoding="utf-8")
    return path
