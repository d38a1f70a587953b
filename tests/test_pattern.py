"""Tests for the two-candle gap-up rejection detector."""

import pytest

from gap_fade.config import IndicatorConfig, StrategyConfig
from gap_fade.pattern import Armed, Idle, PatternDetector
from gap_fade.types import SHORT


@pytest.fixture
def detector():
    return PatternDetector(previous_close=800.0)


class TestArming:

    def test_starts_idle(self, detector):
        assert isinstance(detector.state, Idle)
        assert not detector.indicators_ready()

    def test_gap_up_above_slow_ema_arms(self, detector, setup_bars):
        assert detector.process(setup_bars[0]) is None
        assert isinstance(detector.state, Idle)
        assert detector.process(setup_bars[1]) is None
        assert detector.state == Armed(reference=setup_bars[1])

    def test_first_bar_cannot_arm(self, detector, bar):
        # the slow EMA is seeded with the close, which is never below the low
        detector.process(bar("09:15", 830, 835, 826, 834))
        assert isinstance(detector.state, Idle)

    def test_gap_below_threshold_does_not_arm(self, detector, bar):
        detector.process(bar("09:15", 801, 802, 795, 800))
        detector.process(bar("09:20", 823.9, 830, 823.5, 828))
        assert isinstance(detector.state, Idle)

    def test_low_touching_slow_ema_does_not_arm(self, bar):
        det = PatternDetector(previous_close=800.0, ind_cfg=IndicatorConfig(fast_period=1, slow_period=1))
        # period 1: the EMA equals the close, so low == EMA when low == close
        det.process(bar("09:15", 801, 802, 795, 800))
        det.process(bar("09:20", 826, 830, 826, 826))
        assert isinstance(det.state, Idle)

    def test_exact_threshold_gap_arms(self, bar):
        det = PatternDetector(previous_close=100.0, strat_cfg=StrategyConfig(gap_threshold=0.03))
        det.process(bar("09:15", 100, 101, 99, 100))
        det.process(bar("09:20", 103, 104, 102, 103.5))
        assert isinstance(det.state, Armed)

    def test_just_under_threshold_gap_does_not_arm(self, bar):
        det = PatternDetector(previous_close=100.0, strat_cfg=StrategyConfig(gap_threshold=0.03))
        det.process(bar("09:15", 100, 101, 99, 100))
        det.process(bar("09:20", 102.99, 104, 102, 103.5))
        assert isinstance(det.state, Idle)

    def test_require_fast_ready(self, bar):
        det = PatternDetector(previous_close=800.0, ind_cfg=IndicatorConfig(require_fast_ready=True))
        assert not det.indicators_ready()
        det.process(bar("09:15", 801, 802, 795, 800))
        assert det.indicators_ready()


class TestBreakdown:

    def test_breakdown_emits_short_and_resets(self, detector, setup_bars):
        signals = [detector.process(b) for b in setup_bars]
        assert signals == [None, None, SHORT]
        assert isinstance(detector.state, Idle)

    def test_equal_low_is_not_a_breakdown(self, detector, setup_bars, bar):
        detector.process(setup_bars[0])
        detector.process(setup_bars[1])
        assert detector.process(bar("09:25", 826, 827, 825, 826)) is None
        assert isinstance(detector.state, Armed)

    def test_armed_state_is_not_overwritten(self, detector, setup_bars, bar):
        detector.process(setup_bars[0])
        detector.process(setup_bars[1])
        reference = setup_bars[1]

        # also qualifies as a gap-up candle, with a higher low
        detector.process(bar("09:25", 835, 840, 830, 838))
        assert detector.state == Armed(reference=reference)

        # below the newer low but not below the reference low
        assert detector.process(bar("09:30", 829, 831, 827, 828)) is None
        assert detector.process(bar("09:35", 826, 828, 824, 825)) == SHORT

    def test_can_rearm_after_signal(self, detector, setup_bars, bar):
        for b in setup_bars:
            detector.process(b)
        detector.process(bar("09:30", 826, 832, 825, 830))
        assert isinstance(detector.state, Armed)

    def test_reset_clears_reference_and_indicators(self, detector, setup_bars):
        detector.process(setup_bars[0])
        detector.process(setup_bars[1])
        detector.reset(previous_close=900.0)
        assert isinstance(detector.state, Idle)
        assert not detector.slow.is_ready()
        assert detector.gap_level == pytest.approx(927.0)
