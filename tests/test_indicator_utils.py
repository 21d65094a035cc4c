"""
Unit Tests for Indicator Math

Covers SMA, EMA, RSI, MACD, Bollinger Bands, ATR, the volume helpers,
crossover predicates and the SMA20/EMA50/RSI14 summary.
"""
import numpy as np
import pytest
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from indicators import (
    calculate_sma,
    calculate_ema,
    calculate_rsi,
    calculate_macd,
    calculate_bollinger_bands,
    calculate_atr,
    calculate_indicators,
    ma_crossover_signal,
    rsi_interpretation,
)
from indicators.indicator_utils import (
    crossed_above,
    crossed_below,
    crossed_down_through,
    crossed_up_through,
    is_defined,
    is_volume_spike,
    series_to_list,
    volume_ratio,
)


# ==========================================
# Test Data Generators
# ==========================================

def generate_random_walk(n: int = 120, seed: int = 42) -> tuple:
    """Generate random-walk OHLC arrays"""
    np.random.seed(seed)
    close = 100 + np.cumsum(np.random.randn(n) * 1.5)
    high = close + np.abs(np.random.randn(n) * 0.5)
    low = close - np.abs(np.random.randn(n) * 0.5)
    return high, low, close


EVEN_SERIES = [10, 12, 14, 16, 18, 20, 22, 24, 26, 28]


# ==========================================
# Moving Averages
# ==========================================

class TestMovingAverages:
    """SMA and EMA"""

    def test_sma_values(self):
        sma = calculate_sma(EVEN_SERIES, period=5)

        assert len(sma) == 10
        assert all(np.isnan(sma[:4]))
        assert sma[4] == 14.0
        assert sma[5] == 16.0

    @pytest.mark.parametrize("period", [2, 5, 14, 20, 50])
    def test_short_input_all_absent(self, period):
        values = list(range(1, period))
        for series in (calculate_sma(values, period), calculate_ema(values, period),
                       calculate_rsi(values, period)):
            assert len(series) == len(values)
            assert all(np.isnan(series))

    def test_sma_short_input(self):
        sma = calculate_sma([1, 2, 3], period=5)
        assert len(sma) == 3
        assert all(np.isnan(sma))

    def test_sma_invalid_period(self):
        assert all(np.isnan(calculate_sma(EVEN_SERIES, period=0)))

    def test_sma_empty(self):
        assert len(calculate_sma([], period=5)) == 0

    def test_ema_seeded_with_sma(self):
        """First defined EMA equals the SMA of the first `period` values"""
        ema = calculate_ema(EVEN_SERIES, period=5)

        assert all(np.isnan(ema[:4]))
        assert ema[4] == 14.0
        # k = 2 / 6
        assert ema[5] == pytest.approx(20 / 3 + 14 * 2 / 3)

    def test_ema_short_input(self):
        ema = calculate_ema([1, 2, 3], period=5)
        assert all(np.isnan(ema))

    def test_ema_follows_trend(self):
        _, _, close = generate_random_walk(200)
        ema = calculate_ema(close, period=20)

        assert len(ema) == 200
        assert np.isnan(ema[18])
        assert not np.isnan(ema[19])
        assert close.min() <= ema[-1] <= close.max()


# ==========================================
# RSI
# ==========================================

class TestRSI:
    """RSI(14)"""

    def test_rising_series_is_100(self):
        rsi = calculate_rsi(list(range(10, 26)), period=14)

        assert len(rsi) == 16
        assert np.isnan(rsi[0])
        assert rsi[-1] == 100.0

    def test_falling_series_is_0(self):
        rsi = calculate_rsi(list(range(25, 9, -1)), period=14)
        assert rsi[-1] == 0.0

    def test_first_defined_index(self):
        rsi = calculate_rsi(list(range(10, 26)), period=14)
        assert all(np.isnan(rsi[:14]))
        assert not np.isnan(rsi[14])

    def test_requires_period_plus_one(self):
        rsi = calculate_rsi(list(range(14)), period=14)
        assert all(np.isnan(rsi))

    def test_bounded_and_rounded(self):
        _, _, close = generate_random_walk(150, seed=7)
        rsi = calculate_rsi(close, period=14)
        defined = rsi[~np.isnan(rsi)]

        assert len(defined) == 150 - 14
        assert all((defined >= 0) & (defined <= 100))
        assert np.allclose(defined, np.round(defined, 2))

    def test_known_value(self):
        """13 losses of 1 and one gain of 6 -> 100 - 100 / (1 + 6/13)"""
        closes = [200.0 - i for i in range(45)]
        closes.append(closes[-1] + 6)
        rsi = calculate_rsi(closes, period=14)

        assert rsi[-2] == 0.0
        assert rsi[-1] == 31.58


# ==========================================
# MACD / Bollinger / ATR
# ==========================================

class TestMACD:
    """MACD(12, 26, 9)"""

    def test_shapes(self):
        _, _, close = generate_random_walk(100)
        macd = calculate_macd(close)

        assert set(macd) == {'macd_line', 'signal_line', 'histogram'}
        for series in macd.values():
            assert len(series) == 100

    def test_warmup(self):
        _, _, close = generate_random_walk(100)
        macd = calculate_macd(close)

        assert np.isnan(macd['macd_line'][24])
        assert not np.isnan(macd['macd_line'][25])
        assert np.isnan(macd['histogram'][24])
        assert macd['histogram'][-1] == pytest.approx(
            macd['macd_line'][-1] - macd['signal_line'][-1])

    def test_short_input(self):
        macd = calculate_macd([1.0] * 10)
        assert all(np.isnan(macd['macd_line']))


class TestBollinger:
    """Bollinger Bands(20, 2)"""

    def test_population_std(self):
        bb = calculate_bollinger_bands([1, 2, 3, 4, 5], period=5, std_mult=2.0)

        assert bb['middle'][-1] == 3.0
        assert bb['upper'][-1] == pytest.approx(3 + 2 * np.sqrt(2))
        assert bb['lower'][-1] == pytest.approx(3 - 2 * np.sqrt(2))

    def test_flat_series_collapses(self):
        bb = calculate_bollinger_bands([50.0] * 30)
        assert bb['upper'][-1] == bb['middle'][-1] == bb['lower'][-1] == 50.0

    def test_band_order(self):
        _, _, close = generate_random_walk(60)
        bb = calculate_bollinger_bands(close)

        assert np.isnan(bb['middle'][18])
        assert bb['upper'][-1] > bb['middle'][-1] > bb['lower'][-1]


class TestATR:
    """ATR(14)"""

    def test_constant_range(self):
        close = np.full(30, 100.0)
        atr = calculate_atr(close + 1, close - 1, close, period=14)

        assert len(atr) == 30
        assert np.isnan(atr[12])
        assert atr[13] == pytest.approx(2.0)
        assert atr[-1] == pytest.approx(2.0)

    def test_gap_uses_previous_close(self):
        high = np.array([11.0] * 15 + [31.0])
        low = np.array([9.0] * 15 + [29.0])
        close = np.array([10.0] * 15 + [30.0])
        atr = calculate_atr(high, low, close, period=14)

        # True range of the gap bar is |31 - 10|
        assert atr[-1] == pytest.approx(2.0 + (21.0 - 2.0) * 2 / 15)

    def test_positive(self):
        high, low, close = generate_random_walk(50)
        atr = calculate_atr(high, low, close, period=14)
        assert all(atr[13:] > 0)

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            calculate_atr([1, 2], [1], [1, 2])


# ==========================================
# Helpers
# ==========================================

class TestHelpers:
    """Volume, crossover and definedness helpers"""

    def test_is_defined(self):
        assert is_defined(1.0, 2.0)
        assert not is_defined(1.0, None)
        assert not is_defined(np.nan)

    def test_volume_ratio(self):
        assert volume_ratio(300, [100] * 20) == 3.0
        assert volume_ratio(300, [0] * 20) == 1.0

    def test_volume_spike(self):
        assert is_volume_spike([1000.0] * 19 + [5000.0])
        assert not is_volume_spike([1000.0] * 20)

    def test_crossovers(self):
        assert crossed_above(1, 2, 3, 2)
        assert crossed_above(2, 2, 3, 2)
        assert not crossed_above(2, 2, 3, 2, inclusive=False)
        assert crossed_below(3, 2, 1, 2)
        assert not crossed_above(np.nan, 2, 3, 2)

    def test_level_crossings(self):
        assert crossed_up_through(29.5, 30.0, 30)
        assert not crossed_up_through(30.0, 35.0, 30)
        assert crossed_down_through(70.5, 70.0, 70)
        assert not crossed_down_through(np.nan, 65.0, 70)

    def test_series_to_list(self):
        assert series_to_list(np.array([np.nan, 1.5])) == [None, 1.5]


# ==========================================
# Summary
# ==========================================

class TestSummary:
    """SMA20/EMA50 crossover and indicator summary"""

    def test_ma_crossover_signal(self):
        assert ma_crossover_signal([9, 11], [10, 10]) == "BULLISH"
        assert ma_crossover_signal([11, 9], [10, 10]) == "BEARISH"
        assert ma_crossover_signal([12, 12], [10, 10]) == "BULLISH"
        assert ma_crossover_signal([8, 8], [10, 10]) == "BEARISH"
        assert ma_crossover_signal([10, 10], [10, 10]) == "NEUTRAL"
        assert ma_crossover_signal([np.nan, 10], [10, 10]) == "NEUTRAL"
        assert ma_crossover_signal([10], [10]) == "NEUTRAL"

    def test_calculate_indicators(self):
        _, _, close = generate_random_walk(120)
        result = calculate_indicators(close)

        assert len(result['sma20']) == 120
        assert len(result['ema50']) == 120
        assert len(result['rsi14']) == 120
        current = result['current_values']
        assert current['sma20'] == pytest.approx(result['sma20'][-1])
        assert 0 <= current['rsi14'] <= 100
        assert current['crossover_signal'] in ("BULLISH", "BEARISH", "NEUTRAL")

    def test_calculate_indicators_short_history(self):
        result = calculate_indicators(list(range(10, 31)))
        current = result['current_values']

        assert current['ema50'] is None
        assert current['sma20'] == pytest.approx(np.mean(range(11, 31)))
        assert result['crossover_signal'] == "NEUTRAL"

    def test_rsi_interpretation(self):
        assert rsi_interpretation(75) == "Overbought"
        assert rsi_interpretation(70) == "Overbought"
        assert rsi_interpretation(25) == "Oversold"
        assert rsi_interpretation(55) == "Bullish"
        assert rsi_interpretation(45) == "Bearish"
        assert rsi_interpretation(None) == "N/A"
