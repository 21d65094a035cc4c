"""
Indicator Utility Functions
Shared calculations for SMA, EMA, RSI, MACD, Bollinger Bands and ATR,
plus the crossover predicates used by the signal generator and screener.

Every series function returns a float array the same length as its input.
Positions without enough lookback hold NaN.
"""
import numpy as np
from typing import Dict, List, Optional, Sequence

# Thresholds shared by the signal generator and the screener filters
RSI_OVERSOLD = 30.0
RSI_OVERBOUGHT = 70.0
VOLUME_LOOKBACK = 20
VOLUME_SPIKE_MULT = 1.5


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=float)


def is_defined(*values: Optional[float]) -> bool:
    """True when none of the values is None or NaN."""
    for v in values:
        if v is None or np.isnan(v):
            return False
    return True


def average(values: Sequence[float]) -> float:
    """Arithmetic mean, 0.0 for an empty sequence."""
    data = _as_array(values)
    if len(data) == 0:
        return 0.0
    return float(np.mean(data))


def calculate_sma(values: Sequence[float], period: int = 20) -> np.ndarray:
    """
    Calculate Simple Moving Average (SMA)

    Args:
        values: Array of prices
        period: SMA period

    Returns:
        Array of SMA values (NaN for insufficient data). All NaN when
        period <= 0 or period exceeds the series length.
    """
    data = _as_array(values)
    n = len(data)
    sma = np.full(n, np.nan)

    if period <= 0 or period > n:
        return sma

    for i in range(period - 1, n):
        sma[i] = np.mean(data[i - period + 1:i + 1])

    return sma


def calculate_ema(values: Sequence[float], period: int = 50) -> np.ndarray:
    """
    Calculate Exponential Moving Average (EMA)

    The first defined value sits at index period-1 and equals the SMA of
    the first `period` values. After that:
        ema[i] = value[i] * k + ema[i-1] * (1 - k),  k = 2 / (period + 1)

    Args:
        values: Array of prices
        period: EMA period

    Returns:
        Array of EMA values (NaN before index period-1)
    """
    data = _as_array(values)
    n = len(data)
    ema = np.full(n, np.nan)

    if period <= 0 or n < period:
        return ema

    # First EMA is SMA
    ema[period - 1] = np.mean(data[:period])

    multiplier = 2 / (period + 1)
    for i in range(period, n):
        ema[i] = data[i] * multiplier + ema[i - 1] * (1 - multiplier)

    return ema


def calculate_rsi(values: Sequence[float], period: int = 14) -> np.ndarray:
    """
    Calculate Relative Strength Index (RSI)

    RSI = 100 - (100 / (1 + RS))
    RS = Average Gain / Average Loss

    Averages are simple means over the trailing `period` price changes
    (no Wilder smoothing). Values are rounded to 2 decimals.

    Args:
        values: Array of close prices
        period: RSI period (default 14)

    Returns:
        Array of RSI values (0-100). Index 0 is always NaN; everything is
        NaN when fewer than period + 1 prices are given.
    """
    data = _as_array(values)
    n = len(data)
    rsi = np.full(n, np.nan)

    if period <= 0 or n < period + 1:
        return rsi

    changes = np.diff(data)
    gains = np.where(changes > 0, changes, 0.0)
    losses = np.where(changes < 0, -changes, 0.0)

    # changes[j] is the move into bar j + 1
    for j in range(period - 1, len(changes)):
        avg_gain = np.mean(gains[j - period + 1:j + 1])
        avg_loss = np.mean(losses[j - period + 1:j + 1])

        if avg_loss == 0:
            rsi[j + 1] = 100.0
        else:
            rs = avg_gain / avg_loss
            value = 100 - (100 / (1 + rs))
            rsi[j + 1] = np.floor(value * 100 + 0.5) / 100

    return rsi


def calculate_macd(
    values: Sequence[float],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9
) -> Dict[str, np.ndarray]:
    """
    Calculate MACD (Moving Average Convergence Divergence).

    Args:
        values: Array of close prices
        fast: Fast EMA period (default 12)
        slow: Slow EMA period (default 26)
        signal: Signal line period (default 9)

    Returns:
        Dict with 'macd_line', 'signal_line', 'histogram' arrays
    """
    ema_fast = calculate_ema(values, fast)
    ema_slow = calculate_ema(values, slow)
    macd_line = ema_fast - ema_slow

    # Signal line runs over the MACD line with the warm-up gap zero-filled
    signal_line = calculate_ema(np.nan_to_num(macd_line, nan=0.0), signal)
    histogram = macd_line - signal_line

    return {
        'macd_line': macd_line,
        'signal_line': signal_line,
        'histogram': histogram
    }


def calculate_bollinger_bands(
    values: Sequence[float],
    period: int = 20,
    std_mult: float = 2.0
) -> Dict[str, np.ndarray]:
    """
    Calculate Bollinger Bands

    Args:
        values: Array of close prices
        period: SMA period (default 20)
        std_mult: Standard deviation multiplier (default 2.0)

    Returns:
        Dict with 'middle', 'upper', 'lower' arrays
    """
    close = _as_array(values)
    n = len(close)

    middle = calculate_sma(close, period)
    upper = np.full(n, np.nan)
    lower = np.full(n, np.nan)

    if period <= 0:
        return {'middle': middle, 'upper': upper, 'lower': lower}

    for i in range(period - 1, n):
        window = close[i - period + 1:i + 1]
        std_dev = np.std(window)  # population std
        upper[i] = middle[i] + (std_mult * std_dev)
        lower[i] = middle[i] - (std_mult * std_dev)

    return {
        'middle': middle,
        'upper': upper,
        'lower': lower
    }


def calculate_atr(
    high: Sequence[float],
    low: Sequence[float],
    close: Sequence[float],
    period: int = 14
) -> np.ndarray:
    """
    Calculate Average True Range (ATR)

    True Range = max(H-L, |H-Cprev|, |L-Cprev|)
    ATR = EMA of True Ranges

    Args:
        high: Array of high prices
        low: Array of low prices
        close: Array of close prices
        period: ATR period (default 14)

    Returns:
        Array of ATR values (NaN before index period-1)
    """
    high = _as_array(high)
    low = _as_array(low)
    close = _as_array(close)

    if not (len(high) == len(low) == len(close)):
        raise ValueError("high, low and close must have the same length")

    n = len(close)
    true_ranges = np.zeros(n)
    if n == 0:
        return true_ranges

    # First bar: simple high-low range
    true_ranges[0] = high[0] - low[0]

    for i in range(1, n):
        tr1 = high[i] - low[i]
        tr2 = abs(high[i] - close[i - 1])
        tr3 = abs(low[i] - close[i - 1])
        true_ranges[i] = max(tr1, tr2, tr3)

    return calculate_ema(true_ranges, period)


def volume_ratio(
    current_volume: float,
    volume_series: Sequence[float],
    lookback: int = VOLUME_LOOKBACK
) -> float:
    """
    Calculate volume ratio vs the trailing average.

    The average covers the last `lookback` entries of `volume_series`,
    including the current bar when it is part of the series.

    Returns:
        Ratio (1.0 = average, 2.0 = 2x average). 1.0 when the average is 0.
    """
    avg_vol = average(_as_array(volume_series)[-lookback:])
    if avg_vol <= 0:
        return 1.0
    return current_volume / avg_vol


def is_volume_spike(volumes: Sequence[float], index: int = -1) -> bool:
    """True when the bar's volume exceeds 1.5x the trailing-20 average."""
    data = _as_array(volumes)
    if len(data) == 0:
        return False
    return volume_ratio(data[index], data) > VOLUME_SPIKE_MULT


# ============= Crossover predicates =============

def crossed_above(prev_a, prev_b, curr_a, curr_b, inclusive: bool = True) -> bool:
    """
    Series A crossed from below B to above B between two samples.

    With inclusive=True the prior sample may touch B (prev_a <= prev_b).
    """
    if not is_defined(prev_a, prev_b, curr_a, curr_b):
        return False
    was_below = prev_a <= prev_b if inclusive else prev_a < prev_b
    return bool(was_below and curr_a > curr_b)


def crossed_below(prev_a, prev_b, curr_a, curr_b, inclusive: bool = True) -> bool:
    """Series A crossed from above B to below B between two samples."""
    if not is_defined(prev_a, prev_b, curr_a, curr_b):
        return False
    was_above = prev_a >= prev_b if inclusive else prev_a > prev_b
    return bool(was_above and curr_a < curr_b)


def crossed_up_through(prev: float, curr: float, level: float) -> bool:
    """Oscillator moved from under `level` to at-or-above it."""
    if not is_defined(prev, curr):
        return False
    return bool(prev < level <= curr)


def crossed_down_through(prev: float, curr: float, level: float) -> bool:
    """Oscillator moved from over `level` to at-or-below it."""
    if not is_defined(prev, curr):
        return False
    return bool(prev > level >= curr)


# ============= Summaries =============

def ma_crossover_signal(short_ma: Sequence[Optional[float]], long_ma: Sequence[Optional[float]]) -> str:
    """
    Classify the relationship between a short and a long moving average.

    Returns: 'BULLISH', 'BEARISH', or 'NEUTRAL'
    """
    short_ma = _as_array(short_ma)
    long_ma = _as_array(long_ma)

    if len(short_ma) < 2 or len(long_ma) < 2:
        return "NEUTRAL"

    prev_short, curr_short = short_ma[-2], short_ma[-1]
    prev_long, curr_long = long_ma[-2], long_ma[-1]

    if not is_defined(prev_short, curr_short, prev_long, curr_long):
        return "NEUTRAL"

    if crossed_above(prev_short, prev_long, curr_short, curr_long):
        return "BULLISH"
    if crossed_below(prev_short, prev_long, curr_short, curr_long):
        return "BEARISH"

    # Current position without crossover
    if curr_short > curr_long:
        return "BULLISH"
    elif curr_short < curr_long:
        return "BEARISH"
    return "NEUTRAL"


def last_value(series: np.ndarray) -> Optional[float]:
    """Last element as a float, None when empty or NaN."""
    if len(series) == 0 or np.isnan(series[-1]):
        return None
    return float(series[-1])


def series_to_list(series: np.ndarray) -> List[Optional[float]]:
    """Convert an indicator array to a JSON-friendly list (NaN -> None)."""
    return [None if np.isnan(v) else float(v) for v in series]


def calculate_indicators(closes: Sequence[float]) -> dict:
    """
    Calculate the per-symbol indicator summary (SMA20, EMA50, RSI14).

    Args:
        closes: Array of close prices

    Returns:
        Dictionary with the full series, the SMA20/EMA50 crossover signal
        and the latest value of each indicator
    """
    sma20 = calculate_sma(closes, 20)
    ema50 = calculate_ema(closes, 50)
    rsi14 = calculate_rsi(closes, 14)
    crossover = ma_crossover_signal(sma20, ema50)

    return {
        "sma20": sma20,
        "ema50": ema50,
        "rsi14": rsi14,
        "crossover_signal": crossover,
        "current_values": {
            "sma20": last_value(sma20),
            "ema50": last_value(ema50),
            "rsi14": last_value(rsi14),
            "crossover_signal": crossover,
        },
    }


def rsi_interpretation(rsi_value: Optional[float]) -> str:
    """
    Classify an RSI reading.

    Returns: 'Overbought', 'Oversold', 'Bullish', 'Bearish' or 'N/A'
    """
    if not is_defined(rsi_value):
        return "N/A"
    if rsi_value >= RSI_OVERBOUGHT:
        return "Overbought"
    if rsi_value <= RSI_OVERSOLD:
        return "Oversold"
    if rsi_value >= 50:
        return "Bullish"
    return "Bearish"
