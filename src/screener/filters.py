"""
Screener Filters
================

Evaluates a requested set of screener filters against the latest bar.

Each filter maps to one rule on the most recent bar. After the rule pass
the full signal generator runs over the same bars and any generated
signal from an indicator family the caller asked about is merged in, so
the same underlying condition may appear twice with different wording.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Sequence, Set, Union

import numpy as np

from models import Bar, SignalIndicator, SignalStrength, SignalType, TradeSignal, bars_to_arrays
from indicators.indicator_utils import (
    RSI_OVERBOUGHT,
    RSI_OVERSOLD,
    average,
    calculate_atr,
    calculate_bollinger_bands,
    calculate_ema,
    calculate_macd,
    calculate_rsi,
    crossed_above,
    crossed_below,
    crossed_up_through,
    is_defined,
    is_volume_spike,
)
from indicators.signal_generator import MIN_BARS, generate_signals

logger = logging.getLogger(__name__)

ATR_SPIKE_MULT = 1.5
ATR_AVG_LOOKBACK = 20
REVERSAL_LOOKBACK = 3


class ScreenerFilter(Enum):
    """Screener filter identifiers."""
    RSI_OVERSOLD = "rsiOversold"
    RSI_OVERBOUGHT = "rsiOverbought"
    EMA_BULLISH = "emaBullish"
    EMA_BEARISH = "emaBearish"
    MACD_BULLISH = "macdBullish"
    MACD_BEARISH = "macdBearish"
    BB_BREAKOUT_UP = "bbBreakoutUp"
    BB_BREAKDOWN = "bbBreakdown"
    ATR_SPIKE = "atrSpike"
    TREND_REVERSAL = "trendReversal"

    @property
    def family(self) -> SignalIndicator:
        """Indicator family the filter belongs to."""
        return _FILTER_FAMILIES[self]


_FILTER_FAMILIES = {
    ScreenerFilter.RSI_OVERSOLD: SignalIndicator.RSI,
    ScreenerFilter.RSI_OVERBOUGHT: SignalIndicator.RSI,
    ScreenerFilter.EMA_BULLISH: SignalIndicator.EMA,
    ScreenerFilter.EMA_BEARISH: SignalIndicator.EMA,
    ScreenerFilter.TREND_REVERSAL: SignalIndicator.EMA,
    ScreenerFilter.MACD_BULLISH: SignalIndicator.MACD,
    ScreenerFilter.MACD_BEARISH: SignalIndicator.MACD,
    ScreenerFilter.BB_BREAKOUT_UP: SignalIndicator.BOLLINGER,
    ScreenerFilter.BB_BREAKDOWN: SignalIndicator.BOLLINGER,
    ScreenerFilter.ATR_SPIKE: SignalIndicator.ATR,
}

FilterLike = Union[ScreenerFilter, str]


@dataclass
class FilterEvaluation:
    """Matched signals plus the latest close."""
    matched: List[TradeSignal] = field(default_factory=list)
    price: float = 0.0


def parse_filters(filters: Iterable[FilterLike]) -> List[ScreenerFilter]:
    """
    Coerce filter ids to ScreenerFilter members.

    Raises:
        ValueError: on an unknown filter id
    """
    parsed = []
    for f in filters:
        parsed.append(f if isinstance(f, ScreenerFilter) else ScreenerFilter(f))
    return parsed


def required_families(filters: Iterable[ScreenerFilter]) -> Set[SignalIndicator]:
    """Indicator families implied by a filter set."""
    return {f.family for f in filters}


def evaluate_filters(bars: Sequence[Bar], filters: Iterable[FilterLike]) -> FilterEvaluation:
    """
    Evaluate screener filters at the latest bar.

    Args:
        bars: Daily (or resampled) bars in ascending time order
        filters: Filter ids to evaluate

    Returns:
        FilterEvaluation with matched signals and the latest close.
        Fewer than 30 bars gives no matches and a price of 0.
    """
    requested = parse_filters(filters)

    if not bars or len(bars) < MIN_BARS:
        return FilterEvaluation(matched=[], price=0.0)

    highs, lows, closes, volumes = bars_to_arrays(bars)
    i = len(bars) - 1
    prev = i - 1
    price = float(closes[i])
    ts = bars[i].timestamp

    rsi14 = calculate_rsi(closes, 14)
    ema20 = calculate_ema(closes, 20)
    ema50 = calculate_ema(closes, 50)
    macd = calculate_macd(closes, 12, 26, 9)
    macd_line, signal_line = macd['macd_line'], macd['signal_line']
    bb = calculate_bollinger_bands(closes, 20, 2.0)
    atr14 = calculate_atr(highs, lows, closes, 14)
    recent_atr = atr14[-ATR_AVG_LOOKBACK:]
    atr_avg20 = average(recent_atr[~np.isnan(recent_atr)])

    matched: List[TradeSignal] = []

    def add(signal_type: SignalType, indicator: SignalIndicator, reason: str,
            strength: SignalStrength = SignalStrength.MODERATE):
        matched.append(TradeSignal(signal_type, indicator, strength, reason, ts))

    for f in requested:
        if f is ScreenerFilter.RSI_OVERSOLD:
            val = rsi14[i]
            if is_defined(val) and val < RSI_OVERSOLD:
                add(SignalType.BUY, SignalIndicator.RSI, f"RSI oversold at {val:.1f}")

        elif f is ScreenerFilter.RSI_OVERBOUGHT:
            val = rsi14[i]
            if is_defined(val) and val > RSI_OVERBOUGHT:
                add(SignalType.SELL, SignalIndicator.RSI, f"RSI overbought at {val:.1f}")

        elif f is ScreenerFilter.EMA_BULLISH:
            if is_defined(ema20[i], ema50[i]) and price > ema20[i] > ema50[i]:
                add(SignalType.BUY, SignalIndicator.EMA, "Price > EMA20 and EMA20 > EMA50",
                    SignalStrength.STRONG)

        elif f is ScreenerFilter.EMA_BEARISH:
            if is_defined(ema20[i], ema50[i]) and price < ema20[i] < ema50[i]:
                add(SignalType.SELL, SignalIndicator.EMA, "Price < EMA20 and EMA20 < EMA50",
                    SignalStrength.STRONG)

        elif f is ScreenerFilter.MACD_BULLISH:
            if crossed_above(macd_line[prev], signal_line[prev], macd_line[i], signal_line[i]):
                add(SignalType.BUY, SignalIndicator.MACD, "MACD crossed above signal")

        elif f is ScreenerFilter.MACD_BEARISH:
            if crossed_below(macd_line[prev], signal_line[prev], macd_line[i], signal_line[i]):
                add(SignalType.SELL, SignalIndicator.MACD, "MACD crossed below signal")

        elif f is ScreenerFilter.BB_BREAKOUT_UP:
            upper = bb['upper'][i]
            if is_defined(upper) and price > upper and is_volume_spike(volumes, i):
                add(SignalType.BUY, SignalIndicator.BOLLINGER, "Upper band breakout with volume spike",
                    SignalStrength.STRONG)

        elif f is ScreenerFilter.BB_BREAKDOWN:
            lower = bb['lower'][i]
            if is_defined(lower) and price < lower and is_volume_spike(volumes, i):
                add(SignalType.SELL, SignalIndicator.BOLLINGER, "Lower band breakdown with volume spike",
                    SignalStrength.STRONG)

        elif f is ScreenerFilter.ATR_SPIKE:
            curr = atr14[i]
            if is_defined(curr) and atr_avg20 > 0 and curr > ATR_SPIKE_MULT * atr_avg20:
                add(SignalType.BUY, SignalIndicator.ATR, f"ATR spike ({curr:.2f} > 1.5×avg)")

        elif f is ScreenerFilter.TREND_REVERSAL:
            if _rsi_reversal(rsi14, i) and _recent_ema_cross(closes, ema20, i):
                add(SignalType.BUY, SignalIndicator.EMA, "Trend reversal (RSI up + EMA20 cross)",
                    SignalStrength.STRONG)

    # Merge generated signals from the requested indicator families
    families = required_families(requested)
    for s in generate_signals(bars):
        if s.indicator in families:
            matched.append(s)

    return FilterEvaluation(matched=matched, price=price)


def _rsi_reversal(rsi14, i: int) -> bool:
    """RSI crossed up through 30 on the last bar."""
    return crossed_up_through(rsi14[i - 1], rsi14[i], RSI_OVERSOLD)


def _recent_ema_cross(closes, ema20, i: int) -> bool:
    """Close crossed above EMA20 on one of the 3 bars before the last."""
    for k in range(1, REVERSAL_LOOKBACK + 1):
        if i - k < 1:
            break
        if crossed_above(closes[i - k - 1], ema20[i - k - 1], closes[i - k], ema20[i - k], inclusive=False):
            return True
    return False
