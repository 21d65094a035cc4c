"""
Technical Signal Generator

Detects discrete BUY/SELL events at the most recent bar of a daily series.

Signal Flow:
1. RSI(14) crossing back through 30 / 70
2. Price crossing EMA20 (moderate) and EMA50 (strong)
3. MACD(12, 26, 9) crossing its signal line
4. Bollinger(20, 2) breakout confirmed by a volume spike
5. Trend context (SMA50 vs SMA200) and volatility context (ATR14)
   adjust the strength of everything that fired
"""
import logging
from typing import List, Sequence

from models import Bar, SignalIndicator, SignalStrength, SignalType, TradeSignal, bars_to_arrays
from .indicator_utils import (
    RSI_OVERBOUGHT,
    RSI_OVERSOLD,
    calculate_atr,
    calculate_bollinger_bands,
    calculate_ema,
    calculate_macd,
    calculate_rsi,
    calculate_sma,
    crossed_above,
    crossed_below,
    crossed_down_through,
    crossed_up_through,
    is_defined,
    is_volume_spike,
)

logger = logging.getLogger(__name__)

# Minimum history before any signal is evaluated
MIN_BARS = 30


def generate_signals(bars: Sequence[Bar]) -> List[TradeSignal]:
    """
    Generate trade signals for the latest bar.

    Args:
        bars: Daily bars in ascending time order

    Returns:
        Signals that fired on the last bar (empty when fewer than 30 bars)
    """
    if not bars or len(bars) < MIN_BARS:
        return []

    highs, lows, closes, volumes = bars_to_arrays(bars)

    rsi14 = calculate_rsi(closes, 14)
    ema20 = calculate_ema(closes, 20)
    ema50 = calculate_ema(closes, 50)
    sma50 = calculate_sma(closes, 50)
    sma200 = calculate_sma(closes, 200)
    macd = calculate_macd(closes, 12, 26, 9)
    bb = calculate_bollinger_bands(closes, 20, 2.0)
    atr14 = calculate_atr(highs, lows, closes, 14)

    i = len(bars) - 1
    prev = i - 1
    ts = bars[i].timestamp
    close = closes[i]
    signals: List[TradeSignal] = []

    def add(signal_type: SignalType, indicator: SignalIndicator, strength: SignalStrength, reason: str):
        signals.append(TradeSignal(signal_type, indicator, strength, reason, ts))

    # 1) RSI crossing 30/70
    p, c = rsi14[prev], rsi14[i]
    if crossed_up_through(p, c, RSI_OVERSOLD):
        strength = SignalStrength.MODERATE if c < 40 else SignalStrength.WEAK
        add(SignalType.BUY, SignalIndicator.RSI, strength, f"RSI crossed up 30 ({p:.1f}→{c:.1f})")
    elif crossed_down_through(p, c, RSI_OVERBOUGHT):
        strength = SignalStrength.MODERATE if c > 60 else SignalStrength.WEAK
        add(SignalType.SELL, SignalIndicator.RSI, strength, f"RSI crossed down 70 ({p:.1f}→{c:.1f})")

    # 2) Price crossing EMA20 / EMA50
    for ema, label, strength in (
        (ema20, "EMA20", SignalStrength.MODERATE),
        (ema50, "EMA50", SignalStrength.STRONG),
    ):
        if crossed_above(closes[prev], ema[prev], close, ema[i], inclusive=False):
            add(SignalType.BUY, SignalIndicator.EMA, strength, f"Price crossed above {label}")
        elif crossed_below(closes[prev], ema[prev], close, ema[i], inclusive=False):
            add(SignalType.SELL, SignalIndicator.EMA, strength, f"Price crossed below {label}")

    # 3) MACD crossing signal line
    macd_line, signal_line = macd['macd_line'], macd['signal_line']
    if crossed_above(macd_line[prev], signal_line[prev], macd_line[i], signal_line[i]):
        add(SignalType.BUY, SignalIndicator.MACD, SignalStrength.MODERATE, "MACD crossed above Signal")
    elif crossed_below(macd_line[prev], signal_line[prev], macd_line[i], signal_line[i]):
        add(SignalType.SELL, SignalIndicator.MACD, SignalStrength.MODERATE, "MACD crossed below Signal")

    # 4) Bollinger breakout with volume spike
    upper, lower = bb['upper'][i], bb['lower'][i]
    if is_defined(upper, lower) and is_volume_spike(volumes, i):
        if close > upper:
            add(SignalType.BUY, SignalIndicator.BOLLINGER, SignalStrength.STRONG,
                "Upper band breakout with volume spike")
        elif close < lower:
            add(SignalType.SELL, SignalIndicator.BOLLINGER, SignalStrength.STRONG,
                "Lower band breakdown with volume spike")

    # Trend context: SMA50 vs SMA200
    if is_defined(sma50[i], sma200[i]):
        trend_up = sma50[i] > sma200[i]
        for s in signals:
            if s.strength == SignalStrength.STRONG:
                continue
            if s.type == SignalType.BUY and trend_up:
                s.strength = SignalStrength.MODERATE
            elif s.type == SignalType.SELL and not trend_up:
                s.strength = SignalStrength.MODERATE

    # Volatility context: a move larger than one ATR is strong
    if is_defined(atr14[i]) and abs(close - closes[prev]) > atr14[i]:
        for s in signals:
            s.strength = SignalStrength.STRONG

    if signals:
        logger.debug(f"{len(signals)} signal(s) at {ts}: " + ", ".join(
            f"{s.type.value} {s.indicator.value} ({s.strength.value})" for s in signals))

    return signals

