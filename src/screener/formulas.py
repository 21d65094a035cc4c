"""
Screener Formulas
=================

Scoring for screener candidates:
- Confidence = mean strength weight (weak 0.6, moderate 0.8, strong 1.0)
- Two-plus agreement = 2+ indicator families pointing the same way
- Weighted confidence = per-family strength scaled by directional alignment
"""

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Set

from models import SignalIndicator, SignalType, TradeSignal


@dataclass
class AgreementResult:
    """Outcome of the two-plus agreement check."""
    ok: bool
    side: Optional[SignalType] = None
    families: int = 0


def confidence_score(signals: Sequence[TradeSignal]) -> float:
    """
    Simple confidence: average strength weight of all matched signals.

    Returns:
        Score in [0, 1], rounded to 2 decimals (0 when nothing matched)

    Example:
        >>> confidence_score([moderate_rsi, strong_ema])
        0.9
    """
    if not signals:
        return 0.0
    avg = sum(s.strength.weight for s in signals) / len(signals)
    return round(avg, 2)


def _families_by_side(signals: Sequence[TradeSignal]) -> Dict[SignalType, Set[SignalIndicator]]:
    sides: Dict[SignalType, Set[SignalIndicator]] = {SignalType.BUY: set(), SignalType.SELL: set()}
    for s in signals:
        sides[s.type].add(s.indicator)
    return sides


def has_two_plus_agreement(signals: Sequence[TradeSignal]) -> AgreementResult:
    """
    Check that at least two independent indicator families agree.

    A side is confirmed when it has 2+ distinct families and strictly
    more families than the opposite side. One family never qualifies,
    however strong its signals; equal counts on both sides are a conflict.
    """
    sides = _families_by_side(signals)
    buy = len(sides[SignalType.BUY])
    sell = len(sides[SignalType.SELL])

    if buy > sell:
        side, count = SignalType.BUY, buy
    elif sell > buy:
        side, count = SignalType.SELL, sell
    else:
        return AgreementResult(ok=False, side=None, families=buy)

    return AgreementResult(ok=count >= 2, side=side, families=count)


def weighted_confidence_score(signals: Sequence[TradeSignal]) -> float:
    """
    Family-weighted confidence.

    Each indicator family contributes the weight of its strongest signal,
    so the same condition reported twice does not count double. The mean
    family weight is then scaled by alignment: the share of families on
    the dominant side.

    Returns:
        Score in [0, 1], rounded to 2 decimals (0 when nothing matched)

    Example:
        strong EMA BUY + moderate RSI BUY  -> (1.0 + 0.8) / 2 * 2/2 = 0.9
        strong EMA BUY + moderate RSI SELL -> (1.0 + 0.8) / 2 * 1/2 = 0.45
    """
    if not signals:
        return 0.0

    best: Dict[SignalIndicator, float] = {}
    for s in signals:
        best[s.indicator] = max(best.get(s.indicator, 0.0), s.strength.weight)

    base = sum(best.values()) / len(best)

    sides = _families_by_side(signals)
    dominant = max(len(sides[SignalType.BUY]), len(sides[SignalType.SELL]))
    alignment = dominant / len(best)

    return round(base * alignment, 2)
