"""
Data Models for the Signal Screener
===================================

Contains:
- Bar: One OHLCV observation
- SignalType / SignalIndicator / SignalStrength: Trade signal vocabulary
- TradeSignal: A discrete BUY/SELL event detected at the latest bar
- ScreenerRow: One ranked screener result
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np


class SignalType(Enum):
    """Trade direction."""
    BUY = "BUY"
    SELL = "SELL"


class SignalIndicator(Enum):
    """Indicator family that produced a signal."""
    RSI = "RSI"
    EMA = "EMA"
    MACD = "MACD"
    BOLLINGER = "BOLLINGER"
    ATR = "ATR"


class SignalStrength(Enum):
    """Signal strength classification."""
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"

    @property
    def weight(self) -> float:
        """Confidence weight used by the screener formulas."""
        return _STRENGTH_WEIGHTS[self]


_STRENGTH_WEIGHTS = {
    SignalStrength.WEAK: 0.6,
    SignalStrength.MODERATE: 0.8,
    SignalStrength.STRONG: 1.0,
}


@dataclass(frozen=True)
class Bar:
    """
    OHLCV bar for one trading period.

    Bars are produced by the market data layer in ascending time order
    and never mutated afterwards.
    """
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


@dataclass
class TradeSignal:
    """BUY/SELL event detected at the most recent bar."""
    type: SignalType
    indicator: SignalIndicator
    strength: SignalStrength
    reason: str
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "indicator": self.indicator.value,
            "strength": self.strength.value,
            "reason": self.reason,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class ScreenerRow:
    """Single screener result, ranked by confidence."""
    symbol: str
    price: float
    matched_signals: List[TradeSignal] = field(default_factory=list)
    confidence: float = 0.0
    name: Optional[str] = None

    def to_dict(self) -> dict:
        row = {
            "symbol": self.symbol,
            "price": self.price,
            "matchedSignals": [s.to_dict() for s in self.matched_signals],
            "confidence": self.confidence,
        }
        if self.name:
            row["name"] = self.name
        return row


def bars_to_arrays(bars: Sequence[Bar]) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Split bars into index-aligned price arrays.

    Returns:
        Tuple of (highs, lows, closes, volumes)
    """
    highs = np.array([b.high for b in bars], dtype=float)
    lows = np.array([b.low for b in bars], dtype=float)
    closes = np.array([b.close for b in bars], dtype=float)
    volumes = np.array([b.volume or 0.0 for b in bars], dtype=float)
    return highs, lows, closes, volumes
