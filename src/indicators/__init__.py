# Technical Indicators Module
from .indicator_utils import (
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
from .signal_generator import generate_signals, MIN_BARS

__all__ = [
    # Indicator math
    'calculate_sma',
    'calculate_ema',
    'calculate_rsi',
    'calculate_macd',
    'calculate_bollinger_bands',
    'calculate_atr',
    # Summaries
    'calculate_indicators',
    'ma_crossover_signal',
    'rsi_interpretation',
    # Signal Generator
    'generate_signals',
    'MIN_BARS',
]
