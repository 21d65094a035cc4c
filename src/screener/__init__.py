# Screener package
"""
Multi-Symbol Signal Screener
============================

Components:
- filters.py: Filter ids and per-bar filter evaluation
- formulas.py: Confidence and two-plus agreement scoring
- universe.py: Index baskets and symbol resolution
- data_store.py: TTL result cache
- main_screener.py: Orchestrator and entry point

Usage:
    python -m screener.main_screener RELIANCE TCS --filters rsiOversold emaBullish
"""

from .filters import (
    ScreenerFilter,
    FilterEvaluation,
    evaluate_filters
)

from .formulas import (
    AgreementResult,
    confidence_score,
    has_two_plus_agreement,
    weighted_confidence_score
)

from .universe import (
    IndexCode,
    INDICES,
    DEFAULT_SYMBOLS,
    resolve_symbols
)

from .data_store import ResultCache, make_key

__all__ = [
    "ScreenerFilter",
    "FilterEvaluation",
    "evaluate_filters",
    "AgreementResult",
    "confidence_score",
    "has_two_plus_agreement",
    "weighted_confidence_score",
    "IndexCode",
    "INDICES",
    "DEFAULT_SYMBOLS",
    "resolve_symbols",
    "ResultCache",
    "make_key"
]
