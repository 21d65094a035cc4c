"""
Screener Universe
=================

Index baskets and symbol resolution for the screener.

Raw tickers are upper-cased; index codes expand to their constituents.
"""

from enum import Enum
from typing import Dict, Iterable, List, Union


class IndexCode(Enum):
    """Named index baskets accepted in place of raw tickers."""
    NIFTY50 = "NIFTY50"
    NIFTY100 = "NIFTY100"
    NIFTY200 = "NIFTY200"
    NIFTY500 = "NIFTY500"
    MIDCAP = "MIDCAP"
    SMALLCAP = "SMALLCAP"


NIFTY50_CONSTITUENTS = [
    'RELIANCE', 'TCS', 'HDFCBANK', 'INFY', 'ICICIBANK', 'HINDUNILVR', 'BHARTIARTL', 'ITC',
    'KOTAKBANK', 'LT', 'SBIN', 'ASIANPAINT', 'MARUTI', 'BAJFINANCE', 'HCLTECH', 'AXISBANK',
    'WIPRO', 'ONGC', 'TATAMOTORS', 'SUNPHARMA', 'ULTRACEMCO', 'TECHM', 'TITAN', 'POWERGRID',
    'NESTLEIND', 'JSWSTEEL', 'NTPC', 'BAJAJFINSV', 'DRREDDY', 'TATACONSUM', 'HEROMOTOCO',
    'BRITANNIA', 'COALINDIA', 'CIPLA', 'DIVISLAB', 'EICHERMOT', 'GRASIM', 'HINDALCO',
    'INDUSINDBK', 'SHREECEM', 'TATASTEEL', 'ADANIPORTS', 'APOLLOHOSP', 'BPCL', 'GODREJCP',
    'HDFCLIFE', 'ICICIPRULI', 'SBILIFE', 'M&M', 'PIDILITIND',
]

# Curated sets keep fetches bounded; the broader indices are not populated yet
INDICES: Dict[IndexCode, List[str]] = {
    IndexCode.NIFTY50: NIFTY50_CONSTITUENTS,
    IndexCode.NIFTY100: [],
    IndexCode.NIFTY200: [],
    IndexCode.NIFTY500: [],
    IndexCode.MIDCAP: [],
    IndexCode.SMALLCAP: [],
}

DEFAULT_SYMBOLS: List[str] = list(NIFTY50_CONSTITUENTS)


def _as_index(item: Union[str, IndexCode]):
    if isinstance(item, IndexCode):
        return item
    try:
        return IndexCode(str(item).upper())
    except ValueError:
        return None


def resolve_symbols(items: Iterable[Union[str, IndexCode]]) -> List[str]:
    """
    Expand index codes and normalize tickers.

    Returns:
        Unique symbols in first-seen order
    """
    seen: Dict[str, None] = {}
    for item in items:
        index = _as_index(item)
        if index is not None:
            for symbol in INDICES[index]:
                seen.setdefault(symbol, None)
        else:
            symbol = str(item).strip().upper()
            if symbol:
                seen.setdefault(symbol, None)
    return list(seen)
