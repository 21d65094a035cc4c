"""
Signal Screener - Main Entry Point
==================================

Implements one screening pass:
1. Resolve the universe (tickers and index baskets, capped at 100)
2. For each symbol:
   - Fetch trailing daily bars
   - Evaluate the requested filters at the latest bar
   - Optionally confirm on weekly-resampled bars
   - Score confidence and apply agreement thresholds
3. Rank the surviving rows by confidence

Usage:
    python -m screener.main_screener RELIANCE TCS --filters rsiOversold emaBullish
"""

import argparse
import logging
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import config
from models import Bar, ScreenerRow
from indicators.signal_generator import MIN_BARS
from screener.filters import FilterLike, ScreenerFilter, evaluate_filters, parse_filters
from screener.formulas import has_two_plus_agreement, weighted_confidence_score
from screener.universe import DEFAULT_SYMBOLS, IndexCode, resolve_symbols

logger = logging.getLogger(__name__)

BarFetcher = Callable[[str, int], List[Bar]]

# ============= Configuration =============

WEEK_LENGTH = 5  # Trading days grouped into one weekly bar


@dataclass
class ScreenerOptions:
    """Thresholds and limits for one screener run."""
    require_two_plus: bool = config.DEFAULT_REQUIRE_TWO_PLUS
    min_confidence: float = config.DEFAULT_MIN_CONFIDENCE
    require_weekly_agree: bool = config.DEFAULT_REQUIRE_WEEKLY_AGREE
    bar_count: int = config.SCREENER_BAR_COUNT
    max_symbols: int = config.SCREENER_MAX_SYMBOLS
    max_workers: int = 1

    def __post_init__(self):
        self.min_confidence = max(0.0, min(1.0, float(self.min_confidence)))
        self.max_workers = max(1, int(self.max_workers))


def resample_weekly(bars: Sequence[Bar]) -> List[Bar]:
    """
    Build weekly bars by grouping every 5 consecutive daily bars.

    Groups start at the first bar; the final group may be shorter.
    open=first, high=max, low=min, close=last, volume=sum, and the
    timestamp is taken from the last bar of the group.
    """
    if not bars:
        return []

    df = pd.DataFrame(
        [(b.timestamp, b.open, b.high, b.low, b.close, b.volume or 0.0) for b in bars],
        columns=["timestamp", "open", "high", "low", "close", "volume"],
    )
    groups = df.groupby(np.arange(len(df)) // WEEK_LENGTH)
    weekly = groups.agg(
        timestamp=("timestamp", "last"),
        open=("open", "first"),
        high=("high", "max"),
        low=("low", "min"),
        close=("close", "last"),
        volume=("volume", "sum"),
    )

    return [
        Bar(
            timestamp=row.timestamp.to_pydatetime() if hasattr(row.timestamp, "to_pydatetime") else row.timestamp,
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
        )
        for row in weekly.itertuples(index=False)
    ]


def prepare_universe(
    items: Optional[Iterable[Union[str, IndexCode]]],
    max_symbols: int = config.SCREENER_MAX_SYMBOLS
) -> List[str]:
    """Resolve tickers/index codes into a capped, de-duplicated symbol list."""
    raw = list(items or [])
    if not raw:
        raw = list(DEFAULT_SYMBOLS)
    return resolve_symbols(raw[:max_symbols])[:max_symbols]


def screen_symbol(
    symbol: str,
    fetch_daily_bars: BarFetcher,
    filters: Sequence[FilterLike],
    options: ScreenerOptions
) -> Optional[ScreenerRow]:
    """
    Screen a single symbol.

    Returns a ScreenerRow if the symbol passes every threshold, else None.
    A failing or empty fetch skips the symbol.
    """
    try:
        bars = fetch_daily_bars(symbol, options.bar_count)
    except Exception as e:
        logger.warning(f"{symbol}: bar fetch failed, skipping: {e}")
        return None

    if not bars:
        logger.debug(f"{symbol}: no bars, skipping")
        return None

    evaluation = evaluate_filters(bars, filters)
    if not evaluation.matched:
        return None

    if options.require_two_plus and not has_two_plus_agreement(evaluation.matched).ok:
        return None

    confidence = weighted_confidence_score(evaluation.matched)
    if confidence < options.min_confidence:
        return None

    # Optional weekly confirmation
    if options.require_weekly_agree:
        weekly = evaluate_filters(resample_weekly(bars), filters)
        if not has_two_plus_agreement(weekly.matched).ok:
            logger.debug(f"{symbol}: weekly bars do not agree")
            return None

    return ScreenerRow(
        symbol=symbol,
        price=evaluation.price,
        matched_signals=evaluation.matched,
        confidence=confidence,
    )


def run_screener(
    symbols: Optional[Iterable[Union[str, IndexCode]]],
    filters: Iterable[FilterLike],
    fetch_daily_bars: BarFetcher,
    options: Optional[ScreenerOptions] = None,
    cancel_event: Optional[threading.Event] = None
) -> List[ScreenerRow]:
    """
    Run the screener over a universe of symbols.

    Args:
        symbols: Tickers and/or index codes (empty = default universe)
        filters: Filter ids to evaluate
        fetch_daily_bars: Collaborator returning up to `count` daily bars
        options: Thresholds (defaults from config)
        cancel_event: When set, symbols not yet started are skipped

    Returns:
        Rows sorted by confidence, highest first (ties keep universe order)
    """
    options = options or ScreenerOptions()
    requested = parse_filters(filters)
    universe = prepare_universe(symbols, options.max_symbols)

    logger.info(
        f"Screening {len(universe)} symbols | filters: {[f.value for f in requested]} | "
        f"two-plus: {options.require_two_plus} | min confidence: {options.min_confidence:.2f} | "
        f"weekly: {options.require_weekly_agree}"
    )

    if options.require_weekly_agree and options.bar_count < WEEK_LENGTH * MIN_BARS:
        logger.warning(
            f"Weekly confirmation needs {WEEK_LENGTH * MIN_BARS} daily bars, got bar_count="
            f"{options.bar_count}; no symbol can pass"
        )

    def job(symbol: str) -> Optional[ScreenerRow]:
        if cancel_event is not None and cancel_event.is_set():
            return None
        return screen_symbol(symbol, fetch_daily_bars, requested, options)

    if options.max_workers > 1:
        with ThreadPoolExecutor(max_workers=options.max_workers) as executor:
            futures = [executor.submit(job, symbol) for symbol in universe]
            rows = [future.result() for future in futures]
    else:
        rows = [job(symbol) for symbol in universe]

    results = [row for row in rows if row is not None]

    # Sort by confidence (stable)
    results.sort(key=lambda r: r.confidence, reverse=True)

    if cancel_event is not None and cancel_event.is_set():
        logger.info("Screener cancelled before completion")
    logger.info(f"Screener matched {len(results)}/{len(universe)} symbols")
    return results


def print_result(row: ScreenerRow):
    """Print a formatted screener row to console."""
    print(f"\n{'='*60}")
    print(f"  Symbol:     {row.symbol}")
    print(f"  Price:      {row.price:.2f}")
    print(f"  Confidence: {row.confidence:.2f}")
    for s in row.matched_signals:
        print(f"  - {s.type.value:<4} {s.indicator.value:<9} {s.strength.value:<8} {s.reason}")
    print(f"{'='*60}")


def build_parser() -> argparse.ArgumentParser:
    """CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="nse-screener",
        description="Screen NSE symbols for technical signals",
    )
    parser.add_argument(
        "symbols",
        nargs="*",
        help="Tickers and/or index codes (default: NIFTY50 constituents)",
    )
    parser.add_argument(
        "--filters",
        nargs="*",
        default=[],
        choices=[f.value for f in ScreenerFilter],
        metavar="FILTER",
        help="Filter ids to evaluate",
    )
    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    from market_data import MarketDataManager

    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    args = build_parser().parse_args(argv)

    manager = MarketDataManager()
    try:
        results = run_screener(
            args.symbols,
            args.filters,
            manager.fetch_daily_bars,
            ScreenerOptions(max_workers=config.SCREENER_MAX_WORKERS),
        )
    finally:
        manager.close()

    print("\n" + "=" * 60)
    print(f"SIGNAL SCREENER: {len(results)} match(es)")
    print("=" * 60)
    for row in results:
        print_result(row)


if __name__ == "__main__":
    main()
