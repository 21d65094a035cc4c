"""
Market Data Providers
=====================

Daily OHLCV bars for NSE/BSE symbols.

Providers:
- YahooFinanceProvider: free chart API (NSE symbols with .NS suffix)
- AlphaVantageProvider: TIME_SERIES_DAILY on .BSE symbols (needs API key)

MarketDataManager tries providers in the configured order and returns
the first non-empty result. Providers are selected by the DataProvider
enum. There are no retries here; a failing provider yields [] and the
next one is tried.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional, Sequence

import httpx
import pandas as pd

import config
from models import Bar

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)

OHLC_COLUMNS = ["open", "high", "low", "close"]


class DataProvider(Enum):
    """Supported daily-bar providers."""
    YAHOO = "yahoo"
    ALPHA_VANTAGE = "alpha_vantage"


def create_http_client(timeout: float = config.HTTP_TIMEOUT) -> httpx.Client:
    """HTTP client shared by all providers."""
    return httpx.Client(
        timeout=timeout,
        headers={"Content-Type": "application/json", "User-Agent": USER_AGENT},
        follow_redirects=True,
    )


def frame_to_bars(df: pd.DataFrame, count: int) -> List[Bar]:
    """
    Convert an OHLCV frame (indexed by timestamp) into the last `count` bars.

    Rows missing any OHLC value are dropped; missing volume becomes 0.
    """
    if df.empty:
        return []

    df = df.dropna(subset=OHLC_COLUMNS).sort_index()
    df = df.assign(volume=df["volume"].fillna(0.0))
    df = df[~df.index.duplicated(keep="last")].tail(count)

    return [
        Bar(
            timestamp=row.Index.to_pydatetime(),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
        )
        for row in df.itertuples()
    ]


def _yahoo_range(count: int) -> str:
    """Smallest chart range that covers `count` trading days."""
    for days, label in ((20, "1mo"), (60, "3mo"), (120, "6mo"), (250, "1y"), (500, "2y")):
        if count <= days:
            return label
    return "5y"


class YahooFinanceProvider:
    """Yahoo Finance chart API (free, limited)."""

    provider = DataProvider.YAHOO

    def __init__(self, client: httpx.Client, base_url: str = config.YAHOO_FINANCE_BASE_URL):
        self.client = client
        self.base_url = base_url.rstrip("/")

    @staticmethod
    def to_yahoo_symbol(symbol: str) -> str:
        if symbol.endswith(".NS") or symbol.endswith(".BO"):
            return symbol
        return f"{symbol}.NS"

    def get_daily_bars(self, symbol: str, count: int) -> List[Bar]:
        """
        Fetch up to `count` trailing daily bars.

        Returns:
            Bars in ascending time order, [] on any failure
        """
        y_symbol = self.to_yahoo_symbol(symbol)
        url = f"{self.base_url}/v8/finance/chart/{y_symbol}"

        try:
            resp = self.client.get(url, params={"interval": "1d", "range": _yahoo_range(count)})
            resp.raise_for_status()
            result = (resp.json().get("chart") or {}).get("result") or []
            if not result:
                return []

            data = result[0]
            timestamps = data.get("timestamp") or []
            quote = ((data.get("indicators") or {}).get("quote") or [{}])[0]

            df = pd.DataFrame(
                {col: quote.get(col) or [None] * len(timestamps) for col in OHLC_COLUMNS + ["volume"]},
                index=pd.to_datetime(timestamps, unit="s", utc=True),
                dtype=float,
            )
            return frame_to_bars(df, count)

        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Yahoo daily bars failed for {symbol}: {e}")
            return []


class AlphaVantageProvider:
    """Alpha Vantage daily time series (free tier, API key required)."""

    provider = DataProvider.ALPHA_VANTAGE

    def __init__(
        self,
        client: httpx.Client,
        base_url: str = config.ALPHA_VANTAGE_BASE_URL,
        api_key: str = config.ALPHA_VANTAGE_API_KEY
    ):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key

    def get_daily_bars(self, symbol: str, count: int) -> List[Bar]:
        if not self.api_key:
            return []

        try:
            resp = self.client.get(
                f"{self.base_url}/query",
                params={
                    "function": "TIME_SERIES_DAILY",
                    "symbol": f"{symbol}.BSE",
                    "outputsize": "compact" if count <= 100 else "full",
                    "apikey": self.api_key,
                },
            )
            resp.raise_for_status()
            series = resp.json().get("Time Series (Daily)")
            if not series:
                return []

            df = pd.DataFrame.from_dict(series, orient="index").rename(columns={
                "1. open": "open",
                "2. high": "high",
                "3. low": "low",
                "4. close": "close",
                "5. volume": "volume",
            })
            df.index = pd.to_datetime(df.index, utc=True)
            df = df[OHLC_COLUMNS + ["volume"]].apply(pd.to_numeric, errors="coerce")
            return frame_to_bars(df, count)

        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Alpha Vantage daily bars failed for {symbol}: {e}")
            return []


PROVIDER_CLASSES = {
    DataProvider.YAHOO: YahooFinanceProvider,
    DataProvider.ALPHA_VANTAGE: AlphaVantageProvider,
}


def providers_from_config(names: Sequence[str] = config.DATA_PROVIDERS) -> List[DataProvider]:
    """Parse configured provider names, skipping unknown entries."""
    providers = []
    for name in names:
        try:
            providers.append(DataProvider(name))
        except ValueError:
            logger.warning(f"Unknown data provider in config: {name}")
    return providers


class MarketDataManager:
    """
    Provider fallback chain for daily bars.

    Usage:
        manager = MarketDataManager()
        bars = manager.fetch_daily_bars('RELIANCE', 120)
    """

    def __init__(
        self,
        providers: Optional[Sequence[DataProvider]] = None,
        client: Optional[httpx.Client] = None
    ):
        self._owns_client = client is None
        self.client = client or create_http_client()
        order = list(providers) if providers is not None else providers_from_config()
        self.providers: Dict[DataProvider, object] = {
            p: PROVIDER_CLASSES[p](self.client) for p in order
        }
        logger.info(f"Market data providers: {[p.value for p in self.providers]}")

    def fetch_daily_bars(self, symbol: str, count: int) -> List[Bar]:
        """Return the first non-empty bar list across providers."""
        for provider, impl in self.providers.items():
            bars = impl.get_daily_bars(symbol, count)
            if bars:
                logger.debug(f"{symbol}: {len(bars)} bars from {provider.value}")
                return bars
        logger.warning(f"{symbol}: no daily bars from any provider")
        return []

    def close(self):
        if self._owns_client:
            self.client.close()
