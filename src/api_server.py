"""
Signal Screener API Server
==========================

FastAPI server exposing the indicator, signal and screener engine.

Endpoints:
- /health - Liveness check
- /api/stocks/{symbol}/indicators - SMA20 / EMA50 / RSI14 summary
- /api/stocks/{symbol}/signals - Signals on the latest daily bar
- /api/screener - Multi-symbol screener (POST)
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

# Local imports
sys.path.insert(0, str(Path(__file__).parent))

import config
from indicators import calculate_indicators, generate_signals, rsi_interpretation
from indicators.indicator_utils import series_to_list
from market_data import MarketDataManager
from screener.data_store import ResultCache, make_key
from screener.filters import ScreenerFilter
from screener.main_screener import BarFetcher, ScreenerOptions, prepare_universe, run_screener

_handlers: List[logging.Handler] = [logging.StreamHandler()]
if config.LOG_FILE:
    _handlers.append(logging.FileHandler(config.LOG_FILE))

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(levelname)s - %(message)s',
    handlers=_handlers
)
logger = logging.getLogger(__name__)


# ============= Pydantic Models =============

class ScreenerRequest(BaseModel):
    symbols: Optional[List[str]] = None
    filters: Optional[List[ScreenerFilter]] = None
    requireTwoPlus: Optional[bool] = None
    minConfidence: Optional[float] = None
    requireWeeklyAgree: Optional[bool] = None


def _error(status_code: int, error: str, message: str = "") -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "message": message},
    )


# ============= FastAPI App =============

def create_app(
    fetch_daily_bars: Optional[BarFetcher] = None,
    cache: Optional[ResultCache] = None
) -> FastAPI:
    """
    Build the API app.

    Args:
        fetch_daily_bars: Bar collaborator (defaults to MarketDataManager)
        cache: Screener result cache (defaults to a 60s ResultCache)
    """
    manager: Optional[MarketDataManager] = None
    if fetch_daily_bars is None:
        manager = MarketDataManager()
        fetch_daily_bars = manager.fetch_daily_bars

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Release the provider HTTP client owned by this app
        if manager is not None:
            manager.close()
            logger.info("Market data client closed")

    app = FastAPI(
        title="NSE Signal Screener API",
        description="Technical indicators, trade signals and multi-symbol screening",
        version="1.0.0",
        lifespan=lifespan
    )

    # CORS for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    result_cache = cache if cache is not None else ResultCache(ttl_seconds=config.SCREENER_CACHE_TTL)

    # ============= Health Check =============

    @app.get("/health")
    def health_check():
        return {"status": "healthy", "timestamp": datetime.now().isoformat()}

    # ============= Stock Endpoints =============

    @app.get("/api/stocks/{symbol}/indicators")
    def get_indicators(symbol: str):
        """SMA20 / EMA50 / RSI14 series and latest values for a symbol."""
        symbol = symbol.upper()
        try:
            bars = fetch_daily_bars(symbol, config.SCREENER_BAR_COUNT)
            result = calculate_indicators([b.close for b in bars])
            current = result["current_values"]

            return {
                "success": True,
                "symbol": symbol,
                "count": len(bars),
                "indicators": {
                    "sma20": series_to_list(result["sma20"]),
                    "ema50": series_to_list(result["ema50"]),
                    "rsi14": series_to_list(result["rsi14"]),
                    "crossoverSignal": result["crossover_signal"],
                },
                "currentValues": {
                    "sma20": current["sma20"],
                    "ema50": current["ema50"],
                    "rsi14": current["rsi14"],
                    "rsiInterpretation": rsi_interpretation(current["rsi14"]),
                    "crossoverSignal": current["crossover_signal"],
                },
                "timestamp": datetime.now().isoformat(),
            }
        except Exception as e:
            logger.error(f"API Error - Indicators for {symbol}: {e}")
            return _error(500, "Failed to compute indicators", str(e))

    @app.get("/api/stocks/{symbol}/signals")
    def get_signals(symbol: str):
        """Trade signals on the latest daily bar."""
        symbol = symbol.upper()
        try:
            bars = fetch_daily_bars(symbol, config.SCREENER_BAR_COUNT)
            signals = generate_signals(bars)

            return {
                "success": True,
                "symbol": symbol,
                "count": len(signals),
                "signals": [s.to_dict() for s in signals],
                "timestamp": datetime.now().isoformat(),
            }
        except Exception as e:
            logger.error(f"API Error - Signals for {symbol}: {e}")
            return _error(500, "Failed to generate signals", str(e))

    # ============= Screener Endpoint =============

    @app.post("/api/screener")
    def screener(request: ScreenerRequest):
        """Run the screener over tickers and/or index codes."""
        try:
            symbols = prepare_universe(request.symbols, config.SCREENER_MAX_SYMBOLS)
            filters = request.filters or []

            options = ScreenerOptions(
                require_two_plus=(config.DEFAULT_REQUIRE_TWO_PLUS
                                  if request.requireTwoPlus is None else request.requireTwoPlus),
                min_confidence=(config.DEFAULT_MIN_CONFIDENCE
                                if request.minConfidence is None else request.minConfidence),
                require_weekly_agree=(config.DEFAULT_REQUIRE_WEEKLY_AGREE
                                      if request.requireWeeklyAgree is None else request.requireWeeklyAgree),
                max_workers=config.SCREENER_MAX_WORKERS,
            )

            cache_key = make_key(symbols, filters, options)
            cached = result_cache.get(cache_key)
            if cached is not None:
                return {
                    "success": True,
                    "cached": True,
                    "results": cached,
                    "timestamp": datetime.now().isoformat(),
                }

            rows = run_screener(symbols, filters, fetch_daily_bars, options)
            results = [row.to_dict() for row in rows]
            result_cache.set(cache_key, results)

            return {
                "success": True,
                "cached": False,
                "results": results,
                "timestamp": datetime.now().isoformat(),
            }
        except Exception as e:
            logger.error(f"Screener API error: {e}")
            return _error(500, "Failed to run screener", str(e))

    return app


app = create_app()


# ============= Run Server =============

if __name__ == "__main__":
    import uvicorn

    print("=" * 60)
    print("NSE Signal Screener API Server")
    print("=" * 60)
    print(f"Providers: {', '.join(config.DATA_PROVIDERS)}")
    print(f"Cache TTL: {config.SCREENER_CACHE_TTL}s")
    print("=" * 60)

    uvicorn.run(
        "api_server:app",
        host=config.API_HOST,
        port=config.API_PORT,
        reload=True
    )
