"""
Test API Server
===============

FastAPI endpoints with an injected bar fetcher and result cache.
"""

import sys
import threading
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import api_server
from api_server import create_app
from screener.data_store import ResultCache

from bar_factory import breakout_bars, declining_bars, rising_bars


class CountingFetcher:
    def __init__(self, data, failing=()):
        self.data = data
        self.failing = set(failing)
        self.calls = 0
        self._lock = threading.Lock()

    def __call__(self, symbol, count):
        with self._lock:
            self.calls += 1
        if symbol in self.failing:
            raise ConnectionError("provider down")
        return self.data.get(symbol, [])[-count:]


@pytest.fixture
def fetcher():
    return CountingFetcher(
        {"JUMP": breakout_bars(60), "DOWN": declining_bars(60), "UP": rising_bars(60)},
        failing=["BROKEN"],
    )


@pytest.fixture
def client(fetcher):
    return TestClient(create_app(fetch_daily_bars=fetcher, cache=ResultCache(ttl_seconds=60)))


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestStockEndpoints:

    def test_indicators(self, client):
        response = client.get("/api/stocks/up/indicators")
        body = response.json()

        assert response.status_code == 200
        assert body["success"] is True
        assert body["symbol"] == "UP"
        assert body["count"] == 60
        assert len(body["indicators"]["rsi14"]) == 60
        assert body["indicators"]["sma20"][0] is None
        assert body["currentValues"]["rsi14"] == 100.0
        assert body["currentValues"]["rsiInterpretation"] == "Overbought"
        assert body["currentValues"]["crossoverSignal"] == "BULLISH"

    def test_signals(self, client):
        body = client.get("/api/stocks/JUMP/signals").json()

        assert body["success"] is True
        assert body["count"] == len(body["signals"])
        bollinger = [s for s in body["signals"] if s["indicator"] == "BOLLINGER"]
        assert bollinger[0]["type"] == "BUY"
        assert bollinger[0]["strength"] == "strong"

    def test_fetch_failure(self, client):
        response = client.get("/api/stocks/BROKEN/signals")

        assert response.status_code == 500
        assert response.json()["success"] is False


class TestScreenerEndpoint:

    PAYLOAD = {
        "symbols": ["JUMP", "down", "BROKEN"],
        "filters": ["bbBreakoutUp", "atrSpike"],
        "minConfidence": 0.5,
    }

    def test_screener(self, client):
        body = client.post("/api/screener", json=self.PAYLOAD).json()

        assert body["success"] is True
        assert body["cached"] is False
        assert [r["symbol"] for r in body["results"]] == ["JUMP"]
        row = body["results"][0]
        assert row["price"] == 188.0
        assert row["confidence"] == pytest.approx(0.9)
        assert {s["indicator"] for s in row["matchedSignals"]} == {"BOLLINGER", "ATR"}

    def test_repeat_is_cached(self, client, fetcher):
        first = client.post("/api/screener", json=self.PAYLOAD).json()
        calls = fetcher.calls
        second = client.post("/api/screener", json=self.PAYLOAD).json()

        assert second["cached"] is True
        assert second["results"] == first["results"]
        assert fetcher.calls == calls

    def test_different_filters_not_cached(self, client):
        client.post("/api/screener", json=self.PAYLOAD)
        payload = dict(self.PAYLOAD, filters=["bbBreakoutUp"])
        assert client.post("/api/screener", json=payload).json()["cached"] is False

    def test_unknown_filter_rejected(self, client):
        payload = dict(self.PAYLOAD, filters=["moonPhase"])
        assert client.post("/api/screener", json=payload).status_code == 422

    def test_default_universe(self, client, fetcher):
        body = client.post("/api/screener", json={"filters": ["rsiOversold"]}).json()

        assert body["success"] is True
        assert body["results"] == []
        assert fetcher.calls == 50

    def test_two_plus_can_be_disabled(self, client):
        payload = {"symbols": ["DOWN"], "filters": ["rsiOversold"], "requireTwoPlus": False}
        body = client.post("/api/screener", json=payload).json()

        assert [r["symbol"] for r in body["results"]] == ["DOWN"]
        assert body["results"][0]["confidence"] == pytest.approx(0.8)

    def test_changed_thresholds_not_cached(self, client):
        """A looser requireTwoPlus must not be served the stricter run's rows"""
        payload = {"symbols": ["DOWN"], "filters": ["rsiOversold"], "requireTwoPlus": True}
        strict = client.post("/api/screener", json=payload).json()
        loose = client.post("/api/screener", json=dict(payload, requireTwoPlus=False)).json()

        assert strict["results"] == []
        assert loose["cached"] is False
        assert [r["symbol"] for r in loose["results"]] == ["DOWN"]

    def test_changed_min_confidence_not_cached(self, client):
        client.post("/api/screener", json=self.PAYLOAD)
        payload = dict(self.PAYLOAD, minConfidence=0.95)
        body = client.post("/api/screener", json=payload).json()

        assert body["cached"] is False
        assert body["results"] == []


class FakeManager:
    instances = []

    def __init__(self):
        self.closed = False
        FakeManager.instances.append(self)

    def fetch_daily_bars(self, symbol, count):
        return rising_bars(60)[-count:]

    def close(self):
        self.closed = True


def test_default_manager_closed_on_shutdown(monkeypatch):
    FakeManager.instances.clear()
    monkeypatch.setattr(api_server, "MarketDataManager", FakeManager)

    with TestClient(api_server.create_app()) as client:
        assert client.get("/api/stocks/UP/indicators").json()["success"] is True
        assert FakeManager.instances[0].closed is False

    assert FakeManager.instances[0].closed is True


def test_injected_fetcher_has_no_manager(monkeypatch, fetcher):
    FakeManager.instances.clear()
    monkeypatch.setattr(api_server, "MarketDataManager", FakeManager)

    with TestClient(api_server.create_app(fetch_daily_bars=fetcher)):
        pass

    assert FakeManager.instances == []
