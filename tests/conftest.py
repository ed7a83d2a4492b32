"""Shared fixtures: candle factories, a controllable clock and a fake candle source."""

import asyncio
from typing import Optional, Sequence

import pytest

from cryptoscan.core.config import Settings
from cryptoscan.schemas.market import Candle, Ticker24h, Timeframe
from cryptoscan.services.base import ExternalAPIError
from cryptoscan.services.container import ServiceContainer

HOUR_MS = 3_600_000
# 2023-11-14 22:00 UTC, aligned to the hour
START_MS = 1_699_999_200_000


def make_candles(
    closes: Sequence[float],
    spread: float = 0.5,
    volume: float = 1_000.0,
    start_ms: int = START_MS,
    interval_ms: int = HOUR_MS,
) -> list[Candle]:
    """Flat-bodied bars (open == close) with high/low `spread` away from the close."""
    return [
        Candle(
            open_time=start_ms + i * interval_ms,
            open=c,
            high=c + spread,
            low=c - spread,
            close=c,
            volume=volume,
            close_time=start_ms + (i + 1) * interval_ms - 1,
        )
        for i, c in enumerate(closes)
    ]


def ramp(n: int = 30, start: float = 100.0) -> list[float]:
    return [start + i for i in range(n)]


def geometric(n: int = 60, start: float = 100.0, rate: float = 0.02) -> list[float]:
    return [start * (1 + rate) ** i for i in range(n)]


def proportional_candles(closes: Sequence[float], band: float = 0.005) -> list[Candle]:
    """Bars whose high/low are a fixed fraction around the close."""
    return [
        Candle(
            open_time=START_MS + i * HOUR_MS,
            open=c,
            high=c * (1 + band),
            low=c * (1 - band),
            close=c,
            volume=1_000.0,
        )
        for i, c in enumerate(closes)
    ]


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCandleClient:
    """
    Stand-in for BinanceClient.

    Serves canned candles per symbol, fails for symbols in `fail`, and
    records how many fetches were in flight at once.
    """

    def __init__(
        self,
        candles: Optional[dict[str, list[Candle]]] = None,
        default: Optional[list[Candle]] = None,
        fail: Sequence[str] = (),
        tickers: Optional[list[Ticker24h]] = None,
        delay: float = 0.0,
    ):
        self.candles = candles or {}
        self.default = default
        self.fail = set(fail)
        self.tickers = tickers
        self.delay = delay
        self.calls: list[tuple[str, Timeframe, int]] = []
        self.active = 0
        self.max_active = 0
        self.closed = False

    async def fetch_candles(self, symbol: str, timeframe: Timeframe, limit: int = 500) -> list[Candle]:
        self.calls.append((symbol, timeframe, limit))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
            if symbol in self.fail:
                raise ExternalAPIError("Fake", f"{symbol} unavailable")
            candles = self.candles.get(symbol, self.default)
            if candles is None:
                raise ExternalAPIError("Fake", f"unknown symbol {symbol}")
            return list(candles[-limit:])
        finally:
            self.active -= 1

    async def fetch_tickers(self) -> list[Ticker24h]:
        if self.tickers is None:
            raise ExternalAPIError("Fake", "ticker feed down")
        return list(self.tickers)

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        redis_enabled=False,
        synthetic_fallback=True,
        scanner_concurrency=3,
        scanner_max_symbols=10,
        min_quote_volume=1_000_000.0,
        fallback_pairs=["BTCUSDT", "ETHUSDT"],
    )


@pytest.fixture
def make_container(settings, clock):
    def _make(client: FakeCandleClient, **overrides) -> ServiceContainer:
        cfg = settings.model_copy(update=overrides) if overrides else settings
        return ServiceContainer.build(cfg, client=client, clock=clock)

    return _make
