"""
Scan Service

Single-symbol pipeline: fetch candles -> compute indicators -> cache.

Three caches are injected (built once at startup):
    scan     (symbol, timeframe) -> ScanResult
    metrics  (symbol, timeframe) -> MetricsPayload
    candles  (symbol, timeframe) -> CandleSeries (exchange data only)
"""

import logging
import time
from datetime import datetime, timezone
from typing import Callable

from cryptoscan.schemas.market import CandlePayload, CandleSeries, Timeframe
from cryptoscan.schemas.scan import MetricsPayload, ScanResult
from cryptoscan.services.cache import ResultCache
from cryptoscan.services.indicators import IndicatorService, compute_metrics
from cryptoscan.services.market_data import MarketDataService

logger = logging.getLogger(__name__)


class ScanService:
    """
    Fetch-compute-cache for one symbol at a time.

    Scans fall back to synthetic candles when the exchange is down (the
    result says so in its meta). Metrics and OHLCV never do: an upstream
    failure propagates as ExternalAPIError.
    """

    def __init__(
        self,
        market_data: MarketDataService,
        indicators: IndicatorService,
        scan_cache: ResultCache[ScanResult],
        metrics_cache: ResultCache[MetricsPayload],
        candles_cache: ResultCache[CandleSeries],
        scan_candle_limit: int = 200,
        ohlcv_candle_limit: int = 500,
        clock: Callable[[], float] = time.time,
    ):
        self.market_data = market_data
        self.indicators = indicators
        self.scan_cache = scan_cache
        self.metrics_cache = metrics_cache
        self.candles_cache = candles_cache
        self.scan_candle_limit = scan_candle_limit
        self.ohlcv_candle_limit = ohlcv_candle_limit
        self.clock = clock

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self.clock(), tz=timezone.utc)

    async def scan(self, symbol: str, timeframe: Timeframe) -> tuple[ScanResult, bool]:
        """Return (result, cache_hit)."""

        async def compute() -> ScanResult:
            series = await self.market_data.get_candles(
                symbol, timeframe, self.scan_candle_limit
            )
            result = self.indicators.compute(
                series.candles,
                symbol=symbol,
                interval=timeframe.value,
                source=series.source,
            )
            logger.info(
                f"Scanned {symbol} {timeframe.value}: score {result.total_score} "
                f"({result.recommendation.value}, {result.bullish_count} bullish / "
                f"{result.bearish_count} bearish, {series.source.value})"
            )
            return result

        return await self.scan_cache.get_or_compute((symbol, timeframe.value), compute)

    async def get_or_compute(self, symbol: str, timeframe: Timeframe) -> ScanResult:
        result, _ = await self.scan(symbol, timeframe)
        return result

    async def get_candles(self, symbol: str, timeframe: Timeframe) -> tuple[CandleSeries, bool]:
        """Exchange candles for charts and metrics (never synthetic)."""

        async def fetch() -> CandleSeries:
            return await self.market_data.get_candles(
                symbol, timeframe, self.ohlcv_candle_limit, allow_synthetic=False
            )

        return await self.candles_cache.get_or_compute((symbol, timeframe.value), fetch)

    async def get_ohlcv(self, symbol: str, timeframe: Timeframe) -> tuple[CandlePayload, bool]:
        series, hit = await self.get_candles(symbol, timeframe)
        payload = CandlePayload(
            symbol=symbol,
            tf=timeframe,
            generated_at=self._now(),
            candles=series.candles,
            source=series.source,
            synthetic=series.synthetic,
        )
        return payload, hit

    async def get_metrics(
        self, symbol: str, timeframe: Timeframe
    ) -> tuple[MetricsPayload, bool]:
        """Return (metrics, cache_hit)."""

        async def compute() -> MetricsPayload:
            series, _ = await self.get_candles(symbol, timeframe)
            return compute_metrics(
                series.candles,
                symbol=symbol,
                tf=timeframe.value,
                generated_at=self._now(),
                synthetic=series.synthetic,
            )

        return await self.metrics_cache.get_or_compute((symbol, timeframe.value), compute)
