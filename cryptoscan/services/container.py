"""
Service wiring.

Everything stateful (HTTP session, caches, Redis connection) is built
once here at startup and passed to the services by reference.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import redis.asyncio as redis

from cryptoscan.core.config import Settings
from cryptoscan.schemas.market import CandleSeries
from cryptoscan.schemas.scan import MetricsPayload, ScanResult
from cryptoscan.services.cache import ResultCache, close_redis, init_redis
from cryptoscan.services.indicators import IndicatorService, RecommendationThresholds
from cryptoscan.services.market_data import BinanceClient, MarketDataService
from cryptoscan.services.scanner import MarketScanner, ScanService

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    market_data: MarketDataService
    indicators: IndicatorService
    scan_service: ScanService
    scanner: MarketScanner
    redis_client: Optional[redis.Redis] = None

    @classmethod
    def build(
        cls,
        settings: Settings,
        client=None,
        clock: Callable[[], float] = time.time,
        redis_client: Optional[redis.Redis] = None,
    ) -> "ServiceContainer":
        """
        Wire the services. `client` defaults to a BinanceClient built from
        settings; tests pass a fake candle source and clock.
        """
        if client is None:
            client = BinanceClient(
                base_url=settings.binance_base_url,
                timeout_seconds=settings.binance_timeout_seconds,
            )

        thresholds = RecommendationThresholds(
            strong=settings.strong_signal_threshold,
            buy=settings.signal_threshold,
        )
        market_data = MarketDataService(client, allow_synthetic=settings.synthetic_fallback)
        indicators = IndicatorService(thresholds=thresholds)

        scan_service = ScanService(
            market_data=market_data,
            indicators=indicators,
            scan_cache=ResultCache(
                settings.scan_cache_ttl, clock, redis_client, namespace="scan", model=ScanResult
            ),
            metrics_cache=ResultCache(
                settings.metrics_cache_ttl, clock, redis_client, namespace="metrics",
                model=MetricsPayload,
            ),
            candles_cache=ResultCache(
                settings.candles_cache_ttl, clock, redis_client, namespace="candles",
                model=CandleSeries,
            ),
            scan_candle_limit=settings.scan_candle_limit,
            ohlcv_candle_limit=settings.ohlcv_candle_limit,
            clock=clock,
        )

        scanner = MarketScanner(
            scan_service,
            market_data,
            concurrency=settings.scanner_concurrency,
            max_symbols=settings.scanner_max_symbols,
            min_quote_volume=settings.min_quote_volume,
            fallback_pairs=settings.fallback_pairs,
            stablecoins=settings.stablecoins,
            thresholds=thresholds,
            rsi_candle_limit=settings.rsi_candle_limit,
        )

        return cls(
            settings=settings,
            market_data=market_data,
            indicators=indicators,
            scan_service=scan_service,
            scanner=scanner,
            redis_client=redis_client,
        )

    @classmethod
    async def create(cls, settings: Settings) -> "ServiceContainer":
        """Production wiring: connects Redis first when it is enabled."""
        redis_client = None
        if settings.redis_enabled:
            redis_client = await init_redis(settings.redis_url)
        else:
            logger.info("Redis disabled - using in-memory cache")
        return cls.build(settings, redis_client=redis_client)

    async def close(self) -> None:
        await self.market_data.close()
        await close_redis(self.redis_client)
