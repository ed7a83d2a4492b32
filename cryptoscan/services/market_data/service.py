"""
Market Data Service Implementation

Fetches candles from Binance.
Fallback: synthetic candles (only if the exchange fails and the caller
allows it); such series are marked with source=synthetic.
"""

import logging
from typing import Optional

from cryptoscan.schemas.market import CandleSeries, DataSource, Ticker24h, Timeframe
from cryptoscan.services.base import ExternalAPIError
from cryptoscan.services.market_data.binance_client import BinanceClient
from cryptoscan.services.market_data.interface import (
    CandleRequest,
    MarketDataServiceInterface,
)
from cryptoscan.services.market_data.synthetic import (
    SyntheticParams,
    default_seed,
    generate_synthetic_candles,
)

logger = logging.getLogger(__name__)


class MarketDataService(MarketDataServiceInterface):
    """
    Market Data Service.

    `client` is anything with async fetch_candles / fetch_tickers / ping
    methods; BinanceClient in production, a fake in tests.
    """

    def __init__(self, client: BinanceClient, allow_synthetic: bool = True):
        self.client = client
        self.allow_synthetic = allow_synthetic

    async def execute(self, input_data: CandleRequest) -> CandleSeries:
        return await self.get_candles(
            input_data.symbol,
            input_data.timeframe,
            input_data.limit,
            input_data.allow_synthetic,
        )

    async def get_candles(
        self,
        symbol: str,
        timeframe: Timeframe,
        limit: int = 200,
        allow_synthetic: Optional[bool] = None,
    ) -> CandleSeries:
        try:
            candles = await self.client.fetch_candles(symbol, timeframe, limit)
            return CandleSeries(
                symbol=symbol,
                timeframe=timeframe,
                candles=candles,
                source=DataSource.BINANCE,
            )
        except ExternalAPIError as e:
            fallback = self.allow_synthetic if allow_synthetic is None else allow_synthetic
            if not fallback:
                raise

            logger.warning(
                f"Using synthetic candles for {symbol} {timeframe.value} (upstream failed: {e.message})"
            )
            params = SyntheticParams(symbol=symbol, timeframe=timeframe, limit=limit)
            return CandleSeries(
                symbol=symbol,
                timeframe=timeframe,
                candles=generate_synthetic_candles(default_seed(params), params),
                source=DataSource.SYNTHETIC,
            )

    async def get_tickers(self) -> list[Ticker24h]:
        return await self.client.fetch_tickers()

    async def health_check(self) -> bool:
        return await self.client.ping()

    async def close(self) -> None:
        await self.client.close()
