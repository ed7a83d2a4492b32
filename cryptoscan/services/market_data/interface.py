"""
Market Data Service Interface

Defines the contract for the candle source layer.
"""

from abc import abstractmethod
from dataclasses import dataclass
from typing import Optional

from cryptoscan.services.base import BaseService
from cryptoscan.schemas.market import CandleSeries, Ticker24h, Timeframe


@dataclass(frozen=True)
class CandleRequest:
    """One symbol/timeframe candle fetch."""

    symbol: str
    timeframe: Timeframe
    limit: int = 200
    allow_synthetic: Optional[bool] = None


class MarketDataServiceInterface(BaseService[CandleRequest, CandleSeries]):
    """
    Market Data Service Contract.

    INPUT: CandleRequest
        - symbol: Binance pair (e.g. BTCUSDT)
        - timeframe: candle interval
        - limit: number of candles
        - allow_synthetic: override the service's fallback policy

    OUTPUT: CandleSeries
        - candles oldest first
        - source: binance or synthetic
    """

    @property
    def name(self) -> str:
        return "MarketDataService"

    @abstractmethod
    async def execute(self, input_data: CandleRequest) -> CandleSeries:
        """Fetch candles for one request."""
        pass

    @abstractmethod
    async def get_candles(
        self,
        symbol: str,
        timeframe: Timeframe,
        limit: int = 200,
        allow_synthetic: Optional[bool] = None,
    ) -> CandleSeries:
        """
        Fetch candles, falling back to synthetic ones when allowed.

        Raises:
            ExternalAPIError: upstream failed and synthetic fallback is off
        """
        pass

    @abstractmethod
    async def get_tickers(self) -> list[Ticker24h]:
        """24h tickers for every pair."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check connectivity to the exchange."""
        pass
