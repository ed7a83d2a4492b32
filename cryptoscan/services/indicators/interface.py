"""
Indicator Engine Service Interface

Defines the contract for the indicator calculation layer.
"""

from abc import abstractmethod
from typing import Optional

from cryptoscan.services.base import BaseService
from cryptoscan.schemas.market import Candle, DataSource
from cryptoscan.schemas.scan import ScanResult


class IndicatorServiceInterface(BaseService[list[Candle], ScanResult]):
    """
    Indicator Engine Service Contract.

    INPUT: list[Candle]
        - OHLCV bars, oldest first

    OUTPUT: ScanResult
        - One IndicatorResult per indicator
        - total_score and recommendation
        - meta (interval, candle count, as-of time, data source)
    """

    @property
    def name(self) -> str:
        return "IndicatorService"

    @abstractmethod
    async def execute(self, input_data: list[Candle]) -> ScanResult:
        """Scan a candle series with no symbol attached."""
        pass

    @abstractmethod
    def compute(
        self,
        candles: list[Candle],
        symbol: str = "",
        interval: Optional[str] = None,
        source: DataSource = DataSource.BINANCE,
    ) -> ScanResult:
        """
        Compute every indicator, classify, score and recommend.

        Pure: no I/O, no clock, no randomness. Never raises on short or
        malformed input.
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Indicator service is always healthy (pure computation)."""
        pass
