"""
Market Data Service

CONTRACT:
    Input:  CandleRequest (symbol, timeframe, limit)
    Output: CandleSeries

Primary source is the Binance public REST API. When it fails and the
caller allows it, a deterministic synthetic series is returned instead
and flagged as such.
"""

from cryptoscan.services.market_data.binance_client import BinanceClient
from cryptoscan.services.market_data.interface import (
    CandleRequest,
    MarketDataServiceInterface,
)
from cryptoscan.services.market_data.service import MarketDataService
from cryptoscan.services.market_data.synthetic import (
    SyntheticParams,
    generate_synthetic_candles,
)

__all__ = [
    "BinanceClient",
    "CandleRequest",
    "MarketDataServiceInterface",
    "MarketDataService",
    "SyntheticParams",
    "generate_synthetic_candles",
]
