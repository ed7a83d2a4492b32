"""
CryptoScan Schemas

Data contracts between services.

FLOW:
    Candle Source -> list[Candle]
    list[Candle] -> Indicator Engine -> ScanResult / MetricsPayload
    ScanResult -> Result Cache -> API
"""

from cryptoscan.schemas.market import (
    Timeframe,
    DataSource,
    Candle,
    CandlePayload,
    CandleSeries,
    Ticker24h,
    TIMEFRAME_MS,
    check_candles,
    normalize_symbol,
    parse_timeframe,
)
from cryptoscan.schemas.scan import (
    Signal,
    Recommendation,
    IndicatorResult,
    ScanMeta,
    ScanResult,
    BatchScanResult,
    RsiSnapshot,
    MACDValues,
    EMAStack,
    VolumeStats,
    MetricsIndicators,
    MetricsPayload,
)

__all__ = [
    # Market
    "Timeframe",
    "DataSource",
    "Candle",
    "CandlePayload",
    "CandleSeries",
    "Ticker24h",
    "TIMEFRAME_MS",
    "check_candles",
    "normalize_symbol",
    "parse_timeframe",
    # Scan
    "Signal",
    "Recommendation",
    "IndicatorResult",
    "ScanMeta",
    "ScanResult",
    "BatchScanResult",
    "RsiSnapshot",
    # Metrics
    "MACDValues",
    "EMAStack",
    "VolumeStats",
    "MetricsIndicators",
    "MetricsPayload",
]
