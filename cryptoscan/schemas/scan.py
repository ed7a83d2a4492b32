"""
CONTRACT 2: Indicator Scan

Input: list[Candle]
Output: ScanResult

Every indicator reports {value, signal, score, tier, description}; the
scorer sums the scores into total_score and maps it to a recommendation.
JSON is emitted in camelCase for the dashboard client.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from cryptoscan.schemas.market import DataSource


# =============================================================================
# ENUMS
# =============================================================================


class Signal(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class Recommendation(str, Enum):
    STRONG_SELL = "strong_sell"
    SELL = "sell"
    HOLD = "hold"
    BUY = "buy"
    STRONG_BUY = "strong_buy"

    @property
    def rank(self) -> int:
        """Ordering strong_sell < sell < hold < buy < strong_buy."""
        return _RECOMMENDATION_RANK[self]


_RECOMMENDATION_RANK = {
    Recommendation.STRONG_SELL: 0,
    Recommendation.SELL: 1,
    Recommendation.HOLD: 2,
    Recommendation.BUY: 3,
    Recommendation.STRONG_BUY: 4,
}


def _finite_or_none(v: Optional[float]) -> Optional[float]:
    if v is None:
        return None
    v = float(v)
    return v if math.isfinite(v) else None


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# =============================================================================
# OUTPUT: ScanResult
# =============================================================================


class IndicatorResult(_CamelModel):
    """One indicator's latest value and its contribution to the score."""

    name: str
    value: Optional[float] = None
    signal: Signal = Signal.NEUTRAL
    score: int = 0
    tier: int = Field(..., ge=1, le=3)
    description: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def _nan_to_none(cls, v):
        return _finite_or_none(v)


class ScanMeta(_CamelModel):
    interval: Optional[str] = None
    candle_count: int = Field(0, alias="candles")
    as_of: Optional[datetime] = None
    source: DataSource = DataSource.BINANCE
    synthetic: bool = False


class ScanResult(_CamelModel):
    """Complete scan of one symbol."""

    symbol: str
    price: float
    indicators: dict[str, IndicatorResult]
    total_score: int
    recommendation: Recommendation
    meta: ScanMeta

    @field_validator("price", mode="before")
    @classmethod
    def _price_finite(cls, v):
        return _finite_or_none(v) or 0.0

    @property
    def bullish_count(self) -> int:
        return sum(1 for r in self.indicators.values() if r.signal == Signal.BULLISH)

    @property
    def bearish_count(self) -> int:
        return sum(1 for r in self.indicators.values() if r.signal == Signal.BEARISH)


class BatchScanResult(_CamelModel):
    """Result of scanning many symbols; failed symbols are listed, not raised."""

    timeframe: str
    results: list[ScanResult]
    failed: list[str] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.results)


class RsiSnapshot(_CamelModel):
    """One row of the RSI heatmap."""

    symbol: str
    rsi: Optional[float] = None
    price: float
    change: float
    signal: str

    @field_validator("rsi", mode="before")
    @classmethod
    def _nan_to_none(cls, v):
        return _finite_or_none(v)


# =============================================================================
# OUTPUT: MetricsPayload
# =============================================================================


class MACDValues(_CamelModel):
    macd: Optional[float] = None
    signal: Optional[float] = None
    histogram: Optional[float] = None


class EMAStack(_CamelModel):
    e20: Optional[float] = None
    e50: Optional[float] = None
    e200: Optional[float] = None


class VolumeStats(_CamelModel):
    last: float
    z_score: float
    x_avg50: float


class MetricsIndicators(_CamelModel):
    """Compact metrics for the chart side panel."""

    close: float
    rsi: Optional[float] = None
    macd: Optional[MACDValues] = None
    adx: Optional[float] = None
    ema: EMAStack
    atr_pct: Optional[float] = None
    vol: VolumeStats
    sr_proximity_pct: Optional[float] = None
    trend_score: int = Field(..., ge=0, le=100)

    @field_validator("rsi", "adx", "atr_pct", "sr_proximity_pct", mode="before")
    @classmethod
    def _nan_to_none(cls, v):
        return _finite_or_none(v)


class MetricsPayload(_CamelModel):
    symbol: str
    tf: str
    generated_at: datetime
    indicators: MetricsIndicators
    synthetic: bool = False
