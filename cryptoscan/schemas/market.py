"""
CONTRACT 1: Market Data

Input: symbol + timeframe + limit
Output: ordered OHLCV candles (oldest first)

Candles come from the Binance REST API or, when it is unreachable and the
caller allows it, from the deterministic synthetic generator.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# ENUMS
# =============================================================================


class Timeframe(str, Enum):
    M1 = "1m"
    M5 = "5m"
    M15 = "15m"
    M30 = "30m"
    H1 = "1h"
    H2 = "2h"
    H4 = "4h"
    H6 = "6h"
    H12 = "12h"
    D1 = "1d"
    W1 = "1w"


class DataSource(str, Enum):
    BINANCE = "binance"
    SYNTHETIC = "synthetic"


# Timeframe to milliseconds
TIMEFRAME_MS = {
    Timeframe.M1: 60_000,
    Timeframe.M5: 300_000,
    Timeframe.M15: 900_000,
    Timeframe.M30: 1_800_000,
    Timeframe.H1: 3_600_000,
    Timeframe.H2: 7_200_000,
    Timeframe.H4: 14_400_000,
    Timeframe.H6: 21_600_000,
    Timeframe.H12: 43_200_000,
    Timeframe.D1: 86_400_000,
    Timeframe.W1: 604_800_000,
}

# Aliases accepted from clients
TIMEFRAME_ALIASES = {
    "1D": "1d",
    "1day": "1d",
    "1Day": "1d",
    "1W": "1w",
    "60m": "1h",
    "240m": "4h",
}


def parse_timeframe(value: Optional[str]) -> Optional[Timeframe]:
    """Parse a client timeframe string. Returns None when unsupported."""
    if not value:
        return None
    value = TIMEFRAME_ALIASES.get(value.strip(), value.strip())
    try:
        return Timeframe(value)
    except ValueError:
        try:
            return Timeframe(value.lower())
        except ValueError:
            return None


QUOTE_ASSETS = ("USDT", "FDUSD", "BUSD", "TUSD", "USDC", "BTC")


def normalize_symbol(symbol: Optional[str], default: str = "BTCUSDT") -> str:
    """
    Normalize a user-supplied symbol to a Binance pair.

    BTC -> BTCUSDT, ethusd -> ETHUSDT, "sol/usdt" -> SOLUSDT.
    """
    if not symbol:
        return default
    sym = "".join(ch for ch in str(symbol).upper() if ch.isalnum())
    if not sym:
        return default
    if sym.endswith("USD") and not sym.endswith("USDT"):
        sym = sym[:-3] + "USDT"
    # a bare quote asset ("BTC") is a base, not a pair
    if not any(sym.endswith(q) and len(sym) > len(q) for q in QUOTE_ASSETS):
        sym = sym + "USDT"
    return sym


# =============================================================================
# CANDLES
# =============================================================================


def _to_float(value: Any) -> float:
    """Coerce exchange strings to float. Unparseable values become 0.0."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


class Candle(BaseModel):
    """One OHLCV bar. open_time is epoch milliseconds."""

    model_config = ConfigDict(frozen=True)

    open_time: int
    open: float
    high: float
    low: float
    close: float
    volume: float
    close_time: Optional[int] = None

    @field_validator("open", "high", "low", "close", "volume", mode="before")
    @classmethod
    def _coerce_price(cls, v: Any) -> float:
        return _to_float(v)

    @field_validator("open_time", mode="before")
    @classmethod
    def _coerce_time(cls, v: Any) -> int:
        number = _to_float(v)
        return int(number) if math.isfinite(number) else 0

    @classmethod
    def from_kline(cls, row: list) -> "Candle":
        """Build from a Binance kline row: [openTime, o, h, l, c, v, closeTime, ...]."""
        return cls(
            open_time=row[0],
            open=row[1],
            high=row[2],
            low=row[3],
            close=row[4],
            volume=row[5],
            close_time=int(row[6]) if len(row) > 6 else None,
        )


def check_candles(candles: list[Candle]) -> list[str]:
    """
    Report malformed input without raising.

    Returns human-readable warnings for non-ascending timestamps, NaN
    fields and bars whose high/low do not bound open/close.
    """
    warnings: list[str] = []
    prev_time: Optional[int] = None

    for i, c in enumerate(candles):
        if prev_time is not None and c.open_time <= prev_time:
            warnings.append(f"bar {i}: open_time not ascending")
        prev_time = c.open_time

        values = (c.open, c.high, c.low, c.close, c.volume)
        if any(math.isnan(v) for v in values):
            warnings.append(f"bar {i}: NaN field")
            continue
        if c.high < max(c.open, c.close) or c.low > min(c.open, c.close):
            warnings.append(f"bar {i}: high/low do not bound open/close")

    return warnings


class CandlePayload(BaseModel):
    """Response for the OHLCV endpoint."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    tf: Timeframe
    generated_at: datetime
    candles: list[Candle]
    source: DataSource = DataSource.BINANCE
    synthetic: bool = False


class CandleSeries(BaseModel):
    """Candles for one symbol/timeframe along with where they came from."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    timeframe: Timeframe
    candles: list[Candle] = Field(default_factory=list)
    source: DataSource = DataSource.BINANCE

    @property
    def synthetic(self) -> bool:
        return self.source == DataSource.SYNTHETIC


# =============================================================================
# TICKERS
# =============================================================================


class Ticker24h(BaseModel):
    """Subset of the Binance 24h ticker used for symbol selection."""

    symbol: str
    last_price: float = 0.0
    price_change_percent: float = 0.0
    high_price: float = 0.0
    low_price: float = 0.0
    quote_volume: float = 0.0

    @field_validator(
        "last_price", "price_change_percent", "high_price", "low_price", "quote_volume",
        mode="before",
    )
    @classmethod
    def _coerce(cls, v: Any) -> float:
        return _to_float(v)

    @classmethod
    def from_binance(cls, row: dict) -> "Ticker24h":
        return cls(
            symbol=row.get("symbol", ""),
            last_price=row.get("lastPrice", 0),
            price_change_percent=row.get("priceChangePercent", 0),
            high_price=row.get("highPrice", 0),
            low_price=row.get("lowPrice", 0),
            quote_volume=row.get("quoteVolume", 0),
        )
