"""
Synthetic Candle Generator

Deterministic random-walk OHLCV candles used when the exchange is
unreachable. Equal seed and params always give identical candles, and
every candle is well formed (high/low bound open/close, open times
ascending, volume >= 1).

Responses built from these candles are flagged synthetic so clients can
tell them apart from market data.
"""

import random
import time
from dataclasses import dataclass
from typing import Optional

from cryptoscan.schemas.market import Candle, TIMEFRAME_MS, Timeframe


# Base prices for common assets (matched by substring of the symbol)
SYMBOL_BASE_PRICES = (
    ("BTC", 45_000.0),
    ("ETH", 3_000.0),
    ("BNB", 430.0),
    ("SOL", 110.0),
    ("ADA", 0.55),
    ("DOGE", 0.12),
)
DEFAULT_BASE_PRICE = 25.0

MIN_PRICE = 0.0001


@dataclass(frozen=True)
class SyntheticParams:
    symbol: str
    timeframe: Timeframe
    limit: int
    end_time_ms: Optional[int] = None


def get_base_price(symbol: str) -> float:
    """Get base price for a symbol."""
    upper = symbol.upper()
    for asset, price in SYMBOL_BASE_PRICES:
        if asset in upper:
            return price
    return DEFAULT_BASE_PRICE


def hash_seed(seed: str) -> int:
    """32-bit FNV-1a hash of the seed string, salted with its length."""
    h = (2166136261 ^ len(seed)) & 0xFFFFFFFF
    for ch in seed:
        h ^= ord(ch)
        h = (h * 16777619) & 0xFFFFFFFF
    return h


def default_seed(params: SyntheticParams) -> str:
    return f"{params.symbol.upper()}:{params.timeframe.value}:{params.limit}"


def _aligned_end_time(interval_ms: int) -> int:
    now_ms = int(time.time() * 1000)
    return now_ms - now_ms % interval_ms


def generate_synthetic_candles(seed: str, params: SyntheticParams) -> list[Candle]:
    """
    Generate `params.limit` candles ending at `params.end_time_ms`.

    Without an explicit end time the last candle opens at the start of the
    current interval, so prices stay deterministic but timestamps track
    the wall clock.
    """
    if params.limit <= 0:
        return []

    interval_ms = TIMEFRAME_MS[params.timeframe]
    end_time = params.end_time_ms
    if end_time is None:
        end_time = _aligned_end_time(interval_ms)

    rng = random.Random(hash_seed(seed))
    base_price = get_base_price(params.symbol)
    minutes_per_bar = interval_ms / 60_000

    candles: list[Candle] = []
    previous_close = base_price * (0.9 + rng.random() * 0.2)  # +/-10%

    for i in range(params.limit):
        open_time = end_time - (params.limit - 1 - i) * interval_ms
        drift = (rng.random() - 0.5) * 0.02
        shock = (rng.random() - 0.5) * 0.04

        open_ = previous_close
        close = max(MIN_PRICE, previous_close * (1 + drift + shock))
        high = max(open_, close) * (1 + abs(shock) * 0.5)
        low = min(open_, close) * (1 - abs(shock) * 0.5)
        volume = max(1.0, base_price * 1_000 * (0.6 + rng.random() * 0.8) / minutes_per_bar)

        candles.append(
            Candle(
                open_time=open_time,
                open=open_,
                high=high,
                low=low,
                close=close,
                volume=volume,
                close_time=open_time + interval_ms - 1,
            )
        )
        previous_close = close

    return candles
