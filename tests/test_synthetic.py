"""Deterministic synthetic candle fallback."""

import pytest

from cryptoscan.schemas.market import Timeframe, check_candles
from cryptoscan.services.market_data.synthetic import (
    SyntheticParams,
    default_seed,
    generate_synthetic_candles,
    get_base_price,
    hash_seed,
)

END_MS = 1_700_002_800_000


@pytest.fixture
def params() -> SyntheticParams:
    return SyntheticParams(symbol="BTCUSDT", timeframe=Timeframe.H1, limit=200, end_time_ms=END_MS)


def test_same_seed_same_candles(params):
    first = generate_synthetic_candles("BTCUSDT:1h:200", params)
    second = generate_synthetic_candles("BTCUSDT:1h:200", params)
    assert first == second


def test_different_seed_different_candles(params):
    first = generate_synthetic_candles("BTCUSDT:1h:200", params)
    second = generate_synthetic_candles("ETHUSDT:1h:200", params)
    assert [c.close for c in first] != [c.close for c in second]


def test_candles_are_well_formed(params):
    candles = generate_synthetic_candles(default_seed(params), params)

    assert len(candles) == 200
    assert check_candles(candles) == []
    for prev, cur in zip(candles, candles[1:]):
        assert cur.open_time - prev.open_time == 3_600_000
        assert cur.open == prev.close
    for c in candles:
        assert c.high >= max(c.open, c.close)
        assert c.low <= min(c.open, c.close)
        assert c.volume >= 1
        assert c.close_time == c.open_time + 3_600_000 - 1


def test_series_ends_at_end_time(params):
    candles = generate_synthetic_candles("seed", params)
    assert candles[-1].open_time == END_MS


def test_starting_price_near_base(params):
    candles = generate_synthetic_candles("seed", params)
    assert 45_000 * 0.9 <= candles[0].open <= 45_000 * 1.1


def test_zero_limit():
    params = SyntheticParams(symbol="BTCUSDT", timeframe=Timeframe.H1, limit=0)
    assert generate_synthetic_candles("seed", params) == []


def test_base_prices():
    assert get_base_price("ETHUSDT") == 3_000
    assert get_base_price("dogeusdt") == 0.12
    assert get_base_price("XYZUSDT") == 25


def test_hash_seed_is_32_bit_fnv():
    assert hash_seed("") == 2166136261
    assert 0 <= hash_seed("BTCUSDT:1h:200") < 2**32
    assert hash_seed("a") != hash_seed("b")
