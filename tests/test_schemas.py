"""Candle coercion, symbol and timeframe parsing."""

import math

import pytest

from cryptoscan.schemas.market import (
    Candle,
    Ticker24h,
    Timeframe,
    check_candles,
    normalize_symbol,
    parse_timeframe,
)
from tests.conftest import make_candles, ramp


def test_candle_coerces_exchange_strings():
    candle = Candle(open_time="1700000000000", open="1.5", high="2", low="1", close="1.75", volume="10")
    assert candle.open_time == 1_700_000_000_000
    assert candle.close == 1.75


def test_unparseable_values_become_zero():
    candle = Candle(open_time=None, open="abc", high=None, low="", close=[], volume={})
    assert candle.open_time == 0
    assert (candle.open, candle.high, candle.low, candle.close, candle.volume) == (0.0,) * 5


def test_from_kline():
    candle = Candle.from_kline([1, "1", "2", "0.5", "1.5", "100", 3_599_999, "150", 7])
    assert candle.high == 2.0
    assert candle.close_time == 3_599_999


def test_check_candles_reports_problems():
    candles = make_candles(ramp(5))
    candles[2] = Candle(open_time=candles[1].open_time, open=10, high=9, low=8, close=10, volume=1)
    candles[3] = Candle(
        open_time=candles[3].open_time, open=1, high=2, low=0, close=math.nan, volume=1
    )

    warnings = check_candles(candles)

    assert "bar 2: open_time not ascending" in warnings
    assert "bar 2: high/low do not bound open/close" in warnings
    assert "bar 3: NaN field" in warnings
    assert check_candles(make_candles(ramp(5))) == []


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("BTC", "BTCUSDT"),
        ("btc", "BTCUSDT"),
        ("usdc", "USDCUSDT"),
        ("BTCUSDT", "BTCUSDT"),
        ("ETH", "ETHUSDT"),
        ("ethusd", "ETHUSDT"),
        ("sol/usdt", "SOLUSDT"),
        ("ETHBTC", "ETHBTC"),
        ("", "BTCUSDT"),
        (None, "BTCUSDT"),
        ("///", "BTCUSDT"),
    ],
)
def test_normalize_symbol(raw, expected):
    assert normalize_symbol(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1h", Timeframe.H1),
        ("4H", Timeframe.H4),
        ("1D", Timeframe.D1),
        ("240m", Timeframe.H4),
        (" 15m ", Timeframe.M15),
        ("7x", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_timeframe(raw, expected):
    assert parse_timeframe(raw) is expected


def test_ticker_from_binance():
    ticker = Ticker24h.from_binance({"symbol": "BTCUSDT", "lastPrice": "65000.1", "quoteVolume": "n/a"})
    assert ticker.last_price == 65000.1
    assert ticker.quote_volume == 0.0
    assert ticker.price_change_percent == 0.0
