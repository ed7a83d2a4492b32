"""End-to-end indicator scans on hand-built candle series."""

import json
import math
from datetime import datetime, timezone

import pytest

from cryptoscan.schemas.market import Candle, DataSource
from cryptoscan.schemas.scan import Recommendation, Signal
from cryptoscan.services.indicators import IndicatorService, compute_scan
from cryptoscan.services.indicators.service import (
    bars_per_day,
    infer_interval_ms,
    interval_label,
)
from cryptoscan.services.indicators.signals import DEFAULT_TIERS
from tests.conftest import HOUR_MS, START_MS, geometric, make_candles, proportional_candles, ramp


def test_every_indicator_is_reported():
    result = compute_scan(make_candles(ramp(30)), symbol="BTCUSDT", interval="1h")
    assert set(result.indicators) == set(DEFAULT_TIERS)
    for name, indicator in result.indicators.items():
        assert indicator.name == name
        assert indicator.tier == DEFAULT_TIERS[name]


def test_rising_ramp_reads_overbought_and_buy():
    result = compute_scan(make_candles(ramp(30)), symbol="BTCUSDT", interval="1h")

    rsi = result.indicators["rsi"]
    assert rsi.value == 100.0
    assert rsi.signal == Signal.BEARISH
    assert rsi.score == -2

    assert result.indicators["ema_20"].signal == Signal.BULLISH
    assert result.indicators["adx"].signal == Signal.BULLISH
    assert result.indicators["atr"].signal == Signal.NEUTRAL
    assert result.price == 129.0
    assert 6 <= result.total_score < 12
    assert result.recommendation == Recommendation.BUY


def test_accelerating_series_has_bullish_macd():
    result = compute_scan(proportional_candles(geometric(60)), interval="1h")
    macd = result.indicators["macd"]
    assert macd.value > 0
    assert macd.signal == Signal.BULLISH
    assert macd.score == 3


def test_short_history_is_neutral_hold():
    result = compute_scan(make_candles([100, 101, 102, 101, 100]), symbol="ETHUSDT")
    assert result.recommendation == Recommendation.HOLD
    assert result.total_score == 0
    assert result.indicators["macd"].value is None
    assert result.indicators["ema_200"].value is None
    assert result.indicators["rsi"].signal == Signal.NEUTRAL
    assert all(r.score == 0 for r in result.indicators.values())


def test_total_score_is_sum_of_scores():
    result = compute_scan(proportional_candles(geometric(250, rate=0.01)))
    assert result.total_score == sum(r.score for r in result.indicators.values())


def test_scan_is_idempotent():
    candles = make_candles(ramp(40))
    first = compute_scan(candles, symbol="BTCUSDT", interval="1h")
    second = compute_scan(candles, symbol="BTCUSDT", interval="1h")
    assert first == second
    assert first.model_dump_json() == second.model_dump_json()


def test_nan_and_garbage_input_never_raises():
    candles = make_candles(ramp(40))
    candles[10] = Candle(
        open_time=candles[10].open_time, open="abc", high=None, low=math.nan,
        close=math.nan, volume="",
    )
    result = compute_scan(candles, symbol="BTCUSDT")
    assert result.recommendation in set(Recommendation)
    for indicator in result.indicators.values():
        assert indicator.value is None or math.isfinite(indicator.value)
    # NaN is never emitted in JSON
    assert "NaN" not in result.model_dump_json()


def test_empty_input():
    result = compute_scan([])
    assert result.price == 0.0
    assert result.recommendation == Recommendation.HOLD
    assert result.meta.candle_count == 0
    assert result.meta.as_of is None


def test_meta_describes_the_series():
    candles = make_candles(ramp(30))
    result = compute_scan(candles, symbol="BTCUSDT", source=DataSource.SYNTHETIC)
    assert result.meta.interval == "1h"
    assert result.meta.candle_count == 30
    assert result.meta.as_of == datetime.fromtimestamp(
        (START_MS + 29 * HOUR_MS) / 1000, tz=timezone.utc
    )
    assert result.meta.source == DataSource.SYNTHETIC
    assert result.meta.synthetic is True


def test_json_shape_is_camel_case():
    result = compute_scan(make_candles(ramp(30)), symbol="BTCUSDT", interval="1h")
    payload = json.loads(result.model_dump_json(by_alias=True))

    assert set(payload) == {"symbol", "price", "indicators", "totalScore", "recommendation", "meta"}
    assert payload["recommendation"] == "buy"
    assert set(payload["indicators"]["rsi"]) == {
        "name", "value", "signal", "score", "tier", "description",
    }
    assert payload["meta"]["candles"] == 30
    assert "asOf" in payload["meta"]


def test_custom_tiers_change_the_weighting():
    candles = make_candles(ramp(30))
    tiers = {**DEFAULT_TIERS, "rsi": 3}
    result = IndicatorService(tiers=tiers).compute(candles, interval="1h")
    assert result.indicators["rsi"].score == -3


@pytest.mark.parametrize("tier", [0, 4, -1])
def test_out_of_range_tier_is_rejected_up_front(tier):
    with pytest.raises(ValueError, match="rsi"):
        IndicatorService(tiers={**DEFAULT_TIERS, "rsi": tier})


class TestIntervalHelpers:
    def test_infer_interval_uses_median_spacing(self):
        candles = make_candles(ramp(5))
        assert infer_interval_ms(candles) == HOUR_MS

    def test_infer_interval_single_candle(self):
        assert infer_interval_ms(make_candles([1.0])) is None

    @pytest.mark.parametrize(
        "ms, label",
        [(HOUR_MS, "1h"), (86_400_000, "1d"), (180_000, "3m"), (None, None)],
    )
    def test_interval_label(self, ms, label):
        assert interval_label(ms) == label

    def test_bars_per_day(self):
        assert bars_per_day(HOUR_MS) == 24
        assert bars_per_day(4 * HOUR_MS) == 6
        assert bars_per_day(7 * 86_400_000) == 1
        assert bars_per_day(None) == 1


async def test_service_contract():
    service = IndicatorService()
    result = await service.execute(make_candles(ramp(30)))
    assert result.total_score == compute_scan(make_candles(ramp(30))).total_score
    assert result.bullish_count + result.bearish_count <= len(result.indicators)
    assert await service.health_check() is True


def test_momentum_needs_a_full_day_of_bars():
    result = compute_scan(make_candles([100, 101, 102, 103, 104]), interval="1h")
    momentum = result.indicators["momentum_24h"]
    assert momentum.value is None
    assert momentum.signal == Signal.NEUTRAL
    assert momentum.score == 0

    day = compute_scan(make_candles(ramp(25)), interval="1h")
    assert day.indicators["momentum_24h"].value == pytest.approx(24.0)
