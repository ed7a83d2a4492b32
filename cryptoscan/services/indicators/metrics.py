"""
Chart Metrics

Compact indicator summary for the chart side panel: latest RSI, MACD,
ADX, EMA stack, ATR as % of price, volume z-score, distance to the
nearest swing level and a 0-100 trend score.
"""

import math
from datetime import datetime, timezone
from typing import Optional

import numpy as np

from cryptoscan.schemas.market import Candle
from cryptoscan.schemas.scan import (
    EMAStack,
    MACDValues,
    MetricsIndicators,
    MetricsPayload,
    VolumeStats,
)
from cryptoscan.services.indicators.calculations import adx, atr, ema, get_last_valid, macd, rsi

VOLUME_LOOKBACK = 50
SWING_WINDOW = 20
RSI_PERIOD = 14


def _round(value: Optional[float], digits: int = 2) -> Optional[float]:
    if value is None or not math.isfinite(value):
        return None
    return round(float(value), digits)


def volume_stats(volumes: np.ndarray, lookback: int = VOLUME_LOOKBACK) -> VolumeStats:
    """Last volume against the mean/population std of the trailing window."""
    if len(volumes) == 0:
        return VolumeStats(last=0.0, z_score=0.0, x_avg50=1.0)

    last = float(volumes[-1])
    recent = volumes[-lookback:]
    mean = float(np.mean(recent))
    sd = float(np.std(recent))

    z_score = (last - mean) / sd if sd else 0.0
    x_avg = last / mean if mean else 1.0
    return VolumeStats(last=last, z_score=round(z_score, 2), x_avg50=round(x_avg, 2))


def swing_proximity(
    highs: np.ndarray, lows: np.ndarray, close: float, window: int = SWING_WINDOW
) -> Optional[float]:
    """
    Distance (in % of close) to the nearest swing high or low.

    Swings are local extremes over the last max(window * 3, 60) bars; the
    first bar of that slice seeds both levels.
    """
    if len(highs) == 0 or not close:
        return None

    span = max(window * 3, 60)
    h = highs[-span:]
    lo = lows[-span:]

    swing_high = float(h[0])
    swing_low = float(lo[0])
    for i in range(1, len(h) - 1):
        if h[i] > h[i - 1] and h[i] > h[i + 1]:
            swing_high = max(swing_high, float(h[i]))
        if lo[i] < lo[i - 1] and lo[i] < lo[i + 1]:
            swing_low = min(swing_low, float(lo[i]))

    to_high = abs((swing_high - close) / close * 100)
    to_low = abs((close - swing_low) / close * 100)
    return min(to_high, to_low)


def trend_score(
    ema_20: np.ndarray,
    e50: Optional[float],
    e200: Optional[float],
    rsi_value: Optional[float],
    adx_value: Optional[float],
) -> int:
    """Start at 50 and nudge by EMA stack, EMA20 slope, RSI and ADX; clamp 0-100."""
    score = 50
    valid_20 = ema_20[~np.isnan(ema_20)]

    if len(valid_20) and e50 is not None and e200 is not None:
        e20 = float(valid_20[-1])
        if e20 > e50 > e200:
            score += 15
        if e20 < e50 < e200:
            score -= 15
        if len(valid_20) > 1:
            score += int(np.sign(valid_20[-1] - valid_20[-2])) * 5

    if rsi_value is not None:
        if 55 <= rsi_value <= 65:
            score += 5
        if rsi_value < 45 or rsi_value > 75:
            score -= 5

    if adx_value is not None:
        if adx_value > 25:
            score += 5
        if adx_value < 15:
            score -= 5

    return max(0, min(100, score))


def compute_metrics(
    candles: list[Candle],
    symbol: str,
    tf: str,
    generated_at: Optional[datetime] = None,
    synthetic: bool = False,
) -> MetricsPayload:
    """Build the metrics payload for one candle series."""
    highs = np.array([c.high for c in candles], dtype=float)
    lows = np.array([c.low for c in candles], dtype=float)
    closes = np.array([c.close for c in candles], dtype=float)
    volumes = np.array([c.volume for c in candles], dtype=float)

    close = float(closes[-1]) if len(closes) else 0.0

    ema_20 = ema(closes, 20)
    e20 = _round(ema_20[-1] if len(ema_20) else None)
    e50_raw = ema(closes, 50)
    e200_raw = ema(closes, 200)
    e50 = get_last_valid(e50_raw)
    e200 = get_last_valid(e200_raw)

    rsi_value = rsi(closes, RSI_PERIOD) if len(closes) > RSI_PERIOD else None

    macd_result = macd(closes)
    macd_values = None
    if not math.isnan(macd_result.histogram):
        macd_values = MACDValues(
            macd=_round(macd_result.macd),
            signal=_round(macd_result.signal),
            histogram=_round(macd_result.histogram),
        )

    adx_raw = adx(highs, lows, closes).adx
    adx_value = None if math.isnan(adx_raw) else adx_raw

    atr_value = atr(highs, lows, closes)
    atr_pct = atr_value / close * 100 if close and not math.isnan(atr_value) else None

    indicators = MetricsIndicators(
        close=close,
        rsi=_round(rsi_value, 1),
        macd=macd_values,
        adx=_round(adx_value, 1),
        ema=EMAStack(e20=e20, e50=_round(e50), e200=_round(e200)),
        atr_pct=_round(atr_pct, 1),
        vol=volume_stats(volumes),
        sr_proximity_pct=_round(swing_proximity(highs, lows, close)),
        trend_score=trend_score(ema_20, e50, e200, rsi_value, adx_value),
    )

    return MetricsPayload(
        symbol=symbol,
        tf=tf,
        generated_at=generated_at or datetime.now(timezone.utc),
        indicators=indicators,
        synthetic=synthetic,
    )
