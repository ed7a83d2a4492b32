"""
Signal Classifier

Maps each indicator's latest value to bullish / bearish / neutral using
fixed thresholds, and weights the result by the indicator's tier.

Weighting: a directional signal scores +tier (bullish) or -tier (bearish);
neutral scores 0.
"""

import math
from typing import Mapping, Optional

from cryptoscan.schemas.scan import Signal


# Importance tier per indicator (3 = major, 2 = moderate, 1 = minor)
DEFAULT_TIERS: dict[str, int] = {
    # Trend
    "macd": 3,
    "ema_crossover": 3,
    "adx": 3,
    "ema_20": 2,
    "ema_50": 2,
    "ema_200": 2,
    "directional_index": 2,
    "sma_20": 1,
    "sma_50": 1,
    "parabolic_sar": 1,
    # Momentum
    "rsi": 2,
    "momentum_24h": 2,
    "stochastic": 1,
    "williams_r": 1,
    "cci": 1,
    # Volume
    "vwap": 2,
    "mfi": 1,
    "obv": 1,
    # Volatility
    "bollinger": 1,
    "atr": 1,
}

# Thresholds (bearish at/above, bullish at/below)
RSI_OVERBOUGHT, RSI_OVERSOLD = 70.0, 30.0
STOCH_OVERBOUGHT, STOCH_OVERSOLD = 80.0, 20.0
MFI_OVERBOUGHT, MFI_OVERSOLD = 80.0, 20.0
CCI_OVERBOUGHT, CCI_OVERSOLD = 100.0, -100.0
WILLIAMS_OVERBOUGHT, WILLIAMS_OVERSOLD = -20.0, -80.0
PERCENT_B_UPPER, PERCENT_B_LOWER = 0.95, 0.05
CHANGE_UP, CHANGE_DOWN = 3.0, -3.0
ADX_TRENDING = 25.0

# MACD histograms this close to zero (relative to price) count as flat
HISTOGRAM_TOLERANCE = 1e-9


def _missing(*values: Optional[float]) -> bool:
    return any(v is None or math.isnan(v) for v in values)


def classify_oscillator(value: float, overbought: float, oversold: float) -> Signal:
    """Overbought reads bearish, oversold reads bullish (inclusive bounds)."""
    if _missing(value):
        return Signal.NEUTRAL
    if value >= overbought:
        return Signal.BEARISH
    if value <= oversold:
        return Signal.BULLISH
    return Signal.NEUTRAL


def classify_rsi(value: float) -> Signal:
    return classify_oscillator(value, RSI_OVERBOUGHT, RSI_OVERSOLD)


def classify_mfi(value: float) -> Signal:
    return classify_oscillator(value, MFI_OVERBOUGHT, MFI_OVERSOLD)


def classify_cci(value: float) -> Signal:
    return classify_oscillator(value, CCI_OVERBOUGHT, CCI_OVERSOLD)


def classify_percent_b(value: float) -> Signal:
    return classify_oscillator(value, PERCENT_B_UPPER, PERCENT_B_LOWER)


def classify_stochastic(k: float, d: float) -> Signal:
    """Both %K and %D must agree."""
    if _missing(k, d):
        return Signal.NEUTRAL
    if k >= STOCH_OVERBOUGHT and d >= STOCH_OVERBOUGHT:
        return Signal.BEARISH
    if k <= STOCH_OVERSOLD and d <= STOCH_OVERSOLD:
        return Signal.BULLISH
    return Signal.NEUTRAL


def classify_williams_r(value: float) -> Signal:
    # strict bounds
    if _missing(value):
        return Signal.NEUTRAL
    if value > WILLIAMS_OVERBOUGHT:
        return Signal.BEARISH
    if value < WILLIAMS_OVERSOLD:
        return Signal.BULLISH
    return Signal.NEUTRAL


def classify_change(percent: float) -> Signal:
    if _missing(percent):
        return Signal.NEUTRAL
    if percent >= CHANGE_UP:
        return Signal.BULLISH
    if percent <= CHANGE_DOWN:
        return Signal.BEARISH
    return Signal.NEUTRAL


def classify_above(value: float, reference: float) -> Signal:
    """Bullish when value is above reference (price vs MA/VWAP, fast vs slow MA)."""
    if _missing(value, reference):
        return Signal.NEUTRAL
    if value > reference:
        return Signal.BULLISH
    if value < reference:
        return Signal.BEARISH
    return Signal.NEUTRAL


def classify_histogram(histogram: float, price: float = 1.0) -> Signal:
    if _missing(histogram):
        return Signal.NEUTRAL
    if abs(histogram) <= HISTOGRAM_TOLERANCE * max(1.0, abs(price)):
        return Signal.NEUTRAL
    return Signal.BULLISH if histogram > 0 else Signal.BEARISH


def classify_sign(value: float) -> Signal:
    if _missing(value) or value == 0:
        return Signal.NEUTRAL
    return Signal.BULLISH if value > 0 else Signal.BEARISH


def classify_adx(adx_value: float, trend: Signal) -> Signal:
    """ADX measures strength only: a trending market inherits the trend's direction."""
    if _missing(adx_value) or adx_value < ADX_TRENDING:
        return Signal.NEUTRAL
    return trend


def classify_trend_label(trend: str) -> Signal:
    try:
        return Signal(trend)
    except ValueError:
        return Signal.NEUTRAL


def score_for(signal: Signal, tier: int) -> int:
    """Signed contribution of one indicator."""
    if signal == Signal.BULLISH:
        return tier
    if signal == Signal.BEARISH:
        return -tier
    return 0


def tier_for(name: str, tiers: Optional[Mapping[str, int]] = None) -> int:
    table = tiers if tiers is not None else DEFAULT_TIERS
    return table.get(name, 1)
