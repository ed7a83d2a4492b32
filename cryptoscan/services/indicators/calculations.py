"""
Technical Indicator Calculations

Pure Python/NumPy implementations of technical indicators.
All math is deterministic.

Every function is total: input shorter than the lookback period (or
containing NaN) yields the documented neutral default, never an exception.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional, Sequence, Union

ArrayLike = Union[Sequence[float], np.ndarray]

NAN = float("nan")


def _as_array(values: ArrayLike) -> np.ndarray:
    return np.asarray(values, dtype=float)


def _align(*series: ArrayLike) -> tuple[np.ndarray, ...]:
    """Convert to arrays and trim all of them to the shortest (keeping the tail)."""
    arrays = [_as_array(s) for s in series]
    n = min(len(a) for a in arrays)
    return tuple(a[len(a) - n:] for a in arrays)


@dataclass(frozen=True)
class MACDResult:
    macd: float
    signal: float
    histogram: float
    prev_histogram: float


@dataclass(frozen=True)
class BollingerResult:
    upper: float
    middle: float
    lower: float
    percent_b: float
    width: float
    squeeze: bool


@dataclass(frozen=True)
class StochasticResult:
    k: float
    d: float


@dataclass(frozen=True)
class ADXResult:
    adx: float
    plus_di: float
    minus_di: float


@dataclass(frozen=True)
class SARResult:
    sar: float
    trend: str  # "bullish" / "bearish" / "neutral"


# =============================================================================
# MOVING AVERAGES
# =============================================================================


def sma(values: ArrayLike, period: int) -> float:
    """Simple Moving Average of the last `period` values (NaN if too short)."""
    values = _as_array(values)
    if period <= 0 or len(values) < period:
        return NAN
    return float(np.mean(values[-period:]))


def sma_series(data: ArrayLike, period: int) -> np.ndarray:
    """Rolling Simple Moving Average."""
    data = _as_array(data)
    result = np.full(len(data), np.nan)
    if period <= 0 or len(data) < period:
        return result

    for i in range(period - 1, len(data)):
        result[i] = np.mean(data[i - period + 1 : i + 1])
    return result


def ema(data: ArrayLike, period: int) -> np.ndarray:
    """
    Exponential Moving Average.

    Seeded with the SMA of the first `period` values, then
    ema[i] = value[i] * k + ema[i-1] * (1 - k), k = 2 / (period + 1).
    Leading NaNs are skipped so derived series (e.g. the MACD line) can be
    smoothed directly.
    """
    data = _as_array(data)
    result = np.full(len(data), np.nan)
    if period <= 0:
        return result

    valid = np.flatnonzero(~np.isnan(data))
    if len(valid) == 0:
        return result
    start = int(valid[0])
    if len(data) - start < period:
        return result

    multiplier = 2 / (period + 1)

    # Start with SMA
    seed_end = start + period
    result[seed_end - 1] = np.mean(data[start:seed_end])

    for i in range(seed_end, len(data)):
        result[i] = (data[i] - result[i - 1]) * multiplier + result[i - 1]

    return result


# =============================================================================
# MOMENTUM INDICATORS
# =============================================================================


def rsi(closes: ArrayLike, period: int = 14) -> float:
    """
    Relative Strength Index (Wilder).

    Returns 50 when fewer than period + 1 closes exist and 100 when the
    smoothed average loss is zero.
    """
    closes = _as_array(closes)
    if period <= 0 or len(closes) < period + 1:
        return 50.0

    deltas = np.diff(closes)
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    # First average
    avg_gain = float(np.mean(gains[:period]))
    avg_loss = float(np.mean(losses[:period]))

    # Wilder smoothing
    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return float(100 - (100 / (1 + rs)))


def macd(
    closes: ArrayLike,
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> MACDResult:
    """
    MACD (Moving Average Convergence Divergence).

    All fields are NaN unless at least slow_period + signal_period closes exist.
    """
    closes = _as_array(closes)
    if len(closes) < slow_period + signal_period:
        return MACDResult(NAN, NAN, NAN, NAN)

    macd_line = ema(closes, fast_period) - ema(closes, slow_period)

    # Signal line is EMA of MACD line
    signal_line = ema(macd_line, signal_period)

    histogram = macd_line - signal_line

    return MACDResult(
        macd=float(macd_line[-1]),
        signal=float(signal_line[-1]),
        histogram=float(histogram[-1]),
        prev_histogram=float(histogram[-2]),
    )


def stochastic_k_series(
    highs: ArrayLike, lows: ArrayLike, closes: ArrayLike, period: int = 14
) -> np.ndarray:
    """Raw %K for every bar with a full lookback window (NaN before)."""
    highs, lows, closes = _align(highs, lows, closes)
    k = np.full(len(closes), np.nan)
    if period <= 0 or len(closes) < period:
        return k

    for i in range(period - 1, len(closes)):
        highest_high = np.max(highs[i - period + 1 : i + 1])
        lowest_low = np.min(lows[i - period + 1 : i + 1])

        if highest_high == lowest_low:
            k[i] = 50
        else:
            k[i] = ((closes[i] - lowest_low) / (highest_high - lowest_low)) * 100

    return k


def stochastic(
    highs: ArrayLike,
    lows: ArrayLike,
    closes: ArrayLike,
    k_period: int = 14,
    d_period: int = 3,
) -> StochasticResult:
    """
    Stochastic Oscillator.

    %D is the simple mean of the last d_period %K values.
    """
    k = stochastic_k_series(highs, lows, closes, k_period)
    if len(k) == 0 or np.isnan(k[-1]):
        return StochasticResult(NAN, NAN)

    d = sma(k, d_period)
    return StochasticResult(k=float(k[-1]), d=d)


def typical_price(highs: ArrayLike, lows: ArrayLike, closes: ArrayLike) -> np.ndarray:
    highs, lows, closes = _align(highs, lows, closes)
    return (highs + lows + closes) / 3


def cci(
    highs: ArrayLike, lows: ArrayLike, closes: ArrayLike, period: int = 20
) -> float:
    """Commodity Channel Index (0 when mean deviation is zero)."""
    tp = typical_price(highs, lows, closes)
    if period <= 0 or len(tp) < period:
        return NAN

    window = tp[-period:]
    mean = np.mean(window)
    mean_dev = np.mean(np.abs(window - mean))

    if mean_dev == 0:
        return 0.0
    return float((tp[-1] - mean) / (0.015 * mean_dev))


def williams_r(
    highs: ArrayLike, lows: ArrayLike, closes: ArrayLike, period: int = 14
) -> float:
    """Williams %R in [-100, 0]; -50 for a flat range."""
    highs, lows, closes = _align(highs, lows, closes)
    if period <= 0 or len(closes) < period:
        return NAN

    highest_high = np.max(highs[-period:])
    lowest_low = np.min(lows[-period:])

    if highest_high == lowest_low:
        return -50.0
    return float(((highest_high - closes[-1]) / (highest_high - lowest_low)) * -100)


def mfi(
    highs: ArrayLike,
    lows: ArrayLike,
    closes: ArrayLike,
    volumes: ArrayLike,
    period: int = 14,
) -> float:
    """Money Flow Index over the last `period` bars (100 when no negative flow)."""
    highs, lows, closes, volumes = _align(highs, lows, closes, volumes)
    if period <= 0 or len(closes) < period + 1:
        return NAN

    tp = (highs + lows + closes) / 3
    raw_money_flow = tp * volumes

    current = tp[-period:]
    previous = tp[-period - 1 : -1]
    flow = raw_money_flow[-period:]

    pos_sum = float(np.sum(flow[current > previous]))
    neg_sum = float(np.sum(flow[current < previous]))

    if neg_sum == 0:
        return 100.0

    money_ratio = pos_sum / neg_sum
    return float(100 - (100 / (1 + money_ratio)))


def percent_change(closes: ArrayLike, bars: int) -> float:
    """
    % change of the last close against the close `bars` bars earlier.

    NaN when the series does not reach back `bars` bars.
    """
    closes = _as_array(closes)
    if bars <= 0 or len(closes) <= bars:
        return NAN

    base = closes[-1 - bars]
    if base == 0:
        return NAN
    return float((closes[-1] - base) / base * 100)


# =============================================================================
# VOLATILITY INDICATORS
# =============================================================================


def true_range(highs: ArrayLike, lows: ArrayLike, closes: ArrayLike) -> np.ndarray:
    """True range for bars 1..n-1 (bar 0 has no previous close)."""
    highs, lows, closes = _align(highs, lows, closes)
    if len(closes) < 2:
        return np.array([], dtype=float)

    prev_close = closes[:-1]
    return np.maximum.reduce([
        highs[1:] - lows[1:],
        np.abs(highs[1:] - prev_close),
        np.abs(lows[1:] - prev_close),
    ])


def atr(
    highs: ArrayLike, lows: ArrayLike, closes: ArrayLike, period: int = 14
) -> float:
    """Average True Range: simple mean of the last `period` true ranges."""
    tr = true_range(highs, lows, closes)
    if period <= 0 or len(tr) < period:
        return NAN
    return float(np.mean(tr[-period:]))


def bollinger_bands(
    closes: ArrayLike, period: int = 20, std_dev: float = 2.0
) -> BollingerResult:
    """
    Bollinger Bands on the last `period` closes.

    Uses population standard deviation. Squeeze is width < 0.1.
    """
    closes = _as_array(closes)
    if period <= 0 or len(closes) < period:
        return BollingerResult(NAN, NAN, NAN, NAN, NAN, False)

    window = closes[-period:]
    middle = float(np.mean(window))
    std = float(np.std(window))

    upper = middle + (std_dev * std)
    lower = middle - (std_dev * std)
    band = upper - lower

    # %B (position within bands)
    percent_b = (closes[-1] - lower) / band if band > 0 else 0.5
    width = band / middle if middle != 0 else NAN

    return BollingerResult(
        upper=upper,
        middle=middle,
        lower=lower,
        percent_b=float(percent_b),
        width=float(width),
        squeeze=bool(width < 0.1),
    )


# =============================================================================
# VOLUME INDICATORS
# =============================================================================


def vwap(
    highs: ArrayLike,
    lows: ArrayLike,
    closes: ArrayLike,
    volumes: ArrayLike,
    window: int = 20,
) -> float:
    """
    Rolling Volume Weighted Average Price over the trailing `window` bars.

    Not a session VWAP. A window with no volume falls back to the plain
    mean of the typical price.
    """
    highs, lows, closes, volumes = _align(highs, lows, closes, volumes)
    if window <= 0 or len(closes) < window:
        return NAN

    tp = ((highs + lows + closes) / 3)[-window:]
    vol = volumes[-window:]
    total_volume = np.sum(vol)

    if total_volume > 0:
        return float(np.sum(tp * vol) / total_volume)
    return float(np.mean(tp))


def obv_series(closes: ArrayLike, volumes: ArrayLike) -> np.ndarray:
    """On-Balance Volume, cumulative from 0 at the first bar."""
    closes, volumes = _align(closes, volumes)
    result = np.zeros(len(closes))
    if len(closes) < 2:
        return result

    deltas = np.diff(closes)
    signed = np.where(deltas > 0, volumes[1:], np.where(deltas < 0, -volumes[1:], 0.0))
    result[1:] = np.cumsum(signed)
    return result


def obv(closes: ArrayLike, volumes: ArrayLike) -> float:
    series = obv_series(closes, volumes)
    return float(series[-1]) if len(series) else 0.0


# =============================================================================
# TREND INDICATORS
# =============================================================================


def _wilder_sum(raw: np.ndarray, period: int) -> np.ndarray:
    """
    Wilder running-sum smoothing.

    s[0] = sum(raw[:period]); s[i] = s[i-1] - s[i-1] / period + raw[i].
    Returns only the defined values (len(raw) - period + 1 of them).
    """
    out = np.empty(len(raw) - period + 1)
    out[0] = np.sum(raw[:period])
    for j, i in enumerate(range(period, len(raw)), start=1):
        out[j] = out[j - 1] - out[j - 1] / period + raw[i]
    return out


def adx(
    highs: ArrayLike, lows: ArrayLike, closes: ArrayLike, period: int = 14
) -> ADXResult:
    """
    Average Directional Index.

    +DM/-DM and TR are Wilder-smoothed; ADX is the EMA of DX. +DI/-DI are
    available after period + 1 bars, ADX after 2 * period bars.
    """
    highs, lows, closes = _align(highs, lows, closes)
    if period <= 0 or len(closes) < period + 1:
        return ADXResult(NAN, NAN, NAN)

    up_move = highs[1:] - highs[:-1]
    down_move = lows[:-1] - lows[1:]

    plus_dm = np.where((up_move > down_move) & (up_move > 0), up_move, 0.0)
    minus_dm = np.where((down_move > up_move) & (down_move > 0), down_move, 0.0)
    tr = true_range(highs, lows, closes)

    smoothed_plus_dm = _wilder_sum(plus_dm, period)
    smoothed_minus_dm = _wilder_sum(minus_dm, period)
    smoothed_tr = _wilder_sum(tr, period)

    plus_di = np.zeros(len(smoothed_tr))
    minus_di = np.zeros(len(smoothed_tr))
    has_range = smoothed_tr > 0
    plus_di[has_range] = 100 * smoothed_plus_dm[has_range] / smoothed_tr[has_range]
    minus_di[has_range] = 100 * smoothed_minus_dm[has_range] / smoothed_tr[has_range]

    di_sum = plus_di + minus_di
    dx = np.zeros(len(di_sum))
    has_di = di_sum > 0
    dx[has_di] = 100 * np.abs(plus_di[has_di] - minus_di[has_di]) / di_sum[has_di]

    # ADX is smoothed DX
    adx_line = ema(dx, period)

    return ADXResult(
        adx=float(adx_line[-1]),
        plus_di=float(plus_di[-1]),
        minus_di=float(minus_di[-1]),
    )


def parabolic_sar(
    highs: ArrayLike,
    lows: ArrayLike,
    closes: ArrayLike,
    window: int = 10,
    step: float = 0.02,
) -> SARResult:
    """
    Simplified Parabolic SAR. This is an approximation, not Wilder's
    iterative SAR.

    Trend comes from the last two closes. The stop starts at the opposite
    extreme of the trailing window and moves `step` of the way toward the
    trend extreme: uptrend -> low + step * (high - low), downtrend ->
    high - step * (high - low). Equal closes give no trend and no stop.
    """
    highs, lows, closes = _align(highs, lows, closes)
    if window <= 0 or len(closes) < max(window, 2):
        return SARResult(NAN, "neutral")

    highest_high = float(np.max(highs[-window:]))
    lowest_low = float(np.min(lows[-window:]))
    span = highest_high - lowest_low

    if closes[-1] > closes[-2]:
        return SARResult(lowest_low + step * span, "bullish")
    if closes[-1] < closes[-2]:
        return SARResult(highest_high - step * span, "bearish")
    return SARResult(NAN, "neutral")


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def get_last_valid(arr: ArrayLike) -> Optional[float]:
    """Get last non-NaN value from array."""
    arr = _as_array(arr)
    valid = arr[~np.isnan(arr)]
    return float(valid[-1]) if len(valid) > 0 else None
