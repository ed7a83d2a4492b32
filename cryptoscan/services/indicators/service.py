"""
Indicator Engine Service Implementation

Calculates every technical indicator from OHLCV data, classifies each one
and folds the weighted signals into a composite recommendation.
Pure Python/NumPy: no I/O, no clock, no randomness.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Mapping, Optional

import numpy as np

from cryptoscan.schemas.market import (
    Candle,
    DataSource,
    TIMEFRAME_MS,
    check_candles,
    parse_timeframe,
)
from cryptoscan.schemas.scan import IndicatorResult, ScanMeta, ScanResult, Signal
from cryptoscan.services.indicators.interface import IndicatorServiceInterface
from cryptoscan.services.indicators.calculations import (
    adx,
    atr,
    bollinger_bands,
    cci,
    ema,
    macd,
    mfi,
    obv,
    parabolic_sar,
    percent_change,
    rsi,
    sma,
    stochastic,
    vwap,
    williams_r,
)
from cryptoscan.services.indicators.signals import (
    classify_above,
    classify_adx,
    classify_cci,
    classify_change,
    classify_histogram,
    classify_mfi,
    classify_percent_b,
    classify_rsi,
    classify_sign,
    classify_stochastic,
    classify_trend_label,
    classify_williams_r,
    score_for,
    tier_for,
)
from cryptoscan.services.indicators.scoring import (
    DEFAULT_THRESHOLDS,
    RecommendationThresholds,
    total_score,
)

logger = logging.getLogger(__name__)

NAN = float("nan")
DAY_MS = 86_400_000


def _candles_to_arrays(candles: list[Candle]) -> tuple:
    """Convert Candle list to numpy arrays."""
    highs = np.array([c.high for c in candles], dtype=float)
    lows = np.array([c.low for c in candles], dtype=float)
    closes = np.array([c.close for c in candles], dtype=float)
    volumes = np.array([c.volume for c in candles], dtype=float)
    return highs, lows, closes, volumes


def _last(series: np.ndarray) -> float:
    return float(series[-1]) if len(series) else NAN


def _fmt(value: float, digits: int = 2) -> str:
    if value is None or not math.isfinite(value):
        return "n/a"
    return f"{value:,.{digits}f}"


def infer_interval_ms(candles: list[Candle]) -> Optional[int]:
    """Median spacing between consecutive open times (None if undeterminable)."""
    if len(candles) < 2:
        return None
    times = np.array([c.open_time for c in candles], dtype=float)
    gaps = np.diff(times)
    gaps = gaps[gaps > 0]
    if len(gaps) == 0:
        return None
    return int(np.median(gaps))


def interval_label(interval_ms: Optional[int]) -> Optional[str]:
    """Timeframe string for a bar spacing, e.g. 3_600_000 -> '1h'."""
    if not interval_ms:
        return None
    for timeframe, ms in TIMEFRAME_MS.items():
        if ms == interval_ms:
            return timeframe.value
    return f"{max(1, interval_ms // 60_000)}m"


def bars_per_day(interval_ms: Optional[int]) -> int:
    if not interval_ms:
        return 1
    return max(1, round(DAY_MS / interval_ms))


def _as_of(candles: list[Candle]) -> Optional[datetime]:
    if not candles:
        return None
    try:
        return datetime.fromtimestamp(candles[-1].open_time / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


class IndicatorService(IndicatorServiceInterface):
    """
    Indicator Engine Service.

    Computes the full indicator set for one candle series. Results are a
    pure function of the candles (plus the tier table and thresholds the
    service was built with), so identical input gives identical output.
    """

    def __init__(
        self,
        tiers: Optional[Mapping[str, int]] = None,
        thresholds: RecommendationThresholds = DEFAULT_THRESHOLDS,
    ):
        if tiers is not None:
            bad = {name: tier for name, tier in tiers.items() if tier not in (1, 2, 3)}
            if bad:
                raise ValueError(f"tiers must be 1, 2 or 3 (got {bad})")
        self.tiers = tiers
        self.thresholds = thresholds

    async def execute(self, input_data: list[Candle]) -> ScanResult:
        return self.compute(input_data)

    def compute(
        self,
        candles: list[Candle],
        symbol: str = "",
        interval: Optional[str] = None,
        source: DataSource = DataSource.BINANCE,
    ) -> ScanResult:
        """Compute all indicators for a single candle series."""
        warnings = check_candles(candles)
        if warnings:
            logger.warning(
                f"{symbol or 'scan'}: {len(warnings)} malformed bar(s), first: {warnings[0]}"
            )

        highs, lows, closes, volumes = _candles_to_arrays(candles)
        price = _last(closes)

        timeframe = parse_timeframe(interval)
        interval_ms = TIMEFRAME_MS[timeframe] if timeframe else infer_interval_ms(candles)

        indicators: dict[str, IndicatorResult] = {}
        indicators.update(self._calculate_trend_indicators(price, highs, lows, closes))
        indicators.update(
            self._calculate_momentum_indicators(highs, lows, closes, interval_ms)
        )
        indicators.update(self._calculate_volume_indicators(price, highs, lows, closes, volumes))
        indicators.update(self._calculate_volatility_indicators(price, highs, lows, closes))

        total = total_score(indicators.values())
        recommendation = self.thresholds.classify(total)

        meta = ScanMeta(
            interval=timeframe.value if timeframe else interval_label(interval_ms),
            candle_count=len(candles),
            as_of=_as_of(candles),
            source=source,
            synthetic=source == DataSource.SYNTHETIC,
        )

        return ScanResult(
            symbol=symbol,
            price=price,
            indicators=indicators,
            total_score=total,
            recommendation=recommendation,
            meta=meta,
        )

    async def health_check(self) -> bool:
        return True

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _result(
        self, name: str, value: float, signal: Signal, description: str
    ) -> IndicatorResult:
        tier = tier_for(name, self.tiers)
        return IndicatorResult(
            name=name,
            value=value,
            signal=signal,
            score=score_for(signal, tier),
            tier=tier,
            description=description,
        )

    def _price_vs(self, name: str, label: str, price: float, reference: float) -> IndicatorResult:
        signal = classify_above(price, reference)
        if signal == Signal.BULLISH:
            text = f"Price above {label} ({_fmt(reference)})"
        elif signal == Signal.BEARISH:
            text = f"Price below {label} ({_fmt(reference)})"
        elif math.isnan(reference):
            text = f"Not enough data for {label}"
        else:
            text = f"Price at {label} ({_fmt(reference)})"
        return self._result(name, reference, signal, text)

    # =========================================================================
    # INDICATOR GROUPS
    # =========================================================================

    def _calculate_trend_indicators(
        self, price: float, highs: np.ndarray, lows: np.ndarray, closes: np.ndarray
    ) -> dict[str, IndicatorResult]:
        ema_20 = _last(ema(closes, 20))
        ema_50 = _last(ema(closes, 50))
        ema_200 = _last(ema(closes, 200))

        results = {
            "ema_20": self._price_vs("ema_20", "EMA20", price, ema_20),
            "ema_50": self._price_vs("ema_50", "EMA50", price, ema_50),
            "ema_200": self._price_vs("ema_200", "EMA200", price, ema_200),
            "sma_20": self._price_vs("sma_20", "SMA20", price, sma(closes, 20)),
            "sma_50": self._price_vs("sma_50", "SMA50", price, sma(closes, 50)),
        }

        # EMA 20/50 crossover
        cross_signal = classify_above(ema_20, ema_50)
        if cross_signal == Signal.BULLISH:
            cross_text = "EMA20 above EMA50 (golden alignment)"
        elif cross_signal == Signal.BEARISH:
            cross_text = "EMA20 below EMA50 (death alignment)"
        else:
            cross_text = "EMA20/EMA50 unavailable or equal"
        results["ema_crossover"] = self._result(
            "ema_crossover", ema_20 - ema_50, cross_signal, cross_text
        )

        # MACD
        macd_result = macd(closes)
        macd_signal = classify_histogram(macd_result.histogram, price)
        if math.isnan(macd_result.histogram):
            macd_text = "Not enough data for MACD"
        else:
            macd_text = (
                f"MACD {_fmt(macd_result.macd, 4)} vs signal {_fmt(macd_result.signal, 4)}"
            )
            prev = macd_result.prev_histogram
            if not math.isnan(prev):
                if prev <= 0 < macd_result.histogram:
                    macd_text += ", bullish crossover"
                elif prev >= 0 > macd_result.histogram:
                    macd_text += ", bearish crossover"
        results["macd"] = self._result("macd", macd_result.histogram, macd_signal, macd_text)

        # ADX with +DI/-DI
        adx_result = adx(highs, lows, closes)
        di_signal = classify_above(adx_result.plus_di, adx_result.minus_di)
        results["directional_index"] = self._result(
            "directional_index",
            adx_result.plus_di - adx_result.minus_di,
            di_signal,
            f"+DI {_fmt(adx_result.plus_di, 1)} / -DI {_fmt(adx_result.minus_di, 1)}",
        )
        adx_signal = classify_adx(adx_result.adx, di_signal)
        if math.isnan(adx_result.adx):
            adx_text = "Not enough data for ADX"
        elif adx_signal == Signal.NEUTRAL:
            adx_text = f"Weak or no trend (ADX {_fmt(adx_result.adx, 1)})"
        else:
            adx_text = f"Strong {adx_signal.value} trend (ADX {_fmt(adx_result.adx, 1)})"
        results["adx"] = self._result("adx", adx_result.adx, adx_signal, adx_text)

        # Parabolic SAR
        sar = parabolic_sar(highs, lows, closes)
        sar_signal = classify_trend_label(sar.trend)
        results["parabolic_sar"] = self._result(
            "parabolic_sar",
            sar.sar,
            sar_signal,
            f"SAR {_fmt(sar.sar)} ({sar.trend})",
        )

        return results

    def _calculate_momentum_indicators(
        self,
        highs: np.ndarray,
        lows: np.ndarray,
        closes: np.ndarray,
        interval_ms: Optional[int],
    ) -> dict[str, IndicatorResult]:
        results = {}

        rsi_value = rsi(closes)
        rsi_signal = classify_rsi(rsi_value)
        zone = {
            Signal.BEARISH: "overbought",
            Signal.BULLISH: "oversold",
        }.get(rsi_signal, "neutral zone")
        results["rsi"] = self._result(
            "rsi", rsi_value, rsi_signal, f"RSI {_fmt(rsi_value, 1)} ({zone})"
        )

        stoch = stochastic(highs, lows, closes)
        results["stochastic"] = self._result(
            "stochastic",
            stoch.k,
            classify_stochastic(stoch.k, stoch.d),
            f"%K {_fmt(stoch.k, 1)} / %D {_fmt(stoch.d, 1)}",
        )

        wr = williams_r(highs, lows, closes)
        results["williams_r"] = self._result(
            "williams_r", wr, classify_williams_r(wr), f"Williams %R {_fmt(wr, 1)}"
        )

        cci_value = cci(highs, lows, closes)
        results["cci"] = self._result(
            "cci", cci_value, classify_cci(cci_value), f"CCI {_fmt(cci_value, 1)}"
        )

        change = percent_change(closes, bars_per_day(interval_ms))
        results["momentum_24h"] = self._result(
            "momentum_24h",
            change,
            classify_change(change),
            f"24h change {_fmt(change)}%",
        )

        return results

    def _calculate_volume_indicators(
        self,
        price: float,
        highs: np.ndarray,
        lows: np.ndarray,
        closes: np.ndarray,
        volumes: np.ndarray,
    ) -> dict[str, IndicatorResult]:
        results = {"vwap": self._price_vs("vwap", "VWAP", price, vwap(highs, lows, closes, volumes))}

        mfi_value = mfi(highs, lows, closes, volumes)
        results["mfi"] = self._result(
            "mfi", mfi_value, classify_mfi(mfi_value), f"MFI {_fmt(mfi_value, 1)}"
        )

        obv_value = obv(closes, volumes)
        obv_signal = classify_sign(obv_value)
        results["obv"] = self._result(
            "obv",
            obv_value,
            obv_signal,
            "Accumulation" if obv_signal == Signal.BULLISH
            else "Distribution" if obv_signal == Signal.BEARISH
            else "Flat on-balance volume",
        )

        return results

    def _calculate_volatility_indicators(
        self, price: float, highs: np.ndarray, lows: np.ndarray, closes: np.ndarray
    ) -> dict[str, IndicatorResult]:
        bb = bollinger_bands(closes)
        bb_text = f"Bands {_fmt(bb.lower)} - {_fmt(bb.upper)}, %B {_fmt(bb.percent_b)}"
        if bb.squeeze:
            bb_text += " (squeeze)"
        results = {
            "bollinger": self._result(
                "bollinger", bb.percent_b, classify_percent_b(bb.percent_b), bb_text
            )
        }

        # ATR is informational only
        atr_value = atr(highs, lows, closes)
        atr_pct = atr_value / price * 100 if price else NAN
        results["atr"] = self._result(
            "atr", atr_value, Signal.NEUTRAL, f"ATR {_fmt(atr_value)} ({_fmt(atr_pct)}% of price)"
        )

        return results


_default_service = IndicatorService()


def compute_scan(
    candles: list[Candle],
    symbol: str = "",
    interval: Optional[str] = None,
    source: DataSource = DataSource.BINANCE,
    tiers: Optional[Mapping[str, int]] = None,
    thresholds: Optional[RecommendationThresholds] = None,
) -> ScanResult:
    """Scan one candle series with the default (or given) tiers and thresholds."""
    if tiers is None and thresholds is None:
        service = _default_service
    else:
        service = IndicatorService(tiers=tiers, thresholds=thresholds or DEFAULT_THRESHOLDS)
    return service.compute(candles, symbol=symbol, interval=interval, source=source)
