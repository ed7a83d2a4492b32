"""
Market Scanner Service

Scans many symbols concurrently: batch scans, the high-potential filter
and the RSI heatmap.
"""

import asyncio
import logging
import re
from typing import Iterable, Optional

from cryptoscan.schemas.market import Ticker24h, Timeframe
from cryptoscan.schemas.scan import BatchScanResult, RsiSnapshot, ScanResult, Signal
from cryptoscan.services.base import ExternalAPIError
from cryptoscan.services.indicators.calculations import rsi
from cryptoscan.services.indicators.scoring import (
    DEFAULT_THRESHOLDS,
    RecommendationThresholds,
)
from cryptoscan.services.indicators.signals import classify_rsi
from cryptoscan.services.market_data import MarketDataService
from cryptoscan.services.scanner.service import ScanService

logger = logging.getLogger(__name__)

QUOTE_ASSET = "USDT"

# Leveraged tokens (BTCUP, ETHDOWN, XRPBULL, ...)
LEVERAGED_PATTERN = re.compile(r"(UP|DOWN|BULL|BEAR|[1-5]L|[1-5]S)$")

MIN_RSI_CANDLES = 20

# High-potential criteria
HP_RSI_LOW, HP_RSI_HIGH = 40.0, 70.0
HP_ADX_MIN = 25.0
HP_MIN_CONDITIONS = 3


def is_tradeable_pair(symbol: str, stablecoins: Iterable[str] = ()) -> bool:
    """USDT spot pair that is neither a leveraged token nor a stablecoin."""
    if not symbol.endswith(QUOTE_ASSET):
        return False
    base = symbol[: -len(QUOTE_ASSET)]
    if not base or LEVERAGED_PATTERN.search(base):
        return False
    return base not in set(stablecoins)


def high_potential_conditions(result: ScanResult) -> int:
    """Count of: EMA20>EMA50, 40<RSI<70, MACD bullish, ADX>25."""
    ind = result.indicators
    checks = []

    cross = ind.get("ema_crossover")
    checks.append(cross is not None and cross.signal == Signal.BULLISH)

    rsi_result = ind.get("rsi")
    checks.append(
        rsi_result is not None
        and rsi_result.value is not None
        and HP_RSI_LOW < rsi_result.value < HP_RSI_HIGH
    )

    macd_result = ind.get("macd")
    checks.append(macd_result is not None and macd_result.signal == Signal.BULLISH)

    adx_result = ind.get("adx")
    checks.append(
        adx_result is not None and adx_result.value is not None and adx_result.value > HP_ADX_MIN
    )

    return sum(checks)


def is_high_potential(result: ScanResult, min_score: int) -> bool:
    return (
        high_potential_conditions(result) >= HP_MIN_CONDITIONS
        and result.total_score >= min_score
    )


def _rsi_label(value: float) -> str:
    signal = classify_rsi(value)
    if signal == Signal.BEARISH:
        return "overbought"
    if signal == Signal.BULLISH:
        return "oversold"
    return "neutral"


class MarketScanner:
    """
    Scans many symbols with bounded concurrency.

    Usage:
        scanner = MarketScanner(scan_service, market_data)
        batch = await scanner.scan_multiple(["BTCUSDT", "ETHUSDT"], Timeframe.H1)

    A failing symbol is logged and listed in `failed`; the rest of the
    batch completes.
    """

    def __init__(
        self,
        scan_service: ScanService,
        market_data: MarketDataService,
        concurrency: int = 10,
        max_symbols: int = 15,
        min_quote_volume: float = 1_000_000.0,
        fallback_pairs: Optional[list[str]] = None,
        stablecoins: Optional[list[str]] = None,
        thresholds: RecommendationThresholds = DEFAULT_THRESHOLDS,
        rsi_candle_limit: int = 50,
    ):
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1 (got {concurrency})")
        self.scan_service = scan_service
        self.market_data = market_data
        self.concurrency = concurrency
        self.max_symbols = max_symbols
        self.min_quote_volume = min_quote_volume
        self.fallback_pairs = fallback_pairs or ["BTCUSDT", "ETHUSDT"]
        self.stablecoins = stablecoins or []
        self.thresholds = thresholds
        self.rsi_candle_limit = rsi_candle_limit

    async def scan_multiple(
        self, symbols: list[str], timeframe: Timeframe
    ) -> BatchScanResult:
        """Scan symbols concurrently, at most `concurrency` at a time."""
        semaphore = asyncio.Semaphore(self.concurrency)

        async def scan_one(symbol: str) -> ScanResult:
            async with semaphore:
                return await self.scan_service.get_or_compute(symbol, timeframe)

        outcomes = await asyncio.gather(
            *(scan_one(symbol) for symbol in symbols), return_exceptions=True
        )

        results: list[ScanResult] = []
        failed: list[str] = []
        for symbol, outcome in zip(symbols, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.warning(f"Scan failed for {symbol}: {outcome}")
                failed.append(symbol)
            else:
                results.append(outcome)

        return BatchScanResult(timeframe=timeframe.value, results=results, failed=failed)

    async def top_symbols(
        self,
        limit: int,
        source: str = "volume",
        exclude_stablecoins: bool = True,
    ) -> list[Ticker24h]:
        """
        Most active USDT pairs by quote volume, or top gainers by 24h change.

        Falls back to the configured pair list when the ticker feed is down.
        """
        stablecoins = self.stablecoins if exclude_stablecoins else ()
        try:
            tickers = await self.market_data.get_tickers()
        except ExternalAPIError as e:
            logger.warning(f"Ticker feed unavailable, using fallback pairs: {e.message}")
            return [
                Ticker24h(symbol=s)
                for s in self.fallback_pairs
                if is_tradeable_pair(s, stablecoins)
            ][:limit]

        pairs = [
            t for t in tickers
            if is_tradeable_pair(t.symbol, stablecoins) and t.quote_volume >= self.min_quote_volume
        ]
        if source == "gainers":
            pairs.sort(key=lambda t: t.price_change_percent, reverse=True)
        else:
            pairs.sort(key=lambda t: t.quote_volume, reverse=True)
        return pairs[:limit]

    async def scan_high_potential(
        self,
        timeframe: Timeframe,
        min_score: Optional[int] = None,
        limit: Optional[int] = None,
        exclude_stablecoins: bool = True,
    ) -> BatchScanResult:
        """Bullish candidates among the most active pairs, best score first."""
        threshold = self.thresholds.buy if min_score is None else min_score

        tickers = await self.top_symbols(self.max_symbols, exclude_stablecoins=exclude_stablecoins)
        batch = await self.scan_multiple([t.symbol for t in tickers], timeframe)

        candidates = [r for r in batch.results if is_high_potential(r, threshold)]
        candidates.sort(key=lambda r: (-r.total_score, r.symbol))
        if limit is not None:
            candidates = candidates[:limit]

        logger.info(
            f"High-potential scan {timeframe.value}: {len(candidates)} of "
            f"{batch.count} scanned ({len(batch.failed)} failed)"
        )
        return BatchScanResult(timeframe=timeframe.value, results=candidates, failed=batch.failed)

    async def rsi_heatmap(
        self, timeframe: Timeframe, limit: int = 50, source: str = "volume"
    ) -> list[RsiSnapshot]:
        """RSI for the top pairs; symbols whose candles cannot be fetched are dropped."""
        tickers = await self.top_symbols(limit, source=source)
        semaphore = asyncio.Semaphore(self.concurrency)

        async def snapshot(ticker: Ticker24h) -> Optional[RsiSnapshot]:
            async with semaphore:
                try:
                    series = await self.market_data.get_candles(
                        ticker.symbol, timeframe, self.rsi_candle_limit, allow_synthetic=False
                    )
                except ExternalAPIError as e:
                    logger.debug(f"RSI skipped for {ticker.symbol}: {e.message}")
                    return None

            if len(series.candles) < MIN_RSI_CANDLES:
                return None

            value = rsi([c.close for c in series.candles])
            return RsiSnapshot(
                symbol=ticker.symbol,
                rsi=round(value, 2),
                price=ticker.last_price or series.candles[-1].close,
                change=ticker.price_change_percent,
                signal=_rsi_label(value),
            )

        outcomes = await asyncio.gather(
            *(snapshot(t) for t in tickers), return_exceptions=True
        )

        rows: list[RsiSnapshot] = []
        for ticker, outcome in zip(tickers, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.warning(f"RSI failed for {ticker.symbol}: {outcome}")
            elif outcome is not None:
                rows.append(outcome)
        return rows
