"""
Market Scanner API Endpoints

Composite indicator scans for one symbol, a batch of symbols, or the
high-potential filter over the most active pairs.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel

from cryptoscan.api.deps import cache_header, get_container, resolve_symbol, resolve_timeframe
from cryptoscan.schemas.market import normalize_symbol
from cryptoscan.schemas.scan import BatchScanResult, ScanResult
from cryptoscan.services.base import ValidationError
from cryptoscan.services.container import ServiceContainer

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_BATCH_SYMBOLS = 50


class ScanRequest(BaseModel):
    symbol: Optional[str] = None
    timeframe: Optional[str] = None


async def _scan(
    symbol: Optional[str],
    timeframe: Optional[str],
    response: Response,
    container: ServiceContainer,
) -> ScanResult:
    sym = resolve_symbol(symbol, container)
    tf = resolve_timeframe(timeframe, container.settings.default_timeframe)

    result, hit = await container.scan_service.scan(sym, tf)
    response.headers["X-Cache"] = cache_header(hit)
    return result


@router.get("/scan", response_model=ScanResult)
async def scan_symbol(
    response: Response,
    symbol: Optional[str] = Query(None, description="Pair or base asset (BTC, ETHUSDT, sol/usdt)"),
    timeframe: Optional[str] = Query(None, description="Timeframe: 1m, 5m, 15m, 30m, 1h, 4h, 1d, 1w"),
    container: ServiceContainer = Depends(get_container),
):
    """
    Scan one symbol: every indicator with its signal and score, the total
    score and the recommendation.

    Example:
    - `/scanner/scan?symbol=BTC&timeframe=4h`

    `X-Cache: HIT` means the result was served from the 90 s cache.
    """
    return await _scan(symbol, timeframe, response, container)


@router.post("/scan", response_model=ScanResult)
async def scan_symbol_post(
    request: ScanRequest,
    response: Response,
    container: ServiceContainer = Depends(get_container),
):
    """Same as GET /scan with the parameters in a JSON body."""
    return await _scan(request.symbol, request.timeframe, response, container)


@router.get("/batch", response_model=BatchScanResult)
async def scan_batch(
    symbols: str = Query(..., description="Comma-separated symbols"),
    timeframe: Optional[str] = Query(None, description="Timeframe"),
    container: ServiceContainer = Depends(get_container),
):
    """
    Scan several symbols concurrently.

    Symbols that fail are listed under `failed`; the others are returned.
    """
    symbol_list = list(dict.fromkeys(
        normalize_symbol(s) for s in symbols.split(",") if s.strip()
    ))
    if not symbol_list:
        raise ValidationError("Request", "No symbols given")
    if len(symbol_list) > MAX_BATCH_SYMBOLS:
        raise ValidationError(
            "Request", f"At most {MAX_BATCH_SYMBOLS} symbols per batch",
            {"count": len(symbol_list)},
        )

    tf = resolve_timeframe(timeframe, container.settings.default_timeframe)
    return await container.scanner.scan_multiple(symbol_list, tf)


@router.get("/high-potential", response_model=BatchScanResult)
async def high_potential(
    timeframe: Optional[str] = Query(None, description="Timeframe"),
    min_score: Optional[int] = Query(None, description="Minimum total score (default: buy threshold)"),
    limit: int = Query(10, ge=1, le=50, description="Number of results"),
    exclude_stablecoins: bool = Query(True),
    container: ServiceContainer = Depends(get_container),
):
    """
    Bullish candidates among the most active USDT pairs.

    A pair qualifies when at least three of EMA20 > EMA50, 40 < RSI < 70,
    bullish MACD and ADX > 25 hold and its total score reaches `min_score`.
    """
    tf = resolve_timeframe(timeframe, container.settings.default_timeframe)
    return await container.scanner.scan_high_potential(
        tf,
        min_score=min_score,
        limit=limit,
        exclude_stablecoins=exclude_stablecoins,
    )
