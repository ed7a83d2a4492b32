"""
Market Data API Endpoints

Chart candles, the chart metrics panel and the RSI heatmap.
Upstream failures here are reported (502), never papered over with
synthetic data.
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response

from cryptoscan.api.deps import cache_header, get_container, resolve_symbol, resolve_timeframe
from cryptoscan.schemas.market import CandlePayload
from cryptoscan.schemas.scan import MetricsPayload, RsiSnapshot
from cryptoscan.services.container import ServiceContainer

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/ohlcv", response_model=CandlePayload)
async def get_ohlcv(
    response: Response,
    symbol: Optional[str] = Query(None, description="Pair or base asset"),
    tf: Optional[str] = Query(None, description="Timeframe"),
    container: ServiceContainer = Depends(get_container),
):
    """
    Get OHLCV candles for charting (30 s cache).
    """
    sym = resolve_symbol(symbol, container)
    timeframe = resolve_timeframe(tf, container.settings.default_timeframe)

    payload, hit = await container.scan_service.get_ohlcv(sym, timeframe)
    response.headers["X-Cache"] = cache_header(hit)
    return payload


@router.get("/metrics", response_model=MetricsPayload)
async def get_metrics(
    response: Response,
    symbol: Optional[str] = Query(None, description="Pair or base asset"),
    tf: Optional[str] = Query(None, description="Timeframe"),
    container: ServiceContainer = Depends(get_container),
):
    """
    Get the compact indicator summary shown next to the chart (90 s cache).
    """
    sym = resolve_symbol(symbol, container)
    timeframe = resolve_timeframe(tf, container.settings.default_timeframe)

    payload, hit = await container.scan_service.get_metrics(sym, timeframe)
    response.headers["X-Cache"] = cache_header(hit)
    return payload


@router.get("/rsi", response_model=list[RsiSnapshot])
async def get_rsi_heatmap(
    limit: int = Query(50, ge=1, le=100, description="Number of pairs"),
    timeframe: Optional[str] = Query("4h", description="Timeframe"),
    source: Literal["volume", "gainers"] = Query("volume", description="Rank pairs by volume or 24h gain"),
    container: ServiceContainer = Depends(get_container),
):
    """
    RSI across the top USDT pairs.

    Pairs whose candles cannot be fetched are left out.
    """
    tf = resolve_timeframe(timeframe, "4h")
    return await container.scanner.rsi_heatmap(tf, limit=limit, source=source)
