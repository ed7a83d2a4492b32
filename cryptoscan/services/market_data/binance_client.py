"""
Binance REST adapter.

Public market endpoints only (no API key):
    GET /api/v3/klines        -> candles
    GET /api/v3/ticker/24hr   -> 24h tickers for every pair
    GET /api/v3/ping          -> connectivity
"""

import asyncio
import logging
from typing import Any, Optional

import aiohttp

from cryptoscan.schemas.market import Candle, Ticker24h, Timeframe
from cryptoscan.services.base import ExternalAPIError

logger = logging.getLogger(__name__)

MAX_KLINES = 1000


class BinanceClient:
    """Thin async client over the Binance public REST API."""

    SERVICE = "Binance"

    def __init__(
        self,
        base_url: str = "https://api.binance.com",
        timeout_seconds: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._session = session

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure we have an active HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
                headers={"Accept": "application/json"},
            )
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def _get_json(self, path: str, params: Optional[dict] = None) -> Any:
        session = await self._ensure_session()
        url = f"{self.base_url}{path}"

        try:
            async with session.get(url, params=params) as response:
                if response.status != 200:
                    body = await response.text()
                    raise ExternalAPIError(
                        self.SERVICE,
                        f"{path} returned status {response.status}",
                        {"status": response.status, "body": body[:200]},
                    )
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ExternalAPIError(
                self.SERVICE, f"{path} request failed: {e!r}", {"params": params}
            ) from e
        except ValueError as e:
            # maintenance or proxy pages come back as 200 with an HTML body
            raise ExternalAPIError(
                self.SERVICE, f"{path} returned a non-JSON body: {e}", {"params": params}
            ) from e

    async def fetch_candles(
        self, symbol: str, timeframe: Timeframe, limit: int = 500
    ) -> list[Candle]:
        """Fetch up to `limit` most recent klines, oldest first."""
        limit = max(1, min(limit, MAX_KLINES))
        raw = await self._get_json(
            "/api/v3/klines",
            {"symbol": symbol.upper(), "interval": timeframe.value, "limit": str(limit)},
        )
        if not isinstance(raw, list):
            raise ExternalAPIError(self.SERVICE, "klines payload is not a list")

        try:
            return [Candle.from_kline(row) for row in raw]
        except (IndexError, TypeError, ValueError) as e:
            raise ExternalAPIError(self.SERVICE, f"malformed kline row: {e}") from e

    async def fetch_tickers(self) -> list[Ticker24h]:
        """24h statistics for every listed pair."""
        raw = await self._get_json("/api/v3/ticker/24hr")
        if not isinstance(raw, list):
            raise ExternalAPIError(self.SERVICE, "ticker payload is not a list")
        return [Ticker24h.from_binance(row) for row in raw if isinstance(row, dict)]

    async def ping(self) -> bool:
        try:
            await self._get_json("/api/v3/ping")
        except ExternalAPIError as e:
            logger.warning(f"Binance ping failed: {e.message}")
            return False
        return True
