"""Binance adapter and market data fallback."""

import json

import aiohttp
import pytest

from cryptoscan.schemas.market import DataSource, Timeframe
from cryptoscan.services.base import ExternalAPIError
from cryptoscan.services.market_data import BinanceClient, CandleRequest, MarketDataService
from tests.conftest import FakeCandleClient, make_candles, ramp

KLINE = [1_700_000_000_000, "100.0", "101.5", "99.0", "101.0", "12.5", 1_700_003_599_999, "1262.5", 10]


class FakeResponse:
    def __init__(self, status: int, payload):
        self.status = status
        self.payload = payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def json(self, content_type=None):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload

    async def text(self):
        return str(self.payload)


class FakeSession:
    def __init__(self, status: int = 200, payload=None, error: Exception = None):
        self.status = status
        self.payload = payload
        self.error = error
        self.closed = False
        self.requests: list[tuple[str, dict]] = []

    def get(self, url, params=None):
        self.requests.append((url, params))
        if self.error is not None:
            raise self.error
        return FakeResponse(self.status, self.payload)

    async def close(self):
        self.closed = True


class TestBinanceClient:
    async def test_fetch_candles_parses_klines(self):
        session = FakeSession(payload=[KLINE])
        client = BinanceClient("https://api.example.test/", session=session)

        candles = await client.fetch_candles("btcusdt", Timeframe.H1, limit=5)

        assert len(candles) == 1
        assert candles[0].open_time == 1_700_000_000_000
        assert candles[0].close == 101.0
        assert candles[0].volume == 12.5
        url, params = session.requests[0]
        assert url == "https://api.example.test/api/v3/klines"
        assert params == {"symbol": "BTCUSDT", "interval": "1h", "limit": "5"}

    async def test_limit_is_clamped(self):
        session = FakeSession(payload=[])
        client = BinanceClient(session=session)
        await client.fetch_candles("BTCUSDT", Timeframe.H1, limit=5_000)
        assert session.requests[0][1]["limit"] == "1000"

    async def test_http_error_status(self):
        client = BinanceClient(session=FakeSession(status=418, payload="teapot"))
        with pytest.raises(ExternalAPIError) as exc_info:
            await client.fetch_candles("BTCUSDT", Timeframe.H1)
        assert exc_info.value.details["status"] == 418

    async def test_connection_error_is_wrapped(self):
        client = BinanceClient(session=FakeSession(error=aiohttp.ClientConnectionError("down")))
        with pytest.raises(ExternalAPIError):
            await client.fetch_tickers()

    async def test_non_json_body_is_wrapped(self):
        body_error = json.JSONDecodeError("Expecting value", "<html>maintenance</html>", 0)
        client = BinanceClient(session=FakeSession(payload=body_error))
        with pytest.raises(ExternalAPIError):
            await client.fetch_candles("BTCUSDT", Timeframe.H1)

    async def test_non_json_body_falls_back_to_synthetic(self):
        body_error = json.JSONDecodeError("Expecting value", "<html>maintenance</html>", 0)
        service = MarketDataService(BinanceClient(session=FakeSession(payload=body_error)))
        series = await service.get_candles("BTCUSDT", Timeframe.H1, 20)
        assert series.synthetic is True

    async def test_unexpected_payload(self):
        client = BinanceClient(session=FakeSession(payload={"code": -1121}))
        with pytest.raises(ExternalAPIError):
            await client.fetch_candles("NOPE", Timeframe.H1)

    async def test_tickers(self):
        row = {
            "symbol": "ETHUSDT",
            "lastPrice": "3000.5",
            "priceChangePercent": "-1.25",
            "quoteVolume": "123456789.0",
        }
        client = BinanceClient(session=FakeSession(payload=[row, "junk"]))

        tickers = await client.fetch_tickers()
        assert len(tickers) == 1
        assert tickers[0].last_price == 3000.5
        assert tickers[0].price_change_percent == -1.25

    async def test_ping(self):
        assert await BinanceClient(session=FakeSession(payload={})).ping() is True
        assert await BinanceClient(session=FakeSession(status=500, payload="")).ping() is False


class TestMarketDataService:
    async def test_upstream_candles(self):
        service = MarketDataService(FakeCandleClient(default=make_candles(ramp(30))))
        series = await service.get_candles("BTCUSDT", Timeframe.H1, 20)
        assert series.source == DataSource.BINANCE
        assert len(series.candles) == 20
        assert series.synthetic is False

    async def test_synthetic_fallback_is_deterministic(self):
        service = MarketDataService(FakeCandleClient(fail=["BTCUSDT"]))
        first = await service.get_candles("BTCUSDT", Timeframe.H1, 50)
        second = await service.get_candles("BTCUSDT", Timeframe.H1, 50)

        assert first.synthetic is True
        assert len(first.candles) == 50
        assert [c.close for c in first.candles] == [c.close for c in second.candles]

    async def test_caller_can_refuse_synthetic(self):
        service = MarketDataService(FakeCandleClient(fail=["BTCUSDT"]), allow_synthetic=True)
        with pytest.raises(ExternalAPIError):
            await service.get_candles("BTCUSDT", Timeframe.H1, 50, allow_synthetic=False)

    async def test_fallback_disabled(self):
        service = MarketDataService(FakeCandleClient(fail=["BTCUSDT"]), allow_synthetic=False)
        with pytest.raises(ExternalAPIError):
            await service.get_candles("BTCUSDT", Timeframe.H1, 50)

    async def test_close_closes_client(self):
        client = FakeCandleClient()
        await MarketDataService(client).close()
        assert client.closed is True

    async def test_execute_contract(self):
        service = MarketDataService(FakeCandleClient(fail=["BTCUSDT"]), allow_synthetic=False)
        request = CandleRequest(symbol="BTCUSDT", timeframe=Timeframe.H4, limit=10, allow_synthetic=True)

        series = await service.execute(request)
        assert series.synthetic is True
        assert len(series.candles) == 10
        assert service.name == "MarketDataService"
        assert await service.health_check() is True
