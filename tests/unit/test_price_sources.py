"""Tests for pm_price.sources: provider parsing against mocked HTTP responses."""

from decimal import Decimal

import httpx
import pytest

from src.pm_common.errors import PriceSourceError
from src.pm_price.sources.binance import BinancePriceSource
from src.pm_price.sources.coingecko import CoinGeckoPriceSource
from src.pm_price.sources.kraken import KrakenPriceSource


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _respond(status: int = 200, json: object = None, text: str | None = None):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if text is not None:
            return httpx.Response(status, text=text)
        return httpx.Response(status, json=json)

    handler.seen = seen  # type: ignore[attr-defined]
    return handler


class TestBinance:
    async def test_parses_price(self) -> None:
        handler = _respond(json={"symbol": "BTCUSDT", "price": "105234.56000000"})
        async with _client(handler) as client:
            price = await BinancePriceSource(client).fetch_price("BTC")
        assert price == Decimal("105234.56")
        request = handler.seen[0]
        assert request.url.host == "api.binance.com"
        assert request.url.path == "/api/v3/ticker/price"
        assert request.url.params["symbol"] == "BTCUSDT"

    def test_symbol_fallback(self) -> None:
        assert BinancePriceSource.symbol_for("eth") == "ETHUSDT"
        assert BinancePriceSource.symbol_for("PEPE") == "PEPEUSDT"

    async def test_http_error_status(self) -> None:
        async with _client(_respond(status=500, json={})) as client:
            with pytest.raises(PriceSourceError, match="API error: 500") as exc_info:
                await BinancePriceSource(client).fetch_price("BTC")
        assert exc_info.value.source == "Binance"
        assert exc_info.value.code == 6001

    async def test_error_code_in_body(self) -> None:
        async with _client(_respond(json={"code": -1121, "msg": "Invalid symbol."})) as client:
            with pytest.raises(PriceSourceError, match="error -1121: Invalid symbol"):
                await BinancePriceSource(client).fetch_price("BTC")

    async def test_missing_price(self) -> None:
        async with _client(_respond(json={"symbol": "BTCUSDT"})) as client:
            with pytest.raises(PriceSourceError, match="no price in response"):
                await BinancePriceSource(client).fetch_price("BTC")

    async def test_non_json_body(self) -> None:
        async with _client(_respond(text="<html>")) as client:
            with pytest.raises(PriceSourceError, match="not JSON"):
                await BinancePriceSource(client).fetch_price("BTC")

    async def test_rejects_non_positive_price(self) -> None:
        async with _client(_respond(json={"price": "0"})) as client:
            with pytest.raises(PriceSourceError, match="invalid price"):
                await BinancePriceSource(client).fetch_price("BTC")

    async def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(PriceSourceError, match="request failed"):
                await BinancePriceSource(client).fetch_price("BTC")


class TestKraken:
    async def test_parses_last_trade(self) -> None:
        body = {"error": [], "result": {"XXBTZUSD": {"c": ["105100.10000", "0.01"]}}}
        handler = _respond(json=body)
        async with _client(handler) as client:
            price = await KrakenPriceSource(client).fetch_price("BTC")
        assert price == Decimal("105100.1")
        assert handler.seen[0].url.params["pair"] == "XBTUSD"

    async def test_error_list(self) -> None:
        async with _client(_respond(json={"error": ["EQuery:Unknown asset pair"]})) as client:
            with pytest.raises(PriceSourceError, match="EQuery:Unknown asset pair"):
                await KrakenPriceSource(client).fetch_price("BTC")

    async def test_empty_result(self) -> None:
        async with _client(_respond(json={"error": [], "result": {}})) as client:
            with pytest.raises(PriceSourceError, match="no result"):
                await KrakenPriceSource(client).fetch_price("BTC")

    async def test_missing_last_trade(self) -> None:
        body = {"error": [], "result": {"XXBTZUSD": {"a": ["1", "1", "1"]}}}
        async with _client(_respond(json=body)) as client:
            with pytest.raises(PriceSourceError, match="last trade"):
                await KrakenPriceSource(client).fetch_price("BTC")


class TestCoinGecko:
    async def test_parses_usd_quote(self) -> None:
        handler = _respond(json={"ethereum": {"usd": 3456.78}})
        async with _client(handler) as client:
            price = await CoinGeckoPriceSource(client).fetch_price("ETH")
        assert price == Decimal("3456.78")
        params = handler.seen[0].url.params
        assert params["ids"] == "ethereum"
        assert params["vs_currencies"] == "usd"

    async def test_rate_limited(self) -> None:
        async with _client(_respond(status=429, json={})) as client:
            with pytest.raises(PriceSourceError, match="rate limit exceeded"):
                await CoinGeckoPriceSource(client).fetch_price("BTC")

    async def test_unknown_coin(self) -> None:
        async with _client(_respond(json={})) as client:
            with pytest.raises(PriceSourceError, match="coin bitcoin not found"):
                await CoinGeckoPriceSource(client).fetch_price("BTC")

    async def test_missing_usd(self) -> None:
        async with _client(_respond(json={"bitcoin": {"eur": 1}})) as client:
            with pytest.raises(PriceSourceError, match="no usd quote"):
                await CoinGeckoPriceSource(client).fetch_price("BTC")
