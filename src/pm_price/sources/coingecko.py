"""CoinGecko simple price: last-resort fallback (5-15 req/min unauthenticated)."""

from decimal import Decimal

import httpx

from src.pm_common.errors import PriceSourceError
from src.pm_price.sources.base import HttpPriceSource

_COIN_IDS = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "SOL": "solana",
    "AVAX": "avalanche-2",
    "MATIC": "matic-network",
    "LINK": "chainlink",
    "DOT": "polkadot",
    "ATOM": "cosmos",
}


class CoinGeckoPriceSource(HttpPriceSource):
    name = "CoinGecko"
    base_url = "https://api.coingecko.com"

    @staticmethod
    def coin_id_for(asset: str) -> str:
        return _COIN_IDS.get(asset.upper(), asset.lower())

    def _check_status(self, response: httpx.Response) -> None:
        if response.status_code == 429:
            raise PriceSourceError(self.name, "rate limit exceeded")
        super()._check_status(response)

    async def fetch_price(self, asset: str) -> Decimal:
        coin_id = self.coin_id_for(asset)
        data = await self._get_json(
            "/api/v3/simple/price", {"ids": coin_id, "vs_currencies": "usd"}
        )
        if not isinstance(data, dict) or coin_id not in data:
            raise PriceSourceError(self.name, f"coin {coin_id} not found")
        quote = data[coin_id]
        if not isinstance(quote, dict) or "usd" not in quote:
            raise PriceSourceError(self.name, f"no usd quote for {coin_id}")
        return self._parse_price(quote["usd"])
