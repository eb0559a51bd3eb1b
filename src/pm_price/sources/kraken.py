"""Kraken public ticker: first fallback (1 req/s public limit)."""

from decimal import Decimal

from src.pm_common.errors import PriceSourceError
from src.pm_price.sources.base import HttpPriceSource

_PAIRS = {
    "BTC": "XBTUSD",
    "ETH": "ETHUSD",
    "SOL": "SOLUSD",
    "AVAX": "AVAXUSD",
    "MATIC": "MATICUSD",
    "LINK": "LINKUSD",
    "DOT": "DOTUSD",
    "ATOM": "ATOMUSD",
}


class KrakenPriceSource(HttpPriceSource):
    name = "Kraken"
    base_url = "https://api.kraken.com"

    @staticmethod
    def pair_for(asset: str) -> str:
        upper = asset.upper()
        return _PAIRS.get(upper, f"{upper}USD")

    async def fetch_price(self, asset: str) -> Decimal:
        data = await self._get_json("/0/public/Ticker", {"pair": self.pair_for(asset)})
        if not isinstance(data, dict):
            raise PriceSourceError(self.name, "unexpected payload shape")

        errors = data.get("error") or []
        if errors:
            raise PriceSourceError(self.name, f"error: {', '.join(map(str, errors))}")

        # result is keyed by Kraken's own pair name (e.g. XXBTZUSD), take the first
        result = data.get("result") or {}
        if not result:
            raise PriceSourceError(self.name, "no result in response")
        ticker = next(iter(result.values()))
        try:
            last_trade = ticker["c"][0]  # c = last trade closed [price, lot volume]
        except (KeyError, IndexError, TypeError) as exc:
            raise PriceSourceError(self.name, "ticker missing last trade price") from exc
        return self._parse_price(last_trade)
