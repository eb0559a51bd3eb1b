"""Binance public ticker: primary source.

No API key. Ticker weight is 2 of 6000/min, far above the 1s poll cadence.
"""

from decimal import Decimal

from src.pm_common.errors import PriceSourceError
from src.pm_price.sources.base import HttpPriceSource

_SYMBOLS = {
    "BTC": "BTCUSDT",
    "ETH": "ETHUSDT",
    "SOL": "SOLUSDT",
    "AVAX": "AVAXUSDT",
    "MATIC": "MATICUSDT",
    "LINK": "LINKUSDT",
    "DOT": "DOTUSDT",
    "ATOM": "ATOMUSDT",
}


class BinancePriceSource(HttpPriceSource):
    name = "Binance"
    base_url = "https://api.binance.com"

    @staticmethod
    def symbol_for(asset: str) -> str:
        upper = asset.upper()
        return _SYMBOLS.get(upper, f"{upper}USDT")

    async def fetch_price(self, asset: str) -> Decimal:
        data = await self._get_json("/api/v3/ticker/price", {"symbol": self.symbol_for(asset)})
        if not isinstance(data, dict):
            raise PriceSourceError(self.name, "unexpected payload shape")
        if data.get("code"):
            raise PriceSourceError(self.name, f"error {data.get('code')}: {data.get('msg')}")
        if not data.get("price"):
            raise PriceSourceError(self.name, "no price in response")
        return self._parse_price(data["price"])
