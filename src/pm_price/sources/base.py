"""Shared HTTP plumbing for quote providers.

Every failure mode (transport error, non-2xx, non-JSON body, unparseable
price) is converted into PriceSourceError tagged with the provider name, so
PriceFetcher only has one error type to fail over on.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from src.pm_common.errors import PriceSourceError


class HttpPriceSource:
    name = "http"
    base_url = ""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def _get_json(self, path: str, params: dict[str, str]) -> Any:
        try:
            response = await self._client.get(f"{self.base_url}{path}", params=params)
        except httpx.HTTPError as exc:
            raise PriceSourceError(self.name, f"request failed: {exc!r}") from exc

        self._check_status(response)
        try:
            return response.json()
        except ValueError as exc:
            raise PriceSourceError(self.name, "response is not JSON") from exc

    def _check_status(self, response: httpx.Response) -> None:
        if not response.is_success:
            raise PriceSourceError(
                self.name, f"API error: {response.status_code} {response.reason_phrase}"
            )

    def _parse_price(self, raw: object) -> Decimal:
        try:
            price = Decimal(str(raw))
        except InvalidOperation as exc:
            raise PriceSourceError(self.name, f"unparseable price {raw!r}") from exc
        if not price.is_finite() or price <= 0:
            raise PriceSourceError(self.name, f"invalid price {raw!r}")
        return price
