"""Collaborator protocols: tests inject fakes conforming to these."""

from typing import Protocol

from src.pm_price.domain.models import PriceDataPoint


class PriceFetcherProtocol(Protocol):
    async def fetch_price(self, asset: str) -> PriceDataPoint: ...
