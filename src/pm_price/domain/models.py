"""Domain models for pm_price: pure dataclasses and the PriceSource protocol."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol


@dataclass(frozen=True)
class PriceDataPoint:
    price: Decimal  # e.g. Decimal("105234.56")
    timestamp: int  # Unix seconds
    source: str  # provider name that served this price


@dataclass(frozen=True)
class SourceStatus:
    failures: int  # consecutive failures
    is_last_successful: bool


class PriceSource(Protocol):
    name: str

    async def fetch_price(self, asset: str) -> Decimal: ...
