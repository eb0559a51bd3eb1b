"""Outbound settlement relay: hands computed payouts to the on-chain settler.

The relay signs and submits the contract call; this service only ships the
numbers. Amounts travel as decimal strings (uint256 on-chain).

POST {SETTLEMENT_RELAY_URL}
{
  "marketId": 1, "roundId": 7,
  "hitCells": [{"timeSlotStart": "1700000060", "dataRangeStart": "50000"}],
  "participants": ["0xabc..."], "payouts": ["980"], "totalPayout": "980"
}
Response: {"txHash": "0x..."} (optional)
"""

import logging
from typing import Protocol

import httpx

from src.pm_common.errors import SettlementForwardError
from src.pm_grid.domain.models import CellKey
from src.pm_settlement.domain.payout import PayoutResult

logger = logging.getLogger(__name__)


class SettlementRelayProtocol(Protocol):
    async def submit(
        self, market_id: int, round_id: int, hit_cells: list[CellKey], result: PayoutResult
    ) -> str | None: ...


def build_settlement_body(
    market_id: int, round_id: int, hit_cells: list[CellKey], result: PayoutResult
) -> dict:
    return {
        "marketId": market_id,
        "roundId": round_id,
        "hitCells": [
            {"timeSlotStart": str(c.time_slot_start), "dataRangeStart": str(c.data_range_start)}
            for c in hit_cells
        ],
        "participants": list(result.participants),
        "payouts": [str(p) for p in result.payouts],
        "totalPayout": str(result.total_payout),
    }


class HttpSettlementRelay:
    def __init__(self, client: httpx.AsyncClient, url: str, timeout: float = 10.0) -> None:
        self._client = client
        self._url = url
        self._timeout = timeout

    async def submit(
        self, market_id: int, round_id: int, hit_cells: list[CellKey], result: PayoutResult
    ) -> str | None:
        body = build_settlement_body(market_id, round_id, hit_cells, result)
        try:
            response = await self._client.post(self._url, json=body, timeout=self._timeout)
        except httpx.HTTPError as exc:
            raise SettlementForwardError(f"request failed: {exc!r}") from exc
        if not response.is_success:
            raise SettlementForwardError(f"{response.status_code} {response.reason_phrase}")

        try:
            data = response.json()
        except ValueError:
            data = {}
        tx_hash = data.get("txHash") if isinstance(data, dict) else None
        logger.info(
            "Settlement forwarded: market=%d round=%d winners=%d tx=%s",
            market_id,
            round_id,
            len(result.participants),
            tx_hash,
        )
        return tx_hash
