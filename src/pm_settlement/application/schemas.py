"""Pydantic schemas for settlement responses. Amounts are decimal strings."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from src.pm_settlement.domain.payout import PayoutResult


class SettlementReceipt(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    market_id: int
    round_id: int
    hit_cell_count: int
    participants: list[str]
    payouts: list[str]
    total_payout: str
    total_pool: str
    commission: str
    house_retained: str
    refunded: bool
    tx_hash: str | None = None

    @classmethod
    def from_result(
        cls,
        market_id: int,
        round_id: int,
        hit_cell_count: int,
        result: PayoutResult,
        tx_hash: str | None,
    ) -> "SettlementReceipt":
        return cls(
            market_id=market_id,
            round_id=round_id,
            hit_cell_count=hit_cell_count,
            participants=list(result.participants),
            payouts=[str(p) for p in result.payouts],
            total_payout=str(result.total_payout),
            total_pool=str(result.total_pool),
            commission=str(result.commission),
            house_retained=str(result.house_retained),
            refunded=result.refunded,
            tx_hash=tx_hash,
        )
