"""Pydantic schemas for bet intake.

Request body (camelCase, amounts may arrive as decimal strings):
{
  "participant": "0xabc...",
  "marketId": 1,
  "roundId": 7,
  "bets": [{"amount": "1000", "cells": [{"timeSlotStart": "1700000060", "dataRangeStart": "50000"}]}]
}
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.pm_betting.domain.models import Bet, BetData, RoundBetsSummary
from src.pm_grid.domain.models import CellKey


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CellIn(_CamelModel):
    time_slot_start: int
    data_range_start: int

    def to_domain(self) -> CellKey:
        return CellKey(time_slot_start=self.time_slot_start, data_range_start=self.data_range_start)


class BetIn(_CamelModel):
    amount: int = Field(gt=0)
    cells: list[CellIn] = Field(min_length=1)

    def to_domain(self) -> Bet:
        return Bet(amount=self.amount, cells=tuple(c.to_domain() for c in self.cells))


class PlaceBetsRequest(_CamelModel):
    participant: str
    market_id: int
    round_id: int
    bets: list[BetIn] = Field(min_length=1)

    @field_validator("participant")
    @classmethod
    def no_whitespace(cls, v: str) -> str:
        if not v or v != v.strip() or " " in v:
            raise ValueError("participant must be non-empty and contain no whitespace")
        return v

    def to_domain(self) -> BetData:
        return BetData.from_bets(
            self.participant, self.market_id, self.round_id, [b.to_domain() for b in self.bets]
        )


class PlaceBetsResponse(_CamelModel):
    participant: str
    market_id: int
    round_id: int
    total_amount: str
    bet_count: int
    round_total_pool: str


class RoundBetsSummaryOut(_CamelModel):
    market_id: int
    round_id: int
    bet_count: int
    total_pool: str

    @classmethod
    def from_domain(cls, s: RoundBetsSummary) -> "RoundBetsSummaryOut":
        return cls(
            market_id=s.market_id,
            round_id=s.round_id,
            bet_count=s.bet_count,
            total_pool=str(s.total_pool),
        )
