"""Round lifecycle messages: WebSocket wire contract.

Envelope: {"type": "<ROUND_START|PHASE_CHANGE|PRICE_UPDATE|ROUND_END>", "payload": {...}}
Keys are camelCase on the wire (alias generator); Python side stays snake_case.
Prices go out as JSON numbers for charting; settlement never reads them.
"""

from typing import Literal, Protocol

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from src.pm_common.enums import RoundEventType, RoundPhase
from src.pm_grid.domain.models import GridBounds, GridCell
from src.pm_price.domain.models import PriceDataPoint
from src.pm_round.domain.models import RoundState


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Shared payload pieces
# ---------------------------------------------------------------------------


class GridCellOut(WireModel):
    price_range_start: int
    price_range_end: int
    time_range_start: int
    time_range_end: int

    @classmethod
    def from_domain(cls, cell: GridCell) -> "GridCellOut":
        return cls(
            price_range_start=cell.price_range_start,
            price_range_end=cell.price_range_end,
            time_range_start=cell.time_range_start,
            time_range_end=cell.time_range_end,
        )


class GridBoundsOut(WireModel):
    rows: list[int]
    columns: list[int]
    min_price: int
    max_price: int
    start_time: int
    end_time: int

    @classmethod
    def from_domain(cls, bounds: GridBounds) -> "GridBoundsOut":
        return cls(
            rows=list(bounds.rows),
            columns=list(bounds.columns),
            min_price=bounds.min_price,
            max_price=bounds.max_price,
            start_time=bounds.start_time,
            end_time=bounds.end_time,
        )


class PriceDataPointOut(WireModel):
    price: float
    timestamp: int
    source: str

    @classmethod
    def from_domain(cls, point: PriceDataPoint) -> "PriceDataPointOut":
        return cls(price=float(point.price), timestamp=point.timestamp, source=point.source)


class RoundTiming(WireModel):
    round_start_time: int
    betting_end_time: int
    live_end_time: int


class GridConfigOut(WireModel):
    price_increment: int
    time_increment: int


class RoundSummary(WireModel):
    start_price: float | None
    end_price: float | None
    price_points: int
    hit_cell_count: int


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


class RoundStartPayload(WireModel):
    market_id: int
    round_id: int
    phase: RoundPhase
    initial_price: float
    grid_bounds: GridBoundsOut
    timing: RoundTiming
    config: GridConfigOut


class PhaseChangePayload(WireModel):
    market_id: int
    round_id: int
    phase: RoundPhase


class PriceUpdatePayload(WireModel):
    market_id: int
    round_id: int
    price: float
    timestamp: int
    source: str
    hit_cells: list[GridCellOut]
    grid_bounds: GridBoundsOut | None


class RoundEndPayload(WireModel):
    market_id: int
    round_id: int
    phase: Literal[RoundPhase.SETTLING] = RoundPhase.SETTLING
    hit_cells: list[GridCellOut]
    price_history: list[PriceDataPointOut]
    summary: RoundSummary


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class RoundStartMessage(WireModel):
    type: Literal[RoundEventType.ROUND_START] = RoundEventType.ROUND_START
    payload: RoundStartPayload

    @classmethod
    def from_state(
        cls, state: RoundState, price_increment: int, time_increment: int
    ) -> "RoundStartMessage":
        return cls(
            payload=RoundStartPayload(
                market_id=state.market_id,
                round_id=state.round_id,
                phase=state.phase,
                initial_price=float(state.initial_price),
                grid_bounds=GridBoundsOut.from_domain(state.grid_bounds),
                timing=RoundTiming(
                    round_start_time=state.round_start_time,
                    betting_end_time=state.betting_end_time,
                    live_end_time=state.live_end_time,
                ),
                config=GridConfigOut(
                    price_increment=price_increment, time_increment=time_increment
                ),
            )
        )


class PhaseChangeMessage(WireModel):
    type: Literal[RoundEventType.PHASE_CHANGE] = RoundEventType.PHASE_CHANGE
    payload: PhaseChangePayload

    @classmethod
    def from_state(cls, state: RoundState) -> "PhaseChangeMessage":
        return cls(
            payload=PhaseChangePayload(
                market_id=state.market_id, round_id=state.round_id, phase=state.phase
            )
        )


class PriceUpdateMessage(WireModel):
    type: Literal[RoundEventType.PRICE_UPDATE] = RoundEventType.PRICE_UPDATE
    payload: PriceUpdatePayload

    @classmethod
    def from_point(cls, state: RoundState, point: PriceDataPoint) -> "PriceUpdateMessage":
        return cls(
            payload=PriceUpdatePayload(
                market_id=state.market_id,
                round_id=state.round_id,
                price=float(point.price),
                timestamp=point.timestamp,
                source=point.source,
                hit_cells=[GridCellOut.from_domain(c) for c in state.hit_cells],
                grid_bounds=GridBoundsOut.from_domain(state.grid_bounds),
            )
        )


class RoundEndMessage(WireModel):
    type: Literal[RoundEventType.ROUND_END] = RoundEventType.ROUND_END
    payload: RoundEndPayload

    @classmethod
    def from_state(cls, state: RoundState) -> "RoundEndMessage":
        return cls(
            payload=RoundEndPayload(
                market_id=state.market_id,
                round_id=state.round_id,
                hit_cells=[GridCellOut.from_domain(c) for c in state.hit_cells],
                price_history=[PriceDataPointOut.from_domain(p) for p in state.price_history],
                summary=RoundSummary(
                    start_price=float(state.initial_price),
                    end_price=float(state.current_price),
                    price_points=len(state.price_history),
                    hit_cell_count=len(state.hit_cells),
                ),
            )
        )


RoundEvent = RoundStartMessage | PhaseChangeMessage | PriceUpdateMessage | RoundEndMessage


class EventSink(Protocol):
    """Consumer of lifecycle events (the broadcast relay in production)."""

    async def publish(self, market_id: int, event: RoundEvent) -> None: ...


class FanOutSink:
    """Publishes each event to several sinks in order."""

    def __init__(self, sinks: list[EventSink]) -> None:
        self._sinks = list(sinks)

    async def publish(self, market_id: int, event: RoundEvent) -> None:
        for sink in self._sinks:
            await sink.publish(market_id, event)
