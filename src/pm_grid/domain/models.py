"""Domain models for pm_grid: pure frozen dataclasses, no business logic."""

from dataclasses import dataclass


@dataclass(frozen=True)
class MarketConfig:
    market_id: int
    market_name: str
    asset: str  # "BTC", "ETH"
    price_increment: int  # price units per row, e.g. 100 = $100
    time_increment: int  # seconds per column
    round_duration: int  # total round seconds (betting + live)
    betting_duration: int  # betting phase seconds

    def __post_init__(self) -> None:
        if self.price_increment <= 0 or self.time_increment <= 0:
            raise ValueError(
                f"Increments must be positive: price={self.price_increment}, "
                f"time={self.time_increment}"
            )
        if not (0 < self.betting_duration < self.round_duration):
            raise ValueError(
                f"Betting duration {self.betting_duration} must be in "
                f"(0, round duration {self.round_duration})"
            )

    @property
    def live_duration(self) -> int:
        return self.round_duration - self.betting_duration


@dataclass(frozen=True, order=True)
class CellKey:
    """Settlement-facing cell identity. Field order gives time-then-price sort."""

    time_slot_start: int
    data_range_start: int


@dataclass(frozen=True)
class GridCell:
    price_range_start: int
    price_range_end: int
    time_range_start: int
    time_range_end: int

    @property
    def key(self) -> CellKey:
        return CellKey(
            time_slot_start=self.time_range_start,
            data_range_start=self.price_range_start,
        )


@dataclass(frozen=True)
class GridBounds:
    rows: tuple[int, ...]  # price range starts, descending
    columns: tuple[int, ...]  # time range starts, ascending
    min_price: int
    max_price: int
    start_time: int
    end_time: int
