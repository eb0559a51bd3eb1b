"""Grid math: price/time to row/column, and hit-cell derivation.

Rows are price range starts, columns are time range starts (Unix seconds).
All row and column values are int; prices may be Decimal.
"""

import math
from collections.abc import Iterable
from decimal import Decimal

from src.pm_grid.domain.models import CellKey, GridCell, MarketConfig
from src.pm_price.domain.models import PriceDataPoint

Price = Decimal | int


def price_to_row_start(price: Price, increment: int) -> int:
    """Floor price to its row: 105234 @ 500 -> 105000; -1 @ 100 -> -100."""
    return math.floor(Decimal(price) / increment) * increment


def timestamp_to_column_index(timestamp: int, round_start_time: int, time_increment: int) -> int:
    return (timestamp - round_start_time) // time_increment


def timestamp_to_column_start(timestamp: int, round_start_time: int, time_increment: int) -> int:
    index = timestamp_to_column_index(timestamp, round_start_time, time_increment)
    return round_start_time + index * time_increment


def rows_between(price1: Price, price2: Price, increment: int) -> list[int]:
    """All row starts from the lower sample's row to the higher one's, inclusive.

    Interpolates the rows a price jump swept through between two polls.
    """
    row1 = price_to_row_start(price1, increment)
    row2 = price_to_row_start(price2, increment)
    low, high = min(row1, row2), max(row1, row2)
    return list(range(low, high + increment, increment))


def derive_hit_cells(
    price_history: Iterable[PriceDataPoint],
    market: MarketConfig,
    round_start_time: int,
) -> list[GridCell]:
    """Derive every grid cell the price trajectory has traversed.

    Samples before round_start_time are ignored. The rest are walked in
    (timestamp, price) order, so ties on timestamp have one canonical path
    and the result never depends on the order samples landed in.

    For each consecutive pair, every interpolated row is marked in the
    current column and, when the column advanced, in the previous column too.
    Result is sorted by (time, price).
    """
    samples = sorted(
        (p for p in price_history if p.timestamp >= round_start_time),
        key=lambda p: (p.timestamp, p.price),
    )
    if not samples:
        return []

    hit: dict[CellKey, GridCell] = {}

    def add_cell(row_start: int, col_start: int) -> None:
        key = CellKey(time_slot_start=col_start, data_range_start=row_start)
        if key not in hit:
            hit[key] = GridCell(
                price_range_start=row_start,
                price_range_end=row_start + market.price_increment,
                time_range_start=col_start,
                time_range_end=col_start + market.time_increment,
            )

    first = samples[0]
    add_cell(
        price_to_row_start(first.price, market.price_increment),
        timestamp_to_column_start(first.timestamp, round_start_time, market.time_increment),
    )

    for prev, current in zip(samples, samples[1:]):
        prev_col = timestamp_to_column_start(
            prev.timestamp, round_start_time, market.time_increment
        )
        col = timestamp_to_column_start(
            current.timestamp, round_start_time, market.time_increment
        )
        for row in rows_between(prev.price, current.price, market.price_increment):
            if col != prev_col:
                add_cell(row, prev_col)
            add_cell(row, col)

    return [hit[key] for key in sorted(hit)]


def hit_cell_keys(cells: Iterable[GridCell]) -> set[CellKey]:
    return {cell.key for cell in cells}


def is_cell_hit(cells: Iterable[GridCell], price_range_start: int, time_range_start: int) -> bool:
    target = CellKey(time_slot_start=time_range_start, data_range_start=price_range_start)
    return any(cell.key == target for cell in cells)
