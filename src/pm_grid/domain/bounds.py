"""Grid bounds: the visible, biddable window around the live price."""

import math
from decimal import Decimal

from src.pm_grid.domain.grid_math import Price, price_to_row_start
from src.pm_grid.domain.models import GridBounds, MarketConfig

DEFAULT_VISIBLE_ROWS = 14
RECENTER_BUFFER_ROWS = 2


def calculate_grid_bounds(
    market: MarketConfig,
    center_price: Price,
    round_start_time: int,
    visible_rows: int = DEFAULT_VISIBLE_ROWS,
) -> GridBounds:
    """Center a fixed-height row window on the price, shifted down one row.

    e.g. center row 63,400 with 14 rows at $100: 64,000 down to 62,700
    (6 rows above the center row, 7 below). Columns cover the live phase only.
    """
    if visible_rows < 1:
        raise ValueError(f"visible_rows must be >= 1, got {visible_rows}")

    inc = market.price_increment
    center_row = price_to_row_start(center_price, inc)
    half_rows = visible_rows // 2

    max_price = center_row + (half_rows - 1) * inc
    min_price = max_price - (visible_rows - 1) * inc
    rows = tuple(range(max_price, min_price - inc, -inc))

    num_columns = math.ceil(market.live_duration / market.time_increment)
    live_start_time = round_start_time + market.betting_duration
    columns = tuple(live_start_time + i * market.time_increment for i in range(num_columns))

    return GridBounds(
        rows=rows,
        columns=columns,
        min_price=min_price,
        max_price=max_price,
        start_time=live_start_time,
        end_time=round_start_time + market.round_duration,
    )


def needs_recenter(bounds: GridBounds, price: Price, price_increment: int) -> bool:
    """True when price is within two rows of either window edge."""
    buffer = RECENTER_BUFFER_ROWS * price_increment
    value = Decimal(price)
    return value < bounds.min_price + buffer or value > bounds.max_price - buffer


def format_time_slot_label(timestamp: int, round_start_time: int, time_increment: int) -> str:
    """Offset of the slot from round start: 60s -> '1m', 65s -> '1:05'."""
    slot_index = (timestamp - round_start_time) // time_increment
    offset = slot_index * time_increment
    minutes, seconds = divmod(offset, 60)
    if seconds == 0:
        return f"{minutes}m"
    return f"{minutes}:{seconds:02d}"


def format_price_row_label(price_range_start: int) -> str:
    return f"${price_range_start:,}"
