"""Market presets.

Smaller price increments = more rows = harder to win.
Smaller time increments = more columns = probability spread thinner.
"""

from src.pm_grid.domain.models import MarketConfig

BTC_MARKET = MarketConfig(
    market_id=1,
    market_name="BTC/USDC",
    asset="BTC",
    price_increment=100,  # $100 per row
    time_increment=5,  # 5 seconds per column
    round_duration=120,  # 2 minutes total
    betting_duration=60,  # 1 minute betting, 1 minute live -> 12 columns
)

ETH_MARKET = MarketConfig(
    market_id=2,
    market_name="ETH/USDC",
    asset="ETH",
    price_increment=10,
    time_increment=5,
    round_duration=120,
    betting_duration=60,
)

MARKET_PRESETS: dict[str, MarketConfig] = {
    "BTC": BTC_MARKET,
    "ETH": ETH_MARKET,
}


def resolve_markets(names: list[str]) -> list[MarketConfig]:
    """Map preset names to configs. Unknown names raise ValueError."""
    unknown = [n for n in names if n not in MARKET_PRESETS]
    if unknown:
        raise ValueError(f"Unknown market presets: {', '.join(unknown)}")
    return [MARKET_PRESETS[n] for n in names]
