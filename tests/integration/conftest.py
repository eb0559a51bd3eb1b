"""Integration-test fixtures.

The ASGI transport does not run the app lifespan, so nothing reaches the
network: each test wires a registry of virtual-time engines, a fresh ledger
and a scripted price fetcher into the module singletons / dependency overrides.
"""

import pytest

from src.main import app
from src.pm_betting.domain.ledger import BetLedger, get_bet_ledger
from src.pm_round.application.service import RoundEngineRegistry, set_round_registry
from src.pm_round.engine.engine import RoundEngine
from src.pm_settlement.application.service import get_settlement_relay


@pytest.fixture
def ledger() -> BetLedger:
    ledger = BetLedger()
    app.dependency_overrides[get_bet_ledger] = lambda: ledger
    yield ledger
    app.dependency_overrides.pop(get_bet_ledger, None)


@pytest.fixture
def no_relay() -> None:
    app.dependency_overrides[get_settlement_relay] = lambda: None
    yield
    app.dependency_overrides.pop(get_settlement_relay, None)


@pytest.fixture
async def engine(fast_market, scheduler, sink, make_fetcher) -> RoundEngine:
    """Market 1, round 1 opened at T0 on a scripted 50050 -> 50010 -> 50230 path."""
    engine = RoundEngine(
        fast_market, make_fetcher(50050, 50010, 50230), scheduler, sink, poll_interval=5
    )
    await engine.start_round(1)
    return engine


@pytest.fixture
def registry(engine: RoundEngine) -> RoundEngineRegistry:
    registry = RoundEngineRegistry()
    registry.register(engine)
    set_round_registry(registry)
    yield registry
    set_round_registry(RoundEngineRegistry())
