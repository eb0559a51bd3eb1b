"""Unit tests for SettlementService: preconditions, payouts and relay forwarding."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.pm_betting.domain.ledger import BetLedger
from src.pm_betting.domain.models import Bet, BetData
from src.pm_common.errors import (
    NothingToSettleError,
    RoundNotCurrentError,
    RoundNotFinishedError,
    SettlementForwardError,
    SettlementInProgressError,
)
from src.pm_grid.domain.models import CellKey
from src.pm_round.application.service import RoundEngineRegistry
from src.pm_round.engine.engine import RoundEngine
from src.pm_settlement.application.service import SettlementService

T0 = 1_700_000_000
HIT = CellKey(T0 + 10, 50000)
MISS = CellKey(T0 + 10, 51000)


def _bet_data(participant: str, amount: int, cells: list[CellKey], round_id: int = 1) -> BetData:
    return BetData.from_bets(participant, 1, round_id, [Bet(amount=amount, cells=tuple(cells))])


@pytest.fixture
async def engine(fast_market, scheduler, sink, make_fetcher) -> RoundEngine:
    engine = RoundEngine(
        fast_market, make_fetcher(50050, 50010, 50230), scheduler, sink, poll_interval=5
    )
    await engine.start_round(1)
    return engine


@pytest.fixture
def registry(engine: RoundEngine) -> RoundEngineRegistry:
    registry = RoundEngineRegistry()
    registry.register(engine)
    return registry


@pytest.fixture
def ledger() -> BetLedger:
    ledger = BetLedger()
    ledger.add_bet(_bet_data("0xa", 1000, [HIT, MISS]))
    ledger.add_bet(_bet_data("0xb", 1000, [MISS]))
    return ledger


class TestSettleRound:
    async def test_computes_payouts_and_clears(self, registry, ledger, scheduler) -> None:
        await scheduler.advance(20)
        receipt = await SettlementService(registry, ledger, 200).settle_round(1, 1)

        assert receipt.participants == ["0xa"]
        assert receipt.payouts == ["1960"]
        assert receipt.total_payout == "1960"
        assert receipt.total_pool == "2000"
        assert receipt.commission == "40"
        assert receipt.house_retained == "40"
        assert receipt.hit_cell_count == 6
        assert receipt.refunded is False
        assert receipt.tx_hash is None
        assert ledger.get_round_bets(1, 1) is None

    async def test_receipt_is_camel_case(self, registry, ledger, scheduler) -> None:
        await scheduler.advance(20)
        receipt = await SettlementService(registry, ledger, 200).settle_round(1, 1)
        dumped = receipt.model_dump(by_alias=True)
        assert dumped["totalPayout"] == "1960"
        assert dumped["hitCellCount"] == 6
        assert "houseRetained" in dumped

    async def test_forwards_to_relay(self, registry, ledger, scheduler) -> None:
        relay = AsyncMock()
        relay.submit = AsyncMock(return_value="0xdeadbeef")
        await scheduler.advance(20)

        receipt = await SettlementService(registry, ledger, 200, relay).settle_round(1, 1)

        assert receipt.tx_hash == "0xdeadbeef"
        market_id, round_id, hit_cells, result = relay.submit.call_args.args
        assert (market_id, round_id) == (1, 1)
        assert hit_cells == sorted(hit_cells)
        assert HIT in hit_cells
        assert result.payouts == [1960]

    async def test_relay_failure_keeps_ledger(self, registry, ledger, scheduler) -> None:
        relay = AsyncMock()
        relay.submit = AsyncMock(side_effect=SettlementForwardError("502 Bad Gateway"))
        await scheduler.advance(20)

        with pytest.raises(SettlementForwardError):
            await SettlementService(registry, ledger, 200, relay).settle_round(1, 1)
        assert ledger.get_round_bets(1, 1) is not None

    async def test_retry_after_relay_failure(self, registry, ledger, scheduler) -> None:
        relay = AsyncMock()
        relay.submit = AsyncMock(side_effect=[SettlementForwardError("502 Bad Gateway"), "0x1"])
        await scheduler.advance(20)
        service = SettlementService(registry, ledger, 200, relay)

        with pytest.raises(SettlementForwardError):
            await service.settle_round(1, 1)
        receipt = await service.settle_round(1, 1)

        assert receipt.tx_hash == "0x1"
        assert ledger.get_round_bets(1, 1) is None

    async def test_refund_when_nothing_hit(self, registry, scheduler) -> None:
        ledger = BetLedger()
        ledger.add_bet(_bet_data("0xa", 1000, [MISS]))
        await scheduler.advance(20)

        receipt = await SettlementService(registry, ledger, 200).settle_round(1, 1)
        assert receipt.refunded is True
        assert receipt.payouts == ["980"]


class TestPreconditions:
    async def test_no_bets(self, registry, scheduler) -> None:
        await scheduler.advance(20)
        with pytest.raises(NothingToSettleError) as exc_info:
            await SettlementService(registry, BetLedger(), 200).settle_round(1, 1)
        assert exc_info.value.code == 5001

    async def test_malformed_bet(self, registry, scheduler) -> None:
        ledger = BetLedger()
        ledger.add_bet(BetData("0xa", 1, 1, 500, (Bet(amount=500, cells=()),)))
        await scheduler.advance(20)
        with pytest.raises(NothingToSettleError, match="malformed"):
            await SettlementService(registry, ledger, 200).settle_round(1, 1)

    async def test_total_mismatch(self, registry, scheduler) -> None:
        ledger = BetLedger()
        ledger.add_bet(BetData("0xa", 1, 1, 999, (Bet(amount=500, cells=(HIT,)),)))
        await scheduler.advance(20)
        with pytest.raises(NothingToSettleError, match="mismatch"):
            await SettlementService(registry, ledger, 200).settle_round(1, 1)

    async def test_round_still_live(self, registry, ledger, scheduler) -> None:
        await scheduler.advance(12)
        with pytest.raises(RoundNotFinishedError) as exc_info:
            await SettlementService(registry, ledger, 200).settle_round(1, 1)
        assert exc_info.value.code == 5002
        assert ledger.get_round_bets(1, 1) is not None

    async def test_round_not_current(self, registry, scheduler) -> None:
        ledger = BetLedger()
        ledger.add_bet(_bet_data("0xa", 1000, [HIT], round_id=7))
        await scheduler.advance(20)
        with pytest.raises(RoundNotCurrentError):
            await SettlementService(registry, ledger, 200).settle_round(1, 7)


class TestConcurrentSettlement:
    async def test_same_round_forwarded_once(self, registry, ledger, scheduler) -> None:
        async def slow_submit(*_args) -> str:
            await asyncio.sleep(0.01)
            return "0x1"

        relay = AsyncMock()
        relay.submit = AsyncMock(side_effect=slow_submit)
        await scheduler.advance(20)

        results = await asyncio.gather(
            SettlementService(registry, ledger, 200, relay).settle_round(1, 1),
            SettlementService(registry, ledger, 200, relay).settle_round(1, 1),
            return_exceptions=True,
        )

        relay.submit.assert_awaited_once()
        receipts = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, SettlementInProgressError)]
        assert len(receipts) == 1
        assert receipts[0].tx_hash == "0x1"
        assert len(rejected) == 1
        assert rejected[0].code == 5004
        assert ledger.get_round_bets(1, 1) is None

    async def test_second_call_after_completion_finds_nothing(
        self, registry, ledger, scheduler
    ) -> None:
        await scheduler.advance(20)
        service = SettlementService(registry, ledger, 200)
        await service.settle_round(1, 1)
        with pytest.raises(NothingToSettleError):
            await service.settle_round(1, 1)
