"""pm_settlement REST endpoints.

POST /markets/{market_id}/rounds/{round_id}/settle   compute (and forward) payouts
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from config.settings import settings
from src.pm_betting.domain.ledger import BetLedger, get_bet_ledger
from src.pm_common.response import ApiResponse, success_response
from src.pm_round.application.service import RoundEngineRegistry, get_round_registry
from src.pm_settlement.application.service import SettlementService, get_settlement_relay
from src.pm_settlement.infrastructure.relay_client import SettlementRelayProtocol

router = APIRouter(prefix="/markets", tags=["settlement"])


@router.post("/{market_id}/rounds/{round_id}/settle")
async def settle_round(
    market_id: int,
    round_id: int,
    request: Request,
    registry: Annotated[RoundEngineRegistry, Depends(get_round_registry)],
    ledger: Annotated[BetLedger, Depends(get_bet_ledger)],
    relay: Annotated[SettlementRelayProtocol | None, Depends(get_settlement_relay)],
) -> ApiResponse:
    service = SettlementService(registry, ledger, settings.COMMISSION_BPS, relay)
    receipt = await service.settle_round(market_id, round_id)
    resp = success_response(receipt.model_dump(by_alias=True))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
