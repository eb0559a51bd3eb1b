"""pm_betting REST endpoints.

POST /bets          place (or replace) a participant's bets for a round
GET  /bets/summary  read-only aggregate of open rounds
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.pm_betting.application.schemas import PlaceBetsRequest, RoundBetsSummaryOut
from src.pm_betting.application.service import BetIntakeService
from src.pm_betting.domain.ledger import BetLedger, get_bet_ledger
from src.pm_common.response import ApiResponse, success_response
from src.pm_round.application.service import RoundEngineRegistry, get_round_registry

router = APIRouter(prefix="/bets", tags=["bets"])


@router.post("", status_code=201)
async def place_bets(
    req: PlaceBetsRequest,
    request: Request,
    registry: Annotated[RoundEngineRegistry, Depends(get_round_registry)],
    ledger: Annotated[BetLedger, Depends(get_bet_ledger)],
) -> ApiResponse:
    result = BetIntakeService(registry, ledger).place_bets(req)
    resp = success_response(result.model_dump(by_alias=True))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/summary")
async def bets_summary(
    request: Request,
    ledger: Annotated[BetLedger, Depends(get_bet_ledger)],
) -> ApiResponse:
    items = [RoundBetsSummaryOut.from_domain(s).model_dump(by_alias=True) for s in ledger.get_summary()]
    resp = success_response({"rounds": items})
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
