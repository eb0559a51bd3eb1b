"""pm_round REST endpoints.

GET /markets/{market_id}/current-round                 phase and timing
GET /markets/{market_id}/rounds/{round_id}/hit-cells   current round only
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.pm_common.response import ApiResponse, success_response
from src.pm_round.application.schemas import CurrentRoundResponse, HitCellsResponse
from src.pm_round.application.service import RoundEngineRegistry, get_round_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/markets", tags=["rounds"])


@router.get("/{market_id}/current-round")
async def get_current_round(
    market_id: int,
    request: Request,
    registry: Annotated[RoundEngineRegistry, Depends(get_round_registry)],
) -> ApiResponse:
    state = registry.get(market_id).require_round()
    resp = success_response(CurrentRoundResponse.from_state(state).model_dump(by_alias=True))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/{market_id}/rounds/{round_id}/hit-cells")
async def get_hit_cells(
    market_id: int,
    round_id: int,
    request: Request,
    registry: Annotated[RoundEngineRegistry, Depends(get_round_registry)],
) -> ApiResponse:
    cells = registry.get(market_id).get_hit_cells(round_id)
    logger.info("Served %d hit cells for market %d round %d", len(cells), market_id, round_id)
    result = HitCellsResponse.from_cells(market_id, round_id, cells)
    resp = success_response(result.model_dump(by_alias=True))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
