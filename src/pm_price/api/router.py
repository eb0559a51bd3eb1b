"""pm_price REST endpoints.

GET /price-sources/status   per-source failure counters and the fast-path source
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.pm_common.response import ApiResponse, success_response
from src.pm_price.application.fetcher import PriceFetcher, get_price_fetcher

router = APIRouter(prefix="/price-sources", tags=["prices"])


@router.get("/status")
async def price_source_status(
    request: Request,
    fetcher: Annotated[PriceFetcher, Depends(get_price_fetcher)],
) -> ApiResponse:
    sources = {
        name: {"failures": status.failures, "isLastSuccessful": status.is_last_successful}
        for name, status in fetcher.get_status().items()
    }
    resp = success_response(
        {"lastSuccessfulSource": fetcher.last_successful_source, "sources": sources}
    )
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
