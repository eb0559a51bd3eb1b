"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.markets import resolve_markets
from config.settings import settings
from src.pm_betting.api.router import router as bets_router
from src.pm_betting.application.eviction import LedgerEvictionSink
from src.pm_betting.domain.ledger import get_bet_ledger
from src.pm_common.errors import AppError
from src.pm_common.logging_config import setup_logging
from src.pm_common.response import error_response
from src.pm_common.scheduler import AsyncioScheduler
from src.pm_gateway.middleware.request_log import RequestLogMiddleware
from src.pm_price.api.router import router as price_router
from src.pm_price.application.fetcher import (
    PriceFetcher,
    build_default_sources,
    set_price_fetcher,
)
from src.pm_round.api.relay import get_broadcast_relay
from src.pm_round.api.relay import router as ws_router
from src.pm_round.api.router import router as rounds_router
from src.pm_round.application.service import build_registry, get_round_registry, set_round_registry
from src.pm_round.engine.events import FanOutSink
from src.pm_settlement.api.router import router as settlement_router
from src.pm_settlement.application.service import set_settlement_relay
from src.pm_settlement.infrastructure.relay_client import HttpSettlementRelay

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: wire price sources, engines and relay; start round 1. Shutdown: stop timers."""
    # Startup
    http_client = httpx.AsyncClient()
    fetcher = PriceFetcher(
        build_default_sources(http_client),
        fast_path_timeout=settings.PRICE_FAST_PATH_TIMEOUT_SECONDS,
        scan_timeout=settings.PRICE_SCAN_TIMEOUT_SECONDS,
        max_failures=settings.PRICE_MAX_CONSECUTIVE_FAILURES,
    )
    set_price_fetcher(fetcher)

    registry = build_registry(
        resolve_markets(settings.enabled_market_names),
        fetcher,
        AsyncioScheduler(),
        FanOutSink([get_broadcast_relay(), LedgerEvictionSink(get_bet_ledger())]),
        poll_interval=settings.POLL_INTERVAL_SECONDS,
        next_round_delay=settings.NEXT_ROUND_DELAY_SECONDS,
        visible_rows=settings.VISIBLE_ROWS,
    )
    set_round_registry(registry)

    if settings.SETTLEMENT_RELAY_URL:
        set_settlement_relay(
            HttpSettlementRelay(
                http_client,
                settings.SETTLEMENT_RELAY_URL,
                settings.SETTLEMENT_RELAY_TIMEOUT_SECONDS,
            )
        )
    else:
        logger.info("SETTLEMENT_RELAY_URL not set; settlement computes payouts only")

    if settings.AUTOSTART_ROUNDS:
        await registry.start_all()
    logger.info("Markets running: %s", registry.market_ids)
    yield
    # Shutdown
    registry.stop_all()
    set_settlement_relay(None)
    set_price_fetcher(None)
    await http_client.aclose()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(rounds_router, prefix="/api/v1")
app.include_router(bets_router, prefix="/api/v1")
app.include_router(settlement_router, prefix="/api/v1")
app.include_router(price_router, prefix="/api/v1")
app.include_router(ws_router)


@app.get("/health")
async def health() -> dict[str, object]:
    return {"status": "ok", "version": "0.1.0", "markets": get_round_registry().market_ids}
