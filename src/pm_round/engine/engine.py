"""RoundEngine: per-market round state machine.

    BETTING --(betting_duration)--> LIVE --(live_duration)--> SETTLING
       ^                                                          |
       +-------------------(next_round_delay, round_id+1)---------+

Transitions are timer-driven only: each phase schedules the next on the
injected Scheduler when it begins. All RoundState mutation happens inside
those callbacks, on one event loop, so no locks are needed. Markets never
share an engine or a RoundState.
"""

import logging

from src.pm_common.enums import RoundPhase
from src.pm_common.errors import AppError, RoundNotCurrentError, RoundNotStartedError
from src.pm_common.scheduler import ScheduledTask, Scheduler
from src.pm_grid.domain.bounds import (
    DEFAULT_VISIBLE_ROWS,
    calculate_grid_bounds,
    needs_recenter,
)
from src.pm_grid.domain.grid_math import derive_hit_cells
from src.pm_grid.domain.models import GridCell, MarketConfig
from src.pm_price.domain.models import PriceDataPoint
from src.pm_round.domain.models import RoundState
from src.pm_round.engine.events import (
    EventSink,
    PhaseChangeMessage,
    PriceUpdateMessage,
    RoundEndMessage,
    RoundEvent,
    RoundStartMessage,
)
from src.pm_round.engine.protocols import PriceFetcherProtocol

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 1.0
NEXT_ROUND_DELAY_SECONDS = 5.0


class RoundEngine:
    def __init__(
        self,
        market: MarketConfig,
        price_fetcher: PriceFetcherProtocol,
        scheduler: Scheduler,
        sink: EventSink,
        *,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        next_round_delay: float = NEXT_ROUND_DELAY_SECONDS,
        visible_rows: int = DEFAULT_VISIBLE_ROWS,
    ) -> None:
        self._market = market
        self._price_fetcher = price_fetcher
        self._scheduler = scheduler
        self._sink = sink
        self._poll_interval = poll_interval
        self._next_round_delay = next_round_delay
        self._visible_rows = visible_rows
        self._round: RoundState | None = None
        self._phase_timer: ScheduledTask | None = None
        self._poll_task: ScheduledTask | None = None
        self._halted = False

    @property
    def market(self) -> MarketConfig:
        return self._market

    @property
    def current_round(self) -> RoundState | None:
        return self._round

    @property
    def halted(self) -> bool:
        return self._halted

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start_round(self, round_id: int) -> RoundState:
        """Open BETTING for round_id. Initial price failure propagates: no anchor, no grid."""
        initial = await self._price_fetcher.fetch_price(self._market.asset)
        self.stop()

        now = int(self._scheduler.now())
        bounds = calculate_grid_bounds(self._market, initial.price, now, self._visible_rows)
        state = RoundState(
            market_id=self._market.market_id,
            round_id=round_id,
            phase=RoundPhase.BETTING,
            round_start_time=now,
            betting_end_time=now + self._market.betting_duration,
            live_end_time=now + self._market.round_duration,
            initial_price=initial.price,
            current_price=initial.price,
            grid_bounds=bounds,
        )
        self._round = state
        self._halted = False

        logger.info(
            "Round %d started: market=%s initial=%s (%s) grid=%dx%d betting=%ds live=%ds",
            round_id,
            self._market.market_name,
            initial.price,
            initial.source,
            len(bounds.rows),
            len(bounds.columns),
            self._market.betting_duration,
            self._market.live_duration,
        )

        self._phase_timer = self._scheduler.call_later(
            self._market.betting_duration, self._enter_live
        )
        await self._publish(
            RoundStartMessage.from_state(
                state, self._market.price_increment, self._market.time_increment
            )
        )
        return state

    async def _enter_live(self) -> None:
        state = self._round
        if state is None or state.phase != RoundPhase.BETTING:
            return
        state.phase = RoundPhase.LIVE
        logger.info(
            "Round %d LIVE: polling %s every %.1fs",
            state.round_id,
            self._market.asset,
            self._poll_interval,
        )

        self._phase_timer = self._scheduler.call_later(
            self._market.live_duration, self._enter_settling
        )
        await self._publish(PhaseChangeMessage.from_state(state))
        self._poll_task = self._scheduler.call_every(self._poll_interval, self._poll_price)

    async def _poll_price(self) -> None:
        state = self._round
        if state is None or not state.is_live:
            return
        round_id = state.round_id

        try:
            point = await self._price_fetcher.fetch_price(self._market.asset)
        except AppError as exc:
            logger.warning("Round %d: price poll failed, tick skipped: %s", round_id, exc.message)
            return

        # the round may have moved on while the fetch was in flight
        if self._round is not state or not state.is_live:
            logger.debug("Round %d: late tick from %s discarded", round_id, point.source)
            return

        self._record_sample(state, point)
        await self._publish(PriceUpdateMessage.from_point(state, point))

    def _record_sample(self, state: RoundState, point: PriceDataPoint) -> None:
        state.price_history.append(point)
        state.current_price = point.price
        state.hit_cells = derive_hit_cells(
            state.price_history, self._market, state.round_start_time
        )

        if needs_recenter(state.grid_bounds, point.price, self._market.price_increment):
            state.grid_bounds = calculate_grid_bounds(
                self._market, point.price, state.round_start_time, self._visible_rows
            )
            logger.info("Grid bounds re-centered on %s", point.price)

        logger.debug(
            "T+%ds: %s | %d cells hit",
            point.timestamp - state.betting_end_time,
            point.price,
            len(state.hit_cells),
        )

    async def _enter_settling(self) -> None:
        state = self._round
        if state is None or state.phase != RoundPhase.LIVE:
            return
        self._stop_polling()
        state.phase = RoundPhase.SETTLING
        state.hit_cells = derive_hit_cells(
            state.price_history, self._market, state.round_start_time
        )

        logger.info(
            "Round %d ended: %d price points, %d cells hit, start=%s end=%s",
            state.round_id,
            len(state.price_history),
            len(state.hit_cells),
            state.initial_price,
            state.current_price,
        )

        next_round_id = state.round_id + 1
        self._phase_timer = self._scheduler.call_later(
            self._next_round_delay, lambda: self._start_next_round(next_round_id)
        )
        await self._publish(RoundEndMessage.from_state(state))
        logger.info("Starting round %d in %.0f seconds", next_round_id, self._next_round_delay)

    async def _start_next_round(self, round_id: int) -> None:
        self._phase_timer = None  # the timer running this callback
        try:
            await self.start_round(round_id)
        except AppError as exc:
            self._halted = True
            logger.error(
                "Market %s halted: round %d could not start: %s",
                self._market.market_name,
                round_id,
                exc.message,
            )

    def _stop_polling(self) -> None:
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None

    def stop(self) -> None:
        """Cancel every pending timer. The current RoundState stays readable."""
        self._stop_polling()
        if self._phase_timer is not None:
            self._phase_timer.cancel()
            self._phase_timer = None

    async def _publish(self, event: RoundEvent) -> None:
        await self._sink.publish(self._market.market_id, event)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def require_round(self) -> RoundState:
        if self._round is None:
            raise RoundNotStartedError(self._market.market_id)
        return self._round

    def get_hit_cells(self, round_id: int) -> list[GridCell]:
        """Hit cells of round_id; only the current round can be queried."""
        state = self._round
        if state is None or state.round_id != round_id:
            raise RoundNotCurrentError(round_id, state.round_id if state else None)
        return list(state.hit_cells)

    def catch_up_messages(self) -> list[RoundEvent]:
        """Current state for a late subscriber: ROUND_START, plus a PRICE_UPDATE while LIVE."""
        state = self._round
        if state is None:
            return []
        messages: list[RoundEvent] = [
            RoundStartMessage.from_state(
                state, self._market.price_increment, self._market.time_increment
            )
        ]
        if state.phase == RoundPhase.LIVE:
            snapshot = PriceDataPoint(
                price=state.current_price,
                timestamp=int(self._scheduler.now()),
                source="catchup",
            )
            messages.append(PriceUpdateMessage.from_point(state, snapshot))
        return messages
