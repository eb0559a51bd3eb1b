"""Unified error codes and custom exceptions.

Error code ranges:
  3xxx: Market/Round
  4xxx: Bet intake
  5xxx: Settlement
  6xxx: Price sources
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 3xxx: Market/Round ---

class MarketNotFoundError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3001, f"Market not found: {market_id}", 404)


class RoundNotStartedError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3002, f"No round running for market {market_id}", 404)


class RoundNotCurrentError(AppError):
    def __init__(self, round_id: int, current_round_id: int | None) -> None:
        super().__init__(
            3003,
            f"Round not found or not current round: requested {round_id}, "
            f"current is {current_round_id}",
            404,
        )


# --- 4xxx: Bet intake ---

class BettingClosedError(AppError):
    def __init__(self, market_id: int, round_id: int, detail: str) -> None:
        super().__init__(
            4001, f"Betting closed for market {market_id} round {round_id}: {detail}", 422
        )


class InvalidBetError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4002, f"Invalid bet: {detail}", 422)


# --- 5xxx: Settlement ---

class NothingToSettleError(AppError):
    def __init__(self, market_id: int, round_id: int, detail: str) -> None:
        super().__init__(
            5001, f"Nothing to settle for market {market_id} round {round_id}: {detail}", 409
        )


class RoundNotFinishedError(AppError):
    def __init__(self, round_id: int, phase: str) -> None:
        super().__init__(5002, f"Round {round_id} is in phase {phase}, not SETTLING", 409)


class SettlementForwardError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(5003, f"Settlement relay failed: {detail}", 502)


class SettlementInProgressError(AppError):
    def __init__(self, market_id: int, round_id: int) -> None:
        super().__init__(
            5004, f"Settlement already in progress for market {market_id} round {round_id}", 409
        )


# --- 6xxx: Price sources ---

class PriceSourceError(AppError):
    """One provider failed: bad status, malformed payload or provider error code."""

    def __init__(self, source: str, detail: str) -> None:
        self.source = source
        super().__init__(6001, f"{source}: {detail}", 502)


class AllPriceSourcesFailedError(AppError):
    def __init__(self, asset: str, reasons: list[str]) -> None:
        self.reasons = reasons
        super().__init__(
            6002, f"All price sources failed for {asset}: {'; '.join(reasons)}", 503
        )


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
