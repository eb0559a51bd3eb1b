"""BroadcastRelay: WebSocket fan-out of round lifecycle events.

Client → server:  {"type": "SUBSCRIBE",   "payload": {"marketId": 1}}
                  {"type": "UNSUBSCRIBE", "payload": {"marketId": 1}}
Server → client:  {"type": "CONNECTED"} on connect,
                  {"type": "SUBSCRIBED", "payload": {"marketId": 1}} then the
                  market's catch-up state, then every lifecycle event.
"""

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from src.pm_common.enums import RelayMessageType
from src.pm_round.application.service import get_round_registry
from src.pm_round.engine.events import RoundEvent

logger = logging.getLogger(__name__)


class BroadcastRelay:
    """EventSink implementation; per-market subscriber sets."""

    def __init__(self) -> None:
        self._subscriptions: dict[int, set[WebSocket]] = {}

    def subscribe(self, ws: WebSocket, market_id: int) -> None:
        self._subscriptions.setdefault(market_id, set()).add(ws)
        logger.info("Client subscribed to market %d", market_id)

    def unsubscribe(self, ws: WebSocket, market_id: int) -> None:
        clients = self._subscriptions.get(market_id)
        if clients is None:
            return
        clients.discard(ws)
        if not clients:
            del self._subscriptions[market_id]
        logger.info("Client unsubscribed from market %d", market_id)

    def remove_client(self, ws: WebSocket) -> None:
        for market_id, clients in list(self._subscriptions.items()):
            clients.discard(ws)
            if not clients:
                del self._subscriptions[market_id]

    def client_count(self, market_id: int) -> int:
        return len(self._subscriptions.get(market_id, ()))

    def subscribed_markets(self) -> list[int]:
        return sorted(self._subscriptions)

    async def publish(self, market_id: int, event: RoundEvent) -> None:
        clients = self._subscriptions.get(market_id)
        if not clients:
            return
        data = json.dumps(event.to_wire())
        dead: list[WebSocket] = []
        for ws in list(clients):
            try:
                await ws.send_text(data)
            except Exception:
                dead.append(ws)
        for ws in dead:
            self.remove_client(ws)
        sent = len(clients)
        if sent:
            logger.debug(
                "Broadcast %s to %d clients for market %d", event.type.value, sent, market_id
            )


_relay = BroadcastRelay()


def get_broadcast_relay() -> BroadcastRelay:
    return _relay


router = APIRouter(tags=["rounds"])


def _parse_market_id(msg: object) -> int | None:
    if not isinstance(msg, dict):
        return None
    payload = msg.get("payload")
    if not isinstance(payload, dict):
        return None
    market_id = payload.get("marketId")
    return market_id if isinstance(market_id, int) and not isinstance(market_id, bool) else None


@router.websocket("/ws")
async def round_events(ws: WebSocket) -> None:
    relay = get_broadcast_relay()
    await ws.accept()
    logger.info("Client connected")
    await ws.send_json({"type": RelayMessageType.CONNECTED.value})
    try:
        while True:
            raw = await ws.receive_text()
            try:
                msg = json.loads(raw)
            except ValueError:
                logger.warning("Failed to parse client message: %.80s", raw)
                continue

            msg_type = msg.get("type") if isinstance(msg, dict) else None
            market_id = _parse_market_id(msg)
            if market_id is None:
                continue

            if msg_type == RelayMessageType.SUBSCRIBE.value:
                relay.subscribe(ws, market_id)
                await ws.send_json(
                    {"type": RelayMessageType.SUBSCRIBED.value, "payload": {"marketId": market_id}}
                )
                engine = get_round_registry().find(market_id)
                if engine is not None:
                    for event in engine.catch_up_messages():
                        await ws.send_json(event.to_wire())
            elif msg_type == RelayMessageType.UNSUBSCRIBE.value:
                relay.unsubscribe(ws, market_id)
    except WebSocketDisconnect:
        logger.info("Client disconnected")
    finally:
        relay.remove_client(ws)
