"""
==============================================================================
Catalog Updates WebSocket Module
==============================================================================

Live product and category notifications over a single WebSocket.

Flow:
-----
1. Client connects to /ws
2. Subscribes to one or more topics
3. Receives a "message" frame whenever something is published there
4. May also send its own message to a product or category channel

Messages (Client → Server):
---------------------------
- {"type": "subscribe", "topic": "/topic/product/1"}
- {"type": "unsubscribe", "topic": "/topic/product/1"}
- {"type": "send", "destination": "/app/product/1", "message": {...}}
    → relayed to /topic/product/1 (same for /app/category/{id})
- {"type": "stop"}

Messages (Server → Client):
---------------------------
- {"type": "subscribed", "topic": "..."}
- {"type": "unsubscribed", "topic": "..."}
- {"type": "message", "topic": "...", "payload": ...}
- {"type": "error", "code": "...", "message": "..."}

Frames that are not a JSON object are answered with an INVALID_MESSAGE
error; the connection stays open.

==============================================================================
"""

import logging
import re
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from productmanager.websockets.broker import (
    CATEGORY_TOPIC,
    PRODUCT_TOPIC,
    TopicBroker,
    get_broker,
)


# Module logger
logger = logging.getLogger(__name__)

router = APIRouter()

# /app/{product|category}/{id} destinations accepted from clients
_DESTINATION = re.compile(r"^/app/(product|category)/(\d+)$")

_TOPIC = re.compile(
    rf"^({re.escape(PRODUCT_TOPIC)}|{re.escape(CATEGORY_TOPIC)})(/\d+)?$"
)


def relay_topic(destination: str) -> Optional[str]:
    """
    Map a client destination to the topic it is relayed to.

    Returns:
        Topic, or None if the destination is not accepted
    """
    match = _DESTINATION.match(destination or "")
    if match is None:
        return None
    kind, entity_id = match.groups()
    return f"/topic/{kind}/{entity_id}"


def is_valid_topic(topic: str) -> bool:
    return bool(_TOPIC.match(topic or ""))


class CatalogUpdatesHandler:
    """
    Handler for one catalog updates WebSocket connection.

    Subscriptions live in the shared TopicBroker and are removed when the
    connection closes.
    """

    def __init__(self, websocket: WebSocket, broker: Optional[TopicBroker] = None):
        self._websocket = websocket
        self._broker = broker or get_broker()

    async def _send_error(self, message: str, code: str = "ERROR") -> None:
        """Send error message to client."""
        await self._websocket.send_json({
            "type": "error",
            "code": code,
            "message": message
        })

    async def handle_subscribe(self, data: dict) -> None:
        """Subscribe this connection to a topic."""
        topic = data.get("topic")

        if not is_valid_topic(topic):
            await self._send_error(f"Unknown topic: {topic}", "INVALID_TOPIC")
            return

        self._broker.subscribe(topic, self._websocket)
        await self._websocket.send_json({"type": "subscribed", "topic": topic})

    async def handle_unsubscribe(self, data: dict) -> None:
        """Unsubscribe this connection from a topic."""
        topic = data.get("topic")

        if not self._broker.unsubscribe(topic, self._websocket):
            await self._send_error(f"Not subscribed to: {topic}", "NOT_SUBSCRIBED")
            return

        await self._websocket.send_json({"type": "unsubscribed", "topic": topic})

    async def handle_send(self, data: dict) -> None:
        """Relay a client message to the matching topic."""
        destination = data.get("destination")
        topic = relay_topic(destination)

        if topic is None:
            await self._send_error(
                f"Unknown destination: {destination}",
                "INVALID_DESTINATION"
            )
            return

        delivered = await self._broker.publish(topic, data.get("message"))
        logger.debug(f"Relayed {destination} → {topic} ({delivered} subscribers)")

    async def _receive(self) -> Optional[dict]:
        """
        Read the next client frame.

        Returns:
            The frame as a dict, or None after answering INVALID_MESSAGE
            for text that is not a JSON object
        """
        try:
            data = await self._websocket.receive_json()
        except ValueError:
            await self._send_error("Message is not valid JSON", "INVALID_MESSAGE")
            return None

        if not isinstance(data, dict):
            await self._send_error("Message must be a JSON object", "INVALID_MESSAGE")
            return None
        return data

    async def run(self) -> None:
        """Main handler loop."""
        await self._websocket.accept()
        logger.info("🔌 Updates WebSocket connected")

        try:
            while True:
                data = await self._receive()
                if data is None:
                    continue
                msg_type = data.get("type")

                if msg_type == "subscribe":
                    await self.handle_subscribe(data)
                elif msg_type == "unsubscribe":
                    await self.handle_unsubscribe(data)
                elif msg_type == "send":
                    await self.handle_send(data)
                elif msg_type == "stop":
                    logger.info("🛑 Client requested stop")
                    break
                else:
                    await self._send_error(f"Unknown message type: {msg_type}", "UNKNOWN_TYPE")

        except WebSocketDisconnect:
            logger.info("🔌 Updates WebSocket disconnected")
        except Exception as e:
            logger.exception(f"Updates WebSocket error: {e}")
            raise
        finally:
            self._broker.disconnect(self._websocket)


@router.websocket("/ws")
async def websocket_updates(websocket: WebSocket):
    """
    WebSocket endpoint for live catalog updates.

    Clients subscribe to product/category topics and receive every change
    made through the REST API.
    """
    handler = CatalogUpdatesHandler(websocket)
    await handler.run()
