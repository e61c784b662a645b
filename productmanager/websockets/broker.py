"""
==============================================================================
Topic Broker Module
==============================================================================

In-process publish/subscribe hub for catalog update notifications.

Topics:
-------
- /topic/product            Any product created, updated or deleted
- /topic/product/{id}       Changes to one product
- /topic/category           Any category created, updated or deleted
- /topic/category/{id}      Changes to one category

Frames delivered to subscribers:

    {"type": "message", "topic": "/topic/product/7", "payload": {...}}

==============================================================================
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict, List

from fastapi import WebSocket


# Module logger
logger = logging.getLogger(__name__)

PRODUCT_TOPIC = "/topic/product"
CATEGORY_TOPIC = "/topic/category"


def product_topic(product_id: int) -> str:
    return f"{PRODUCT_TOPIC}/{product_id}"


def category_topic(category_id: int) -> str:
    return f"{CATEGORY_TOPIC}/{category_id}"


class TopicBroker:
    """
    Maps topics to the WebSocket connections subscribed to them.

    A connection whose send fails is dropped from every topic.

    Example:
        >>> broker = get_broker()
        >>> broker.subscribe("/topic/product/1", websocket)
        >>> await broker.publish("/topic/product/1", {"event": "updated"})
        1
    """

    def __init__(self) -> None:
        # topic -> {id(websocket): websocket}
        self._subscriptions: Dict[str, Dict[int, WebSocket]] = {}

    # =========================================================================
    # SUBSCRIPTIONS
    # =========================================================================

    def subscribe(self, topic: str, websocket: WebSocket) -> None:
        """Subscribe a connection to a topic (no-op if already subscribed)."""
        self._subscriptions.setdefault(topic, {})[id(websocket)] = websocket
        logger.debug(f"Subscribed to {topic}")

    def unsubscribe(self, topic: str, websocket: WebSocket) -> bool:
        """
        Remove a connection from a topic.

        Returns:
            True if the connection was subscribed
        """
        subscribers = self._subscriptions.get(topic)
        if not subscribers or id(websocket) not in subscribers:
            return False
        del subscribers[id(websocket)]
        if not subscribers:
            del self._subscriptions[topic]
        return True

    def disconnect(self, websocket: WebSocket) -> None:
        """Remove a connection from every topic."""
        for topic in list(self._subscriptions):
            self.unsubscribe(topic, websocket)

    def subscribers(self, topic: str) -> int:
        """Number of connections subscribed to a topic."""
        return len(self._subscriptions.get(topic, ()))

    def topics_of(self, websocket: WebSocket) -> List[str]:
        """Topics a connection is subscribed to, sorted."""
        return sorted(
            topic for topic, subscribers in self._subscriptions.items()
            if id(websocket) in subscribers
        )

    # =========================================================================
    # PUBLISHING
    # =========================================================================

    async def publish(self, topic: str, payload: Any) -> int:
        """
        Send a payload to every subscriber of a topic.

        Args:
            topic: Destination topic
            payload: JSON-serializable payload

        Returns:
            Number of connections the frame was delivered to
        """
        frame = {"type": "message", "topic": topic, "payload": payload}
        delivered = 0

        for websocket in list(self._subscriptions.get(topic, {}).values()):
            try:
                await websocket.send_json(frame)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping subscriber of {topic}: {e}")
                self.disconnect(websocket)

        return delivered

    async def publish_all(self, topics: List[str], payload: Any) -> int:
        """Publish the same payload to several topics."""
        delivered = 0
        for topic in topics:
            delivered += await self.publish(topic, payload)
        return delivered


@lru_cache(maxsize=1)
def get_broker() -> TopicBroker:
    """Get the process-wide TopicBroker instance."""
    return TopicBroker()
