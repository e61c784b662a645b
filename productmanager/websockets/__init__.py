"""
==============================================================================
WebSocket Package
==============================================================================

Real-time catalog update notifications.

Modules:
--------
- broker: TopicBroker mapping topics to subscribed connections
- updates: /ws endpoint (subscribe, unsubscribe, send, stop)

==============================================================================
"""

from .broker import TopicBroker, get_broker
from .updates import router as updates_router

__all__ = ["TopicBroker", "get_broker", "updates_router"]
