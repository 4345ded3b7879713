"""In-process events emitted by the insight engine."""

from collections import defaultdict
from typing import Any, Awaitable, Callable, DefaultDict, Dict, List

import structlog

logger = structlog.get_logger()

INSIGHTS_GENERATED = "insights_generated"
SUGGESTION_STATUS_CHANGED = "suggestion_status_changed"

EVENT_TYPES = (INSIGHTS_GENERATED, SUGGESTION_STATUS_CHANGED)

EventHandler = Callable[[Dict[str, Any]], Awaitable[None]]


class EventBus:
    """Fan-out of engine events to async subscribers.

    Delivery is best effort: a failing handler is logged and skipped, and the
    remaining handlers still run. Publishing never raises into the pipeline.
    """

    def __init__(self):
        self._handlers: DefaultDict[str, List[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: str, handler: EventHandler):
        """Register a handler for one event type."""
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown event type: {event_type}")
        self._handlers[event_type].append(handler)

    async def publish(self, event_type: str, payload: Dict[str, Any]) -> int:
        """Deliver an event to every subscriber; returns how many succeeded."""
        delivered = 0

        for handler in list(self._handlers.get(event_type, [])):
            try:
                await handler(payload)
                delivered += 1
            except Exception as e:
                logger.error(
                    "Event handler failed",
                    event_type=event_type,
                    handler=getattr(handler, "__qualname__", repr(handler)),
                    error=str(e)
                )

        return delivered
