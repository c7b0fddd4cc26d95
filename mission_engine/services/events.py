"""
In-process notification of mission and drone state changes
"""

import inspect
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Any, List, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class EngineEvent:
    """Single published event"""
    name: str
    payload: Dict[str, Any]
    timestamp: float = field(default_factory=time.time)


EventCallback = Callable[[EngineEvent], Any]


class EventPublisher:
    """
    Fans out transition events to subscribed callbacks

    Subscribers may be plain functions or coroutines. A failing subscriber is
    logged and skipped; it never undoes the transition that produced the event.
    """

    def __init__(self, history_size: int = 1000):
        self.subscribers: Dict[str, List[EventCallback]] = {}
        self.history = deque(maxlen=history_size)
        self.total_published = 0
        self.subscriber_errors = 0

    def subscribe(self, callback: EventCallback, event_name: str = "*"):
        """Register a callback for one event name, or all with '*'"""
        self.subscribers.setdefault(event_name, []).append(callback)

    async def publish(self, name: str, payload: Dict[str, Any]) -> EngineEvent:
        event = EngineEvent(name=name, payload=payload)
        self.history.append(event)
        self.total_published += 1

        for callback in self.subscribers.get(name, []) + self.subscribers.get("*", []):
            try:
                if inspect.iscoroutinefunction(callback):
                    await callback(event)
                else:
                    callback(event)
            except Exception as e:
                self.subscriber_errors += 1
                logger.error(f"Error in subscriber for {name}: {e}")

        logger.debug(f"Published {name}")
        return event

    def recent(self, name: Optional[str] = None, count: int = 100) -> List[EngineEvent]:
        """Latest events, optionally filtered by name"""
        events = list(self.history)
        if name:
            events = [e for e in events if e.name == name]
        return events[-count:]
