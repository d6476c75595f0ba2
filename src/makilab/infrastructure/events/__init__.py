"""Background event system."""

from makilab.infrastructure.events.dispatcher import (
    EventDispatcher,
    EventHandler,
    event_handler,
)
from makilab.infrastructure.events.loop import EventLoop
from makilab.infrastructure.events.queue import EventQueue
from makilab.infrastructure.events.scheduler import EventScheduler

__all__ = [
    "EventDispatcher",
    "EventHandler",
    "EventLoop",
    "EventQueue",
    "EventScheduler",
    "event_handler",
]
