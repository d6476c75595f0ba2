"""Event dispatcher."""

import inspect
import logging
from collections.abc import Awaitable, Callable

from makilab.domain.entities.event import Event, EventType

logger = logging.getLogger(__name__)

EventHandler = Callable[[Event], Awaitable[None]]


def event_handler(event_type: EventType) -> Callable[[EventHandler], EventHandler]:
    """Mark a coroutine as the handler of an event type.

    Usage:
        class CompactionHandler:
            @event_handler(EventType.COMPACTION)
            async def handle(self, event: Event) -> None:
                ...

    Args:
        event_type: The event type this handler processes.

    Returns:
        Decorator function.
    """

    def decorator(func: EventHandler) -> EventHandler:
        func._event_type = event_type  # type: ignore[attr-defined]
        return func

    return decorator


class EventDispatcher:
    """Routes events to the handlers registered for their type.

    Handler exceptions are logged and never propagate.
    """

    def __init__(self) -> None:
        self._handlers: dict[EventType, list[EventHandler]] = {}

    def register(self, event_type: EventType, handler: EventHandler) -> None:
        """Register a handler for an event type.

        Args:
            event_type: The event type to handle.
            handler: The handler coroutine function.
        """
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(
            "Registered handler for %s: %s",
            event_type.value,
            getattr(handler, "__qualname__", str(handler)),
        )

    def register_handler(self, handler: EventHandler) -> None:
        """Register a handler decorated with @event_handler.

        Raises:
            ValueError: The handler has no event type attached.
        """
        event_type = getattr(handler, "_event_type", None)
        if event_type is None:
            raise ValueError(
                f"Handler {getattr(handler, '__qualname__', str(handler))} "
                "has no _event_type attribute. Use the @event_handler decorator."
            )
        self.register(event_type, handler)

    def register_object(self, obj: object) -> None:
        """Register every @event_handler method of an object.

        Raises:
            ValueError: The object has no decorated method.
        """
        found = False
        for _, method in inspect.getmembers(obj, inspect.ismethod):
            if getattr(method, "_event_type", None) is not None:
                self.register_handler(method)
                found = True
        if not found:
            raise ValueError(f"{type(obj).__name__} has no @event_handler method")

    async def dispatch(self, event: Event) -> None:
        """Call every handler registered for the event type.

        Args:
            event: The event to dispatch.
        """
        handlers = self._handlers.get(event.type, [])
        if not handlers:
            logger.warning("No handler registered for event type: %s", event.type.value)
            return

        for handler in handlers:
            try:
                await handler(event)
            except Exception:
                logger.exception(
                    "Error in event handler %s for event %s",
                    getattr(handler, "__qualname__", str(handler)),
                    event.type.value,
                )
