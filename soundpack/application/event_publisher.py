"""
Event Publisher

In-process fan-out of domain events (asset resolved, download authorized,
welcome mail sent or failed) to infrastructure handlers.
"""

import logging
from threading import Lock
from typing import Callable, List, Tuple, Type

from soundpack.domain.events import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


def _handler_name(handler: EventHandler) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)


class EventPublisher:
    """
    Delivers each published event to every matching subscription.

    A subscription matches when the event is an instance of its type, so a
    handler on DomainEvent sees everything. Handlers run synchronously in
    subscription order; a failing handler is logged and skipped.
    """

    def __init__(self):
        self._subscriptions: List[Tuple[Type[DomainEvent], EventHandler]] = []
        self._lock = Lock()

    def subscribe(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        """
        Subscribe a handler to an event type.

        Example:
            publisher.subscribe(DownloadAuthorizedEvent, handle_download)
        """
        with self._lock:
            self._subscriptions.append((event_type, handler))

    def publish(self, event: DomainEvent) -> None:
        with self._lock:
            matching = [
                handler for event_type, handler in self._subscriptions
                if isinstance(event, event_type)
            ]

        for handler in matching:
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"Event handler {_handler_name(handler)} failed on "
                    f"{type(event).__name__}: {e}",
                    exc_info=True,
                )
