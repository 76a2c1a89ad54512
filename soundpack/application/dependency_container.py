"""
Dependency Injection Container

Holds the services built by the app factory. API routes and Celery tasks
look services up here by interface; tests swap them with override().
"""

import logging
import threading
from typing import Any, Dict, Iterable, Optional, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

EVENTS_LOGGER = "soundpack.events"


class DependencyNotFoundError(LookupError):
    """Raised when an interface has no registered service."""


class DependencyContainer:
    """
    Registry of long-lived services keyed by interface.

    Every service is built once at start-up and shared by all requests.
    Overrides shadow registrations until clear_overrides() is called.
    """

    def __init__(self):
        self._services: Dict[type, Any] = {}
        self._overrides: Dict[type, Any] = {}
        self._lock = threading.RLock()

    def register_singleton(self, interface: Type[T], implementation: T) -> None:
        """
        Register the shared instance for an interface.

        Example:
            container.register_singleton(StorageResolver, resolver)
        """
        with self._lock:
            if interface in self._services:
                logger.debug(f"Replacing registration for {interface.__name__}")
            self._services[interface] = implementation

    def override(self, interface: Type[T], implementation: T) -> None:
        """
        Shadow a registration, typically with a test double.

        Example:
            container.override(TaskDispatcher, ImmediateDispatcher())
        """
        with self._lock:
            self._overrides[interface] = implementation
        logger.debug(f"Override installed for {interface.__name__}")

    def clear_overrides(self) -> None:
        with self._lock:
            self._overrides.clear()

    def resolve(self, interface: Type[T]) -> T:
        """
        Look up the service for an interface.

        Raises:
            DependencyNotFoundError: If nothing is registered for the interface
        """
        with self._lock:
            for registry in (self._overrides, self._services):
                if interface in registry:
                    return registry[interface]
        raise DependencyNotFoundError(f"No service registered for {interface.__name__}")

    @property
    def registration_count(self) -> int:
        with self._lock:
            return len(self._services)

    def setup_event_handlers(self, event_publisher, handlers: Optional[Iterable[Any]] = None) -> None:
        """
        Attach infrastructure handlers to every domain event.

        Args:
            event_publisher: EventPublisher to attach to
            handlers: Objects exposing handle(event); defaults to a
                LoggingEventHandler writing to the "soundpack.events" logger
        """
        from soundpack.domain.events import DomainEvent
        from soundpack.infrastructure.event_handlers import LoggingEventHandler

        if handlers is None:
            handlers = [LoggingEventHandler(logging.getLogger(EVENTS_LOGGER))]

        for handler in handlers:
            event_publisher.subscribe(DomainEvent, handler.handle)
            logger.debug(f"{handler.__class__.__name__} attached to domain events")
