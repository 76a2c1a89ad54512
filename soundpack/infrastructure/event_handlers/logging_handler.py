"""
Logging Event Handler

Writes gate and fulfillment events to the events logger, one line each.
"""

import logging
from typing import Callable, Dict, Tuple, Type

from soundpack.domain.events import (
    AssetResolvedEvent,
    DomainEvent,
    DownloadAuthorizedEvent,
    WelcomeEmailFailedEvent,
    WelcomeEmailSentEvent,
)

_FORMATS: Dict[Type[DomainEvent], Tuple[int, Callable[..., str]]] = {
    DownloadAuthorizedEvent: (
        logging.INFO,
        lambda e: (
            f"Download authorized: asset={e.aggregate_id}, "
            f"filename={e.filename}, token={e.token_prefix}..."
        ),
    ),
    AssetResolvedEvent: (
        logging.INFO,
        lambda e: (
            f"Asset resolved: asset={e.aggregate_id}, tier={e.tier_name}, "
            f"origin={e.origin}, size={e.size_bytes} bytes"
        ),
    ),
    WelcomeEmailSentEvent: (
        logging.INFO,
        lambda e: f"Welcome email sent: session={e.aggregate_id}, to={e.email}",
    ),
    WelcomeEmailFailedEvent: (
        logging.ERROR,
        lambda e: (
            f"Welcome email failed: session={e.aggregate_id}, "
            f"to={e.email}, error={e.error_message}"
        ),
    ),
}


class LoggingEventHandler:
    """
    Logs each event at the level registered for its type.

    Mail failures log at ERROR, everything else at INFO. Unknown event
    types are logged at DEBUG with their serialized form.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def handle(self, event: DomainEvent) -> None:
        level, render = _FORMATS.get(type(event), (logging.DEBUG, None))
        try:
            message = render(event) if render else f"Event {event.to_dict()}"
        except (AttributeError, TypeError, ValueError) as e:
            self.logger.error(f"Could not format {type(event).__name__}: {e}", exc_info=True)
            return
        self.logger.log(level, message)
