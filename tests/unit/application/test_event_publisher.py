"""
Unit tests for EventPublisher, DependencyContainer and LoggingEventHandler.
"""

import logging
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from soundpack.application.dependency_container import DependencyContainer, DependencyNotFoundError
from soundpack.application.event_publisher import EventPublisher
from soundpack.domain.events import (
    AssetResolvedEvent,
    DomainEvent,
    DownloadAuthorizedEvent,
    WelcomeEmailFailedEvent,
)
from soundpack.infrastructure.event_handlers import LoggingEventHandler

NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def _resolved_event():
    return AssetResolvedEvent("tesla_sounds.zip", NOW, "r2", "remote", 1024)


class TestEventPublisher:
    """Test event dispatch."""

    def test_exact_type_subscription(self):
        publisher = EventPublisher()
        handler = Mock()
        publisher.subscribe(AssetResolvedEvent, handler)

        event = _resolved_event()
        publisher.publish(event)

        handler.assert_called_once_with(event)

    def test_base_class_subscription_receives_subclasses(self):
        publisher = EventPublisher()
        handler = Mock()
        publisher.subscribe(DomainEvent, handler)

        publisher.publish(_resolved_event())
        publisher.publish(WelcomeEmailFailedEvent("cs_1", NOW, "a@b.c", "down"))

        assert handler.call_count == 2

    def test_unrelated_handler_not_called(self):
        publisher = EventPublisher()
        handler = Mock()
        publisher.subscribe(DownloadAuthorizedEvent, handler)

        publisher.publish(_resolved_event())

        handler.assert_not_called()

    def test_failing_handler_does_not_stop_others(self):
        publisher = EventPublisher()
        broken = Mock(side_effect=RuntimeError("boom"))
        healthy = Mock()
        publisher.subscribe(AssetResolvedEvent, broken)
        publisher.subscribe(AssetResolvedEvent, healthy)

        publisher.publish(_resolved_event())

        healthy.assert_called_once()

    def test_publish_without_handlers_is_noop(self):
        EventPublisher().publish(_resolved_event())


class TestDependencyContainer:
    """Test registration, resolution and overrides."""

    def test_singleton_resolution(self):
        container = DependencyContainer()
        service = object()
        container.register_singleton(EventPublisher, service)

        assert container.resolve(EventPublisher) is service
        assert container.registration_count == 1

    def test_override_of_unregistered_interface(self):
        container = DependencyContainer()
        replacement = object()

        container.override(EventPublisher, replacement)

        assert container.resolve(EventPublisher) is replacement
        assert container.registration_count == 0

    def test_override_wins_until_cleared(self):
        container = DependencyContainer()
        original, replacement = object(), object()
        container.register_singleton(EventPublisher, original)

        container.override(EventPublisher, replacement)
        assert container.resolve(EventPublisher) is replacement

        container.clear_overrides()
        assert container.resolve(EventPublisher) is original

    def test_unregistered_raises(self):
        with pytest.raises(DependencyNotFoundError):
            DependencyContainer().resolve(EventPublisher)

    def test_setup_event_handlers_subscribes_to_every_event(self):
        container = DependencyContainer()
        publisher = EventPublisher()
        handler = Mock()

        container.setup_event_handlers(publisher, handlers=[handler])
        publisher.publish(_resolved_event())

        handler.handle.assert_called_once()


class TestLoggingEventHandler:
    """Test event logging levels."""

    def test_resolved_event_logged_at_info(self, caplog):
        handler = LoggingEventHandler(logging.getLogger("soundpack.events"))

        with caplog.at_level(logging.INFO, logger="soundpack.events"):
            handler.handle(_resolved_event())

        assert "tier=r2" in caplog.text

    def test_failed_mail_logged_at_error(self, caplog):
        handler = LoggingEventHandler(logging.getLogger("soundpack.events"))

        with caplog.at_level(logging.INFO, logger="soundpack.events"):
            handler.handle(WelcomeEmailFailedEvent("cs_1", NOW, "a@b.c", "smtp down"))

        assert caplog.records[-1].levelno == logging.ERROR
        assert "smtp down" in caplog.text

    def test_download_event_logs_only_token_prefix(self, caplog):
        handler = LoggingEventHandler(logging.getLogger("soundpack.events"))

        with caplog.at_level(logging.INFO, logger="soundpack.events"):
            handler.handle(DownloadAuthorizedEvent("tesla_sounds.zip", NOW, "a@b.c", "pack.zip", "abcdefgh"))

        assert "token=abcdefgh..." in caplog.text
