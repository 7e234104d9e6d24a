"""Tests for domain events and event handling."""
from __future__ import annotations

import logging
from datetime import datetime
from unittest.mock import Mock

from impact_flow.application.event_handlers import AuditLogHandler, register_event_handlers
from impact_flow.domain.events import (
    DomainEvent,
    DomainEventPublisher,
    ProfileCreated,
    ProfileDeleted,
    ProjectUpdated,
    event_publisher,
)


class TestDomainEvent:
    """Test base domain event functionality."""

    def test_defaults(self):
        event = DomainEvent("profile-1")
        assert event.aggregate_id == "profile-1"
        assert event.event_id
        assert isinstance(event.timestamp, datetime)

    def test_event_ids_are_unique(self):
        assert DomainEvent("a").event_id != DomainEvent("a").event_id

    def test_profile_deleted_payload(self):
        event = ProfileDeleted("1", project_ids=["p2", "p4"])
        assert event.project_ids == ["p2", "p4"]


class TestDomainEventPublisher:
    """Test the singleton publisher."""

    def test_singleton(self):
        assert DomainEventPublisher() is event_publisher

    def test_publish_to_matching_subscribers_only(self):
        created = Mock()
        deleted = Mock()
        event_publisher.subscribe(ProfileCreated, created)
        event_publisher.subscribe(ProfileDeleted, deleted)

        event = ProfileCreated("1", name="Alice", role="Eng")
        event_publisher.publish(event)

        created.assert_called_once_with(event)
        deleted.assert_not_called()

    def test_handler_errors_do_not_propagate(self, caplog):
        failing = Mock(side_effect=ValueError("broken handler"))
        after = Mock()
        event_publisher.subscribe(ProfileCreated, failing)
        event_publisher.subscribe(ProfileCreated, after)

        event_publisher.publish(ProfileCreated("1", name="Alice", role="Eng"))

        after.assert_called_once()
        assert "broken handler" in caplog.text

    def test_clear_subscribers(self):
        handler = Mock()
        event_publisher.subscribe(ProfileCreated, handler)
        event_publisher.clear_subscribers()
        event_publisher.publish(ProfileCreated("1", name="Alice", role="Eng"))
        handler.assert_not_called()


class TestEventHandlers:
    """Test audit logging handlers."""

    def test_audit_lines(self, caplog):
        caplog.set_level(logging.INFO, logger="impact_flow.application.event_handlers")
        register_event_handlers()

        event_publisher.publish(ProfileCreated("1", name="Alice", role="Eng"))
        event_publisher.publish(ProfileDeleted("1", project_ids=["p1"]))

        assert "[AUDIT] Profile created: 1 - Alice (Eng)" in caplog.text
        assert "[AUDIT] Profile deleted: 1 with 1 project(s)" in caplog.text

    def test_blocked_project_warns(self, caplog):
        register_event_handlers()
        event_publisher.publish(ProjectUpdated("p1", changes={"status": "blocked"}))
        assert "[PROGRESS] Project p1 is blocked" in caplog.text

    def test_handler_methods_cover_updates(self, caplog):
        caplog.set_level(logging.INFO)
        AuditLogHandler().handle_project_updated(ProjectUpdated("p1", changes={"name": "X", "comments": ""}))
        assert "fields=['comments', 'name']" in caplog.text
