"""Domain events for decoupled side effects such as audit logging."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List
from uuid import uuid4

logger = logging.getLogger(__name__)


@dataclass
class DomainEvent:
    """Base class for all domain events."""
    aggregate_id: str
    event_id: str = field(default_factory=lambda: str(uuid4()), kw_only=True)
    timestamp: datetime = field(default_factory=datetime.now, kw_only=True)


@dataclass
class ProfileCreated(DomainEvent):
    """Raised when a profile has been durably created."""
    name: str
    role: str


@dataclass
class ProfileUpdated(DomainEvent):
    """Raised when profile fields change."""
    changes: Dict[str, Any]


@dataclass
class ProfileDeleted(DomainEvent):
    """Raised when a profile and everything it owns is deleted."""
    project_ids: List[str]


@dataclass
class ProjectCreated(DomainEvent):
    """Raised when a project has been durably created."""
    profile_id: str
    name: str


@dataclass
class ProjectUpdated(DomainEvent):
    """Raised when project fields change."""
    changes: Dict[str, Any]


@dataclass
class ProjectDeleted(DomainEvent):
    """Raised when a project and its criteria are deleted."""
    criteria_deleted: int = 0


@dataclass
class CriteriaCreated(DomainEvent):
    """Raised when a success criterion has been durably created."""
    project_id: str
    description: str


@dataclass
class CriteriaUpdated(DomainEvent):
    """Raised when a success criterion changes."""
    changes: Dict[str, Any]


@dataclass
class CriteriaDeleted(DomainEvent):
    """Raised when a success criterion is deleted."""


class DomainEventPublisher:
    """Singleton publisher for domain events."""

    _instance: DomainEventPublisher | None = None
    _subscribers: Dict[type, List[Callable[[DomainEvent], None]]]

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._subscribers = {}
        return cls._instance

    def subscribe(self, event_type: type[DomainEvent], handler: Callable[[DomainEvent], None]) -> None:
        """Subscribe a handler to an event type."""
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []
        self._subscribers[event_type].append(handler)

    def publish(self, event: DomainEvent) -> None:
        """Publish an event to all subscribers."""
        event_type = type(event)
        if event_type in self._subscribers:
            for handler in self._subscribers[event_type]:
                try:
                    handler(event)
                except Exception as e:
                    # Log error but don't fail the main operation
                    logger.error(f"Event handler error: {e}")

    def clear_subscribers(self) -> None:
        """Clear all subscribers (useful for testing)."""
        self._subscribers = {}


# Singleton instance
event_publisher = DomainEventPublisher()
