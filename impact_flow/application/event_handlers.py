"""Event handlers for domain events."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from impact_flow.domain.events import (
        CriteriaCreated,
        CriteriaDeleted,
        CriteriaUpdated,
        ProfileCreated,
        ProfileDeleted,
        ProfileUpdated,
        ProjectCreated,
        ProjectDeleted,
        ProjectUpdated,
    )

logger = logging.getLogger(__name__)


class AuditLogHandler:
    """Logs all domain events for audit trail."""

    def handle_profile_created(self, event: ProfileCreated) -> None:
        logger.info(f"[AUDIT] Profile created: {event.aggregate_id} - {event.name} ({event.role})")

    def handle_profile_updated(self, event: ProfileUpdated) -> None:
        logger.info(f"[AUDIT] Profile updated: {event.aggregate_id} fields={sorted(event.changes)}")

    def handle_profile_deleted(self, event: ProfileDeleted) -> None:
        logger.info(
            f"[AUDIT] Profile deleted: {event.aggregate_id} with {len(event.project_ids)} project(s)"
        )

    def handle_project_created(self, event: ProjectCreated) -> None:
        logger.info(f"[AUDIT] Project created: {event.aggregate_id} - {event.name} for profile {event.profile_id}")

    def handle_project_updated(self, event: ProjectUpdated) -> None:
        logger.info(f"[AUDIT] Project updated: {event.aggregate_id} fields={sorted(event.changes)}")

    def handle_project_deleted(self, event: ProjectDeleted) -> None:
        logger.info(f"[AUDIT] Project deleted: {event.aggregate_id} ({event.criteria_deleted} criteria)")

    def handle_criteria_created(self, event: CriteriaCreated) -> None:
        logger.info(f"[AUDIT] Criteria created: {event.aggregate_id} in project {event.project_id}")

    def handle_criteria_updated(self, event: CriteriaUpdated) -> None:
        logger.info(f"[AUDIT] Criteria updated: {event.aggregate_id} fields={sorted(event.changes)}")

    def handle_criteria_deleted(self, event: CriteriaDeleted) -> None:
        logger.info(f"[AUDIT] Criteria deleted: {event.aggregate_id}")


class ProgressHandler:
    """Reports project status changes worth a human's attention."""

    def handle_project_updated(self, event: ProjectUpdated) -> None:
        status = event.changes.get("status")
        if status == "blocked":
            logger.warning(f"[PROGRESS] Project {event.aggregate_id} is blocked")
        elif status == "complete":
            logger.info(f"[PROGRESS] Project {event.aggregate_id} completed")


def register_event_handlers():
    """Register all event handlers with the publisher."""
    from impact_flow.domain.events import (
        CriteriaCreated,
        CriteriaDeleted,
        CriteriaUpdated,
        ProfileCreated,
        ProfileDeleted,
        ProfileUpdated,
        ProjectCreated,
        ProjectDeleted,
        ProjectUpdated,
        event_publisher,
    )

    audit = AuditLogHandler()
    progress = ProgressHandler()

    # Audit handlers (all events)
    event_publisher.subscribe(ProfileCreated, audit.handle_profile_created)
    event_publisher.subscribe(ProfileUpdated, audit.handle_profile_updated)
    event_publisher.subscribe(ProfileDeleted, audit.handle_profile_deleted)
    event_publisher.subscribe(ProjectCreated, audit.handle_project_created)
    event_publisher.subscribe(ProjectUpdated, audit.handle_project_updated)
    event_publisher.subscribe(ProjectDeleted, audit.handle_project_deleted)
    event_publisher.subscribe(CriteriaCreated, audit.handle_criteria_created)
    event_publisher.subscribe(CriteriaUpdated, audit.handle_criteria_updated)
    event_publisher.subscribe(CriteriaDeleted, audit.handle_criteria_deleted)

    # Status changes
    event_publisher.subscribe(ProjectUpdated, progress.handle_project_updated)
