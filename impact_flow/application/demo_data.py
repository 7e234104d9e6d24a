"""
Demo data loaded into empty storage when ``DEMO_MODE`` is on.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from impact_flow.domain.entities import Profile, Project, SuccessCriteria, utc_now_iso
from impact_flow.storage.interface import Repositories

logger = logging.getLogger(__name__)


@dataclass
class SeedData:
    profiles: List[Profile] = field(default_factory=list)
    projects: List[Project] = field(default_factory=list)
    criteria: List[SuccessCriteria] = field(default_factory=list)


def _demo_profiles() -> List[Profile]:
    return [
        Profile(id="1", name="Sarah Chen", role="Product Manager"),
        Profile(id="2", name="Marcus Johnson", role="Lead Developer"),
        Profile(id="3", name="Emily Roberts", role="Designer"),
    ]


def _demo_projects() -> List[Project]:
    created_at = utc_now_iso()
    return [
        Project(
            id="p1",
            profile_id="1",
            name="Q1 Product Roadmap",
            purpose="Define and communicate the strategic direction for Q1 to align all teams.",
            importance="Without a clear roadmap, teams work in silos and miss critical dependencies.",
            ideal_outcome="A visual roadmap document approved by leadership with clear milestones and ownership.",
            status="in_progress",
            due_date="2024-03-15",
            comments="Draft ready for review.",
            created_at=created_at,
        ),
        Project(
            id="p2",
            profile_id="2",
            name="API Performance Optimization",
            purpose="Reduce API response times to improve user experience.",
            importance="Current 2s load times are causing user drop-off and hurting conversions.",
            ideal_outcome="API responses under 200ms for 95% of requests.",
            status="planned",
            due_date="2024-04-01",
            comments="",
            created_at=created_at,
        ),
        Project(
            id="p3",
            profile_id="3",
            name="Brand Refresh",
            purpose="Modernize visual identity to appeal to enterprise customers.",
            importance="Current branding feels dated and undermines premium positioning.",
            ideal_outcome="New logo, color palette, and design system implemented across all touchpoints.",
            status="complete",
            due_date="2024-02-01",
            comments="Launched successfully!",
            created_at=created_at,
        ),
        Project(
            id="p4",
            profile_id="2",
            name="Database Migration",
            purpose="Move from legacy database to modern cloud infrastructure.",
            importance="Legacy system is reaching capacity limits and lacks disaster recovery.",
            ideal_outcome="Zero-downtime migration with full data integrity verification.",
            status="blocked",
            due_date="2024-03-30",
            comments="Waiting on security team approval.",
            created_at=created_at,
        ),
    ]


_DEMO_CRITERIA = [
    ("c1", "p1", "All feature requests categorized and prioritized", True),
    ("c2", "p1", "Dependencies mapped between teams", True),
    ("c3", "p1", "Leadership sign-off obtained", False),
    ("c4", "p2", "Baseline performance metrics documented", False),
    ("c5", "p2", "Critical bottlenecks identified", False),
    ("c6", "p3", "New logo finalized", True),
    ("c7", "p3", "Website updated", True),
    ("c8", "p4", "Migration plan approved", True),
    ("c9", "p4", "Test migration completed", False),
]


def _demo_criteria() -> List[SuccessCriteria]:
    return [
        SuccessCriteria(id=cid, project_id=project_id, description=description, is_complete=done)
        for cid, project_id, description, done in _DEMO_CRITERIA
    ]


def get_initial_data(demo_mode: bool) -> SeedData:
    """The demo records when ``demo_mode`` is on, otherwise nothing."""
    if not demo_mode:
        return SeedData()
    return SeedData(
        profiles=_demo_profiles(),
        projects=_demo_projects(),
        criteria=_demo_criteria(),
    )


async def seed_repositories(repos: Repositories, demo_mode: bool) -> bool:
    """
    Seed empty storage with the demo records.

    Persistent backends keep their data across restarts, so nothing is seeded
    when any profile already exists.

    Returns:
        True if seed data was written
    """
    if not demo_mode:
        return False

    existing = await repos.profiles.get_all()
    if existing:
        logger.debug(f"Skipping demo seed, {len(existing)} profile(s) already stored")
        return False

    data = get_initial_data(demo_mode)
    # Parents first so foreign keys hold on the SQL backends
    await repos.profiles.seed(data.profiles)
    await repos.projects.seed(data.projects)
    await repos.criteria.seed(data.criteria)
    logger.info(
        f"Seeded demo data: {len(data.profiles)} profiles, "
        f"{len(data.projects)} projects, {len(data.criteria)} criteria"
    )
    return True
