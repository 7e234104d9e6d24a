from typing import Iterable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from impact_flow.db.models import ProfileModel, as_dict
from impact_flow.db.repositories.base import write_guard
from impact_flow.domain.entities import Profile


def to_profile(row: ProfileModel) -> Profile:
    return Profile.model_validate(as_dict(row))


class SqlProfileRepository:
    """Repository for profile rows."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(self) -> List[Profile]:
        """
        Get all profiles.

        Returns:
            List of all profiles
        """
        rows = self.db.execute(select(ProfileModel)).scalars().all()
        return [to_profile(row) for row in rows]

    def get(self, profile_id: str) -> Optional[Profile]:
        """
        Get a profile by ID.

        Args:
            profile_id: Profile ID

        Returns:
            Profile if found, None otherwise
        """
        row = self.db.get(ProfileModel, profile_id)
        return to_profile(row) if row else None

    def insert(self, profile: Profile) -> Profile:
        """Insert a fully-formed profile (ID already assigned)."""
        with write_guard(self.db, f"create profile {profile.id}"):
            self.db.add(ProfileModel(**profile.model_dump()))
            self.db.commit()
        return profile

    def replace(self, profile: Profile) -> Optional[Profile]:
        """
        Overwrite every column of an existing profile.

        Returns:
            The stored profile, or None if the ID is unknown
        """
        row = self.db.get(ProfileModel, profile.id)
        if row is None:
            return None
        with write_guard(self.db, f"update profile {profile.id}"):
            for key, value in profile.model_dump(exclude={"id"}).items():
                setattr(row, key, value)
            self.db.commit()
        return profile

    def delete(self, profile_id: str) -> bool:
        """
        Delete a profile by ID. Owned projects go with it through the foreign key.

        Returns:
            True if profile was deleted, False otherwise
        """
        with write_guard(self.db, f"delete profile {profile_id}"):
            result = self.db.execute(delete(ProfileModel).where(ProfileModel.id == profile_id))
            self.db.commit()
        return result.rowcount > 0

    def upsert_many(self, profiles: Iterable[Profile]) -> int:
        """Insert or replace profiles by ID in one transaction."""
        count = 0
        with write_guard(self.db, "seed profiles"):
            for profile in profiles:
                self.db.merge(ProfileModel(**profile.model_dump()))
                count += 1
            self.db.commit()
        return count

    def delete_all(self) -> int:
        with write_guard(self.db, "clear profiles"):
            result = self.db.execute(delete(ProfileModel))
            self.db.commit()
        return result.rowcount
