"""Create-or-update handling for user profiles."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from astroimage.core.database import UserStore
from astroimage.core.models import UpsertStatus, User, UserProfile

logger = logging.getLogger(__name__)


@dataclass
class UpsertResult:
    user: User
    status: UpsertStatus


class UserService:
    """Stores user profiles keyed by their external ``userId``."""

    def __init__(self, users: UserStore) -> None:
        self._users = users

    def upsert(self, profile: UserProfile) -> UpsertResult:
        """Insert *profile* as a new user, or overwrite an existing one.

        An existing user's profile fields are fully replaced (omitted
        optional fields are cleared); credits and the active flag are kept.
        New users start with zero credits.

        Raises:
            UserAlreadyExists: A concurrent request inserted the same
                ``userId`` between the lookup and the insert.
        """
        # Only profile fields are written, even if a full User is passed.
        profile = UserProfile.model_validate(profile.model_dump())
        if self._users.find_by_user_id(profile.user_id) is not None:
            updated = self._users.replace_profile(profile)
            if updated is not None:
                logger.info(f"Updated user {profile.user_id}")
                return UpsertResult(user=updated, status=UpsertStatus.UPDATED)

        created = self._users.insert(User(**profile.model_dump()))
        logger.info(f"Created user {profile.user_id}")
        return UpsertResult(user=created, status=UpsertStatus.CREATED)
