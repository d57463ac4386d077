"""
Profiles - Fetch and update the signed-in user's profile row.

The profile row is created by a database trigger after signup and can lag
the auth write, so a fetch right after signup retries "no rows" a few times.
"""

import logging
import time
from typing import Any, Callable, Optional

from nawartu.models import Profile
from nawartu.services.backend import BackendClient, BackendError, NotFoundError
from nawartu.services.notifications import Notifier
from nawartu.utils.retry import call_with_retry

logger = logging.getLogger('Nawartu')

PROFILE_FETCH_RETRIES = 3
PROFILE_FETCH_DELAY = 1.0

EDITABLE_FIELDS = ("full_name", "phone", "preferred_language", "avatar_url")


class ProfileService:
    """Reads and writes the ``profiles`` table."""

    def __init__(
        self,
        backend: BackendClient,
        notifier: Optional[Notifier] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.backend = backend
        self.notifier = notifier or Notifier()
        self._sleep = sleep

    def fetch_profile(self, user_id: str) -> Optional[Profile]:
        """
        Fetch a user's profile.

        "No rows" is retried up to 3 times, one second apart. Any other
        error, or a profile still missing after the retries, gives None.
        """
        logger.debug(f"Fetching profile for user {user_id}")
        try:
            row = call_with_retry(
                self.backend.select,
                "profiles",
                {"user_id": user_id},
                single=True,
                max_retries=PROFILE_FETCH_RETRIES,
                delay=PROFILE_FETCH_DELAY,
                exceptions=(NotFoundError,),
                sleep=self._sleep,
            )
        except BackendError as e:
            logger.error(f"Error fetching profile for {user_id}: {e}")
            return None

        if not isinstance(row, dict):
            return None
        return Profile.from_row(row)

    def update_profile(self, user_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        """
        Update editable profile fields.

        Returns:
            The applied updates

        Raises:
            ValueError: An update names a field that cannot be edited
            BackendError: The update failed (a notification is emitted first)
        """
        unknown = set(updates) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update profile fields: {', '.join(sorted(unknown))}")

        try:
            self.backend.update("profiles", updates, {"user_id": user_id})
        except BackendError as e:
            logger.error(f"Failed to update profile for {user_id}: {e}")
            self.notifier.error("profile.update_failed")
            raise

        if "preferred_language" in updates:
            self.notifier.lang = updates["preferred_language"]
        self.notifier.success("profile.updated", "profile.updated.title")
        return dict(updates)
