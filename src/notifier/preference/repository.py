"""Repository for the NotificationPreference aggregate."""

import structlog
from protean.exceptions import ValidationError

from notifier.domain import notifier
from notifier.preference.preference import NotificationPreference
from notifier.utils.paging import drain

logger = structlog.get_logger(__name__)


@notifier.repository(part_of=NotificationPreference)
class NotificationPreferenceRepository:
    def find_by_user(self, user_id) -> NotificationPreference | None:
        prefs = self._dao.query.filter(user_id=str(user_id)).all().items
        return prefs[0] if prefs else None

    def get_or_create(self, user_id) -> NotificationPreference:
        """Return the user's preferences, creating the default row on first access.

        Two resolvers racing on the same new user both miss the lookup; the
        unique constraint on ``user_id`` rejects the loser's insert, which
        then reads back the winner's row.
        """
        existing = self.find_by_user(user_id)
        if existing is not None:
            return existing

        preference = NotificationPreference.create_default(user_id=str(user_id))
        try:
            self.add(preference)
        except ValidationError:
            winner = self.find_by_user(user_id)
            if winner is None:
                raise
            logger.info("Preferences created concurrently, using existing row", user_id=str(user_id))
            return winner

        logger.info("Default notification preferences created", user_id=str(user_id))
        return preference

    def find_with_digest(self):
        """Every preference with a daily or weekly digest switched on."""
        seen = {}
        for flag in ("daily_digest_enabled", "weekly_digest_enabled"):
            for preference in drain(self._dao.query.filter(**{flag: True})):
                if preference.wants_digest:
                    seen[str(preference.id)] = preference
        return list(seen.values())
