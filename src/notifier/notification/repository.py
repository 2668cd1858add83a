"""Repository for the Notification aggregate.

The base repository provides ``add``/``get``; the query methods below are
the persistence contract the delivery engine relies on. Filters go to the
provider; results are re-checked in Python only to normalise timezones.
"""

from collections import Counter
from datetime import timedelta

from notifier.domain import notifier
from notifier.notification.notification import Notification
from notifier.utils.clock import as_utc, utc_now
from notifier.utils.paging import drain


@notifier.repository(part_of=Notification)
class NotificationRepository:
    def find_for_user(self, user_id, filters=None, limit=50, offset=0):
        """Return a user's notifications, newest first.

        Supported filters: ``is_read``, ``notification_type``, ``category``,
        ``priority``, ``date_from``, ``date_to``.
        """
        filters = dict(filters or {})
        criteria = {"user_id": str(user_id)}
        for key in ("is_read", "notification_type", "category", "priority"):
            if filters.get(key) is not None:
                criteria[key] = filters[key]

        date_from = as_utc(filters.get("date_from"))
        date_to = as_utc(filters.get("date_to"))

        matches = [
            n
            for n in drain(self._dao.query.filter(**criteria))
            if (date_from is None or as_utc(n.created_at) >= date_from)
            and (date_to is None or as_utc(n.created_at) <= date_to)
        ]
        matches.sort(key=lambda n: as_utc(n.created_at), reverse=True)

        if limit is None:
            return matches[offset:]
        return matches[offset : offset + limit]

    def find_unread_for_user(self, user_id, limit=50):
        return self.find_for_user(user_id, {"is_read": False}, limit=limit)

    def find_due(self, as_of):
        """Scheduled, undelivered notifications whose time has come, oldest first."""
        as_of = as_utc(as_of)
        # Unscheduled rows never match the range lookup
        due = [
            n
            for n in drain(self._dao.query.filter(awaiting_delivery=True, scheduled_for__lte=as_of))
            if n.delivered_at is None and as_utc(n.scheduled_for) <= as_of
        ]
        due.sort(key=lambda n: as_utc(n.scheduled_for))
        return due

    def mark_all_read(self, user_id, read_at=None) -> int:
        """Mark every unread notification of ``user_id`` read; return how many changed."""
        read_at = read_at or utc_now()
        unread = list(drain(self._dao.query.filter(user_id=str(user_id), is_read=False)))
        for notification in unread:
            notification.mark_read(read_at)
            self.add(notification)
        return len(unread)

    def purge_older_than(self, days, now=None) -> int:
        """Delete notifications created more than ``days`` days ago."""
        cutoff = as_utc(now or utc_now()) - timedelta(days=days)
        stale = [n for n in drain(self._dao.query.filter(created_at__lt=cutoff)) if as_utc(n.created_at) < cutoff]
        for notification in stale:
            self._dao.delete(notification)
        return len(stale)

    def stats_for(self, user_id) -> dict:
        notifications = list(drain(self._dao.query.filter(user_id=str(user_id))))
        return {
            "total": len(notifications),
            "unread": sum(1 for n in notifications if not n.is_read),
            "by_type": dict(Counter(n.notification_type for n in notifications)),
            "by_priority": dict(Counter(n.priority for n in notifications)),
        }
