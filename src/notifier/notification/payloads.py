"""Inbound requests for the delivery orchestrator.

Both payloads are value objects: field types, choices and lengths are
checked by Protean on construction, the remaining rules are
``@invariant.post`` methods. An empty ``channels`` list lets the user's
preferences decide.
"""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Dict, Identifier, List, String, Text

from notifier.domain import notifier
from notifier.notification.notification import (
    NotificationChannel,
    NotificationPriority,
    NotificationType,
)

_CHANNELS = {c.value for c in NotificationChannel}


def _check_content(payload) -> None:
    errors = {}
    if not (payload.title or "").strip():
        errors["title"] = ["is required"]
    if not (payload.message or "").strip():
        errors["message"] = ["is required"]
    unknown = [c for c in payload.channels or [] if c not in _CHANNELS]
    if unknown:
        errors["channels"] = [f"Unknown channel(s): {', '.join(unknown)}"]
    if errors:
        raise ValidationError(errors)


@notifier.value_object
class NotificationPayload:
    """One notification for one user."""

    user_id: Identifier(required=True)
    notification_type: String(choices=NotificationType, required=True)
    title: String(required=True, max_length=255)
    message: Text(required=True)
    priority: String(choices=NotificationPriority, default=NotificationPriority.NORMAL.value)
    channels: List(content_type=String)
    metadata: Dict()
    category: String(max_length=100)
    tags: List(content_type=String)
    scheduled_for: DateTime()

    @invariant.post
    def content_must_be_valid(self):
        _check_content(self)


@notifier.value_object
class BulkNotificationPayload:
    """The same notification for many users."""

    user_ids: List(content_type=String, required=True)
    notification_type: String(choices=NotificationType, required=True)
    title: String(required=True, max_length=255)
    message: Text(required=True)
    priority: String(choices=NotificationPriority, default=NotificationPriority.NORMAL.value)
    channels: List(content_type=String)
    metadata: Dict()
    category: String(max_length=100)
    tags: List(content_type=String)
    scheduled_for: DateTime()

    @invariant.post
    def content_must_be_valid(self):
        _check_content(self)

    @invariant.post
    def must_have_recipients(self):
        if not self.user_ids:
            raise ValidationError({"user_ids": ["at least one recipient is required"]})

    @classmethod
    def from_job(cls, job: dict) -> "BulkNotificationPayload":
        """Rebuild a payload from the dict produced by ``to_job``."""
        return cls(**{key: value for key, value in job.items() if value is not None})

    def for_user(self, user_id) -> NotificationPayload:
        return NotificationPayload(
            user_id=user_id,
            notification_type=self.notification_type,
            title=self.title,
            message=self.message,
            priority=self.priority,
            channels=list(self.channels),
            metadata=dict(self.metadata),
            category=self.category,
            tags=list(self.tags),
            scheduled_for=self.scheduled_for,
        )

    def chunks(self, size: int):
        """Yield the recipient list in consecutive slices of ``size``."""
        for start in range(0, len(self.user_ids), size):
            yield self.user_ids[start : start + size]

    def to_job(self) -> dict:
        return {
            "user_ids": list(self.user_ids),
            "notification_type": self.notification_type,
            "title": self.title,
            "message": self.message,
            "priority": self.priority,
            "channels": list(self.channels),
            "metadata": dict(self.metadata),
            "category": self.category,
            "tags": list(self.tags),
            "scheduled_for": self.scheduled_for.isoformat() if self.scheduled_for else None,
        }
