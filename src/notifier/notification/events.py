"""Domain events for the Notification aggregate."""

from protean.fields import DateTime, Identifier, Integer, List, String

from notifier.domain import notifier


@notifier.event(part_of="Notification")
class NotificationCreated:
    """A notification was persisted for a user."""

    __version__ = 1

    notification_id: Identifier(required=True)
    user_id: Identifier(required=True)
    notification_type: String(required=True)
    priority: String(required=True)
    channels: List(content_type=String)
    deferred_from: Identifier()
    scheduled_for: DateTime()
    created_at: DateTime(required=True)


@notifier.event(part_of="Notification")
class NotificationDelivered:
    """A delivery attempt finished; lists the channels that succeeded."""

    __version__ = 1

    notification_id: Identifier(required=True)
    user_id: Identifier(required=True)
    delivered_channels: List(content_type=String)
    delivered_count: Integer(default=0)
    delivered_at: DateTime(required=True)


@notifier.event(part_of="Notification")
class NotificationDeferred:
    """Channels suppressed by quiet hours were moved to a deferred copy."""

    __version__ = 1

    notification_id: Identifier(required=True)
    deferred_notification_id: Identifier(required=True)
    user_id: Identifier(required=True)
    channels: List(content_type=String)
    scheduled_for: DateTime(required=True)


@notifier.event(part_of="Notification")
class NotificationRead:
    """The owning user read the notification."""

    __version__ = 1

    notification_id: Identifier(required=True)
    user_id: Identifier(required=True)
    read_at: DateTime(required=True)
