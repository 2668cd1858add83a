"""Notification aggregate: one logical message to one user.

A notification carries the set of channels it was requested on and the
subset it actually reached. Delivery, reading and quiet-hours deferral are
the only mutations; retention cleanup deletes the row.

Lifecycle:
    Created (unscheduled) → Delivered (full | partial | none) → Read
    Created (scheduled)   → Pending → (due) → Delivered → Read
    any state             → Purged
"""

from datetime import timedelta
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Dict, Identifier, List, String, Text

from notifier.domain import notifier
from notifier.notification.events import (
    NotificationCreated,
    NotificationDeferred,
    NotificationDelivered,
    NotificationRead,
)
from notifier.utils.clock import as_utc, utc_now


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class NotificationType(Enum):
    ORDER_CREATED = "order_created"
    ORDER_UPDATED = "order_updated"
    ORDER_SHIPPED = "order_shipped"
    ORDER_DELIVERED = "order_delivered"
    ORDER_CANCELLED = "order_cancelled"
    PAYMENT_RECEIVED = "payment_received"
    PAYMENT_FAILED = "payment_failed"
    PRODUCT_APPROVED = "product_approved"
    PRODUCT_REJECTED = "product_rejected"
    VENDOR_APPROVED = "vendor_approved"
    VENDOR_REJECTED = "vendor_rejected"
    PAYOUT_PROCESSED = "payout_processed"
    REVIEW_RECEIVED = "review_received"
    SYSTEM_ALERT = "system_alert"
    SECURITY_ALERT = "security_alert"
    WELCOME = "welcome"
    PASSWORD_RESET = "password_reset"
    EMAIL_VERIFICATION = "email_verification"
    CUSTOM = "custom"


class NotificationChannel(Enum):
    IN_APP = "in_app"
    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"
    WEBHOOK = "webhook"


class NotificationPriority(Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


DEFAULT_CHANNELS = [NotificationChannel.IN_APP.value]


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@notifier.aggregate
class Notification:
    """A notification addressed to a single user on one or more channels."""

    # Recipient
    user_id: Identifier(required=True)

    # Classification
    notification_type: String(choices=NotificationType, required=True)
    priority: String(choices=NotificationPriority, default=NotificationPriority.NORMAL.value)
    category: String(max_length=100)
    tags: List(content_type=String, default=list)

    # Content
    title: String(required=True, max_length=255)
    message: Text(required=True)
    context: Dict(default=dict)  # entity_type, entity_id, action_url, ...

    # Channels
    channels: List(content_type=String, default=list)
    delivered_channels: List(content_type=String, default=list)

    # Read state
    is_read: Boolean(default=False)
    read_at: DateTime()

    # Scheduling and delivery
    scheduled_for: DateTime()  # Null means immediate
    delivered_at: DateTime()
    awaiting_delivery: Boolean(default=True)  # False once delivered_at is set
    claimed_at: DateTime()  # Set while a scheduler run is delivering the row
    deferred_from: Identifier()  # Set on quiet-hours copies

    # Timestamps
    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def channels_must_not_be_empty(self):
        if not self.channels:
            raise ValidationError({"channels": ["At least one channel is required"]})

    @invariant.post
    def channels_must_be_known(self):
        known = {c.value for c in NotificationChannel}
        unknown = [c for c in self.channels or [] if c not in known]
        if unknown:
            raise ValidationError({"channels": [f"Unknown channel(s): {', '.join(unknown)}"]})

    @invariant.post
    def delivered_channels_must_be_requested(self):
        extra = set(self.delivered_channels or []) - set(self.channels or [])
        if extra:
            raise ValidationError(
                {"delivered_channels": [f"Channel(s) not requested: {', '.join(sorted(extra))}"]}
            )

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        user_id,
        notification_type,
        title,
        message,
        channels,
        priority=NotificationPriority.NORMAL.value,
        context=None,
        category=None,
        tags=None,
        scheduled_for=None,
        deferred_from=None,
        created_at=None,
    ):
        """Create a new, undelivered and unread notification."""
        now = as_utc(created_at) or utc_now()
        # Stored in UTC so provider-side range filters compare like with like
        scheduled_for = as_utc(scheduled_for)

        notification = cls(
            user_id=user_id,
            notification_type=notification_type,
            title=title,
            message=message,
            channels=list(channels),
            delivered_channels=[],
            priority=priority or NotificationPriority.NORMAL.value,
            context=dict(context or {}),
            category=category,
            tags=list(tags or []),
            is_read=False,
            scheduled_for=scheduled_for,
            deferred_from=deferred_from,
            created_at=now,
            updated_at=now,
        )

        notification.raise_(
            NotificationCreated(
                notification_id=str(notification.id),
                user_id=str(user_id),
                notification_type=notification_type,
                priority=notification.priority,
                channels=list(channels),
                deferred_from=deferred_from,
                scheduled_for=scheduled_for,
                created_at=now,
            )
        )

        return notification

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def is_owned_by(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)

    def is_due(self, as_of) -> bool:
        """True when the notification has no schedule or its time has come."""
        if self.scheduled_for is None:
            return True
        return as_utc(self.scheduled_for) <= as_utc(as_of)

    @property
    def is_delivered(self) -> bool:
        return self.delivered_at is not None

    def is_claimed(self, as_of, timeout_minutes) -> bool:
        """True while another run holds the row. Claims older than the timeout have lapsed."""
        if self.claimed_at is None:
            return False
        return as_utc(self.claimed_at) > as_utc(as_of) - timedelta(minutes=timeout_minutes)

    def to_live_payload(self) -> dict:
        """Shape pushed to live sessions for ``notification.new`` messages."""
        return {
            "id": str(self.id),
            "type": self.notification_type,
            "title": self.title,
            "message": self.message,
            "priority": self.priority,
            "metadata": dict(self.context or {}),
            "category": self.category,
            "tags": list(self.tags or []),
            "createdAt": as_utc(self.created_at).isoformat() if self.created_at else None,
        }

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def claim(self, claimed_at=None):
        """Reserve the row for one delivery run."""
        if self.is_delivered:
            raise ValidationError({"delivered_at": ["Notification is already delivered"]})
        now = claimed_at or utc_now()
        self.claimed_at = now
        self.updated_at = now

    def mark_delivered(self, channels, delivered_at=None):
        """Record the outcome of a delivery attempt.

        ``channels`` may be empty: an attempt where every channel failed still
        counts as processed so the scheduler does not pick it up again.
        """
        now = delivered_at or utc_now()
        succeeded = set(channels)
        extra = sorted(succeeded - set(self.channels))
        if extra:
            raise ValidationError({"delivered_channels": [f"Channel(s) not requested: {', '.join(extra)}"]})

        delivered = [c for c in self.channels if c in succeeded]
        self.delivered_channels = delivered
        self.delivered_at = now
        self.awaiting_delivery = False
        self.updated_at = now

        self.raise_(
            NotificationDelivered(
                notification_id=str(self.id),
                user_id=str(self.user_id),
                delivered_channels=delivered,
                delivered_count=len(delivered),
                delivered_at=now,
            )
        )

    def defer(self, channels, scheduled_for, created_at=None):
        """Return an independent copy carrying ``channels``, scheduled for later.

        The copy is a new row; this notification keeps its own read state and
        retention clock.
        """
        wanted = set(channels)
        channels = [c for c in self.channels if c in wanted]
        if not channels:
            raise ValidationError({"channels": ["Nothing to defer"]})

        copy = Notification.create(
            user_id=self.user_id,
            notification_type=self.notification_type,
            title=self.title,
            message=self.message,
            channels=channels,
            priority=self.priority,
            context=self.context,
            category=self.category,
            tags=self.tags,
            scheduled_for=scheduled_for,
            deferred_from=str(self.id),
            created_at=created_at,
        )

        self.raise_(
            NotificationDeferred(
                notification_id=str(self.id),
                deferred_notification_id=str(copy.id),
                user_id=str(self.user_id),
                channels=channels,
                scheduled_for=scheduled_for,
            )
        )

        return copy

    def mark_read(self, read_at=None):
        """Mark the notification read. Reading twice is rejected."""
        if self.is_read:
            raise ValidationError({"is_read": ["Notification is already read"]})

        now = read_at or utc_now()
        self.is_read = True
        self.read_at = now
        self.updated_at = now

        self.raise_(
            NotificationRead(
                notification_id=str(self.id),
                user_id=str(self.user_id),
                read_at=now,
            )
        )
