"""Delivery orchestrator: persist a notification and fan it out to its channels.

Every channel is attempted inside its own failure boundary, so a raising or
declining sender is recorded in the ``DeliveryResult`` and never stops the
remaining channels. Persistence errors are not caught here and propagate to
the caller.

The orchestrator keeps no state between calls apart from its subscriber
lists and the lock that serialises claims on due rows. Repositories are
looked up through ``current_domain``, so every entry point must run inside
the domain context.
"""

import threading

import structlog
from protean import UnitOfWork
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from notifier.channel import build_senders
from notifier.config import Settings
from notifier.errors import AuthorizationError, ChannelUnavailableError, DeliveryFailure, QueueFailure
from notifier.notification.bulk import BulkBatcher
from notifier.notification.notification import Notification, NotificationPriority, NotificationType
from notifier.notification.payloads import BulkNotificationPayload, NotificationPayload
from notifier.notification.results import DeliveryResult, ErrorKind, ReadOutcome
from notifier.preference.management import (
    ClearQuietHours,
    ClearTypeOverride,
    SetQuietHours,
    SetTypeOverride,
    UpdateDigestSettings,
    UpdateNotificationPreferences,
)
from notifier.preference.preference import NotificationPreference
from notifier.preference.quiet_hours import deferral_time, is_suppressed
from notifier.preference.resolver import resolve
from notifier.utils.clock import utc_now

logger = structlog.get_logger(__name__)

SIGNALS = (
    "notification.delivered",
    "notification.read",
    "notification.all_read",
    "preferences.updated",
)

BULK_NOTIFICATION_JOB = "bulk_notification"

_CHANNEL_TOGGLES = ("in_app_enabled", "email_enabled", "sms_enabled", "push_enabled")
_DIGEST_FIELDS = ("daily_digest_enabled", "weekly_digest_enabled", "digest_time")

# Lower runs first
_QUEUE_PRIORITY = {
    NotificationPriority.URGENT.value: 1,
    NotificationPriority.HIGH.value: 2,
    NotificationPriority.NORMAL.value: 3,
    NotificationPriority.LOW.value: 4,
}

_ORDER_TITLES = {
    NotificationType.ORDER_CREATED.value: "Order Confirmed",
    NotificationType.ORDER_UPDATED.value: "Order Updated",
    NotificationType.ORDER_SHIPPED.value: "Order Shipped",
    NotificationType.ORDER_DELIVERED.value: "Order Delivered",
    NotificationType.ORDER_CANCELLED.value: "Order Cancelled",
}

_ORDER_MESSAGES = {
    NotificationType.ORDER_CREATED.value: "Your order #{order_id} has been confirmed and is being processed.",
    NotificationType.ORDER_UPDATED.value: "Your order #{order_id} has been updated.",
    NotificationType.ORDER_SHIPPED.value: "Your order #{order_id} has been shipped and is on its way.",
    NotificationType.ORDER_DELIVERED.value: "Your order #{order_id} has been delivered.",
    NotificationType.ORDER_CANCELLED.value: "Your order #{order_id} has been cancelled.",
}

_PAYMENT_TITLES = {
    NotificationType.PAYMENT_RECEIVED.value: "Payment Received",
    NotificationType.PAYMENT_FAILED.value: "Payment Failed",
}

_PAYMENT_MESSAGES = {
    NotificationType.PAYMENT_RECEIVED.value: "Your payment of {amount} {currency} has been received.",
    NotificationType.PAYMENT_FAILED.value: "Your payment of {amount} {currency} has failed.",
}


class DeliveryOrchestrator:
    def __init__(self, transport, senders=None, settings=None, queue=None, clock=utc_now):
        self.transport = transport
        self.settings = settings or Settings.from_env()
        self.senders = senders if senders is not None else build_senders(transport, self.settings)
        self.queue = queue
        self.clock = clock
        self._subscribers: dict[str, list] = {signal: [] for signal in SIGNALS}
        self._claim_lock = threading.Lock()

        transport.on_connect(self.replay_unread)
        transport.on_mark_read(self._on_client_mark_read)

    # -------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------
    def subscribe(self, signal: str, listener) -> None:
        """Call ``listener(payload)`` whenever ``signal`` is published."""
        if signal not in self._subscribers:
            raise ValueError(f"Unknown signal: {signal}")
        self._subscribers[signal].append(listener)

    def unsubscribe(self, signal: str, listener) -> None:
        listeners = self._subscribers.get(signal, [])
        if listener in listeners:
            listeners.remove(listener)

    def _publish(self, signal: str, payload) -> None:
        for listener in list(self._subscribers[signal]):
            try:
                listener(payload)
            except Exception as exc:
                logger.error(
                    "Notification subscriber failed",
                    signal=signal,
                    listener=getattr(listener, "__qualname__", repr(listener)),
                    error=str(exc),
                    exc_info=True,
                )

    # -------------------------------------------------------------------
    # Sending
    # -------------------------------------------------------------------
    def send_notification(self, payload: NotificationPayload) -> DeliveryResult:
        """Persist one notification and deliver it now unless it is scheduled for later."""
        preference, channels = resolve(payload.user_id, payload.notification_type, payload.channels)

        if not channels:
            logger.info(
                "Notification type disabled for user, nothing sent",
                user_id=str(payload.user_id),
                notification_type=payload.notification_type,
            )
            return DeliveryResult(notification_id=None, user_id=str(payload.user_id), suppressed=True)

        now = self.clock()
        notification = Notification.create(
            user_id=str(payload.user_id),
            notification_type=payload.notification_type,
            title=payload.title,
            message=payload.message,
            channels=channels,
            priority=payload.priority,
            context=payload.metadata,
            category=payload.category,
            tags=payload.tags,
            scheduled_for=payload.scheduled_for,
            created_at=now,
        )
        current_domain.repository_for(Notification).add(notification)

        logger.info(
            "Notification created",
            notification_id=str(notification.id),
            user_id=str(notification.user_id),
            notification_type=notification.notification_type,
            channels=channels,
        )

        if not notification.is_due(now):
            logger.info(
                "Notification scheduled for later delivery",
                notification_id=str(notification.id),
                scheduled_for=str(notification.scheduled_for),
            )
            return DeliveryResult(notification_id=str(notification.id), user_id=str(notification.user_id))

        return self._deliver(notification, preference, now)

    def send_bulk_notification(self, payload: BulkNotificationPayload) -> list[DeliveryResult]:
        batcher = BulkBatcher(
            self,
            batch_size=self.settings.bulk_batch_size,
            pause=self.settings.bulk_batch_pause,
        )
        return batcher.run(payload)

    def enqueue_bulk_notification(self, payload: BulkNotificationPayload) -> str:
        """Hand a bulk send to the durable work queue and return the job id."""
        if self.queue is None:
            raise QueueFailure("No work queue configured")

        try:
            job_id = self.queue.enqueue(
                BULK_NOTIFICATION_JOB,
                payload.to_job(),
                priority=_QUEUE_PRIORITY.get(payload.priority, 3),
            )
        except Exception as exc:
            logger.error("Could not enqueue bulk notification", recipients=len(payload.user_ids), error=str(exc))
            raise QueueFailure(f"Could not enqueue bulk notification: {exc}") from exc

        logger.info("Bulk notification enqueued", job_id=job_id, recipients=len(payload.user_ids))
        return job_id

    def run_job(self, job_type: str, payload: dict):
        """Execute a job taken off the work queue."""
        if job_type != BULK_NOTIFICATION_JOB:
            raise ValueError(f"Unknown job type: {job_type}")

        bulk = BulkNotificationPayload.from_job(payload)
        logger.info("Running queued bulk notification", recipients=len(bulk.user_ids))
        return self.send_bulk_notification(bulk)

    def _deliver(self, notification, preference, now) -> DeliveryResult:
        result = DeliveryResult(notification_id=str(notification.id), user_id=str(notification.user_id))
        held_back = []

        for channel in notification.channels:
            if is_suppressed(preference, channel, now):
                held_back.append(channel)
                continue
            self._attempt(channel, notification, preference, result)

        repo = current_domain.repository_for(Notification)

        if held_back:
            deferred = notification.defer(
                held_back,
                scheduled_for=deferral_time(now, self.settings.quiet_hours_delay_minutes),
                created_at=now,
            )
            repo.add(deferred)
            result.deferred_channels = held_back
            result.deferred_notification_id = str(deferred.id)
            logger.info(
                "Channels deferred by quiet hours",
                notification_id=str(notification.id),
                deferred_notification_id=str(deferred.id),
                channels=held_back,
                scheduled_for=str(deferred.scheduled_for),
            )

        notification.mark_delivered(result.delivered_channels, delivered_at=self.clock())
        repo.add(notification)

        logger.info(
            "Notification delivered",
            notification_id=str(notification.id),
            delivered=result.delivered_channels,
            failed=result.failed_channels,
            deferred=result.deferred_channels,
        )
        self._publish("notification.delivered", result)
        return result

    def _attempt(self, channel, notification, preference, result) -> None:
        sender = self.senders.get(channel)
        if sender is None:
            result.record_failure(
                channel, f"No sender registered for channel '{channel}'", ErrorKind.MISSING_HANDLER.value
            )
            return

        try:
            sent = sender.send(notification, preference)
        except ChannelUnavailableError as exc:
            result.record_failure(channel, str(exc), ErrorKind.UNAVAILABLE.value)
        except DeliveryFailure as exc:
            result.record_failure(channel, exc.reason, ErrorKind.DELIVERY.value)
        except Exception as exc:
            logger.error(
                "Channel delivery raised",
                channel=channel,
                notification_id=str(notification.id),
                error=str(exc),
                exc_info=True,
            )
            result.record_failure(channel, str(exc), ErrorKind.ERROR.value)
        else:
            if sent:
                result.delivered_channels.append(channel)
            else:
                result.record_failure(channel, f"{channel} delivery was not completed", ErrorKind.DELIVERY.value)

    # -------------------------------------------------------------------
    # Scheduled work
    # -------------------------------------------------------------------
    def process_scheduled_notifications(self, now=None) -> list[DeliveryResult]:
        """Deliver every scheduled notification that has come due.

        Each row is claimed before it is sent, so overlapping runs in this
        process or another one deliver it once. Rows are marked delivered as
        they are processed, so a second run with a later ``now`` finds
        nothing to do.
        """
        now = now or self.clock()
        due = current_domain.repository_for(Notification).find_due(now)
        prefs = current_domain.repository_for(NotificationPreference)

        results = []
        for candidate in due:
            notification = self._claim(candidate, now)
            if notification is None:
                continue
            preference = prefs.get_or_create(notification.user_id)

            # The type may have been switched off since the notification was scheduled
            override = preference.override_for(notification.notification_type)
            if override is not None and not override.get("enabled", True):
                notification.mark_delivered([], delivered_at=self.clock())
                current_domain.repository_for(Notification).add(notification)
                results.append(
                    DeliveryResult(
                        notification_id=str(notification.id),
                        user_id=str(notification.user_id),
                        suppressed=True,
                    )
                )
                continue

            results.append(self._deliver(notification, preference, now))

        if due:
            logger.info("Scheduled notifications processed", count=len(results), skipped=len(due) - len(results))
        return results

    def _claim(self, notification, now):
        """Reload ``notification`` and reserve it for this run.

        Returns the reserved row, or None when it was delivered, purged or is
        held by another run. The version check on save rejects a claim that
        raced with another process.
        """
        repo = current_domain.repository_for(Notification)
        with self._claim_lock:
            try:
                current = repo.get(notification.id)
            except ObjectNotFoundError:
                return None
            if current.is_delivered or current.is_claimed(now, self.settings.claim_timeout_minutes):
                return None

            current.claim(now)
            try:
                with UnitOfWork():
                    repo.add(current)
            except ExpectedVersionError:
                logger.info("Scheduled notification claimed elsewhere", notification_id=str(current.id))
                return None
        return current

    def digest_recipients(self) -> list[str]:
        """Users with a daily or weekly digest switched on."""
        preferences = current_domain.repository_for(NotificationPreference).find_with_digest()
        return sorted(str(p.user_id) for p in preferences)

    def cleanup_old_notifications(self, older_than_days=None) -> int:
        days = self.settings.cleanup_older_than_days if older_than_days is None else older_than_days
        if days < 1:
            raise ValidationError({"older_than_days": ["must be at least 1"]})

        removed = current_domain.repository_for(Notification).purge_older_than(days, now=self.clock())
        logger.info("Old notifications removed", older_than_days=days, removed=removed)
        return removed

    # -------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------
    def get_notification(self, notification_id, user_id) -> Notification:
        """Load a notification on behalf of ``user_id``.

        Raises ``ObjectNotFoundError`` when it does not exist and
        ``AuthorizationError`` when it belongs to someone else.
        """
        notification = current_domain.repository_for(Notification).get(notification_id)
        if not notification.is_owned_by(user_id):
            raise AuthorizationError(notification_id, user_id)
        return notification

    def mark_as_read(self, notification_id, user_id) -> ReadOutcome:
        repo = current_domain.repository_for(Notification)
        try:
            notification = repo.get(notification_id)
        except ObjectNotFoundError:
            return ReadOutcome.NOT_FOUND

        if not notification.is_owned_by(user_id):
            logger.warning(
                "Refused to mark another user's notification read",
                notification_id=str(notification_id),
                user_id=str(user_id),
            )
            return ReadOutcome.NOT_OWNER
        if notification.is_read:
            return ReadOutcome.ALREADY_READ

        notification.mark_read(self.clock())
        repo.add(notification)

        read_at = notification.read_at.isoformat()
        self.transport.send_to_user(
            str(user_id),
            {"event": "notification.read", "data": {"id": str(notification.id), "readAt": read_at}},
        )
        self._publish(
            "notification.read",
            {"notification_id": str(notification.id), "user_id": str(user_id), "read_at": read_at},
        )
        return ReadOutcome.READ

    def mark_all_as_read(self, user_id) -> int:
        count = current_domain.repository_for(Notification).mark_all_read(user_id, read_at=self.clock())
        if count > 0:
            self.transport.send_to_user(str(user_id), {"event": "notification.all_read", "data": {"count": count}})
            self._publish("notification.all_read", {"user_id": str(user_id), "count": count})
        return count

    def _on_client_mark_read(self, user_id, notification_id) -> None:
        outcome = self.mark_as_read(notification_id, user_id)
        if not outcome:
            logger.info(
                "Client mark-read request ignored",
                notification_id=str(notification_id),
                user_id=str(user_id),
                outcome=outcome.value,
            )

    def replay_unread(self, user_id) -> int:
        """Push unread in-app notifications to a user who just connected; return how many."""
        now = self.clock()
        unread = current_domain.repository_for(Notification).find_unread_for_user(
            user_id, limit=self.settings.replay_limit
        )

        replayed = 0
        # Oldest first, so clients see them in the order they were created
        for notification in reversed(unread):
            if "in_app" not in notification.channels or not notification.is_due(now):
                continue
            self.transport.send_to_user(
                str(user_id),
                {"event": "notification.new", "data": notification.to_live_payload(), "replayed": True},
            )
            replayed += 1

        if replayed:
            logger.info("Unread notifications replayed", user_id=str(user_id), count=replayed)
        return replayed

    def get_user_notifications(self, user_id, filters=None, limit=50, offset=0) -> list[Notification]:
        return current_domain.repository_for(Notification).find_for_user(user_id, filters, limit=limit, offset=offset)

    def get_notification_stats(self, user_id) -> dict:
        return current_domain.repository_for(Notification).stats_for(user_id)

    # -------------------------------------------------------------------
    # Preferences
    # -------------------------------------------------------------------
    def get_preferences(self, user_id) -> NotificationPreference:
        return current_domain.repository_for(NotificationPreference).get_or_create(user_id)

    def update_preferences(self, user_id, **changes) -> NotificationPreference:
        """Apply preference changes through the preference commands.

        Accepted keys: the four ``*_enabled`` channel toggles, ``quiet_hours``
        (a ``{start, end, timezone}`` dict, or None to clear),
        ``type_overrides`` (type → override dict, or None to clear that type)
        and the digest settings.
        """
        unknown = set(changes) - {*_CHANNEL_TOGGLES, *_DIGEST_FIELDS, "quiet_hours", "type_overrides"}
        if unknown:
            raise ValidationError({"preferences": [f"Unknown preference(s): {', '.join(sorted(unknown))}"]})

        user_id = str(user_id)
        commands = []

        toggles = {key: changes[key] for key in _CHANNEL_TOGGLES if changes.get(key) is not None}
        if toggles:
            commands.append(UpdateNotificationPreferences(user_id=user_id, **toggles))

        if "quiet_hours" in changes:
            window = changes["quiet_hours"]
            if window:
                commands.append(
                    SetQuietHours(
                        user_id=user_id,
                        start=window.get("start"),
                        end=window.get("end"),
                        timezone=window.get("timezone") or "UTC",
                    )
                )
            else:
                commands.append(ClearQuietHours(user_id=user_id))

        for notification_type, override in (changes.get("type_overrides") or {}).items():
            if override is None:
                commands.append(ClearTypeOverride(user_id=user_id, notification_type=notification_type))
            else:
                commands.append(
                    SetTypeOverride(
                        user_id=user_id,
                        notification_type=notification_type,
                        enabled=override.get("enabled", True),
                        channels=list(override.get("channels") or []),
                        frequency=override.get("frequency"),
                    )
                )

        digest = {key: changes[key] for key in _DIGEST_FIELDS if changes.get(key) is not None}
        if digest:
            commands.append(UpdateDigestSettings(user_id=user_id, **digest))

        for command in commands:
            current_domain.process(command, asynchronous=False)

        preference = self.get_preferences(user_id)
        if commands:
            self._publish("preferences.updated", {"user_id": user_id, "changes": sorted(changes)})
        return preference

    # -------------------------------------------------------------------
    # Convenience senders
    # -------------------------------------------------------------------
    def send_order_notification(self, user_id, order_id, notification_type, order_data=None) -> DeliveryResult:
        if notification_type not in _ORDER_TITLES:
            raise ValidationError({"notification_type": [f"Not an order notification: {notification_type}"]})

        return self.send_notification(
            NotificationPayload(
                user_id=user_id,
                notification_type=notification_type,
                title=_ORDER_TITLES[notification_type],
                message=_ORDER_MESSAGES[notification_type].format(order_id=order_id),
                priority=(
                    NotificationPriority.HIGH.value
                    if notification_type == NotificationType.ORDER_CANCELLED.value
                    else NotificationPriority.NORMAL.value
                ),
                metadata={
                    "entity_type": "order",
                    "entity_id": str(order_id),
                    "action_url": f"/orders/{order_id}",
                    **(order_data or {}),
                },
                category="orders",
                tags=["order", notification_type],
            )
        )

    def send_payment_notification(
        self, user_id, payment_id, notification_type, payment_data=None
    ) -> DeliveryResult:
        if notification_type not in _PAYMENT_TITLES:
            raise ValidationError({"notification_type": [f"Not a payment notification: {notification_type}"]})

        payment_data = dict(payment_data or {})
        return self.send_notification(
            NotificationPayload(
                user_id=user_id,
                notification_type=notification_type,
                title=_PAYMENT_TITLES[notification_type],
                message=_PAYMENT_MESSAGES[notification_type].format(
                    amount=payment_data.get("amount", ""),
                    currency=payment_data.get("currency", ""),
                ),
                priority=(
                    NotificationPriority.HIGH.value
                    if notification_type == NotificationType.PAYMENT_FAILED.value
                    else NotificationPriority.NORMAL.value
                ),
                metadata={"entity_type": "payment", "entity_id": str(payment_id), **payment_data},
                category="payments",
                tags=["payment", notification_type],
            )
        )

    def send_system_alert(self, user_ids, title, message, priority=NotificationPriority.NORMAL.value):
        return self.send_bulk_notification(
            BulkNotificationPayload(
                user_ids=list(user_ids),
                notification_type=NotificationType.SYSTEM_ALERT.value,
                title=title,
                message=message,
                priority=priority,
                category="system",
                tags=["system", "alert"],
            )
        )
