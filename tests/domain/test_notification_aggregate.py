"""Tests for the Notification aggregate."""

from datetime import UTC, datetime, timedelta, timezone

import pytest
from notifier.notification.events import (
    NotificationCreated,
    NotificationDeferred,
    NotificationDelivered,
    NotificationRead,
)
from notifier.notification.notification import (
    Notification,
    NotificationChannel,
    NotificationPriority,
    NotificationType,
)
from protean.exceptions import ValidationError

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)


def _notification(**overrides):
    defaults = {
        "user_id": "user-1",
        "notification_type": NotificationType.ORDER_SHIPPED.value,
        "title": "Order Shipped",
        "message": "Your order is on its way",
        "channels": ["in_app", "email", "push"],
    }
    defaults.update(overrides)
    return Notification.create(**defaults)


class TestNotificationCreation:
    def test_create_sets_defaults(self):
        n = _notification()
        assert str(n.user_id) == "user-1"
        assert n.priority == NotificationPriority.NORMAL.value
        assert n.channels == ["in_app", "email", "push"]
        assert n.delivered_channels == []
        assert n.is_read is False
        assert n.read_at is None
        assert n.delivered_at is None
        assert n.deferred_from is None
        assert n.created_at is not None

    def test_create_raises_created_event(self):
        n = _notification(scheduled_for=NOW)
        assert len(n._events) == 1
        event = n._events[0]
        assert isinstance(event, NotificationCreated)
        assert event.notification_id == str(n.id)
        assert event.channels == ["in_app", "email", "push"]
        assert event.scheduled_for == NOW

    def test_empty_channels_rejected(self):
        with pytest.raises(ValidationError):
            _notification(channels=[])

    def test_unknown_channel_rejected(self):
        with pytest.raises(ValidationError):
            _notification(channels=["in_app", "pigeon"])

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            _notification(notification_type="birthday")

    def test_catalog_has_nineteen_types(self):
        assert len(NotificationType) == 19
        assert {c.value for c in NotificationChannel} == {"in_app", "email", "sms", "push", "webhook"}


class TestDueness:
    def test_unscheduled_is_due(self):
        assert _notification().is_due(NOW)

    def test_future_schedule_not_due(self):
        n = _notification(scheduled_for=NOW + timedelta(hours=1))
        assert not n.is_due(NOW)
        assert n.is_due(NOW + timedelta(hours=1))

    def test_naive_schedule_treated_as_utc(self):
        n = _notification(scheduled_for=datetime(2024, 3, 1, 13, 0))
        assert not n.is_due(NOW)

    def test_schedule_is_stored_in_utc(self):
        plus_two = timezone(timedelta(hours=2))
        n = _notification(scheduled_for=datetime(2024, 3, 1, 15, 0, tzinfo=plus_two))

        assert n.scheduled_for.utcoffset() == timedelta(0)
        assert n.scheduled_for == NOW + timedelta(hours=1)


class TestMarkDelivered:
    def test_records_subset_in_requested_order(self):
        n = _notification()
        n._events.clear()

        n.mark_delivered(["push", "in_app"], delivered_at=NOW)

        assert n.delivered_channels == ["in_app", "push"]
        assert n.delivered_at == NOW
        assert n.is_delivered

        event = n._events[0]
        assert isinstance(event, NotificationDelivered)
        assert event.delivered_count == 2

    def test_no_successful_channels_still_marks_processed(self):
        n = _notification()
        n.mark_delivered([], delivered_at=NOW)
        assert n.delivered_channels == []
        assert n.is_delivered

    def test_unrequested_channel_rejected(self):
        n = _notification(channels=["in_app"])
        with pytest.raises(ValidationError) as exc:
            n.mark_delivered(["in_app", "sms"])
        assert "delivered_channels" in exc.value.messages
        assert n.delivered_channels == []


class TestClaim:
    def test_new_notification_awaits_delivery(self):
        n = _notification()
        assert n.awaiting_delivery is True
        assert n.claimed_at is None
        assert not n.is_claimed(NOW, timeout_minutes=15)

    def test_claim_holds_until_timeout(self):
        n = _notification()
        n.claim(NOW)

        assert n.is_claimed(NOW + timedelta(minutes=14), timeout_minutes=15)
        assert not n.is_claimed(NOW + timedelta(minutes=16), timeout_minutes=15)

    def test_delivered_row_cannot_be_claimed(self):
        n = _notification()
        n.mark_delivered(["in_app"], delivered_at=NOW)

        assert n.awaiting_delivery is False
        with pytest.raises(ValidationError):
            n.claim(NOW)


class TestDefer:
    def test_defer_returns_independent_copy(self):
        n = _notification(category="orders", tags=["order"], context={"entity_id": "o-1"})
        n._events.clear()
        later = NOW + timedelta(hours=1)

        copy = n.defer(["email", "push"], scheduled_for=later)

        assert copy.id != n.id
        assert copy.channels == ["email", "push"]
        assert copy.scheduled_for == later
        assert copy.deferred_from == str(n.id)
        assert copy.category == "orders"
        assert copy.context == {"entity_id": "o-1"}
        assert copy.delivered_at is None

        event = n._events[0]
        assert isinstance(event, NotificationDeferred)
        assert event.deferred_notification_id == str(copy.id)

    def test_defer_keeps_only_requested_channels(self):
        n = _notification(channels=["in_app", "email"])
        copy = n.defer(["email", "sms"], scheduled_for=NOW)
        assert copy.channels == ["email"]

    def test_nothing_to_defer_rejected(self):
        n = _notification(channels=["in_app"])
        with pytest.raises(ValidationError):
            n.defer(["email"], scheduled_for=NOW)


class TestMarkRead:
    def test_mark_read(self):
        n = _notification()
        n._events.clear()

        n.mark_read(NOW)

        assert n.is_read is True
        assert n.read_at == NOW
        assert isinstance(n._events[0], NotificationRead)

    def test_second_read_rejected(self):
        n = _notification()
        n.mark_read(NOW)
        with pytest.raises(ValidationError):
            n.mark_read(NOW + timedelta(minutes=5))
        assert n.read_at == NOW


class TestLivePayload:
    def test_payload_shape(self):
        n = _notification(context={"action_url": "/orders/1"}, tags=["order"], category="orders")
        payload = n.to_live_payload()
        assert payload["id"] == str(n.id)
        assert payload["type"] == "order_shipped"
        assert payload["metadata"] == {"action_url": "/orders/1"}
        assert payload["tags"] == ["order"]
        assert payload["createdAt"].endswith("+00:00")
