"""Tests for request payload validation and delivery outcome types."""

import pytest
from notifier.notification.payloads import BulkNotificationPayload, NotificationPayload
from notifier.notification.results import DeliveryResult, ReadOutcome
from protean.exceptions import IncorrectUsageError, ValidationError


def _payload(**overrides):
    defaults = {
        "user_id": "user-1",
        "notification_type": "order_shipped",
        "title": "Order Shipped",
        "message": "Your order is on its way",
    }
    defaults.update(overrides)
    return NotificationPayload(**defaults)


class TestNotificationPayload:
    def test_valid_payload(self):
        payload = _payload(channels=["email"])
        assert payload.priority == "normal"
        assert payload.metadata == {}
        assert payload.tags == []

    def test_channels_default_to_empty(self):
        assert _payload().channels == []

    def test_payload_is_immutable(self):
        payload = _payload()
        with pytest.raises(IncorrectUsageError):
            payload.title = "Changed"

    @pytest.mark.parametrize(
        "field, value",
        [
            ("user_id", ""),
            ("title", "   "),
            ("message", ""),
            ("notification_type", "birthday"),
            ("priority", "critical"),
            ("channels", ["email", "fax"]),
        ],
    )
    def test_invalid_field(self, field, value):
        with pytest.raises(ValidationError) as exc:
            _payload(**{field: value})
        assert field in exc.value.messages

    def test_overlong_title(self):
        with pytest.raises(ValidationError):
            _payload(title="x" * 256)


class TestBulkPayload:
    def test_requires_recipients(self):
        with pytest.raises(ValidationError) as exc:
            BulkNotificationPayload(user_ids=[], notification_type="system_alert", title="t", message="m")
        assert "user_ids" in exc.value.messages

    def test_chunks(self):
        payload = BulkNotificationPayload(
            user_ids=[f"u{i}" for i in range(250)], notification_type="system_alert", title="t", message="m"
        )
        assert [len(c) for c in payload.chunks(100)] == [100, 100, 50]

    def test_for_user_copies_content(self):
        payload = BulkNotificationPayload(
            user_ids=["u1", "u2"],
            notification_type="system_alert",
            title="Maintenance",
            message="Down at midnight",
            channels=["in_app", "email"],
            tags=["system"],
        )
        single = payload.for_user("u2")
        assert single.user_id == "u2"
        assert single.channels == ["in_app", "email"]
        single.tags.append("changed")
        assert payload.tags == ["system"]


class TestOutcomes:
    def test_only_read_is_truthy(self):
        assert ReadOutcome.READ
        assert not ReadOutcome.ALREADY_READ
        assert not ReadOutcome.NOT_FOUND
        assert not ReadOutcome.NOT_OWNER

    def test_record_failure(self):
        result = DeliveryResult(notification_id="n-1", user_id="user-1")
        result.record_failure("sms", "not configured", "unavailable")
        result.record_failure("sms", "again", "error")
        assert result.failed_channels == ["sms"]
        assert [e.kind for e in result.errors] == ["unavailable", "error"]
        assert not result.success

    def test_to_dict(self):
        result = DeliveryResult(notification_id="n-1", user_id="user-1", delivered_channels=["in_app"])
        assert result.success
        data = result.to_dict()
        assert data["delivered_channels"] == ["in_app"]
        assert data["errors"] == []
