"""Application tests for the preference management commands."""

import pytest
from notifier.preference.management import (
    ClearQuietHours,
    ClearTypeOverride,
    SetQuietHours,
    SetTypeOverride,
    UpdateDigestSettings,
    UpdateNotificationPreferences,
)
from notifier.preference.preference import NotificationPreference
from protean import current_domain
from protean.exceptions import ValidationError


def _load(user_id):
    return current_domain.repository_for(NotificationPreference).find_by_user(user_id)


class TestCommands:
    def test_update_creates_row_for_new_user(self):
        current_domain.process(
            UpdateNotificationPreferences(user_id="user-1", sms_enabled=True),
            asynchronous=False,
        )
        pref = _load("user-1")
        assert pref.sms_enabled is True
        assert pref.email_enabled is True

    def test_set_and_clear_quiet_hours(self):
        current_domain.process(
            SetQuietHours(user_id="user-1", start="22:00", end="07:00", timezone="Europe/Paris"),
            asynchronous=False,
        )
        pref = _load("user-1")
        assert pref.quiet_hours_enabled is True
        assert pref.quiet_hours_timezone == "Europe/Paris"

        current_domain.process(ClearQuietHours(user_id="user-1"), asynchronous=False)
        assert _load("user-1").quiet_hours_enabled is False

    def test_type_override_round(self):
        current_domain.process(
            SetTypeOverride(user_id="user-1", notification_type="order_shipped", enabled=True, channels=["sms"]),
            asynchronous=False,
        )
        assert _load("user-1").override_for("order_shipped")["channels"] == ["sms"]

        current_domain.process(
            ClearTypeOverride(user_id="user-1", notification_type="order_shipped"),
            asynchronous=False,
        )
        assert _load("user-1").override_for("order_shipped") is None

    def test_digest_settings(self):
        current_domain.process(
            UpdateDigestSettings(user_id="user-1", weekly_digest_enabled=True),
            asynchronous=False,
        )
        assert _load("user-1").weekly_digest_enabled is True

    def test_invalid_quiet_hours_rejected(self):
        with pytest.raises(ValidationError):
            current_domain.process(
                SetQuietHours(user_id="user-1", start="22:00", end="08:00", timezone="Nowhere/Land"),
                asynchronous=False,
            )


class TestOrchestratorUpdatePreferences:
    def test_applies_all_kinds_of_change(self, orchestrator):
        pref = orchestrator.update_preferences(
            "user-1",
            email_enabled=False,
            quiet_hours={"start": "23:00", "end": "06:00"},
            type_overrides={"welcome": {"enabled": False}},
            daily_digest_enabled=True,
        )
        assert pref.email_enabled is False
        assert pref.quiet_hours_start == "23:00"
        assert pref.quiet_hours_timezone == "UTC"
        assert pref.override_for("welcome")["enabled"] is False
        assert pref.daily_digest_enabled is True

    def test_clears_quiet_hours_and_override(self, orchestrator):
        orchestrator.update_preferences(
            "user-1",
            quiet_hours={"start": "23:00", "end": "06:00"},
            type_overrides={"welcome": {"enabled": False}},
        )
        pref = orchestrator.update_preferences("user-1", quiet_hours=None, type_overrides={"welcome": None})
        assert pref.quiet_hours_enabled is False
        assert pref.override_for("welcome") is None

    def test_publishes_preferences_updated(self, orchestrator):
        received = []
        orchestrator.subscribe("preferences.updated", received.append)
        orchestrator.update_preferences("user-1", sms_enabled=True)
        assert received == [{"user_id": "user-1", "changes": ["sms_enabled"]}]

    def test_unknown_preference_rejected(self, orchestrator):
        with pytest.raises(ValidationError):
            orchestrator.update_preferences("user-1", carrier_pigeon_enabled=True)
