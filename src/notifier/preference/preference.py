"""NotificationPreference aggregate: one row of delivery preferences per user.

Holds the global channel toggles, per-type overrides, the quiet-hours
window and digest settings. Rows are created lazily with defaults the first
time a user's channels are resolved and are only changed through the
preference management commands.
"""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Dict, Identifier, String

from notifier.domain import notifier
from notifier.notification.notification import NotificationChannel, NotificationType
from notifier.preference.events import (
    ChannelsUpdated,
    DigestSettingsUpdated,
    PreferencesCreated,
    QuietHoursCleared,
    QuietHoursSet,
    TypeOverrideCleared,
    TypeOverrideSet,
)
from notifier.utils.clock import utc_now

DIGEST_FREQUENCIES = ("immediate", "daily", "weekly", "never")


def parse_clock_time(value, label="time"):
    """Parse an ``HH:MM`` string into ``(hour, minute)``."""
    parts = (value or "").split(":")
    if len(parts) != 2:
        raise ValidationError({label: [f"Invalid time format: {value}. Use HH:MM"]})
    try:
        hour, minute = int(parts[0]), int(parts[1])
        if not (0 <= hour <= 23 and 0 <= minute <= 59):
            raise ValueError
    except ValueError:
        raise ValidationError({label: [f"Invalid time format: {value}. Use HH:MM"]}) from None
    return hour, minute


def _validate_timezone(name):
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError({"quiet_hours_timezone": [f"Unknown timezone: {name}"]}) from None


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@notifier.aggregate
class NotificationPreference:
    """A user's notification delivery preferences."""

    # One row per user; the repository rejects a second insert
    user_id: Identifier(required=True, unique=True)

    # Global channel toggles
    in_app_enabled: Boolean(default=True)
    email_enabled: Boolean(default=True)
    sms_enabled: Boolean(default=False)
    push_enabled: Boolean(default=True)

    # notification_type -> {"enabled": bool, "channels": [...], "frequency": str | None}
    type_overrides: Dict(default=dict)

    # Quiet hours
    quiet_hours_enabled: Boolean(default=False)
    quiet_hours_start: String(max_length=5)  # "22:00"
    quiet_hours_end: String(max_length=5)  # "08:00"
    quiet_hours_timezone: String(max_length=50, default="UTC")

    # Digests
    daily_digest_enabled: Boolean(default=False)
    weekly_digest_enabled: Boolean(default=False)
    digest_time: String(max_length=5, default="09:00")

    # Timestamps
    created_at: DateTime()
    updated_at: DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create_default(cls, user_id):
        """Create default preferences: in-app, email and push on, SMS off, no quiet hours."""
        now = utc_now()

        preference = cls(
            user_id=user_id,
            in_app_enabled=True,
            email_enabled=True,
            sms_enabled=False,
            push_enabled=True,
            type_overrides={},
            quiet_hours_enabled=False,
            quiet_hours_timezone="UTC",
            daily_digest_enabled=False,
            weekly_digest_enabled=False,
            digest_time="09:00",
            created_at=now,
            updated_at=now,
        )

        preference.raise_(
            PreferencesCreated(
                preference_id=str(preference.id),
                user_id=str(user_id),
                in_app_enabled=True,
                email_enabled=True,
                sms_enabled=False,
                push_enabled=True,
                created_at=now,
            )
        )

        return preference

    # -------------------------------------------------------------------
    # Channel toggles
    # -------------------------------------------------------------------
    def update_channels(self, in_app=None, email=None, sms=None, push=None):
        """Update global channel toggles. Pass None to keep a toggle unchanged."""
        if in_app is None and email is None and sms is None and push is None:
            raise ValidationError({"channels": ["At least one channel preference must be provided"]})

        now = utc_now()

        if in_app is not None:
            self.in_app_enabled = in_app
        if email is not None:
            self.email_enabled = email
        if sms is not None:
            self.sms_enabled = sms
        if push is not None:
            self.push_enabled = push
        self.updated_at = now

        self.raise_(
            ChannelsUpdated(
                preference_id=str(self.id),
                user_id=str(self.user_id),
                in_app_enabled=self.in_app_enabled,
                email_enabled=self.email_enabled,
                sms_enabled=self.sms_enabled,
                push_enabled=self.push_enabled,
                updated_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Quiet hours
    # -------------------------------------------------------------------
    def set_quiet_hours(self, start, end, timezone="UTC"):
        """Enable a quiet-hours window. Both start and end are required."""
        if not start or not end:
            raise ValidationError({"quiet_hours": ["Both start and end times are required"]})

        parse_clock_time(start, "quiet_hours_start")
        parse_clock_time(end, "quiet_hours_end")
        timezone = timezone or "UTC"
        _validate_timezone(timezone)

        now = utc_now()
        self.quiet_hours_enabled = True
        self.quiet_hours_start = start
        self.quiet_hours_end = end
        self.quiet_hours_timezone = timezone
        self.updated_at = now

        self.raise_(
            QuietHoursSet(
                preference_id=str(self.id),
                user_id=str(self.user_id),
                start=start,
                end=end,
                timezone=timezone,
                updated_at=now,
            )
        )

    def clear_quiet_hours(self):
        """Remove the quiet-hours window."""
        now = utc_now()
        self.quiet_hours_enabled = False
        self.quiet_hours_start = None
        self.quiet_hours_end = None
        self.updated_at = now

        self.raise_(
            QuietHoursCleared(
                preference_id=str(self.id),
                user_id=str(self.user_id),
                cleared_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Per-type overrides
    # -------------------------------------------------------------------
    def set_type_override(self, notification_type, enabled, channels=None, frequency=None):
        """Pin the channels used for one notification type, or switch it off."""
        if notification_type not in {t.value for t in NotificationType}:
            raise ValidationError({"notification_type": [f"Unknown notification type: {notification_type}"]})

        channels = list(dict.fromkeys(channels or []))
        known = {c.value for c in NotificationChannel}
        unknown = [c for c in channels if c not in known]
        if unknown:
            raise ValidationError({"channels": [f"Unknown channel(s): {', '.join(unknown)}"]})
        if enabled and not channels:
            raise ValidationError({"channels": ["An enabled override needs at least one channel"]})
        if frequency is not None and frequency not in DIGEST_FREQUENCIES:
            raise ValidationError({"frequency": [f"Unknown frequency: {frequency}"]})

        now = utc_now()
        overrides = dict(self.type_overrides or {})
        overrides[notification_type] = {
            "enabled": bool(enabled),
            "channels": channels,
            "frequency": frequency,
        }
        self.type_overrides = overrides
        self.updated_at = now

        self.raise_(
            TypeOverrideSet(
                preference_id=str(self.id),
                user_id=str(self.user_id),
                notification_type=notification_type,
                enabled=bool(enabled),
                channels=channels,
                frequency=frequency,
                updated_at=now,
            )
        )

    def clear_type_override(self, notification_type):
        overrides = dict(self.type_overrides or {})
        if notification_type not in overrides:
            raise ValidationError({"type_overrides": [f"No override configured for {notification_type}"]})

        del overrides[notification_type]
        now = utc_now()
        self.type_overrides = overrides
        self.updated_at = now

        self.raise_(
            TypeOverrideCleared(
                preference_id=str(self.id),
                user_id=str(self.user_id),
                notification_type=notification_type,
                cleared_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Digests
    # -------------------------------------------------------------------
    def update_digest(self, daily=None, weekly=None, digest_time=None):
        if daily is None and weekly is None and digest_time is None:
            raise ValidationError({"digest": ["At least one digest setting must be provided"]})
        if digest_time is not None:
            parse_clock_time(digest_time, "digest_time")

        now = utc_now()
        if daily is not None:
            self.daily_digest_enabled = daily
        if weekly is not None:
            self.weekly_digest_enabled = weekly
        if digest_time is not None:
            self.digest_time = digest_time
        self.updated_at = now

        self.raise_(
            DigestSettingsUpdated(
                preference_id=str(self.id),
                user_id=str(self.user_id),
                daily_digest_enabled=self.daily_digest_enabled,
                weekly_digest_enabled=self.weekly_digest_enabled,
                digest_time=self.digest_time,
                updated_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Query helpers
    # -------------------------------------------------------------------
    def override_for(self, notification_type):
        """Return the override dict for a type, or None when global toggles apply."""
        return (self.type_overrides or {}).get(notification_type)

    def get_enabled_channels(self):
        """Channels switched on by the global toggles, in resolution order."""
        channels = []
        if self.in_app_enabled:
            channels.append(NotificationChannel.IN_APP.value)
        if self.email_enabled:
            channels.append(NotificationChannel.EMAIL.value)
        if self.sms_enabled:
            channels.append(NotificationChannel.SMS.value)
        if self.push_enabled:
            channels.append(NotificationChannel.PUSH.value)
        return channels

    @property
    def wants_digest(self):
        return bool(self.daily_digest_enabled or self.weekly_digest_enabled)
