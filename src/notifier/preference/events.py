"""Domain events for the NotificationPreference aggregate."""

from protean.fields import Boolean, DateTime, Identifier, List, String

from notifier.domain import notifier


@notifier.event(part_of="NotificationPreference")
class PreferencesCreated:
    """Default notification preferences were created for a user."""

    __version__ = 1

    preference_id: Identifier(required=True)
    user_id: Identifier(required=True)
    in_app_enabled: Boolean(required=True)
    email_enabled: Boolean(required=True)
    sms_enabled: Boolean(required=True)
    push_enabled: Boolean(required=True)
    created_at: DateTime(required=True)


@notifier.event(part_of="NotificationPreference")
class ChannelsUpdated:
    """A user's global channel toggles were changed."""

    __version__ = 1

    preference_id: Identifier(required=True)
    user_id: Identifier(required=True)
    in_app_enabled: Boolean(required=True)
    email_enabled: Boolean(required=True)
    sms_enabled: Boolean(required=True)
    push_enabled: Boolean(required=True)
    updated_at: DateTime(required=True)


@notifier.event(part_of="NotificationPreference")
class QuietHoursSet:
    """A user set their quiet-hours window."""

    __version__ = 1

    preference_id: Identifier(required=True)
    user_id: Identifier(required=True)
    start: String(required=True)
    end: String(required=True)
    timezone: String(required=True)
    updated_at: DateTime(required=True)


@notifier.event(part_of="NotificationPreference")
class QuietHoursCleared:
    """A user removed their quiet-hours window."""

    __version__ = 1

    preference_id: Identifier(required=True)
    user_id: Identifier(required=True)
    cleared_at: DateTime(required=True)


@notifier.event(part_of="NotificationPreference")
class TypeOverrideSet:
    """A user configured channels for one notification type."""

    __version__ = 1

    preference_id: Identifier(required=True)
    user_id: Identifier(required=True)
    notification_type: String(required=True)
    enabled: Boolean(required=True)
    channels: List(content_type=String)
    frequency: String()
    updated_at: DateTime(required=True)


@notifier.event(part_of="NotificationPreference")
class TypeOverrideCleared:
    """A per-type override was removed; global toggles apply again."""

    __version__ = 1

    preference_id: Identifier(required=True)
    user_id: Identifier(required=True)
    notification_type: String(required=True)
    cleared_at: DateTime(required=True)


@notifier.event(part_of="NotificationPreference")
class DigestSettingsUpdated:
    """A user changed their digest schedule."""

    __version__ = 1

    preference_id: Identifier(required=True)
    user_id: Identifier(required=True)
    daily_digest_enabled: Boolean(required=True)
    weekly_digest_enabled: Boolean(required=True)
    digest_time: String(required=True)
    updated_at: DateTime(required=True)
