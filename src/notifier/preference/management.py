"""Preference management commands + handler.

Every change to a user's preferences goes through one of these commands.
The handler creates the default row first when the user has none yet.
"""

from protean.fields import Boolean, Identifier, List, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from notifier.domain import notifier
from notifier.preference.preference import NotificationPreference


@notifier.command(part_of="NotificationPreference")
class UpdateNotificationPreferences:
    """Switch global channels on or off. Omitted toggles are left alone."""

    user_id: Identifier(required=True)
    in_app_enabled: Boolean()
    email_enabled: Boolean()
    sms_enabled: Boolean()
    push_enabled: Boolean()


@notifier.command(part_of="NotificationPreference")
class SetQuietHours:
    user_id: Identifier(required=True)
    start: String(required=True, max_length=5)
    end: String(required=True, max_length=5)
    timezone: String(max_length=50, default="UTC")


@notifier.command(part_of="NotificationPreference")
class ClearQuietHours:
    user_id: Identifier(required=True)


@notifier.command(part_of="NotificationPreference")
class SetTypeOverride:
    """Pin channels for one notification type, or disable the type entirely."""

    user_id: Identifier(required=True)
    notification_type: String(required=True, max_length=50)
    enabled: Boolean(default=True)
    channels: List(content_type=String)
    frequency: String(max_length=20)


@notifier.command(part_of="NotificationPreference")
class ClearTypeOverride:
    user_id: Identifier(required=True)
    notification_type: String(required=True, max_length=50)


@notifier.command(part_of="NotificationPreference")
class UpdateDigestSettings:
    user_id: Identifier(required=True)
    daily_digest_enabled: Boolean()
    weekly_digest_enabled: Boolean()
    digest_time: String(max_length=5)


@notifier.command_handler(part_of=NotificationPreference)
class ManagePreferencesHandler:
    def _load(self, user_id):
        repo = current_domain.repository_for(NotificationPreference)
        return repo, repo.get_or_create(user_id)

    @handle(UpdateNotificationPreferences)
    def update_preferences(self, command: UpdateNotificationPreferences):
        repo, preference = self._load(command.user_id)
        preference.update_channels(
            in_app=command.in_app_enabled,
            email=command.email_enabled,
            sms=command.sms_enabled,
            push=command.push_enabled,
        )
        repo.add(preference)
        return preference

    @handle(SetQuietHours)
    def set_quiet_hours(self, command: SetQuietHours):
        repo, preference = self._load(command.user_id)
        preference.set_quiet_hours(command.start, command.end, command.timezone)
        repo.add(preference)
        return preference

    @handle(ClearQuietHours)
    def clear_quiet_hours(self, command: ClearQuietHours):
        repo, preference = self._load(command.user_id)
        preference.clear_quiet_hours()
        repo.add(preference)
        return preference

    @handle(SetTypeOverride)
    def set_type_override(self, command: SetTypeOverride):
        repo, preference = self._load(command.user_id)
        preference.set_type_override(
            command.notification_type,
            enabled=command.enabled,
            channels=command.channels,
            frequency=command.frequency,
        )
        repo.add(preference)
        return preference

    @handle(ClearTypeOverride)
    def clear_type_override(self, command: ClearTypeOverride):
        repo, preference = self._load(command.user_id)
        preference.clear_type_override(command.notification_type)
        repo.add(preference)
        return preference

    @handle(UpdateDigestSettings)
    def update_digest_settings(self, command: UpdateDigestSettings):
        repo, preference = self._load(command.user_id)
        preference.update_digest(
            daily=command.daily_digest_enabled,
            weekly=command.weekly_digest_enabled,
            digest_time=command.digest_time,
        )
        repo.add(preference)
        return preference
