"""Preference resolution: turn a request + stored preferences into channels."""

import structlog
from protean.utils.globals import current_domain

from notifier.notification.notification import DEFAULT_CHANNELS
from notifier.preference.preference import NotificationPreference

logger = structlog.get_logger(__name__)


def channels_for(preference, notification_type, explicit_channels=None):
    """Resolve the channel list for one notification.

    Precedence: explicit channels from the caller, then a per-type override
    (an empty list when the override disables the type), then the global
    toggles. Global toggles that leave nothing enabled fall back to in-app.
    """
    if explicit_channels:
        return list(dict.fromkeys(explicit_channels))

    override = preference.override_for(notification_type)
    if override is not None:
        if not override.get("enabled", True):
            return []
        return list(dict.fromkeys(override.get("channels") or []))

    return preference.get_enabled_channels() or list(DEFAULT_CHANNELS)


def resolve(user_id, notification_type, explicit_channels=None):
    """Return ``(preference, channels)`` for a user, creating default preferences if needed."""
    repo = current_domain.repository_for(NotificationPreference)
    preference = repo.get_or_create(user_id)
    channels = channels_for(preference, notification_type, explicit_channels)

    logger.debug(
        "Channels resolved",
        user_id=str(user_id),
        notification_type=notification_type,
        channels=channels,
        explicit=bool(explicit_channels),
    )
    return preference, channels
