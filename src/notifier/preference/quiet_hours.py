"""Quiet-hours gate: suppress interruptive channels inside a user's window."""

from datetime import time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

from notifier.notification.notification import NotificationChannel
from notifier.preference.preference import parse_clock_time
from notifier.utils.clock import as_utc

logger = structlog.get_logger(__name__)

# in_app and webhook are never held back
INTERRUPTIVE_CHANNELS = frozenset(
    {
        NotificationChannel.EMAIL.value,
        NotificationChannel.SMS.value,
        NotificationChannel.PUSH.value,
    }
)


def _zone(name):
    try:
        return ZoneInfo(name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown quiet-hours timezone, using UTC", timezone=name)
        return ZoneInfo("UTC")


def local_time(now, timezone_name) -> time:
    """Wall-clock time of ``now`` in the given IANA zone."""
    return as_utc(now).astimezone(_zone(timezone_name)).time().replace(second=0, microsecond=0)


def in_window(current: time, start: time, end: time) -> bool:
    if start == end:
        return False
    if start < end:
        return start <= current < end
    # Overnight window, e.g. 22:00-08:00
    return current >= start or current <= end


def is_suppressed(preference, channel, now) -> bool:
    """True when ``channel`` must be held back for this user at ``now``."""
    if channel not in INTERRUPTIVE_CHANNELS:
        return False
    if not preference.quiet_hours_enabled:
        return False
    if not preference.quiet_hours_start or not preference.quiet_hours_end:
        return False

    start = time(*parse_clock_time(preference.quiet_hours_start, "quiet_hours_start"))
    end = time(*parse_clock_time(preference.quiet_hours_end, "quiet_hours_end"))
    return in_window(local_time(now, preference.quiet_hours_timezone), start, end)


def deferral_time(now, delay_minutes):
    """When a suppressed delivery should be retried."""
    return as_utc(now) + timedelta(minutes=delay_minutes)
