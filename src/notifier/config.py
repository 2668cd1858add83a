"""Runtime settings for the delivery engine.

Values come from environment variables so the same image can run with
different batch sizes, cron schedules and retention windows.
"""

import os
from dataclasses import dataclass


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw in (None, ""):
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw in (None, ""):
        return default
    return float(raw)


@dataclass(frozen=True)
class Settings:
    # Bulk fan-out
    bulk_batch_size: int = 100
    bulk_batch_pause: float = 0.1  # seconds between batches

    # Quiet hours
    quiet_hours_delay_minutes: int = 60

    # Scheduler (crontab expressions, evaluated in UTC)
    process_scheduled_interval: str = "*/5 * * * *"
    cleanup_interval: str = "0 2 * * *"
    cleanup_older_than_days: int = 90
    digest_interval: str = "0 9 * * *"
    claim_timeout_minutes: int = 15  # a crashed run releases its rows after this

    # Delivery
    default_locale: str = "en"
    replay_limit: int = 50

    # Provider adapters for channels without a default ("fake" or unset)
    sms_adapter: str | None = None
    push_adapter: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment, falling back to defaults."""
        defaults = cls()
        return cls(
            bulk_batch_size=_env_int("NOTIFIER_BULK_BATCH_SIZE", defaults.bulk_batch_size),
            bulk_batch_pause=_env_float("NOTIFIER_BULK_BATCH_PAUSE", defaults.bulk_batch_pause),
            quiet_hours_delay_minutes=_env_int(
                "NOTIFIER_QUIET_HOURS_DELAY_MINUTES", defaults.quiet_hours_delay_minutes
            ),
            process_scheduled_interval=os.environ.get(
                "NOTIFICATION_PROCESS_INTERVAL", defaults.process_scheduled_interval
            ),
            cleanup_interval=os.environ.get("NOTIFICATION_CLEANUP_INTERVAL", defaults.cleanup_interval),
            cleanup_older_than_days=_env_int("NOTIFICATION_CLEANUP_DAYS", defaults.cleanup_older_than_days),
            digest_interval=os.environ.get("NOTIFICATION_DIGEST_INTERVAL", defaults.digest_interval),
            claim_timeout_minutes=_env_int("NOTIFICATION_CLAIM_TIMEOUT_MINUTES", defaults.claim_timeout_minutes),
            default_locale=os.environ.get("NOTIFIER_DEFAULT_LOCALE", defaults.default_locale),
            replay_limit=_env_int("NOTIFIER_REPLAY_LIMIT", defaults.replay_limit),
            sms_adapter=os.environ.get("SMS_ADAPTER") or None,
            push_adapter=os.environ.get("PUSH_ADAPTER") or None,
        )
