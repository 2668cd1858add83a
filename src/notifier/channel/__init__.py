"""Channel registry: provider adapters and the channel → sender map.

Email and webhook default to the in-memory fakes. SMS and push have no
provider unless ``SMS_ADAPTER`` / ``PUSH_ADAPTER`` name one, so their
senders report the channel as unavailable instead of pretending to send.
"""

import structlog

from notifier.config import Settings
from notifier.notification.notification import NotificationChannel

logger = structlog.get_logger(__name__)

_provider_instances: dict[str, object] = {}


def _build_provider(channel: str, settings: Settings):
    from notifier.channel.fakes import (
        FakeEmailAdapter,
        FakePushAdapter,
        FakeSMSAdapter,
        FakeWebhookAdapter,
    )

    if channel == NotificationChannel.EMAIL.value:
        return FakeEmailAdapter()
    if channel == NotificationChannel.WEBHOOK.value:
        return FakeWebhookAdapter()
    if channel == NotificationChannel.SMS.value:
        return _optional(channel, settings.sms_adapter, FakeSMSAdapter)
    if channel == NotificationChannel.PUSH.value:
        return _optional(channel, settings.push_adapter, FakePushAdapter)
    raise ValueError(f"Channel has no provider: {channel}")


def _optional(channel, adapter_name, fake_cls):
    if adapter_name is None:
        return None
    if adapter_name == "fake":
        return fake_cls()
    logger.warning("Unknown provider adapter, channel left unconfigured", channel=channel, adapter=adapter_name)
    return None


def get_provider(channel: str, settings: Settings | None = None):
    """Return the provider adapter for ``channel`` (singleton), or None when unconfigured."""
    if channel not in _provider_instances:
        _provider_instances[channel] = _build_provider(channel, settings or Settings.from_env())
    return _provider_instances[channel]


def set_provider(channel: str, provider) -> None:
    """Install a provider adapter, e.g. a real integration or a configured fake."""
    _provider_instances[channel] = provider


def reset_providers() -> None:
    """Forget all provider singletons (useful for testing)."""
    _provider_instances.clear()


def build_senders(transport, settings: Settings | None = None) -> dict:
    """Explicit channel → sender map used by the orchestrator."""
    from notifier.channel.senders import (
        EmailSender,
        InAppSender,
        PushSender,
        SMSSender,
        WebhookSender,
    )

    settings = settings or Settings.from_env()
    return {
        NotificationChannel.IN_APP.value: InAppSender(transport),
        NotificationChannel.EMAIL.value: EmailSender(settings),
        NotificationChannel.SMS.value: SMSSender(settings),
        NotificationChannel.PUSH.value: PushSender(settings),
        NotificationChannel.WEBHOOK.value: WebhookSender(settings),
    }
