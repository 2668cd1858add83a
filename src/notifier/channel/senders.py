"""Channel senders: one per delivery medium, all with ``send(notification, preference) -> bool``.

A sender returns True when the channel carried the message and False when it
declined or hit an unexpected error (logged here). Two outcomes are raised
instead so callers can tell them apart: ``ChannelUnavailableError`` when no
provider is configured and ``DeliveryFailure`` when the provider reported a
failure.
"""

from abc import ABC, abstractmethod

import structlog

from notifier.channel import get_provider
from notifier.errors import ChannelUnavailableError, DeliveryFailure
from notifier.notification.notification import NotificationChannel
from notifier.templates import find_template

logger = structlog.get_logger(__name__)


class ChannelSender(ABC):
    channel: str

    def send(self, notification, preference) -> bool:
        try:
            return bool(self._deliver(notification, preference))
        except (ChannelUnavailableError, DeliveryFailure):
            raise
        except Exception as exc:
            logger.error(
                "Channel sender raised unexpectedly",
                channel=self.channel,
                notification_id=str(notification.id),
                error=str(exc),
                exc_info=True,
            )
            return False

    @abstractmethod
    def _deliver(self, notification, preference) -> bool: ...


class InAppSender(ChannelSender):
    """Pushes ``notification.new`` to the user's live sessions."""

    channel = NotificationChannel.IN_APP.value

    def __init__(self, transport):
        self.transport = transport

    def _deliver(self, notification, preference):
        reached = self.transport.send_to_user(
            str(notification.user_id),
            {"event": "notification.new", "data": notification.to_live_payload()},
        )
        if not reached:
            logger.info(
                "No live session for in-app notification",
                notification_id=str(notification.id),
                user_id=str(notification.user_id),
            )
        return reached > 0


class ProviderSender(ChannelSender):
    """Renders a template and hands it to the channel's provider adapter."""

    toggle: str

    def __init__(self, settings):
        self.settings = settings

    def _deliver(self, notification, preference):
        if not getattr(preference, self.toggle):
            logger.info(
                "Channel disabled by user preference",
                channel=self.channel,
                notification_id=str(notification.id),
            )
            return False

        provider = get_provider(self.channel, self.settings)
        if provider is None:
            raise ChannelUnavailableError(self.channel)

        template = find_template(notification.notification_type, self.channel, self.settings.default_locale)
        rendered = template.render(
            {
                **(notification.context or {}),
                "title": notification.title,
                "message": notification.message,
            }
        )
        result = self._dispatch(provider, notification, rendered)
        if result.get("status") != "sent":
            raise DeliveryFailure(self.channel, result.get("error") or "provider reported failure")

        logger.info(
            "Notification sent via provider",
            channel=self.channel,
            notification_id=str(notification.id),
            message_id=result.get("message_id"),
        )
        return True

    @abstractmethod
    def _dispatch(self, provider, notification, rendered) -> dict: ...


class EmailSender(ProviderSender):
    channel = NotificationChannel.EMAIL.value
    toggle = "email_enabled"

    def _dispatch(self, provider, notification, rendered):
        return provider.send(
            to=str(notification.user_id),
            subject=rendered["subject"],
            body=rendered["body"],
            metadata={"notification_id": str(notification.id), "type": notification.notification_type},
        )


class SMSSender(ProviderSender):
    channel = NotificationChannel.SMS.value
    toggle = "sms_enabled"

    def _dispatch(self, provider, notification, rendered):
        return provider.send(to=str(notification.user_id), body=rendered["body"])


class PushSender(ProviderSender):
    channel = NotificationChannel.PUSH.value
    toggle = "push_enabled"

    def _dispatch(self, provider, notification, rendered):
        return provider.send(
            user_id=str(notification.user_id),
            title=rendered["subject"],
            body=rendered["body"],
            data={"notification_id": str(notification.id), "type": notification.notification_type},
        )


class WebhookSender(ChannelSender):
    """Hands ``notification.created`` to the webhook subsystem. Fire-and-forget."""

    channel = NotificationChannel.WEBHOOK.value

    def __init__(self, settings):
        self.settings = settings

    def _deliver(self, notification, preference):
        provider = get_provider(self.channel, self.settings)
        if provider is None:
            raise ChannelUnavailableError(self.channel)

        provider.dispatch(
            "notification.created",
            {
                "notification_id": str(notification.id),
                "user_id": str(notification.user_id),
                "type": notification.notification_type,
                "title": notification.title,
                "priority": notification.priority,
            },
        )
        return True
