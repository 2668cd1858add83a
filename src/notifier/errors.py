"""Error taxonomy for the delivery engine.

Malformed requests surface as ``protean.exceptions.ValidationError`` and
missing rows as ``protean.exceptions.ObjectNotFoundError``; the classes
below cover the cases Protean has no vocabulary for.
"""


class NotifierError(Exception):
    """Base class for delivery engine errors."""


class AuthorizationError(NotifierError):
    """The caller does not own the notification it is acting on."""

    def __init__(self, notification_id, user_id):
        self.notification_id = notification_id
        self.user_id = user_id
        super().__init__(f"User {user_id} does not own notification {notification_id}")


class ChannelUnavailableError(NotifierError):
    """A channel has no provider configured, so nothing was attempted."""

    def __init__(self, channel):
        self.channel = channel
        super().__init__(f"Channel '{channel}' is not implemented or has no provider configured")


class DeliveryFailure(NotifierError):
    """A provider rejected or failed to carry a message on one channel."""

    def __init__(self, channel, reason):
        self.channel = channel
        self.reason = reason
        super().__init__(f"{channel} delivery failed: {reason}")


class QueueFailure(NotifierError):
    """Work could not be handed to the durable queue."""
