"""Outcome types returned by the delivery orchestrator."""

from dataclasses import asdict, dataclass, field
from enum import Enum


class ErrorKind(Enum):
    UNAVAILABLE = "unavailable"  # No provider configured; nothing attempted
    DELIVERY = "delivery"  # Provider failed, or the sender declined
    ERROR = "error"  # Unexpected exception
    MISSING_HANDLER = "missing_handler"  # No sender registered for the channel


@dataclass
class ChannelError:
    channel: str
    error: str
    kind: str = ErrorKind.ERROR.value


@dataclass
class DeliveryResult:
    """Per-attempt record of which channels succeeded, failed or were deferred."""

    notification_id: str | None
    user_id: str
    delivered_channels: list[str] = field(default_factory=list)
    failed_channels: list[str] = field(default_factory=list)
    errors: list[ChannelError] = field(default_factory=list)
    deferred_channels: list[str] = field(default_factory=list)
    deferred_notification_id: str | None = None
    suppressed: bool = False

    @property
    def success(self) -> bool:
        return bool(self.delivered_channels) and not self.failed_channels

    def record_failure(self, channel: str, error: str, kind: str) -> None:
        if channel not in self.failed_channels:
            self.failed_channels.append(channel)
        self.errors.append(ChannelError(channel=channel, error=error, kind=kind))

    def to_dict(self) -> dict:
        return asdict(self)


class ReadOutcome(Enum):
    """Result of a mark-as-read request. Only ``READ`` is truthy."""

    READ = "read"
    ALREADY_READ = "already_read"
    NOT_FOUND = "not_found"
    NOT_OWNER = "not_owner"

    def __bool__(self):
        return self is ReadOutcome.READ
