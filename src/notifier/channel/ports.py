"""Provider ports: the one capability each channel integration exposes.

Adapters return a result dict with ``message_id``, ``status`` ("sent" or
"failed") and, on failure, ``error``. Transport details stay behind the port.
"""

from abc import ABC, abstractmethod


class EmailPort(ABC):
    @abstractmethod
    def send(self, to: str, subject: str, body: str, metadata: dict | None = None) -> dict: ...


class SMSPort(ABC):
    @abstractmethod
    def send(self, to: str, body: str) -> dict: ...


class PushPort(ABC):
    @abstractmethod
    def send(self, user_id: str, title: str, body: str, data: dict | None = None) -> dict: ...


class WebhookPort(ABC):
    """Hands events to the webhook subsystem, which owns signing and HTTP delivery."""

    @abstractmethod
    def dispatch(self, event: str, payload: dict) -> None: ...
