"""Real-time transport port: live pushes plus connection and read signals.

Listeners are registered explicitly on the transport instance. A listener
that raises is logged and skipped so one subscriber cannot break another.
"""

from abc import ABC, abstractmethod

import structlog

logger = structlog.get_logger(__name__)


class RealtimeTransport(ABC):
    def __init__(self):
        self._listeners: dict[str, list] = {"connect": [], "disconnect": [], "mark_read": []}

    @abstractmethod
    def send_to_user(self, user_id: str, message: dict) -> int:
        """Queue ``message`` for every live session of ``user_id``; return how many were reached.

        Must not block on the client.
        """

    def on_connect(self, listener) -> None:
        """``listener(user_id)`` runs when a session for the user opens."""
        self._listeners["connect"].append(listener)

    def on_disconnect(self, listener) -> None:
        self._listeners["disconnect"].append(listener)

    def on_mark_read(self, listener) -> None:
        """``listener(user_id, notification_id)`` runs when a client asks to mark a notification read."""
        self._listeners["mark_read"].append(listener)

    def _emit(self, signal: str, *args) -> None:
        for listener in list(self._listeners[signal]):
            try:
                listener(*args)
            except Exception as exc:
                logger.error(
                    "Real-time listener failed",
                    signal=signal,
                    listener=getattr(listener, "__qualname__", repr(listener)),
                    error=str(exc),
                    exc_info=True,
                )

    def connected(self, user_id: str) -> None:
        self._emit("connect", str(user_id))

    def disconnected(self, user_id: str) -> None:
        self._emit("disconnect", str(user_id))

    def mark_read_requested(self, user_id: str, notification_id: str) -> None:
        self._emit("mark_read", str(user_id), str(notification_id))
