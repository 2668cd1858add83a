"""In-memory real-time transport that records pushes for test assertions."""

from collections import Counter

from notifier.realtime.port import RealtimeTransport


class FakeRealtimeTransport(RealtimeTransport):
    def __init__(self):
        super().__init__()
        self.sessions: Counter = Counter()
        self.messages: list[tuple[str, dict]] = []

    def connect(self, user_id: str) -> None:
        """Open a simulated session and fire connect listeners."""
        self.sessions[str(user_id)] += 1
        self.connected(user_id)

    def disconnect(self, user_id: str) -> None:
        if self.sessions[str(user_id)] > 0:
            self.sessions[str(user_id)] -= 1
        self.disconnected(user_id)

    def send_to_user(self, user_id, message):
        reached = self.sessions[str(user_id)]
        if reached:
            self.messages.append((str(user_id), message))
        return reached

    def messages_for(self, user_id, event=None) -> list[dict]:
        return [
            message
            for recipient, message in self.messages
            if recipient == str(user_id) and (event is None or message.get("event") == event)
        ]

    def reset(self) -> None:
        self.sessions.clear()
        self.messages.clear()
