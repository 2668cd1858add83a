"""WebSocket session registry backing the in-app channel.

Each session owns an asyncio outbox drained by its own writer task.
``send_to_user`` may be called from any thread: it only schedules a
``put_nowait`` on the session's loop and returns, so delivery never waits on
a client.
"""

import asyncio
import threading
from dataclasses import dataclass, field
from uuid import uuid4

import structlog
from fastapi import WebSocket

from notifier.realtime.port import RealtimeTransport

logger = structlog.get_logger(__name__)


@dataclass(eq=False)
class Session:
    user_id: str
    websocket: WebSocket
    loop: asyncio.AbstractEventLoop
    outbox: asyncio.Queue = field(default_factory=asyncio.Queue)
    session_id: str = field(default_factory=lambda: uuid4().hex)


class ConnectionManager(RealtimeTransport):
    """Keeps live WebSocket sessions per user (several tabs or devices each)."""

    def __init__(self):
        super().__init__()
        self._sessions: dict[str, set[Session]] = {}
        self._lock = threading.Lock()

    async def register(self, user_id: str, websocket: WebSocket) -> Session:
        await websocket.accept()
        session = Session(user_id=str(user_id), websocket=websocket, loop=asyncio.get_running_loop())
        with self._lock:
            self._sessions.setdefault(session.user_id, set()).add(session)
        logger.info("Live session opened", user_id=session.user_id, session_id=session.session_id)
        return session

    def unregister(self, session: Session) -> None:
        with self._lock:
            sessions = self._sessions.get(session.user_id)
            if sessions is None:
                return
            sessions.discard(session)
            if not sessions:
                del self._sessions[session.user_id]
        logger.info("Live session closed", user_id=session.user_id, session_id=session.session_id)

    def send_to_user(self, user_id: str, message: dict) -> int:
        with self._lock:
            sessions = list(self._sessions.get(str(user_id), ()))

        reached = 0
        for session in sessions:
            try:
                session.loop.call_soon_threadsafe(session.outbox.put_nowait, message)
            except RuntimeError:
                # Event loop already closed
                self.unregister(session)
                continue
            reached += 1
        return reached

    async def pump(self, session: Session) -> None:
        """Write queued messages to the socket until it goes away."""
        while True:
            message = await session.outbox.get()
            try:
                await session.websocket.send_json(message)
            except Exception as exc:
                logger.warning("Dropping dead live session", user_id=session.user_id, error=str(exc))
                self.unregister(session)
                return

    def session_count(self, user_id: str) -> int:
        with self._lock:
            return len(self._sessions.get(str(user_id), ()))
