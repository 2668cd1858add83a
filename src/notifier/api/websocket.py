"""WebSocket endpoint feeding the live-session ConnectionManager.

Clients identify with the ``X-User-Id`` header or a ``user_id`` query
parameter. Inbound ``{"event": "notification.mark_read", "notification_id": ...}``
messages are forwarded to the manager's mark-read listeners.
"""

import asyncio

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

router = APIRouter(tags=["realtime"])


@router.websocket("/ws/notifications")
async def notifications_socket(websocket: WebSocket):
    user_id = websocket.headers.get("x-user-id") or websocket.query_params.get("user_id")
    if not user_id:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    manager = websocket.app.state.connections
    domain = websocket.app.state.domain

    session = await manager.register(user_id, websocket)
    writer = asyncio.create_task(manager.pump(session))
    with domain.domain_context():
        manager.connected(user_id)

    try:
        while True:
            data = await websocket.receive_json()
            if isinstance(data, dict) and data.get("event") == "notification.mark_read" and data.get("notification_id"):
                with domain.domain_context():
                    manager.mark_read_requested(user_id, data["notification_id"])
    except WebSocketDisconnect:
        pass
    finally:
        writer.cancel()
        manager.unregister(session)
        with domain.domain_context():
            manager.disconnected(user_id)
