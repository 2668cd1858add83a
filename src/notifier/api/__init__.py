from notifier.api.routes import router
from notifier.api.websocket import router as websocket_router

__all__ = ["router", "websocket_router"]
