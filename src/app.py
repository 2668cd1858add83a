"""Notifier FastAPI application.

Serves the notification API and the live WebSocket endpoint, and runs the
notification scheduler for the lifetime of the process. Each HTTP request
is wrapped in the notifier domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from notifier.api import router, websocket_router
from notifier.config import Settings
from notifier.domain import notifier
from notifier.errors import AuthorizationError, QueueFailure
from notifier.notification.delivery import DeliveryOrchestrator
from notifier.notification.scheduler import NotificationScheduler
from notifier.realtime.connections import ConnectionManager
from notifier.utils.logging import add_context, clear_context

# PROTEAN_ENV selects the config overlay from domain.toml
notifier.init()


def create_app(settings: Settings | None = None, transport=None, queue=None, start_scheduler: bool = True) -> FastAPI:
    settings = settings or Settings.from_env()
    transport = transport or ConnectionManager()
    orchestrator = DeliveryOrchestrator(transport, settings=settings, queue=queue)
    scheduler = NotificationScheduler(orchestrator, notifier, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if start_scheduler:
            scheduler.start()
        try:
            yield
        finally:
            scheduler.stop()

    app = FastAPI(
        title="Notifier API",
        description="Multi-channel notification delivery",
        lifespan=lifespan,
    )
    app.state.domain = notifier
    app.state.settings = settings
    app.state.connections = transport
    app.state.orchestrator = orchestrator
    app.state.scheduler = scheduler

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the notifier domain context for each request."""
        with notifier.domain_context():
            add_context(path=request.url.path, user_id=request.headers.get("x-user-id"))
            try:
                return await call_next(request)
            finally:
                clear_context()

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"errors": exc.messages})

    @app.exception_handler(ObjectNotFoundError)
    async def not_found(request: Request, exc: ObjectNotFoundError):
        return JSONResponse(status_code=404, content={"detail": "Not found"})

    @app.exception_handler(AuthorizationError)
    async def forbidden(request: Request, exc: AuthorizationError):
        return JSONResponse(status_code=403, content={"detail": str(exc)})

    @app.exception_handler(QueueFailure)
    async def queue_unavailable(request: Request, exc: QueueFailure):
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    app.include_router(router)
    app.include_router(websocket_router)

    @app.get("/health")
    async def health():
        return JSONResponse(
            content={
                "status": "ok",
                "domain": notifier.name,
                "scheduler": scheduler.is_running,
            }
        )

    return app


app = create_app()
