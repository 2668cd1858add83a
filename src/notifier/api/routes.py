"""FastAPI routes for the notifier.

Thin adapters that translate HTTP requests into orchestrator calls and
preference commands. Authentication happens upstream; the caller's user id
arrives in the ``X-User-Id`` header.
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from notifier.api.schemas import (
    BulkNotificationRequest,
    CleanupRequest,
    CountResponse,
    DeliveryResultResponse,
    JobResponse,
    NotificationListResponse,
    NotificationResponse,
    PreferencesResponse,
    ProcessScheduledRequest,
    ReadResponse,
    SchedulerStatusResponse,
    SendNotificationRequest,
    SetQuietHoursRequest,
    StatsResponse,
    TypeOverrideRequest,
    UpdatePreferencesRequest,
)
from notifier.notification.payloads import BulkNotificationPayload, NotificationPayload
from notifier.notification.results import ReadOutcome

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_orchestrator(request: Request):
    return request.app.state.orchestrator


def current_user(x_user_id: str = Header(...)) -> str:
    return x_user_id


def _iso(value):
    return value.isoformat() if value else None


def _notification_response(n) -> NotificationResponse:
    return NotificationResponse(
        id=str(n.id),
        user_id=str(n.user_id),
        notification_type=n.notification_type,
        title=n.title,
        message=n.message,
        priority=n.priority,
        channels=list(n.channels),
        delivered_channels=list(n.delivered_channels or []),
        is_read=n.is_read,
        read_at=_iso(n.read_at),
        metadata=dict(n.context or {}),
        category=n.category,
        tags=list(n.tags or []),
        scheduled_for=_iso(n.scheduled_for),
        delivered_at=_iso(n.delivered_at),
        deferred_from=str(n.deferred_from) if n.deferred_from else None,
        created_at=_iso(n.created_at),
    )


def _preferences_response(p) -> PreferencesResponse:
    return PreferencesResponse(
        user_id=str(p.user_id),
        in_app_enabled=p.in_app_enabled,
        email_enabled=p.email_enabled,
        sms_enabled=p.sms_enabled,
        push_enabled=p.push_enabled,
        type_overrides=dict(p.type_overrides or {}),
        quiet_hours_enabled=p.quiet_hours_enabled,
        quiet_hours_start=p.quiet_hours_start,
        quiet_hours_end=p.quiet_hours_end,
        quiet_hours_timezone=p.quiet_hours_timezone or "UTC",
        daily_digest_enabled=p.daily_digest_enabled,
        weekly_digest_enabled=p.weekly_digest_enabled,
        digest_time=p.digest_time,
    )


# ---------------------------------------------------------------------------
# Sending
# ---------------------------------------------------------------------------
@router.post("", status_code=201, response_model=DeliveryResultResponse)
async def send_notification(body: SendNotificationRequest, orchestrator=Depends(get_orchestrator)):
    """Create a notification and deliver it now, or schedule it."""
    result = orchestrator.send_notification(NotificationPayload(**body.model_dump(exclude_none=True)))
    return asdict(result)


@router.post("/bulk", status_code=201, response_model=list[DeliveryResultResponse])
def send_bulk_notification(request: Request, body: BulkNotificationRequest, orchestrator=Depends(get_orchestrator)):
    """Send inline. Plain ``def`` so the pause between batches runs in the threadpool."""
    with request.app.state.domain.domain_context():
        results = orchestrator.send_bulk_notification(BulkNotificationPayload(**body.model_dump(exclude_none=True)))
    return [asdict(r) for r in results]


@router.post("/bulk/enqueue", status_code=202, response_model=JobResponse)
async def enqueue_bulk_notification(body: BulkNotificationRequest, orchestrator=Depends(get_orchestrator)):
    """Hand a bulk send to the work queue instead of sending inline."""
    job_id = orchestrator.enqueue_bulk_notification(BulkNotificationPayload(**body.model_dump(exclude_none=True)))
    return JobResponse(job_id=job_id)


# ---------------------------------------------------------------------------
# Inbox
# ---------------------------------------------------------------------------
@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    is_read: bool | None = None,
    notification_type: str | None = None,
    category: str | None = None,
    priority: str | None = None,
    limit: int = 50,
    offset: int = 0,
    user_id: str = Depends(current_user),
    orchestrator=Depends(get_orchestrator),
):
    filters = {
        "is_read": is_read,
        "notification_type": notification_type,
        "category": category,
        "priority": priority,
    }
    notifications = orchestrator.get_user_notifications(user_id, filters, limit=limit, offset=offset)
    return NotificationListResponse(notifications=[_notification_response(n) for n in notifications])


@router.get("/stats", response_model=StatsResponse)
async def notification_stats(user_id: str = Depends(current_user), orchestrator=Depends(get_orchestrator)):
    return StatsResponse(**orchestrator.get_notification_stats(user_id))


@router.post("/read-all", response_model=CountResponse)
async def mark_all_read(user_id: str = Depends(current_user), orchestrator=Depends(get_orchestrator)):
    return CountResponse(count=orchestrator.mark_all_as_read(user_id))


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------
@router.get("/preferences", response_model=PreferencesResponse)
async def get_preferences(user_id: str = Depends(current_user), orchestrator=Depends(get_orchestrator)):
    """Return the caller's preferences, creating the defaults on first access."""
    return _preferences_response(orchestrator.get_preferences(user_id))


@router.put("/preferences", response_model=PreferencesResponse)
async def update_preferences(
    body: UpdatePreferencesRequest,
    user_id: str = Depends(current_user),
    orchestrator=Depends(get_orchestrator),
):
    changes = body.model_dump(exclude_none=True)
    return _preferences_response(orchestrator.update_preferences(user_id, **changes))


@router.put("/preferences/quiet-hours", response_model=PreferencesResponse)
async def set_quiet_hours(
    body: SetQuietHoursRequest,
    user_id: str = Depends(current_user),
    orchestrator=Depends(get_orchestrator),
):
    return _preferences_response(orchestrator.update_preferences(user_id, quiet_hours=body.model_dump()))


@router.delete("/preferences/quiet-hours", response_model=PreferencesResponse)
async def clear_quiet_hours(user_id: str = Depends(current_user), orchestrator=Depends(get_orchestrator)):
    return _preferences_response(orchestrator.update_preferences(user_id, quiet_hours=None))


@router.put("/preferences/types/{notification_type}", response_model=PreferencesResponse)
async def set_type_override(
    notification_type: str,
    body: TypeOverrideRequest,
    user_id: str = Depends(current_user),
    orchestrator=Depends(get_orchestrator),
):
    preference = orchestrator.update_preferences(user_id, type_overrides={notification_type: body.model_dump()})
    return _preferences_response(preference)


@router.delete("/preferences/types/{notification_type}", response_model=PreferencesResponse)
async def clear_type_override(
    notification_type: str,
    user_id: str = Depends(current_user),
    orchestrator=Depends(get_orchestrator),
):
    preference = orchestrator.update_preferences(user_id, type_overrides={notification_type: None})
    return _preferences_response(preference)


# ---------------------------------------------------------------------------
# Maintenance: manual triggers for the scheduled jobs
# ---------------------------------------------------------------------------
@router.post("/maintenance/process-scheduled", response_model=list[DeliveryResultResponse])
def process_scheduled(request: Request, body: ProcessScheduledRequest | None = None):
    """Run the due-delivery job now. Returns nothing while a run is already in flight."""
    as_of = body.as_of if body else None
    return [asdict(r) for r in request.app.state.scheduler.process_scheduled_now(as_of)]


@router.post("/maintenance/cleanup", response_model=CountResponse)
def cleanup(request: Request, body: CleanupRequest | None = None):
    days = body.older_than_days if body else None
    return CountResponse(count=request.app.state.scheduler.cleanup_now(days))


@router.get("/maintenance/scheduler", response_model=SchedulerStatusResponse)
async def scheduler_status(request: Request):
    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        return SchedulerStatusResponse(is_running=False, jobs={})
    return SchedulerStatusResponse(**scheduler.status())


# ---------------------------------------------------------------------------
# Single notification
# ---------------------------------------------------------------------------
@router.get("/{notification_id}", response_model=NotificationResponse)
async def get_notification(
    notification_id: str,
    user_id: str = Depends(current_user),
    orchestrator=Depends(get_orchestrator),
):
    return _notification_response(orchestrator.get_notification(notification_id, user_id))


@router.post("/{notification_id}/read", response_model=ReadResponse)
async def mark_read(
    notification_id: str,
    user_id: str = Depends(current_user),
    orchestrator=Depends(get_orchestrator),
):
    outcome = orchestrator.mark_as_read(notification_id, user_id)
    if outcome is ReadOutcome.NOT_FOUND:
        raise HTTPException(status_code=404, detail="Notification not found")
    if outcome is ReadOutcome.NOT_OWNER:
        raise HTTPException(status_code=403, detail="Notification belongs to another user")
    return ReadResponse(outcome=outcome.value)
