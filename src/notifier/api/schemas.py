"""Pydantic request/response models for the notifier API.

API schemas are kept apart from the domain payloads and commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request Models
# ---------------------------------------------------------------------------
class SendNotificationRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    notification_type: str = Field(..., examples=["order_shipped"])
    title: str
    message: str
    priority: str = "normal"
    channels: list[str] | None = None
    metadata: dict = Field(default_factory=dict)
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    scheduled_for: datetime | None = None


class BulkNotificationRequest(BaseModel):
    user_ids: list[str] = Field(..., min_length=1)
    notification_type: str
    title: str
    message: str
    priority: str = "normal"
    channels: list[str] | None = None
    metadata: dict = Field(default_factory=dict)
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    scheduled_for: datetime | None = None


class UpdatePreferencesRequest(BaseModel):
    in_app_enabled: bool | None = None
    email_enabled: bool | None = None
    sms_enabled: bool | None = None
    push_enabled: bool | None = None
    daily_digest_enabled: bool | None = None
    weekly_digest_enabled: bool | None = None
    digest_time: str | None = Field(None, pattern=r"^\d{2}:\d{2}$", examples=["09:00"])


class SetQuietHoursRequest(BaseModel):
    start: str = Field(..., pattern=r"^\d{2}:\d{2}$", examples=["22:00"])
    end: str = Field(..., pattern=r"^\d{2}:\d{2}$", examples=["08:00"])
    timezone: str = Field("UTC", examples=["Europe/Berlin"])


class TypeOverrideRequest(BaseModel):
    enabled: bool = True
    channels: list[str] = Field(default_factory=list)
    frequency: str | None = None


class ProcessScheduledRequest(BaseModel):
    as_of: datetime | None = None


class CleanupRequest(BaseModel):
    older_than_days: int | None = Field(None, ge=1)


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------
class ChannelErrorResponse(BaseModel):
    channel: str
    error: str
    kind: str


class DeliveryResultResponse(BaseModel):
    notification_id: str | None = None
    user_id: str
    delivered_channels: list[str] = []
    failed_channels: list[str] = []
    errors: list[ChannelErrorResponse] = []
    deferred_channels: list[str] = []
    deferred_notification_id: str | None = None
    suppressed: bool = False


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    notification_type: str
    title: str
    message: str
    priority: str
    channels: list[str]
    delivered_channels: list[str]
    is_read: bool
    read_at: str | None = None
    metadata: dict = {}
    category: str | None = None
    tags: list[str] = []
    scheduled_for: str | None = None
    delivered_at: str | None = None
    deferred_from: str | None = None
    created_at: str | None = None


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]


class StatsResponse(BaseModel):
    total: int
    unread: int
    by_type: dict[str, int]
    by_priority: dict[str, int]


class ReadResponse(BaseModel):
    outcome: str


class CountResponse(BaseModel):
    count: int


class JobResponse(BaseModel):
    job_id: str


class PreferencesResponse(BaseModel):
    user_id: str
    in_app_enabled: bool
    email_enabled: bool
    sms_enabled: bool
    push_enabled: bool
    type_overrides: dict = {}
    quiet_hours_enabled: bool
    quiet_hours_start: str | None = None
    quiet_hours_end: str | None = None
    quiet_hours_timezone: str = "UTC"
    daily_digest_enabled: bool
    weekly_digest_enabled: bool
    digest_time: str


class SchedulerStatusResponse(BaseModel):
    is_running: bool
    jobs: dict[str, dict]
