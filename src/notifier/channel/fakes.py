"""In-memory provider adapters that record what they were asked to send."""

from uuid import uuid4

from notifier.channel.ports import EmailPort, PushPort, SMSPort, WebhookPort


class _RecordingAdapter:
    prefix = "msg"
    default_failure = "Delivery failed"

    def __init__(self):
        self.sent: list[dict] = []
        self.should_succeed = True
        self.failure_reason = self.default_failure

    def configure(self, should_succeed: bool = True, failure_reason: str | None = None):
        """Make subsequent sends succeed or fail with ``failure_reason``."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason or self.default_failure

    def _record(self, **fields) -> dict:
        if not self.should_succeed:
            return {"message_id": None, "status": "failed", "error": self.failure_reason}

        message_id = f"{self.prefix}-{uuid4().hex[:12]}"
        self.sent.append({"message_id": message_id, **fields})
        return {"message_id": message_id, "status": "sent"}

    def reset(self):
        self.sent.clear()
        self.should_succeed = True
        self.failure_reason = self.default_failure


class FakeEmailAdapter(_RecordingAdapter, EmailPort):
    prefix = "email"
    default_failure = "Email delivery failed"

    def send(self, to, subject, body, metadata=None):
        return self._record(to=to, subject=subject, body=body, metadata=metadata or {})


class FakeSMSAdapter(_RecordingAdapter, SMSPort):
    prefix = "sms"
    default_failure = "SMS delivery failed"

    def send(self, to, body):
        return self._record(to=to, body=body)


class FakePushAdapter(_RecordingAdapter, PushPort):
    prefix = "push"
    default_failure = "Push delivery failed"

    def send(self, user_id, title, body, data=None):
        return self._record(user_id=user_id, title=title, body=body, data=data or {})


class FakeWebhookAdapter(_RecordingAdapter, WebhookPort):
    """Collects dispatched events. A failing configuration raises, as a broken hand-off would."""

    prefix = "hook"
    default_failure = "Webhook dispatch failed"

    def dispatch(self, event, payload):
        if not self.should_succeed:
            raise RuntimeError(self.failure_reason)
        self._record(event=event, payload=payload)
