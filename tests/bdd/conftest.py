"""Shared BDD fixtures and step definitions for the notifier."""

import pytest
from notifier.notification.notification import Notification
from notifier.notification.payloads import NotificationPayload
from protean import current_domain
from pytest_bdd import given, parsers, then, when


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


def _channels(text):
    return [c.strip() for c in text.split(",") if c.strip()]


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a user "{user_id}"'), target_fixture="user_id")
def a_user(user_id):
    return user_id


@given(parsers.cfparse('"{user_id}" has a live session'))
def live_session(transport, user_id):
    transport.connect(user_id)


@given(parsers.cfparse("the time is {hh:d}:{mm:d} UTC"))
def the_time_is(clock, hh, mm):
    clock.set(hour=hh, minute=mm)


@given(parsers.cfparse('"{user_id}" has quiet hours from "{start}" to "{end}"'))
def user_quiet_hours(orchestrator, user_id, start, end):
    orchestrator.update_preferences(user_id, quiet_hours={"start": start, "end": end})


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(
    parsers.cfparse('a "{notification_type}" notification is sent to "{user_id}" via "{channels}"'),
    target_fixture="result",
)
def send_via(orchestrator, notification_type, user_id, channels):
    return orchestrator.send_notification(
        NotificationPayload(
            user_id=user_id,
            notification_type=notification_type,
            title="Heads up",
            message="Something happened",
            channels=_channels(channels),
        )
    )


@when(
    parsers.cfparse('a "{notification_type}" notification is sent to "{user_id}" with default channels'),
    target_fixture="result",
)
def send_default(orchestrator, notification_type, user_id):
    return orchestrator.send_notification(
        NotificationPayload(
            user_id=user_id,
            notification_type=notification_type,
            title="Heads up",
            message="Something happened",
        )
    )


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the delivered channels are "{channels}"'))
def delivered_channels_are(result, channels):
    assert result.delivered_channels == _channels(channels)


@then("no channel is delivered")
def nothing_delivered(result):
    assert result.delivered_channels == []


@then(parsers.cfparse('the failed channels are "{channels}"'))
def failed_channels_are(result, channels):
    assert result.failed_channels == _channels(channels)


@then(parsers.cfparse('the deferred channels are "{channels}"'))
def deferred_channels_are(result, channels):
    assert result.deferred_channels == _channels(channels)


@then("the notification is stored")
def notification_stored(result):
    assert current_domain.repository_for(Notification).get(result.notification_id) is not None


@then("a validation error is raised")
def validation_error_raised(error):
    assert error["exc"] is not None
