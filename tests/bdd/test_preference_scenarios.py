"""BDD tests for preference management."""

from protean.exceptions import ValidationError
from pytest_bdd import parsers, scenarios, then, when

scenarios("features/preferences.feature")


@when(parsers.cfparse('the preferences of "{user_id}" are read'), target_fixture="preference")
def read_preferences(orchestrator, user_id):
    return orchestrator.get_preferences(user_id)


@when(parsers.cfparse('"{user_id}" routes "{notification_type}" notifications to "{channels}"'))
def route_type(orchestrator, error, user_id, notification_type, channels):
    override = {"channels": [c.strip() for c in channels.split(",") if c.strip()]}
    try:
        orchestrator.update_preferences(user_id, type_overrides={notification_type: override})
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse('"{user_id}" sets quiet hours from "{start}" to "{end}"'))
def set_quiet_hours(orchestrator, error, user_id, start, end):
    try:
        orchestrator.update_preferences(user_id, quiet_hours={"start": start, "end": end})
    except ValidationError as exc:
        error["exc"] = exc


@then("in-app, email and push are enabled")
def defaults_enabled(preference):
    assert preference.in_app_enabled is True
    assert preference.email_enabled is True
    assert preference.push_enabled is True


@then("SMS is disabled")
def sms_disabled(preference):
    assert preference.sms_enabled is False


@then("quiet hours are off")
def quiet_hours_off(preference):
    assert preference.quiet_hours_enabled is False


@when(parsers.cfparse('"{user_id}" enables "{notification_type}" notifications without channels'))
def enable_without_channels(orchestrator, error, user_id, notification_type):
    try:
        orchestrator.update_preferences(user_id, type_overrides={notification_type: {"enabled": True}})
    except ValidationError as exc:
        error["exc"] = exc
