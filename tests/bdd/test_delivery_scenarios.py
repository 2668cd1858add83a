"""BDD tests for multi-channel delivery."""

from notifier.notification.notification import Notification
from protean import current_domain
from pytest_bdd import given, parsers, scenarios, then

scenarios("features/delivery.feature")


@given(parsers.cfparse('"{user_id}" has switched off "{notification_type}" notifications'))
def switched_off(orchestrator, user_id, notification_type):
    orchestrator.update_preferences(user_id, type_overrides={notification_type: {"enabled": False}})


@then(parsers.cfparse('"{user_id}" receives a live "{event}" message'))
def receives_live_message(transport, user_id, event, result):
    messages = transport.messages_for(user_id, event)
    assert [m["data"]["id"] for m in messages] == [result.notification_id]


@then(parsers.cfparse('the "{channel}" failure is of kind "{kind}"'))
def failure_kind(result, channel, kind):
    assert {e.channel: e.kind for e in result.errors}[channel] == kind


@then(parsers.cfparse('nothing is stored for "{user_id}"'))
def nothing_stored(result, user_id):
    assert result.suppressed is True
    stored = current_domain.repository_for(Notification).find_for_user(user_id)
    assert stored == []
