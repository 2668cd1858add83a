"""Repository queries that page through the store."""

from datetime import timedelta

import pytest
from notifier.notification.notification import Notification
from notifier.notification.payloads import NotificationPayload
from protean import current_domain


@pytest.fixture()
def small_pages(monkeypatch):
    monkeypatch.setattr("notifier.utils.paging.PAGE_SIZE", 2)


def _send(orchestrator, user_id="u1", scheduled_for=None):
    return orchestrator.send_notification(
        NotificationPayload(
            user_id=user_id,
            notification_type="order_shipped",
            title="Order Shipped",
            message="On its way",
            channels=["webhook"],
            scheduled_for=scheduled_for,
        )
    ).notification_id


def _repo():
    return current_domain.repository_for(Notification)


class TestFindDue:
    def test_only_due_undelivered_rows_oldest_first(self, orchestrator, clock):
        _send(orchestrator)
        later = _send(orchestrator, scheduled_for=clock() + timedelta(minutes=20))
        sooner = _send(orchestrator, scheduled_for=clock() + timedelta(minutes=10))
        _send(orchestrator, scheduled_for=clock() + timedelta(minutes=60))

        due = _repo().find_due(clock() + timedelta(minutes=30))

        assert [str(n.id) for n in due] == [sooner, later]

    def test_delivered_rows_drop_out(self, orchestrator, clock):
        _send(orchestrator, scheduled_for=clock() + timedelta(minutes=10))
        clock.advance(minutes=15)
        orchestrator.process_scheduled_notifications()

        assert _repo().find_due(clock() + timedelta(days=1)) == []

    def test_reads_every_page(self, orchestrator, clock, small_pages):
        ids = [
            _send(orchestrator, user_id=f"u{i}", scheduled_for=clock() + timedelta(minutes=i + 1)) for i in range(5)
        ]

        due = _repo().find_due(clock() + timedelta(hours=1))

        assert [str(n.id) for n in due] == ids


class TestPurge:
    def test_removes_old_rows_across_pages(self, orchestrator, clock, small_pages):
        for i in range(5):
            _send(orchestrator, user_id=f"u{i}")
        clock.advance(days=10)
        recent = _send(orchestrator)

        removed = _repo().purge_older_than(7, now=clock())

        assert removed == 5
        assert [str(n.id) for n in _repo()._dao.query.all().items] == [recent]


class TestDigestRecipients:
    def test_collects_every_page(self, orchestrator, small_pages):
        for i in range(5):
            orchestrator.update_preferences(f"daily-{i}", daily_digest_enabled=True)
        for i in range(3):
            orchestrator.update_preferences(f"weekly-{i}", weekly_digest_enabled=True)
        orchestrator.update_preferences("both", daily_digest_enabled=True, weekly_digest_enabled=True)
        orchestrator.get_preferences("no-digest")

        recipients = orchestrator.digest_recipients()

        assert recipients == sorted(
            ["both", *(f"daily-{i}" for i in range(5)), *(f"weekly-{i}" for i in range(3))]
        )
