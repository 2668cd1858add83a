import os
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the config overlay before the domain is imported."""
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)


@pytest.fixture(scope="session")
def notifier_bed():
    from notifier.domain import notifier

    bed = DomainFixture(notifier)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(notifier_bed):
    with notifier_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def run_around_tests(_ctx):
    """Reset stores and provider singletons after every test."""
    from notifier.channel import reset_providers

    reset_providers()
    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()
    current_domain.event_store.store._data_reset()
    reset_providers()


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def set(self, **kwargs):
        self.now = self.now.replace(**kwargs)

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture()
def clock():
    return FrozenClock(datetime(2024, 3, 1, 12, 0, tzinfo=UTC))


@pytest.fixture()
def settings():
    from notifier.config import Settings

    return Settings(bulk_batch_pause=0)


@pytest.fixture()
def transport():
    from notifier.realtime.fake import FakeRealtimeTransport

    return FakeRealtimeTransport()


@pytest.fixture()
def orchestrator(transport, settings, clock):
    from notifier.notification.delivery import DeliveryOrchestrator
    from notifier.notification.queue import InMemoryWorkQueue

    return DeliveryOrchestrator(transport, settings=settings, queue=InMemoryWorkQueue(), clock=clock)


@pytest.fixture()
def email_provider():
    from notifier.channel import get_provider

    return get_provider("email")


@pytest.fixture()
def push_provider():
    from notifier.channel import set_provider
    from notifier.channel.fakes import FakePushAdapter

    adapter = FakePushAdapter()
    set_provider("push", adapter)
    return adapter


@pytest.fixture()
def sms_provider():
    from notifier.channel import set_provider
    from notifier.channel.fakes import FakeSMSAdapter

    adapter = FakeSMSAdapter()
    set_provider("sms", adapter)
    return adapter
