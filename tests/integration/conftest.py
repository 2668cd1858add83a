import pytest
from fastapi.testclient import TestClient


@pytest.fixture()
def live_transport():
    from notifier.realtime.fake import FakeRealtimeTransport

    return FakeRealtimeTransport()


@pytest.fixture()
def work_queue():
    from notifier.notification.queue import InMemoryWorkQueue

    return InMemoryWorkQueue()


@pytest.fixture()
def client(settings, live_transport, work_queue):
    """API client backed by fake live sessions and an in-memory queue."""
    from app import create_app

    app = create_app(settings=settings, transport=live_transport, queue=work_queue, start_scheduler=False)
    with TestClient(app) as client:
        yield client
