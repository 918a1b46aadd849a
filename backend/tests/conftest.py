"""Shared fixtures for backend tests."""

import asyncio
import sys
import os

import pytest

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from dispatch.client import DispatchResponse  # noqa: E402


class FakeDispatcher:
    """Scripted stand-in for HttpDispatcher that records what it is asked to send."""

    def __init__(self, status: int = 200, delay: float = 0.0):
        self.status = status
        self.delay = delay
        self.responder = None  # optional callable(request) -> DispatchResponse, may raise
        self.sent = []
        self.events = []  # ("start" | "end", sequence number of the call)
        self.in_flight = 0
        self.max_in_flight = 0

    async def send(self, request):
        call_number = len(self.sent)
        self.sent.append(request)
        self.events.append(("start", call_number))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.responder is not None:
                return self.responder(request)
            return DispatchResponse(status=self.status, headers={}, data={"ok": True}, elapsed_ms=1)
        finally:
            self.in_flight -= 1
            self.events.append(("end", call_number))


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


@pytest.fixture
def storage(tmp_path):
    from storage.repository import Storage
    return Storage(f"sqlite:///{tmp_path / 'apirequester-test.db'}")


@pytest.fixture
def client(storage, dispatcher):
    from fastapi.testclient import TestClient
    from api.main import create_app
    from utils.dependencies import get_storage, get_dispatcher

    app = create_app()
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    with TestClient(app) as test_client:
        yield test_client
