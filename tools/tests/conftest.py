"""Shared fixtures: a fake Cal.com upstream and a recording sleep."""

from collections import defaultdict
from typing import Any

import httpx
import pytest

from backtick_tools.http_client import RetryPolicy
from backtick_tools.tools.calcom_tool import CalcomClient

BASE_URL = "https://test.cal.com"

EVENT_TYPES = [
    {
        "id": 508082,
        "title": "30 Min Meeting",
        "slug": "30min",
        "length": 30,
        "hidden": False,
        "position": 0,
        "userId": 123,
        "requiresConfirmation": False,
        "price": 0,
        "currency": "usd",
        "metadata": {},
    },
    {
        "id": 508083,
        "title": "Discovery Call",
        "slug": "discovery",
        "length": 90,
        "hidden": False,
        "position": 1,
        "userId": 123,
        "teamId": 7,
        "requiresConfirmation": True,
        "price": 2500,
        "currency": "eur",
    },
    {
        "id": 508084,
        "title": "Internal Sync",
        "slug": "internal",
        "length": 15,
        "hidden": True,
        "position": 2,
        "userId": 123,
    },
]


class FakeUpstream:
    """Scripted responses per path, served through httpx.MockTransport.

    Queued items are consumed in order; the last one repeats.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._queues: dict[str, list[Any]] = defaultdict(list)

    def reply(self, path: str, status_code: int = 200, json: Any = None, **kwargs: Any) -> None:
        self._queues[path].append(httpx.Response(status_code, json=json, **kwargs))

    def fail(self, path: str, error_cls: type[httpx.TransportError] = httpx.ConnectError) -> None:
        self._queues[path].append(error_cls)

    def reset(self) -> None:
        self.requests.clear()
        self._queues.clear()

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._queues.get(request.url.path)
        if not queue:
            return httpx.Response(404, json={"message": f"No route for {request.url.path}"})
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, type) and issubclass(item, httpx.TransportError):
            raise item("Connection failed", request=request)
        return item

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def event_types_payload() -> dict:
    return {"event_types": [dict(et) for et in EVENT_TYPES]}


@pytest.fixture
async def calcom_client(upstream: FakeUpstream, sleeper: SleepRecorder):
    client = CalcomClient(
        "test_token_123",
        BASE_URL,
        RetryPolicy(max_attempts=3, base_delay=0.1, max_delay=1.0),
        transport=upstream.transport,
        sleep=sleeper,
    )
    yield client
    await client.aclose()
