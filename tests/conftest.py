"""Shared fixtures: a fake Heartbeat API behind httpx.MockTransport, fake time."""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import pytest
from fastmcp import FastMCP

from heartbeat_tools.client import HeartbeatClient
from heartbeat_tools.config import HeartbeatConfig
from heartbeat_tools.modes import ModeContext

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=UTC)

API_PREFIX = "/v0"


def iso(days: float = 0, hours: float = 0, minutes: float = 0) -> str:
    """Timestamp relative to NOW; positive values are in the past."""
    moment = NOW - timedelta(days=days, hours=hours, minutes=minutes)
    return moment.isoformat().replace("+00:00", "Z")


def user(uid: str, name: str = "", email: str = "", **extra: Any) -> dict[str, Any]:
    record = {"id": uid, "name": name or uid, "email": email or f"{uid}@example.com"}
    record.update(extra)
    return record


def lessons(*lesson_ids: str) -> list[dict[str, str]]:
    return [{"lessonID": lid, "timestamp": iso(days=1)} for lid in lesson_ids]


@dataclass
class RecordedCall:
    method: str
    path: str
    params: dict[str, str]
    body: Any
    headers: httpx.Headers


# async routes are awaited by MockTransport
Route = Callable[[httpx.Request], httpx.Response | Awaitable[httpx.Response]]


@dataclass
class FakeHeartbeatAPI:
    """Routes (method, path) to canned responses and records every request."""

    routes: dict[tuple[str, str], Route] = field(default_factory=dict)
    calls: list[RecordedCall] = field(default_factory=list)

    def add(
        self,
        method: str,
        path: str,
        payload: Any = None,
        *,
        status: int = 200,
        handler: Route | None = None,
    ) -> None:
        if handler is None:

            def handler(request: httpx.Request) -> httpx.Response:
                if payload is None:
                    return httpx.Response(status)
                return httpx.Response(status, json=payload)

        self.routes[(method.upper(), path)] = handler

    def handle(self, request: httpx.Request) -> httpx.Response | Awaitable[httpx.Response]:
        path = request.url.path.removeprefix(API_PREFIX)
        body = json.loads(request.content) if request.content else None
        self.calls.append(
            RecordedCall(
                method=request.method,
                path=path,
                params=dict(request.url.params),
                body=body,
                headers=request.headers,
            )
        )
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"message": f"No route for {request.method} {path}"})
        return route(request)

    def count(self, method: str, path: str) -> int:
        return sum(1 for c in self.calls if c.method == method and c.path == path)

    def last(self, method: str, path: str) -> RecordedCall:
        matching = [c for c in self.calls if c.method == method and c.path == path]
        assert matching, f"no {method} {path} call recorded"
        return matching[-1]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        self.clock.advance(delay)


@pytest.fixture
def mcp():
    """Create a fresh FastMCP instance for testing."""
    return FastMCP("test-server")


@pytest.fixture
def api() -> FakeHeartbeatAPI:
    return FakeHeartbeatAPI()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeper(clock: FakeClock) -> RecordingSleep:
    return RecordingSleep(clock)


@pytest.fixture
def config() -> HeartbeatConfig:
    return HeartbeatConfig()


@pytest.fixture
async def client(api, config, clock, sleeper):
    async with HeartbeatClient(
        "test-key", config, transport=api.transport, clock=clock, sleep=sleeper
    ) as c:
        yield c


@pytest.fixture
def ctx(client) -> ModeContext:
    return ModeContext(client=client, clock=lambda: NOW)
