"""Tests for concurrent per-parent sub-fetches."""

import asyncio

import pytest

from heartbeat_tools.errors import UpstreamError
from heartbeat_tools.fanout import (
    fan_out,
    fetch_channel_threads,
    fetch_event_attendance,
    flatten_threads,
)
from heartbeat_tools.models import Channel, Event


class TestFanOut:
    async def test_one_failure_does_not_fail_the_rest(self):
        async def fetch(parent: str) -> list[str]:
            if parent == "b":
                raise UpstreamError("API error 500: boom", status_code=500)
            return [f"{parent}1", f"{parent}2"]

        results = await fan_out(["a", "b", "c"], fetch)

        assert [r.parent for r in results] == ["a", "b", "c"]
        assert [r.items for r in results] == [["a1", "a2"], [], ["c1", "c2"]]
        assert [r.failed for r in results] == [False, True, False]

    async def test_limit_caps_parents_visited(self):
        seen = []

        async def fetch(parent: int) -> list[int]:
            seen.append(parent)
            return [parent]

        results = await fan_out(list(range(15)), fetch, limit=10)

        assert len(results) == 10
        assert sorted(seen) == list(range(10))

    async def test_sub_fetches_run_concurrently(self):
        started = asyncio.Event()
        waiting = 0

        async def fetch(parent: str) -> list[str]:
            nonlocal waiting
            waiting += 1
            if waiting == 2:
                started.set()
            await asyncio.wait_for(started.wait(), timeout=1)
            return [parent]

        results = await fan_out(["a", "b"], fetch)

        assert [r.items for r in results] == [["a"], ["b"]]

    async def test_failure_is_logged_with_parent(self, caplog):
        async def fetch(parent: str) -> list[str]:
            raise RuntimeError("socket closed")

        with caplog.at_level("WARNING", logger="heartbeat_tools.fanout"):
            await fan_out(["x"], fetch, label=lambda p: f"parent {p}")

        assert "parent x" in caplog.text
        assert "socket closed" in caplog.text


class TestChannelThreads:
    @pytest.fixture
    def channels(self):
        return [
            Channel(id="A", name="alpha"),
            Channel(id="B", name="beta"),
            Channel(id="C", name="gamma"),
        ]

    async def test_unreachable_channel_contributes_nothing(self, client, api, channels):
        api.add("GET", "/channels/A/threads", [{"id": "t1", "userID": "u1"}])
        api.add("GET", "/channels/B/threads", {"message": "down"}, status=500)
        api.add(
            "GET",
            "/channels/C/threads",
            {"data": [{"id": "t2", "userID": "u2"}, {"id": "t3", "userID": "u1"}]},
        )

        results = await fetch_channel_threads(client, channels)
        flat = flatten_threads(results)

        assert [r.failed for r in results] == [False, True, False]
        assert [(ct.thread.id, ct.channel_name) for ct in flat] == [
            ("t1", "alpha"),
            ("t2", "gamma"),
            ("t3", "gamma"),
        ]
        assert {ct.channel_id for ct in flat} == {"A", "C"}

    async def test_limit(self, client, api, channels):
        for c in channels:
            api.add("GET", f"/channels/{c.id}/threads", [])

        results = await fetch_channel_threads(client, channels, limit=2)

        assert [r.parent.id for r in results] == ["A", "B"]
        assert api.count("GET", "/channels/C/threads") == 0


async def test_event_without_id_is_not_fetched(client, api):
    api.add("GET", "/events/e1/attendance", [{"userID": "u1"}, {"id": "u2"}])

    results = await fetch_event_attendance(client, [Event(id="e1"), Event(name="Draft")])

    assert [a.attendee_id for a in results[0].items] == ["u1", "u2"]
    assert results[1].items == []
    assert results[1].failed is False
    assert len(api.calls) == 1
