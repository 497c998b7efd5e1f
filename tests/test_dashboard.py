"""Tests for dashboard synthesis."""

import pytest

from conftest import NOW, iso, lessons, user
from heartbeat_tools.config import Heuristics
from heartbeat_tools.modes import ModeContext
from heartbeat_tools.modes.dashboard import handle_dashboard
from heartbeat_tools.params import DashboardParams
from heartbeat_tools.router import dispatch


@pytest.fixture
def community(api):
    api.add(
        "GET",
        "/users",
        [
            # recent author with lessons: healthy
            user("u1", "Ada", completedLessons=lessons("L1", "L2")),
            # nothing yet: new
            user("u2", "Ben"),
            # lessons but last thread was 40 days ago: at risk
            user("u3", "Cy", completedLessons=lessons("L1")),
        ],
    )
    api.add(
        "GET",
        "/channels",
        [
            {"id": "A", "name": "alpha"},
            {"id": "B", "name": "beta"},
            {"id": "C", "name": "gamma"},
        ],
    )
    api.add(
        "GET",
        "/channels/A/threads",
        [{"id": "t1", "userID": "u1", "text": "<p>Launch week!</p>", "createdAt": iso(days=2)}],
    )
    api.add("GET", "/channels/B/threads", {"message": "internal"}, status=500)
    api.add(
        "GET",
        "/channels/C/threads",
        [{"id": "t3", "userID": "u3", "text": "old news", "createdAt": iso(days=40)}],
    )
    api.add(
        "GET",
        "/events",
        [
            {"id": "e3", "name": "Demo day", "startTime": iso(days=-3), "invitedUsers": ["a", "b"]},
            {"id": "e2", "name": "Retro", "startTime": iso(days=5)},
            {"id": "e1", "name": "Office hours", "startTime": iso(days=-1)},
        ],
    )
    api.add("GET", "/courses", [{"id": "k1", "name": "Onboarding", "lessons": ["L1", "L2"]}])


async def test_unreachable_channel_still_returns_full_payload(ctx, api, community):
    result = await dispatch(ctx, {"mode": "dashboard"})

    assert "error" not in result
    assert [a["thread_id"] for a in result["recent_activity"]] == ["t1", "t3"]
    assert result["channel_activity"] == [
        {"channel": "alpha", "channel_id": "A", "threads": 1, "unavailable": False},
        {"channel": "beta", "channel_id": "B", "threads": 0, "unavailable": True},
        {"channel": "gamma", "channel_id": "C", "threads": 1, "unavailable": False},
    ]


async def test_summary_and_attention(ctx, community):
    result = await handle_dashboard(ctx, DashboardParams())

    assert result["summary"] == {
        "total_members": 3,
        "new_members": 1,
        "at_risk_members": 1,
        "channels": 3,
        "upcoming_events": 2,
        "courses": 1,
        "recent_threads": 1,
    }
    attention = result["attention"]
    assert [a["type"] for a in attention] == ["recent_thread", "new_member", "at_risk"]
    assert attention[0] == {
        "type": "recent_thread",
        "channel": "alpha",
        "author": "Ada",
        "preview": "Launch week!",
        "age": "2d ago",
        "thread_id": "t1",
    }
    assert attention[1]["name"] == "Ben"
    assert attention[2]["name"] == "Cy"
    assert attention[2]["lessons_completed"] == 1


async def test_upcoming_events_soonest_first(ctx, community):
    result = await handle_dashboard(ctx, DashboardParams())

    assert [e["id"] for e in result["upcoming_events"]] == ["e1", "e3"]
    assert result["upcoming_events"][1]["invited"] == 2
    assert "attendance" in result["rsvp_note"]


async def test_notifications_are_best_effort(ctx, community):
    result = await handle_dashboard(ctx, DashboardParams())

    assert result["notifications"] == {"available": False, "count": 0, "recent": []}


async def test_notifications_when_available(ctx, api, community):
    api.add("GET", "/notifications", {"data": [{"id": f"n{i}"} for i in range(7)]})

    result = await handle_dashboard(ctx, DashboardParams())

    assert result["notifications"]["available"] is True
    assert result["notifications"]["count"] == 7
    assert len(result["notifications"]["recent"]) == 5


async def test_attention_list_is_capped(client, api):
    api.add("GET", "/users", [user(f"u{i}") for i in range(10)])
    api.add("GET", "/channels", [{"id": "A", "name": "alpha"}])
    api.add(
        "GET",
        "/channels/A/threads",
        [{"id": f"t{i}", "userID": "u0", "createdAt": iso(hours=i)} for i in range(12)],
    )
    api.add("GET", "/events", [])
    api.add("GET", "/courses", [])

    ctx = ModeContext(client=client, clock=lambda: NOW, heuristics=Heuristics())
    result = await handle_dashboard(ctx, DashboardParams())

    attention = result["attention"]
    assert len(attention) == 15
    assert [a["type"] for a in attention].count("recent_thread") == 12
    assert attention[0]["thread_id"] == "t0"
    assert len(result["recent_activity"]) == 10


async def test_users_failure_is_an_error_envelope(ctx, api, community):
    api.add("GET", "/users", {"message": "bad key"}, status=401)

    result = await dispatch(ctx, {"mode": "dashboard"})

    assert result == {"error": "API key invalid or expired. Check HEARTBEAT_API_KEY."}
