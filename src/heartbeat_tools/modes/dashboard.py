"""Dashboard mode: community pulse and an attention list for the operator."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any

from ..errors import HeartbeatError
from ..fanout import ChannelThread, FanOutResult, fetch_channel_threads, flatten_threads
from ..formatting import parse_timestamp, strip_html, time_ago, timestamp_key
from ..models import Channel, Course, Event, Thread, User
from ..params import DashboardParams
from . import ModeContext

logger = logging.getLogger(__name__)

RSVP_NOTE = "RSVP counts need a per-event attendance fetch (events mode, action=attendance)."


def _created(item: ChannelThread) -> datetime | None:
    return parse_timestamp(item.thread.created_at)


def _newest_first(items: list[ChannelThread]) -> list[ChannelThread]:
    return sorted(items, key=lambda ct: timestamp_key(ct.thread.created_at), reverse=True)


def _thread_entry(item: ChannelThread, names: dict[str, str], now: datetime) -> dict[str, Any]:
    t = item.thread
    return {
        "channel": item.channel_name,
        "author": names.get(t.user_id, t.user_id),
        "preview": strip_html(t.text),
        "age": time_ago(t.created_at, now),
        "thread_id": t.id,
    }


async def handle_dashboard(ctx: ModeContext, params: DashboardParams) -> dict[str, Any]:
    client = ctx.client
    h = ctx.heuristics
    now = ctx.now()

    async def _channels_and_threads() -> tuple[list[Channel], list[FanOutResult[Channel, Thread]]]:
        channels = await client.get_list("/channels", Channel)
        results = await fetch_channel_threads(client, channels, limit=h.dashboard_channel_limit)
        return channels, results

    async def _notifications() -> Any:
        try:
            return await client.get("/notifications")
        except HeartbeatError as e:
            logger.warning("Notifications unavailable for dashboard: %s", e)
            return None

    users, events, courses, notifications, (channels, thread_results) = await asyncio.gather(
        client.get_list("/users", User),
        client.get_list("/events", Event),
        client.get_list("/courses", Course),
        _notifications(),
        _channels_and_threads(),
    )

    threads = flatten_threads(thread_results)
    names = {u.id: u.name for u in users}

    recent_cutoff = now - timedelta(days=h.recent_thread_days)
    active_cutoff = now - timedelta(days=h.at_risk_days)

    recent = _newest_first(
        [ct for ct in threads if (c := _created(ct)) is not None and c >= recent_cutoff]
    )
    ever_authors = {ct.thread.user_id for ct in threads if ct.thread.user_id}
    recently_active = {
        ct.thread.user_id
        for ct in threads
        if (c := _created(ct)) is not None and c >= active_cutoff
    }

    # Join dates are not exposed upstream; zero completed lessons stands in for "new".
    new_members = [u for u in users if u.lesson_count == 0]
    at_risk = [
        u
        for u in users
        if (u.lesson_count > 0 or u.id in ever_authors) and u.id not in recently_active
    ]

    attention: list[dict[str, Any]] = [
        {"type": "recent_thread", **_thread_entry(ct, names, now)} for ct in recent
    ]
    attention += [
        {"type": "new_member", "user_id": u.id, "name": u.name, "email": u.email}
        for u in new_members[: h.attention_new_members]
    ]
    attention += [
        {
            "type": "at_risk",
            "user_id": u.id,
            "name": u.name,
            "email": u.email,
            "lessons_completed": u.lesson_count,
        }
        for u in at_risk[: h.attention_at_risk]
    ]

    upcoming = sorted(
        (
            (start, e)
            for e in events
            if (start := parse_timestamp(e.start_time)) is not None and start > now
        ),
        key=lambda pair: pair[0],
    )

    return {
        "summary": {
            "total_members": len(users),
            "new_members": len(new_members),
            "at_risk_members": len(at_risk),
            "channels": len(channels),
            "upcoming_events": len(upcoming),
            "courses": len(courses),
            "recent_threads": len(recent),
        },
        "attention": attention[: h.attention_limit],
        "upcoming_events": [
            {
                "id": e.id,
                "name": e.name,
                "start_time": e.start_time,
                "duration": e.duration,
                "location": e.location,
                "invited": len(e.invited_users),
            }
            for _, e in upcoming[: h.upcoming_events]
        ],
        "rsvp_note": RSVP_NOTE,
        "recent_activity": [
            _thread_entry(ct, names, now) for ct in _newest_first(threads)[: h.recent_activity]
        ],
        "channel_activity": [
            {
                "channel": r.parent.name,
                "channel_id": r.parent.id,
                "threads": len(r.items),
                "unavailable": r.failed,
            }
            for r in thread_results
        ],
        "notifications": _summarize_notifications(notifications),
    }


def _summarize_notifications(payload: Any) -> dict[str, Any]:
    if payload is None:
        return {"available": False, "count": 0, "recent": []}
    items = payload.get("data", []) if isinstance(payload, dict) else payload
    if not isinstance(items, list):
        items = []
    return {"available": True, "count": len(items), "recent": items[:5]}
