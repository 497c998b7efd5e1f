"""Analytics mode: computed engagement metrics.

Each metric fetches exactly what it needs; nothing is shared between metrics.
All rankings are sorted first and limited after.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any

from ..client import HeartbeatClient
from ..fanout import (
    ChannelThread,
    fetch_channel_threads,
    fetch_event_attendance,
    flatten_threads,
)
from ..formatting import parse_timestamp, percent, round_half_up
from ..models import Channel, Course, Event, User
from ..params import AnalyticsParams
from . import ModeContext

THREAD_WEIGHT = 3
LESSON_WEIGHT = 2
EVENT_WEIGHT = 5


def engagement_score(threads: int, lessons: int, events: int) -> int:
    return THREAD_WEIGHT * threads + LESSON_WEIGHT * lessons + EVENT_WEIGHT * events


async def _all_threads(client: HeartbeatClient) -> list[ChannelThread]:
    channels = await client.get_list("/channels", Channel)
    return flatten_threads(await fetch_channel_threads(client, channels))


async def _attendance_by_user(client: HeartbeatClient) -> Counter[str]:
    """Number of distinct events each user attended."""
    events = await client.get_list("/events", Event)
    counts: Counter[str] = Counter()
    for result in await fetch_event_attendance(client, events):
        counts.update({a.attendee_id for a in result.items if a.attendee_id})
    return counts


async def engagement_scores(ctx: ModeContext, params: AnalyticsParams) -> dict[str, Any]:
    client = ctx.client
    users, threads, attended = await asyncio.gather(
        client.get_list("/users", User),
        _all_threads(client),
        _attendance_by_user(client),
    )
    authored = Counter(ct.thread.user_id for ct in threads)

    scored = [
        {
            "id": u.id,
            "name": u.name,
            "email": u.email,
            "threads": authored[u.id],
            "lessons_completed": u.lesson_count,
            "events_attended": attended[u.id],
            "score": engagement_score(authored[u.id], u.lesson_count, attended[u.id]),
        }
        for u in users
    ]
    scored.sort(key=lambda s: s["score"], reverse=True)
    return {
        "metric": "engagement_scores",
        "formula": (
            f"{THREAD_WEIGHT}*threads + {LESSON_WEIGHT}*lessons_completed "
            f"+ {EVENT_WEIGHT}*events_attended"
        ),
        "total_users": len(users),
        "top": scored[: params.limit],
    }


async def channel_activity(ctx: ModeContext, params: AnalyticsParams) -> dict[str, Any]:
    client = ctx.client
    channels = await client.get_list("/channels", Channel)
    results = await fetch_channel_threads(client, channels)

    stats = []
    for r in results:
        authors = Counter(t.user_id for t in r.items if t.user_id)
        stats.append(
            {
                "channel": r.parent.name,
                "channel_id": r.parent.id,
                "thread_count": len(r.items),
                "unavailable": r.failed,
                "top_contributors": [
                    {"user_id": user_id, "threads": count}
                    for user_id, count in authors.most_common(ctx.heuristics.top_channel_authors)
                ],
            }
        )
    stats.sort(key=lambda s: s["thread_count"], reverse=True)
    return {"metric": "channel_activity", "channels": stats}


async def event_metrics(ctx: ModeContext, params: AnalyticsParams) -> dict[str, Any]:
    client = ctx.client
    events = await client.get_list("/events", Event)
    results = await fetch_event_attendance(client, events)

    per_user: Counter[str] = Counter()
    rows = []
    for r in results:
        per_user.update({a.attendee_id for a in r.items if a.attendee_id})
        invited = len(r.parent.invited_users)
        rows.append(
            {
                "id": r.parent.id,
                "name": r.parent.name,
                "startTime": r.parent.start_time,
                "attendees": len(r.items),
                "invited": invited,
                "attendance_rate": percent(len(r.items), invited),
                "unavailable": r.failed,
            }
        )

    repeat = sum(1 for count in per_user.values() if count > 1)
    return {
        "metric": "event_metrics",
        "events": rows,
        "unique_attendees": len(per_user),
        "repeat_attendees": repeat,
        "repeat_attendee_pct": percent(repeat, len(per_user)),
    }


async def course_progress(ctx: ModeContext, params: AnalyticsParams) -> dict[str, Any]:
    client = ctx.client
    courses, users = await asyncio.gather(
        client.get_list("/courses", Course),
        client.get_list("/users", User),
    )

    rows = []
    for course in courses:
        lesson_ids = set(course.lesson_ids)
        total = len(lesson_ids)
        enrolled = 0
        completion_sum = 0.0
        stalled = []
        if total:
            for u in users:
                completed = len(u.completed_lesson_ids & lesson_ids)
                if completed == 0:
                    continue
                enrolled += 1
                completion_sum += completed / total * 100
                if completed < total:
                    stalled.append(
                        {
                            "user_id": u.id,
                            "name": u.name,
                            "completed": completed,
                            "remaining": total - completed,
                        }
                    )
        rows.append(
            {
                "id": course.id,
                "name": course.name,
                "total_lessons": total,
                "enrolled": enrolled,
                "avg_completion_pct": round_half_up(completion_sum / enrolled) if enrolled else 0,
                "stalled_count": len(stalled),
                "stalled_members": stalled[: params.limit],
            }
        )
    return {"metric": "course_progress", "courses": rows}


def segment_for(user: User, threads_ever: int, threads_recent: int) -> str:
    """Place a user in exactly one engagement segment.

    Checked in order: at_risk, active, new, churned.
    """
    if user.lesson_count > 0 and threads_ever == 0:
        return "at_risk"
    if user.lesson_count > 0 or threads_recent > 0:
        return "active"
    if user.group_ids:
        return "new"
    return "churned"


async def member_segments(ctx: ModeContext, params: AnalyticsParams) -> dict[str, Any]:
    client = ctx.client
    users, threads = await asyncio.gather(
        client.get_list("/users", User),
        _all_threads(client),
    )
    cutoff = ctx.now() - timedelta(days=ctx.heuristics.at_risk_days)

    ever: Counter[str] = Counter()
    recent: Counter[str] = Counter()
    for ct in threads:
        ever[ct.thread.user_id] += 1
        created = parse_timestamp(ct.thread.created_at)
        if created is not None and created >= cutoff:
            recent[ct.thread.user_id] += 1

    segments: dict[str, list[dict[str, Any]]] = {
        "new": [],
        "active": [],
        "at_risk": [],
        "churned": [],
    }
    for u in users:
        segments[segment_for(u, ever[u.id], recent[u.id])].append(
            {
                "id": u.id,
                "name": u.name,
                "email": u.email,
                "lessons": u.lesson_count,
                "threads": ever[u.id],
            }
        )

    return {
        "metric": "member_segments",
        "total": len(users),
        **{name: len(members) for name, members in segments.items()},
        "segments": {name: members[: params.limit] for name, members in segments.items()},
    }


async def growth(ctx: ModeContext, params: AnalyticsParams) -> dict[str, Any]:
    users = await ctx.client.get_list("/users", User)
    distribution = Counter(len(u.group_ids) for u in users)
    return {
        "metric": "growth",
        "total_members": len(users),
        "group_distribution": [
            {"groups": groups, "members": count} for groups, count in sorted(distribution.items())
        ],
        "members_without_lessons": sum(1 for u in users if u.lesson_count == 0),
    }


async def top_contributors(ctx: ModeContext, params: AnalyticsParams) -> dict[str, Any]:
    client = ctx.client
    threads, users = await asyncio.gather(
        _all_threads(client),
        client.get_list("/users", User),
    )
    names = {u.id: u.name for u in users}
    counts = Counter(ct.thread.user_id for ct in threads if ct.thread.user_id)
    return {
        "metric": "top_contributors",
        "leaderboard": [
            {"user_id": user_id, "name": names.get(user_id, user_id), "threads": count}
            for user_id, count in counts.most_common()[: params.limit]
        ],
    }


METRICS: dict[str, Callable[[ModeContext, AnalyticsParams], Awaitable[dict[str, Any]]]] = {
    "engagement_scores": engagement_scores,
    "channel_activity": channel_activity,
    "event_metrics": event_metrics,
    "course_progress": course_progress,
    "member_segments": member_segments,
    "growth": growth,
    "top_contributors": top_contributors,
}


async def handle_analytics(ctx: ModeContext, params: AnalyticsParams) -> dict[str, Any]:
    return await METRICS[params.metric](ctx, params)
