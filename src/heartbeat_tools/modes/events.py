"""Events mode: list, inspect, create events and read attendance."""

from __future__ import annotations

from typing import Any

from ..formatting import paginate, parse_timestamp, strip_html, timestamp_key
from ..models import AttendanceRecord, Event
from ..params import EventsParams
from ..resolver import build_user_map
from . import ModeContext

DEFAULT_DURATION = 60  # minutes


def _event_summary(e: Event) -> dict[str, Any]:
    return {
        "id": e.id,
        "name": e.name,
        "start_time": e.start_time,
        "duration": e.duration,
        "location": e.location,
        "description": strip_html(e.description),
        "invited_users": len(e.invited_users),
        "invited_groups": len(e.invited_groups),
    }


async def _list(ctx: ModeContext, params: EventsParams) -> dict[str, Any]:
    events = await ctx.client.get_list("/events", Event)
    now = ctx.now()

    if params.search:
        q = params.search.lower()
        events = [e for e in events if q in e.name.lower() or q in e.description.lower()]

    upcoming: list[Event] = []
    past: list[Event] = []
    for e in events:
        start = parse_timestamp(e.start_time)
        (upcoming if start is not None and start > now else past).append(e)
    upcoming.sort(key=lambda e: timestamp_key(e.start_time))
    past.sort(key=lambda e: timestamp_key(e.start_time), reverse=True)

    page = paginate(upcoming + past, params.offset, params.limit)
    return {
        **page["meta"],
        "upcoming": len(upcoming),
        "events": [_event_summary(e) for e in page["page"]],
    }


async def _get(ctx: ModeContext, params: EventsParams) -> dict[str, Any]:
    event = await ctx.client.get_one(f"/events/{params.event_id}", Event)
    return {**event.raw(), "id": event.id or params.event_id}


async def _attendance(ctx: ModeContext, params: EventsParams) -> dict[str, Any]:
    records = await ctx.client.get_list(
        f"/events/{params.event_id}/attendance", AttendanceRecord
    )
    names = await build_user_map(ctx.client)
    attendees = [
        {"user_id": r.attendee_id, "name": names.get(r.attendee_id or "", r.attendee_id)}
        for r in records
    ]
    return {"event_id": params.event_id, "count": len(attendees), "attendees": attendees}


async def _create(ctx: ModeContext, params: EventsParams) -> dict[str, Any]:
    body: dict[str, Any] = {
        "name": params.event_name,
        "startTime": params.start_time,
        "duration": params.duration or DEFAULT_DURATION,
    }
    if params.event_description:
        body["description"] = params.event_description
    if params.location:
        body["location"] = params.location
    if params.invited_users:
        body["invitedUsers"] = params.invited_users
    if params.invited_groups:
        body["invitedGroups"] = params.invited_groups

    result = await ctx.client.put("/events", body)
    return {"action": "event_created", "event": result if result is not None else body}


ACTIONS = {
    "list": _list,
    "get": _get,
    "attendance": _attendance,
    "create": _create,
}


async def handle_events(ctx: ModeContext, params: EventsParams) -> dict[str, Any]:
    return await ACTIONS[params.action](ctx, params)
