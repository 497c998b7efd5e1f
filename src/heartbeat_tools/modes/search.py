"""Search mode: one query across members, threads, documents and events.

Sections are independent and best-effort: a failing section reports its error
and the others still return.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..errors import HeartbeatError
from ..fanout import fetch_channel_threads, flatten_threads
from ..formatting import strip_html, summarize_user, time_ago
from ..models import Channel, Event, User
from ..params import SearchParams
from ..resolver import build_user_map
from . import ModeContext

logger = logging.getLogger(__name__)

ALL_RESOURCES = ("members", "threads", "documents", "events")


async def _members(ctx: ModeContext, q: str, params: SearchParams) -> list[dict[str, Any]]:
    users = await ctx.client.get_list("/users", User)
    return [
        summarize_user(u, params.detail)
        for u in users
        if q in u.name.lower() or q in u.email.lower()
    ]


async def _threads(ctx: ModeContext, q: str, params: SearchParams) -> list[dict[str, Any]]:
    client = ctx.client
    channels = await client.get_list("/channels", Channel)
    results = await fetch_channel_threads(
        client, channels, limit=ctx.heuristics.search_channel_limit
    )
    names = await build_user_map(client)
    now = ctx.now()
    return [
        {
            "thread_id": ct.thread.id,
            "channel": ct.channel_name,
            "author": names.get(ct.thread.user_id, ct.thread.user_id),
            "preview": strip_html(ct.thread.text),
            "age": time_ago(ct.thread.created_at, now),
        }
        for ct in flatten_threads(results)
        if q in strip_html(ct.thread.text, max_len=10_000).lower()
    ]


async def _documents(ctx: ModeContext, q: str, params: SearchParams) -> list[dict[str, Any]]:
    payload = await ctx.client.get("/documents")
    docs = payload.get("data", []) if isinstance(payload, dict) else payload or []
    return [
        {"id": d.get("id"), "title": d.get("title", "")}
        for d in docs
        if isinstance(d, dict) and q in str(d.get("title", "")).lower()
    ]


async def _events(ctx: ModeContext, q: str, params: SearchParams) -> list[dict[str, Any]]:
    events = await ctx.client.get_list("/events", Event)
    return [
        {"id": e.id, "name": e.name, "start_time": e.start_time}
        for e in events
        if q in e.name.lower() or q in e.description.lower()
    ]


SEARCHERS = {
    "members": _members,
    "threads": _threads,
    "documents": _documents,
    "events": _events,
}


async def handle_search(ctx: ModeContext, params: SearchParams) -> dict[str, Any]:
    q = params.query.lower()
    resources = list(dict.fromkeys(params.resources or ALL_RESOURCES))

    async def _section(name: str) -> dict[str, Any]:
        try:
            hits = await SEARCHERS[name](ctx, q, params)
        except HeartbeatError as e:
            logger.warning("Search section %s failed: %s", name, e)
            return {"error": e.message}
        return {"total": len(hits), "results": hits[: params.limit]}

    sections = await asyncio.gather(*(_section(name) for name in resources))
    return {"query": params.query, "results": dict(zip(resources, sections, strict=True))}
