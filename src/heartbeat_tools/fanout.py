"""Fan-out aggregation over sub-resources.

One sub-fetch per parent runs concurrently. A failing sub-fetch yields an empty
result for that parent instead of failing the whole aggregation; children are
returned tagged with the parent they came from.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from .client import HeartbeatClient
from .models import AttendanceRecord, Channel, Event, Thread

logger = logging.getLogger(__name__)

P = TypeVar("P")
C = TypeVar("C")


@dataclass
class FanOutResult(Generic[P, C]):
    """Children fetched for one parent."""

    parent: P
    items: list[C]
    failed: bool = False


@dataclass
class ChannelThread:
    """A thread tagged with the channel it was fetched from."""

    thread: Thread
    channel_id: str
    channel_name: str


async def fan_out(
    parents: Sequence[P],
    fetch: Callable[[P], Awaitable[list[C]]],
    *,
    limit: int | None = None,
    label: Callable[[P], str] = str,
) -> list[FanOutResult[P, C]]:
    """Run ``fetch`` for each parent concurrently and collect per-parent results.

    Only the first ``limit`` parents are visited when ``limit`` is given.
    Result order follows ``parents``; callers sort explicitly.
    """
    selected = list(parents if limit is None else parents[:limit])

    async def _safe(parent: P) -> FanOutResult[P, C]:
        try:
            return FanOutResult(parent=parent, items=list(await fetch(parent)))
        except Exception as e:
            logger.warning("Sub-fetch failed for %s: %s", label(parent), e)
            return FanOutResult(parent=parent, items=[], failed=True)

    return list(await asyncio.gather(*(_safe(p) for p in selected)))


async def fetch_channel_threads(
    client: HeartbeatClient,
    channels: Sequence[Channel],
    limit: int | None = None,
) -> list[FanOutResult[Channel, Thread]]:
    """Threads per channel for the first ``limit`` channels."""

    async def _threads(channel: Channel) -> list[Thread]:
        return await client.get_list(f"/channels/{channel.id}/threads", Thread)

    return await fan_out(
        channels, _threads, limit=limit, label=lambda c: f"channel {c.name} ({c.id})"
    )


def flatten_threads(results: Sequence[FanOutResult[Channel, Thread]]) -> list[ChannelThread]:
    """One list of threads, each tagged with the channel it came from."""
    return [
        ChannelThread(thread=t, channel_id=r.parent.id, channel_name=r.parent.name)
        for r in results
        for t in r.items
    ]


async def fetch_event_attendance(
    client: HeartbeatClient,
    events: Sequence[Event],
) -> list[FanOutResult[Event, AttendanceRecord]]:
    """Attendance records per event; events without an ID get an empty result."""

    async def _attendance(event: Event) -> list[AttendanceRecord]:
        if not event.id:
            return []
        return await client.get_list(f"/events/{event.id}/attendance", AttendanceRecord)

    return await fan_out(events, _attendance, label=lambda e: f"event {e.name} ({e.id})")
