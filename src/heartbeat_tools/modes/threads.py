"""Threads mode: a channel's threads, or one thread with its comment tree."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from ..formatting import paginate, strip_html, time_ago, timestamp_key
from ..models import Comment, Thread
from ..params import ThreadsParams
from ..resolver import build_user_map, resolve_channel
from . import ModeContext


def _comment_tree(
    comments: list[Comment], names: dict[str, str], now: datetime
) -> list[dict[str, Any]]:
    return [
        {
            "id": c.id,
            "author": names.get(c.user_id, c.user_id),
            "text": strip_html(c.text, max_len=500),
            "age": time_ago(c.created_at, now),
            "replies": _comment_tree(c.replies, names, now),
        }
        for c in comments
    ]


def _count_comments(comments: list[Comment]) -> int:
    return sum(1 + _count_comments(c.replies) for c in comments)


async def handle_threads(ctx: ModeContext, params: ThreadsParams) -> dict[str, Any]:
    client = ctx.client
    now = ctx.now()

    if params.thread_id:
        thread = await client.get_one(f"/threads/{params.thread_id}", Thread)
        names = await build_user_map(client)
        return {
            "thread_id": thread.id,
            "channel_id": thread.channel_id,
            "author": names.get(thread.user_id, thread.user_id),
            "text": thread.text,
            "age": time_ago(thread.created_at, now),
            "comment_count": _count_comments(thread.comments),
            "comments": _comment_tree(thread.comments, names, now),
        }

    channel_id = await resolve_channel(client, params.channel)
    threads = await client.get_list(f"/channels/{channel_id}/threads", Thread)
    names = await build_user_map(client)

    threads = sorted(threads, key=lambda t: timestamp_key(t.created_at), reverse=True)
    page = paginate(threads, params.offset, params.limit)
    return {
        "channel": params.channel,
        "channel_id": channel_id,
        **page["meta"],
        "threads": [
            {
                "thread_id": t.id,
                "author": names.get(t.user_id, t.user_id),
                "preview": strip_html(t.text),
                "age": time_ago(t.created_at, now),
                "comment_count": _count_comments(t.comments),
            }
            for t in page["page"]
        ],
    }
