"""Post mode: create threads, comments and nested replies."""

from __future__ import annotations

from typing import Any

from ..params import PostParams
from ..resolver import resolve_channel
from . import ModeContext


async def handle_post(ctx: ModeContext, params: PostParams) -> dict[str, Any]:
    client = ctx.client

    if params.thread_id:
        body: dict[str, Any] = {"text": params.text, "threadID": params.thread_id}
        if params.parent_comment_id:
            body["parentCommentID"] = params.parent_comment_id
        if params.user_id:
            body["userID"] = params.user_id
        result = await client.put("/comments", body) or {}
        return {
            "action": "reply_created" if params.parent_comment_id else "comment_created",
            "comment_id": result.get("id"),
            "thread_id": params.thread_id,
            "text": params.text,
        }

    channel_id = await resolve_channel(client, params.channel)
    body = {"text": params.text, "channelID": channel_id}
    if params.user_id:
        body["userID"] = params.user_id
    result = await client.put("/threads", body) or {}
    return {
        "action": "thread_created",
        "thread_id": result.get("id"),
        "channel": params.channel,
        "channel_id": channel_id,
        "text": params.text,
    }
