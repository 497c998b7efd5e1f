"""DM mode: send or read direct messages."""

from __future__ import annotations

from typing import Any

from ..params import DmParams
from ..resolver import resolve_user
from . import ModeContext


async def handle_dm(ctx: ModeContext, params: DmParams) -> dict[str, Any]:
    client = ctx.client

    if params.action == "read":
        messages = await client.get(f"/directMessages/{params.chat_id}")
        return {"chat_id": params.chat_id, "messages": messages or []}

    user = await resolve_user(client, params.to)

    if params.action == "create_chat":
        chat = await client.put("/directChats", {"userID": user.id})
        return {"action": "chat_created", "chat": chat, "user": user.name}

    body: dict[str, Any] = {"text": params.text, "to": user.id}
    if params.from_:
        body["from"] = params.from_
    await client.put("/directMessages", body)
    return {"action": "dm_sent", "to": user.name, "to_id": user.id, "text": params.text}
