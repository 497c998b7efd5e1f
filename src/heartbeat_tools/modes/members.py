"""Members mode: list, search and filter users."""

from __future__ import annotations

from typing import Any

from ..formatting import paginate, pick_fields, summarize_user
from ..models import User
from ..params import MembersParams
from ..resolver import resolve_group
from . import ModeContext


async def handle_members(ctx: ModeContext, params: MembersParams) -> dict[str, Any]:
    users = await ctx.client.get_list("/users", User)

    if params.search:
        q = params.search.lower()
        users = [u for u in users if q in u.name.lower() or q in u.email.lower()]

    if params.group:
        group_id = await resolve_group(ctx.client, params.group)
        users = [u for u in users if group_id in u.group_ids]

    if params.role:
        users = [u for u in users if u.role_id == params.role]

    page = paginate(users, params.offset, params.limit)
    return {
        **page["meta"],
        "members": [
            pick_fields(summarize_user(u, params.detail), params.fields) for u in page["page"]
        ],
    }
