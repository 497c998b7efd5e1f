"""Manage mode: admin operations on users, groups, channels, invitations, webhooks.

Every action is one HTTP call described by a row in ACTIONS.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..formatting import summarize_user
from ..params import ManageParams
from ..resolver import resolve_channel, resolve_group, resolve_user
from . import ModeContext

Body = Callable[[ManageParams], dict[str, Any]]


def _updates(params: ManageParams) -> dict[str, Any]:
    body = dict(params.updates or {})
    if params.name:
        body.setdefault("name", params.name)
    return body


def _new_user(params: ManageParams) -> dict[str, Any]:
    return {**(params.updates or {}), "email": params.email, "name": params.name}


def _pending_user(params: ManageParams) -> dict[str, Any]:
    body: dict[str, Any] = {**(params.updates or {}), "email": params.email}
    if params.name:
        body["name"] = params.name
    return body


def _webhook(params: ManageParams) -> dict[str, Any]:
    return {"url": params.webhook_url, "action": params.webhook_action}


@dataclass(frozen=True)
class ManageAction:
    method: str
    path: str  # formatted with the resolved ids
    required: tuple[str, ...] = ()
    body: Body | None = None
    label: str = ""


ACTIONS: dict[str, ManageAction] = {
    "list_groups": ManageAction("GET", "/groups"),
    "create_group": ManageAction("PUT", "/groups", ("name",), _updates, "group_created"),
    "update_group": ManageAction(
        "POST", "/groups/{group_id}", ("group_id",), _updates, "group_updated"
    ),
    "delete_group": ManageAction(
        "DELETE", "/groups/{group_id}", ("group_id",), None, "group_deleted"
    ),
    "list_channels": ManageAction("GET", "/channels"),
    "create_channel": ManageAction("PUT", "/channels", ("name",), _updates, "channel_created"),
    "update_channel": ManageAction(
        "POST", "/channels/{channel_id}", ("channel_id",), _updates, "channel_updated"
    ),
    "delete_channel": ManageAction(
        "DELETE", "/channels/{channel_id}", ("channel_id",), None, "channel_deleted"
    ),
    "create_user": ManageAction("PUT", "/users", ("email", "name"), _new_user, "user_created"),
    "update_user": ManageAction(
        "POST", "/users/{user_id}", ("user_id", "updates"), _updates, "user_updated"
    ),
    "deactivate_user": ManageAction(
        "DELETE", "/users/{user_id}", ("user_id",), None, "user_deactivated"
    ),
    "reactivate_user": ManageAction(
        "POST", "/users/{user_id}/reactivate", ("user_id",), None, "user_reactivated"
    ),
    "create_pending_user": ManageAction(
        "PUT", "/pendingUsers", ("email",), _pending_user, "pending_user_created"
    ),
    "list_invitations": ManageAction("GET", "/invitations"),
    "delete_invitation": ManageAction(
        "DELETE", "/invitations/{invitation_id}", ("invitation_id",), None, "invitation_deleted"
    ),
    "list_webhooks": ManageAction("GET", "/webhooks"),
    "create_webhook": ManageAction(
        "PUT", "/webhooks", ("webhook_url", "webhook_action"), _webhook, "webhook_created"
    ),
}


async def _resolve_ids(ctx: ModeContext, params: ManageParams) -> dict[str, Any]:
    ids: dict[str, Any] = {"invitation_id": params.invitation_id}
    if params.user_id:
        user = await resolve_user(ctx.client, params.user_id)
        ids["user_id"] = user.id
        ids["user"] = summarize_user(user, params.detail)
    if params.group_id:
        ids["group_id"] = await resolve_group(ctx.client, params.group_id)
    if params.channel_id:
        ids["channel_id"] = await resolve_channel(ctx.client, params.channel_id)
    return ids


async def handle_manage(ctx: ModeContext, params: ManageParams) -> dict[str, Any]:
    spec = ACTIONS[params.action]
    client = ctx.client

    if spec.method == "GET":
        items = await client.get(spec.path)
        if isinstance(items, dict) and isinstance(items.get("data"), list):
            items = items["data"]
        return {"action": params.action, "count": len(items or []), "items": items or []}

    ids = await _resolve_ids(ctx, params)
    path = spec.path.format(**ids)
    body = spec.body(params) if spec.body else None
    result = await client.mutate(spec.method, path, body)

    response: dict[str, Any] = {"action": spec.label, "result": result}
    if "user" in ids:
        response["user"] = ids["user"]
    return response
