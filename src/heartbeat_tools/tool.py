"""Heartbeat MCP tool registration."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Annotated, Any, Literal

import httpx
from fastmcp import FastMCP
from pydantic import Field

from .client import HeartbeatClient
from .config import API_KEY_ENV_VAR, HeartbeatConfig, Heuristics
from .modes import ModeContext
from .params import Metric, Mode, SearchResource, ToolRequest
from .router import dispatch

if TYPE_CHECKING:
    from .credentials import CredentialManager

logger = logging.getLogger(__name__)

TOOL_NAME = "heartbeat"

TOOL_DESCRIPTION = """Manage a Heartbeat.chat community. 10 modes:
- dashboard: community pulse - new and at-risk members, recent threads, upcoming events
- members: list/search/filter users by name, email, group, role
- threads: get threads from a channel, or a single thread with comments
- post: create threads, comments, nested replies (rich HTML text)
- dm: send or read direct messages
- events: list/create events, get attendance data
- content: courses, lessons, documents, videos
- analytics: engagement scores, channel rankings, member segments, course progress
- search: cross-resource search across members, threads, documents, events
- manage: admin ops - user/group/channel/invitation/webhook CRUD"""


def register_tools(
    mcp: FastMCP,
    credentials: CredentialManager | None = None,
    *,
    config: HeartbeatConfig | None = None,
    heuristics: Heuristics | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[str]:
    """Register the ``heartbeat`` tool with the MCP server.

    One client is kept per API key so its response cache lives as long as the
    process does.
    """
    clients: dict[str, HeartbeatClient] = {}

    def _get_api_key() -> str | None:
        if credentials is not None:
            api_key = credentials.get("heartbeat")
            if api_key is not None and not isinstance(api_key, str):
                raise TypeError(
                    f"Expected string from credentials.get('heartbeat'), "
                    f"got {type(api_key).__name__}"
                )
            if api_key:
                return api_key
        return os.getenv(API_KEY_ENV_VAR)

    def _get_client() -> HeartbeatClient | dict[str, str]:
        api_key = _get_api_key()
        if not api_key:
            return {
                "error": "Heartbeat credentials not configured",
                "help": (
                    f"Set {API_KEY_ENV_VAR} environment variable or "
                    "configure via credential store"
                ),
            }
        if api_key not in clients:
            logger.debug("Creating Heartbeat client (%d cached)", len(clients))
            clients[api_key] = HeartbeatClient(
                api_key, config or HeartbeatConfig.from_env(), transport=transport
            )
        return clients[api_key]

    @mcp.tool(name=TOOL_NAME, description=TOOL_DESCRIPTION)
    async def heartbeat(
        mode: Annotated[Mode, Field(description="Operation mode")],
        detail: Annotated[
            Literal["summary", "full"] | None, Field(description="Response detail level")
        ] = None,
        limit: Annotated[int | None, Field(description="Max results to return (1-100)")] = None,
        offset: Annotated[int | None, Field(description="Pagination offset")] = None,
        search: Annotated[
            str | None, Field(description="Search by name or email (members, events)")
        ] = None,
        group: Annotated[str | None, Field(description="Filter by group name or ID")] = None,
        role: Annotated[str | None, Field(description="Filter by role ID")] = None,
        fields: Annotated[
            list[str] | None, Field(description="Specific fields to return (members)")
        ] = None,
        channel: Annotated[str | None, Field(description="Channel name or ID")] = None,
        thread_id: Annotated[
            str | None, Field(description="Thread ID (get single thread, or comment on it)")
        ] = None,
        text: Annotated[
            str | None,
            Field(
                description=(
                    "Rich text content (HTML: <p>, <b>, <h1>-<h3>, <ul>/<li>, <a href>, "
                    "<br>, @UUID mentions)"
                )
            ),
        ] = None,
        parent_comment_id: Annotated[
            str | None, Field(description="Parent comment ID for nested reply (post)")
        ] = None,
        user_id: Annotated[
            str | None,
            Field(description="User ID to post as (post), or target user ID/email/name (manage)"),
        ] = None,
        to: Annotated[str | None, Field(description="Recipient: user ID, name, or email")] = None,
        from_: Annotated[str | None, Field(description="Sender user ID (dm, admin only)")] = None,
        chat_id: Annotated[str | None, Field(description="Chat ID for reading messages")] = None,
        action: Annotated[
            str | None,
            Field(
                description=(
                    "Sub-action: list/get/attendance/create (events), send/read/create_chat (dm), "
                    "courses/lesson/documents/document/create_lesson/update_lesson/videos "
                    "(content), or manage actions"
                )
            ),
        ] = None,
        event_id: Annotated[str | None, Field(description="Event ID")] = None,
        event_name: Annotated[str | None, Field(description="Event name (create)")] = None,
        event_description: Annotated[
            str | None, Field(description="Event description (create)")
        ] = None,
        start_time: Annotated[
            str | None, Field(description="ISO 8601 start time (event create)")
        ] = None,
        duration: Annotated[
            int | None, Field(description="Duration in minutes (event create)")
        ] = None,
        location: Annotated[str | None, Field(description="Location or URL (event create)")] = None,
        invited_users: Annotated[
            list[str] | None, Field(description="Emails to invite (event create)")
        ] = None,
        invited_groups: Annotated[
            list[str] | None, Field(description="Group IDs to invite (event create)")
        ] = None,
        lesson_id: Annotated[str | None, Field(description="Lesson ID")] = None,
        document_id: Annotated[
            str | None, Field(description="Document ID (or pagination cursor for documents)")
        ] = None,
        course_id: Annotated[str | None, Field(description="Course ID (create_lesson)")] = None,
        title: Annotated[str | None, Field(description="Title for lesson/document")] = None,
        content_text: Annotated[str | None, Field(description="Content body (HTML)")] = None,
        query: Annotated[str | None, Field(description="Search query (search mode)")] = None,
        resources: Annotated[
            list[SearchResource] | None,
            Field(description="Resources to search (default: all)"),
        ] = None,
        email: Annotated[str | None, Field(description="User email (manage)")] = None,
        name: Annotated[str | None, Field(description="Name (manage)")] = None,
        group_id: Annotated[str | None, Field(description="Group name or ID (manage)")] = None,
        channel_id: Annotated[str | None, Field(description="Channel name or ID (manage)")] = None,
        webhook_url: Annotated[str | None, Field(description="Webhook URL (manage)")] = None,
        webhook_action: Annotated[
            str | None, Field(description="Webhook event name (manage)")
        ] = None,
        invitation_id: Annotated[str | None, Field(description="Invitation ID (manage)")] = None,
        updates: Annotated[
            dict[str, Any] | None, Field(description="Key-value pairs for updates (manage)")
        ] = None,
        metric: Annotated[Metric | None, Field(description="Analytics metric to compute")] = None,
    ) -> dict:
        client = _get_client()
        if isinstance(client, dict):
            return client

        args = dict(locals())
        args["from"] = args.pop("from_")
        raw = {k: v for k, v in args.items() if k in _REQUEST_FIELDS}
        ctx = ModeContext(client=client, heuristics=heuristics or Heuristics())
        return await dispatch(ctx, raw)

    return [TOOL_NAME]


_REQUEST_FIELDS = frozenset(
    field.alias or name for name, field in ToolRequest.model_fields.items()
)
