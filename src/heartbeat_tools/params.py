"""Inbound request parameters.

The tool accepts one flat bag of optional fields (``ToolRequest``). Each mode
handler receives its own narrow params model, built here by ``build_params``.
Missing required fields are reported at this boundary, before any network call.
"""

from __future__ import annotations

from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field

from .errors import ValidationError

Mode = Literal[
    "dashboard",
    "members",
    "threads",
    "post",
    "dm",
    "events",
    "content",
    "analytics",
    "search",
    "manage",
]

Metric = Literal[
    "engagement_scores",
    "channel_activity",
    "event_metrics",
    "course_progress",
    "member_segments",
    "growth",
    "top_contributors",
]

SearchResource = Literal["members", "threads", "documents", "events"]


class ToolRequest(BaseModel):
    """Every field the ``heartbeat`` tool accepts."""

    model_config = ConfigDict(populate_by_name=True)

    mode: Mode
    detail: Literal["summary", "full"] = "summary"
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)
    fields: list[str] | None = None

    search: str | None = None
    group: str | None = None
    role: str | None = None

    channel: str | None = None
    thread_id: str | None = None

    text: str | None = None
    parent_comment_id: str | None = None
    user_id: str | None = None

    to: str | None = None
    from_: str | None = Field(default=None, alias="from")
    chat_id: str | None = None

    action: str | None = None
    event_id: str | None = None
    event_name: str | None = None
    event_description: str | None = None
    start_time: str | None = None
    duration: int | None = None
    location: str | None = None
    invited_users: list[str] | None = None
    invited_groups: list[str] | None = None

    lesson_id: str | None = None
    document_id: str | None = None
    course_id: str | None = None
    title: str | None = None
    content_text: str | None = None

    query: str | None = None
    resources: list[SearchResource] | None = None

    email: str | None = None
    name: str | None = None
    group_id: str | None = None
    channel_id: str | None = None
    webhook_url: str | None = None
    webhook_action: str | None = None
    invitation_id: str | None = None
    updates: dict[str, Any] | None = None

    metric: Metric | None = None


class ModeParams(BaseModel):
    """Base for per-mode params: built from a ToolRequest, extra fields dropped."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    required: ClassVar[tuple[str, ...]] = ()
    default_action: ClassVar[str | None] = None
    actions: ClassVar[dict[str, tuple[str, ...]]] = {}

    def check(self) -> None:
        """Raise ValidationError for missing required or action-specific fields."""
        missing = [f for f in self.required if not getattr(self, f, None)]
        if missing:
            raise ValidationError.missing(*missing)

        if not self.actions:
            return
        action = getattr(self, "action", None)
        if action not in self.actions:
            valid = ", ".join(self.actions)
            raise ValidationError(
                f"Unknown {self.mode_name} action: {action}. Valid actions: {valid}"
            )
        missing = [f for f in self.actions[action] if not getattr(self, f, None)]
        if missing:
            raise ValidationError.missing(*missing)

    @property
    def mode_name(self) -> str:
        return type(self).__name__.removesuffix("Params").lower()


class DashboardParams(ModeParams):
    """Dashboard list sizes come from ``Heuristics``, not from request paging."""


class MembersParams(ModeParams):
    detail: Literal["summary", "full"] = "summary"
    limit: int = 20
    offset: int = 0
    fields: list[str] | None = None
    search: str | None = None
    group: str | None = None
    role: str | None = None


class ThreadsParams(ModeParams):
    channel: str | None = None
    thread_id: str | None = None
    limit: int = 20
    offset: int = 0

    def check(self) -> None:
        if not self.channel and not self.thread_id:
            raise ValidationError(
                "Required: 'channel' (name or ID) to list threads, "
                "or 'thread_id' to get a single thread with comments",
                fields=["channel", "thread_id"],
            )


class PostParams(ModeParams):
    text: str | None = None
    channel: str | None = None
    thread_id: str | None = None
    parent_comment_id: str | None = None
    user_id: str | None = None

    def check(self) -> None:
        if not self.text:
            raise ValidationError("Required: 'text' (HTML content)", fields=["text"])
        if not self.thread_id and not self.channel:
            raise ValidationError(
                "Required: 'channel' (name or ID) to create a thread, "
                "or 'thread_id' to comment on an existing thread",
                fields=["channel", "thread_id"],
            )


class DmParams(ModeParams):
    default_action: ClassVar[str | None] = "send"
    actions: ClassVar[dict[str, tuple[str, ...]]] = {
        "send": ("to", "text"),
        "read": ("chat_id",),
        "create_chat": ("to",),
    }

    action: str = "send"
    to: str | None = None
    text: str | None = None
    from_: str | None = Field(default=None, alias="from")
    chat_id: str | None = None


class EventsParams(ModeParams):
    default_action: ClassVar[str | None] = "list"
    actions: ClassVar[dict[str, tuple[str, ...]]] = {
        "list": (),
        "get": ("event_id",),
        "attendance": ("event_id",),
        "create": ("event_name", "start_time"),
    }

    action: str = "list"
    limit: int = 20
    offset: int = 0
    search: str | None = None
    event_id: str | None = None
    event_name: str | None = None
    event_description: str | None = None
    start_time: str | None = None
    duration: int | None = None
    location: str | None = None
    invited_users: list[str] | None = None
    invited_groups: list[str] | None = None


class ContentParams(ModeParams):
    default_action: ClassVar[str | None] = "courses"
    actions: ClassVar[dict[str, tuple[str, ...]]] = {
        "courses": (),
        "lesson": ("lesson_id",),
        "documents": (),
        "document": ("document_id",),
        "create_lesson": ("title", "content_text"),
        "update_lesson": ("lesson_id",),
        "videos": (),
    }

    action: str = "courses"
    limit: int | None = None
    lesson_id: str | None = None
    document_id: str | None = None
    course_id: str | None = None
    title: str | None = None
    content_text: str | None = None


class AnalyticsParams(ModeParams):
    metric: Metric | None = None
    limit: int = 20

    def check(self) -> None:
        if not self.metric:
            raise ValidationError(
                "Required: 'metric'. Valid metrics: engagement_scores, channel_activity, "
                "event_metrics, course_progress, member_segments, growth, top_contributors",
                fields=["metric"],
            )


class SearchParams(ModeParams):
    required: ClassVar[tuple[str, ...]] = ("query",)

    query: str | None = None
    resources: list[SearchResource] | None = None
    limit: int = 20
    detail: Literal["summary", "full"] = "summary"


class ManageParams(ModeParams):
    """Admin operations; per-action requirements live with the action table."""

    action: str | None = None
    email: str | None = None
    name: str | None = None
    user_id: str | None = None
    group_id: str | None = None
    channel_id: str | None = None
    invitation_id: str | None = None
    webhook_url: str | None = None
    webhook_action: str | None = None
    updates: dict[str, Any] | None = None
    detail: Literal["summary", "full"] = "summary"

    def check(self) -> None:
        # Imported lazily: the action table lives beside its handler.
        from .modes.manage import ACTIONS

        if not self.action:
            raise ValidationError(
                f"Required: 'action'. Valid actions: {', '.join(ACTIONS)}", fields=["action"]
            )
        if self.action not in ACTIONS:
            raise ValidationError(
                f"Unknown manage action: {self.action}. Valid actions: {', '.join(ACTIONS)}"
            )
        missing = [f for f in ACTIONS[self.action].required if not getattr(self, f, None)]
        if missing:
            raise ValidationError.missing(*missing)


PARAMS_BY_MODE: dict[str, type[ModeParams]] = {
    "dashboard": DashboardParams,
    "members": MembersParams,
    "threads": ThreadsParams,
    "post": PostParams,
    "dm": DmParams,
    "events": EventsParams,
    "content": ContentParams,
    "analytics": AnalyticsParams,
    "search": SearchParams,
    "manage": ManageParams,
}


def build_params(request: ToolRequest) -> ModeParams:
    """Narrow a ToolRequest to the params model of its mode and validate it."""
    model = PARAMS_BY_MODE[request.mode]
    data = request.model_dump(exclude_none=True, by_alias=True)
    if model.default_action and not data.get("action"):
        data["action"] = model.default_action
    params = model.model_validate(data)
    params.check()
    return params
