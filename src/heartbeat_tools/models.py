"""Partial upstream record models.

Only the fields the tool reads are declared; everything else is kept as extra
data and passed through untouched. Optional fields default instead of failing
validation, so a record missing e.g. ``groupIDs`` still decodes.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UpstreamRecord(BaseModel):
    """Base for upstream records: unknown fields are allowed and preserved."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def raw(self) -> dict[str, Any]:
        """The record as upstream sent it (aliases, extras included)."""
        return self.model_dump(by_alias=True, exclude_none=True)


class CompletedLesson(UpstreamRecord):
    lesson_id: str = Field(default="", alias="lessonID")
    timestamp: str | None = None


class User(UpstreamRecord):
    id: str
    email: str = ""
    name: str = ""
    role_id: str = Field(default="", alias="roleID")
    group_ids: list[str] = Field(default_factory=list, alias="groupIDs")
    status: str = ""
    bio: str = ""
    profile_picture: str = Field(default="", alias="profilePicture")
    linkedin: str = ""
    twitter: str = ""
    instagram: str = ""
    completed_lessons: list[CompletedLesson] = Field(
        default_factory=list, alias="completedLessons"
    )

    @field_validator(
        "email", "name", "role_id", "status", "bio", "profile_picture",
        "linkedin", "twitter", "instagram",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("group_ids", "completed_lessons", mode="before")
    @classmethod
    def _none_to_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def lesson_count(self) -> int:
        return len(self.completed_lessons)

    @property
    def completed_lesson_ids(self) -> set[str]:
        return {cl.lesson_id for cl in self.completed_lessons if cl.lesson_id}


class Channel(UpstreamRecord):
    id: str
    name: str = ""


class Group(UpstreamRecord):
    id: str
    name: str = ""


class Comment(UpstreamRecord):
    id: str = ""
    text: str = ""
    user_id: str = Field(default="", alias="userID")
    created_at: str | None = Field(default=None, alias="createdAt")
    replies: list[Comment] = Field(default_factory=list)

    @field_validator("replies", mode="before")
    @classmethod
    def _none_to_list(cls, v: Any) -> Any:
        return [] if v is None else v


class Thread(UpstreamRecord):
    id: str
    text: str = ""
    channel_id: str = Field(default="", alias="channelID")
    user_id: str = Field(default="", alias="userID")
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")
    comments: list[Comment] = Field(default_factory=list)

    @field_validator("text", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("comments", mode="before")
    @classmethod
    def _none_to_list(cls, v: Any) -> Any:
        return [] if v is None else v


class Event(UpstreamRecord):
    id: str = ""
    name: str = ""
    description: str = ""
    start_time: str | None = Field(default=None, alias="startTime")
    duration: int | float | None = None
    location: str = ""
    invited_users: list[str] = Field(default_factory=list, alias="invitedUsers")
    invited_groups: list[str] = Field(default_factory=list, alias="invitedGroups")

    @field_validator("description", "location", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("invited_users", "invited_groups", mode="before")
    @classmethod
    def _none_to_list(cls, v: Any) -> Any:
        return [] if v is None else v


class AttendanceRecord(UpstreamRecord):
    """One attendee of an event.

    Upstream has returned both ``{"userID": ...}`` records and bare user
    objects here, so either identifier is accepted.
    """

    user_id: str | None = Field(default=None, alias="userID")
    id: str | None = None

    @property
    def attendee_id(self) -> str | None:
        return self.user_id or self.id


class Course(UpstreamRecord):
    id: str = ""
    name: str = ""
    lessons: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("lessons", mode="before")
    @classmethod
    def _normalize_lessons(cls, v: Any) -> Any:
        if v is None:
            return []
        return [{"id": item} if isinstance(item, str) else item for item in v]

    @property
    def lesson_ids(self) -> list[str]:
        return [str(lesson["id"]) for lesson in self.lessons if lesson.get("id")]


Comment.model_rebuild()
