"""Pure display helpers: previews, relative times, user projections."""

from __future__ import annotations

import math
import re
from datetime import UTC, datetime
from typing import Any, Literal

from .models import User

Detail = Literal["summary", "full"]

# Tags only; bounded so a stray "<" cannot make the scan quadratic.
_TAG_RE = re.compile(r"<[^<>]{0,2000}>")


def strip_html(html: str | None, max_len: int = 150) -> str:
    """Strip HTML tags and truncate to ``max_len`` characters."""
    text = _TAG_RE.sub("", html or "").strip()
    return text[:max_len] + "..." if len(text) > max_len else text


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an upstream ISO-8601 timestamp into an aware UTC datetime."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def utcnow() -> datetime:
    return datetime.now(UTC)


def time_ago(value: str | None, now: datetime | None = None) -> str:
    """Render a timestamp as "5m ago", "3h ago" or "2d ago"."""
    ts = parse_timestamp(value)
    if ts is None:
        return "unknown"
    diff = ((now or utcnow()) - ts).total_seconds()
    mins = math.floor(diff / 60)
    if mins < 60:
        return f"{mins}m ago"
    hours = mins // 60
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def percent(part: float, whole: float) -> int | None:
    if whole <= 0:
        return None
    return round_half_up(part / whole * 100)


def summarize_user(user: User, detail: Detail = "summary") -> dict[str, Any]:
    """Compact view of a user.

    "summary" returns id, name, email, roleID, status, group count and completed
    lesson count; "full" adds bio, groupIDs, profile picture and social links.
    """
    base: dict[str, Any] = {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "roleID": user.role_id,
        "status": user.status,
        "groups": len(user.group_ids),
        "lessons_completed": user.lesson_count,
    }
    if detail == "full":
        base.update(
            {
                "bio": user.bio,
                "groupIDs": list(user.group_ids),
                "profilePicture": user.profile_picture,
                "linkedin": user.linkedin,
                "twitter": user.twitter,
                "instagram": user.instagram,
            }
        )
    return base


def pick_fields(record: dict[str, Any], fields: list[str] | None) -> dict[str, Any]:
    """Narrow a projected record to ``fields``; unknown names are ignored."""
    if not fields:
        return record
    return {f: record[f] for f in fields if f in record}


def paginate(items: list[Any], offset: int, limit: int) -> dict[str, Any]:
    """Slice ``items`` and describe the page.

    ``next_offset`` is only present when more items remain.
    """
    total = len(items)
    page = items[offset : offset + limit]
    end = offset + len(page)
    meta: dict[str, Any] = {
        "total": total,
        "count": len(page),
        "offset": offset,
        "has_more": total > end,
    }
    if total > end:
        meta["next_offset"] = end
    return {"meta": meta, "page": page}


OLDEST = datetime.min.replace(tzinfo=UTC)


def timestamp_key(value: str | None) -> datetime:
    """Sort key for timestamps; missing or unparseable values sort oldest."""
    return parse_timestamp(value) or OLDEST
