"""Name resolution: human identifiers to upstream resource IDs.

The upstream API has no partial search for channels or users by name, so
resolution fetches the whole collection and filters locally. Repeat lookups
within the cache window cost nothing.
"""

from __future__ import annotations

import re

from .client import HeartbeatClient
from .errors import AmbiguousError, NotFoundError
from .models import Channel, Group, User

UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def is_id(value: str) -> bool:
    return bool(UUID_RE.match(value))


async def resolve_channel(client: HeartbeatClient, name_or_id: str) -> str:
    """Resolve a channel name or ID to a channel ID.

    IDs are returned unchanged without an existence check. Names match
    case-insensitively; the first exact match wins over any substring match.
    """
    query = name_or_id.strip()
    if is_id(query):
        return query

    channels = await client.get_list("/channels", Channel)
    lower = query.lower()
    for channel in channels:
        if channel.name.lower() == lower:
            return channel.id

    similar = [c.name for c in channels if lower in c.name.lower()]
    if similar:
        hint = f"Did you mean: {', '.join(similar)}?"
    else:
        hint = f"Available: {', '.join(c.name for c in channels)}"
    raise NotFoundError(
        f'No channel named "{query}". {hint}',
        suggestions=similar or [c.name for c in channels],
    )


async def resolve_user(client: HeartbeatClient, name_or_email_or_id: str) -> User:
    """Resolve a user ID, email or name to a full user record.

    ID -> direct fetch, email -> exact-match lookup, name -> substring match
    over all users. More than one match is an AmbiguousError, never a guess.
    """
    query = name_or_email_or_id.strip()
    if is_id(query):
        return await client.get_one(f"/users/{query}", User)

    if "@" in query:
        results = await client.get_list("/find/users", User, {"email": query})
        if not results:
            raise NotFoundError(f'No user found with email "{query}"')
        if len(results) > 1:
            raise _ambiguous(query, results)
        return results[0]

    users = await client.get_list("/users", User)
    lower = query.lower()
    matches = [u for u in users if lower in u.name.lower()]
    if not matches:
        raise NotFoundError(f'No user found matching "{query}"')
    if len(matches) == 1:
        return matches[0]
    raise _ambiguous(query, matches)


def _ambiguous(query: str, matches: list[User]) -> AmbiguousError:
    candidates = [f"{u.name} ({u.email})" for u in matches]
    return AmbiguousError(
        f'Multiple users match "{query}": {", ".join(candidates)}. '
        "Be more specific or use email/ID.",
        candidates=candidates,
    )


async def resolve_group(client: HeartbeatClient, name_or_id: str) -> str:
    """Resolve a group name or ID to a group ID."""
    query = name_or_id.strip()
    if is_id(query):
        return query

    groups = await client.get_list("/groups", Group)
    lower = query.lower()
    for group in groups:
        if group.name.lower() == lower or group.id == query:
            return group.id

    similar = [g.name for g in groups if lower in g.name.lower()]
    hint = (
        f"Did you mean: {', '.join(similar)}?"
        if similar
        else f"Available: {', '.join(g.name for g in groups)}"
    )
    raise NotFoundError(f'No group named "{query}". {hint}', suggestions=similar)


async def build_user_map(client: HeartbeatClient) -> dict[str, str]:
    """User ID -> display name."""
    users = await client.get_list("/users", User)
    return {u.id: u.name for u in users}
