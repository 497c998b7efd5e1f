"""Content mode: courses, lessons, documents and videos."""

from __future__ import annotations

from typing import Any

from ..params import ContentParams
from . import ModeContext


def _as_list(payload: Any) -> list[Any]:
    if isinstance(payload, dict) and isinstance(payload.get("data"), list):
        return payload["data"]
    return payload if isinstance(payload, list) else []


async def handle_content(ctx: ModeContext, params: ContentParams) -> dict[str, Any]:
    client = ctx.client
    action = params.action

    if action == "courses":
        courses = _as_list(await client.get("/courses"))
        return {"count": len(courses), "courses": courses}

    if action == "lesson":
        lesson = await client.get(f"/lessons/{params.lesson_id}")
        return {"lesson_id": params.lesson_id, "lesson": lesson}

    if action == "documents":
        # cursor pagination: document_id is the last document already seen
        docs = _as_list(
            await client.get(
                "/documents",
                {"limit": params.limit, "startingAfter": params.document_id},
            )
        )
        return {"count": len(docs), "documents": docs}

    if action == "document":
        document = await client.get(f"/documents/{params.document_id}")
        return {"document_id": params.document_id, "document": document}

    if action == "create_lesson":
        body: dict[str, Any] = {"title": params.title, "content": params.content_text}
        if params.course_id:
            body["courseID"] = params.course_id
        return {"action": "lesson_created", "lesson": await client.put("/lessons", body)}

    if action == "update_lesson":
        body = {}
        if params.title:
            body["title"] = params.title
        if params.content_text:
            body["content"] = params.content_text
        result = await client.post(f"/lessons/{params.lesson_id}", body)
        return {"action": "lesson_updated", "lesson": result}

    videos = _as_list(await client.get("/videos"))
    return {"count": len(videos), "videos": videos}
