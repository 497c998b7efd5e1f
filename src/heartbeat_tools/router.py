"""Dispatch router: one request in, one JSON-serializable dict out.

Nothing raises past ``dispatch``; every failure becomes ``{"error": message}``.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .errors import UnexpectedError, ValidationError, classify_error
from .modes import ModeContext
from .modes.analytics import handle_analytics
from .modes.content import handle_content
from .modes.dashboard import handle_dashboard
from .modes.dm import handle_dm
from .modes.events import handle_events
from .modes.manage import handle_manage
from .modes.members import handle_members
from .modes.post import handle_post
from .modes.search import handle_search
from .modes.threads import handle_threads
from .params import ToolRequest, build_params

logger = logging.getLogger(__name__)

Handler = Callable[[ModeContext, Any], Awaitable[dict[str, Any]]]

HANDLERS: dict[str, Handler] = {
    "dashboard": handle_dashboard,
    "members": handle_members,
    "threads": handle_threads,
    "post": handle_post,
    "dm": handle_dm,
    "events": handle_events,
    "content": handle_content,
    "analytics": handle_analytics,
    "search": handle_search,
    "manage": handle_manage,
}


def _validation_message(exc: PydanticValidationError) -> str:
    problems = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "request"
        problems.append(f"'{loc}': {err.get('msg', 'invalid value')}")
    return "Invalid parameters: " + "; ".join(problems)


def parse_request(raw: dict[str, Any]) -> ToolRequest:
    """Validate a raw argument dict into a ToolRequest, dropping None values."""
    try:
        return ToolRequest.model_validate({k: v for k, v in raw.items() if v is not None})
    except PydanticValidationError as e:
        raise ValidationError(_validation_message(e)) from e


async def dispatch(ctx: ModeContext, raw: dict[str, Any] | ToolRequest) -> dict[str, Any]:
    """Route a request to its mode handler and return the result or an error envelope."""
    mode = raw.mode if isinstance(raw, ToolRequest) else raw.get("mode")
    try:
        request = raw if isinstance(raw, ToolRequest) else parse_request(raw)
        try:
            params = build_params(request)
        except PydanticValidationError as e:
            raise ValidationError(_validation_message(e)) from e
        result = await HANDLERS[request.mode](ctx, params)
    except Exception as e:
        error = classify_error(e)
        if isinstance(error, UnexpectedError):
            logger.error("heartbeat %s failed unexpectedly", mode, exc_info=e)
        else:
            logger.warning("heartbeat %s failed: %s", mode, error.message)
        return error.to_dict()
    # tool results are always JSON objects
    return result if isinstance(result, dict) else {"result": result}
