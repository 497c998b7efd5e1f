"""Mode handlers for the ``heartbeat`` tool.

Every handler takes a ModeContext and its own params model and returns a
JSON-serializable dict. Errors are raised, not returned; the router renders them.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from ..client import HeartbeatClient
from ..config import Heuristics
from ..formatting import utcnow


@dataclass
class ModeContext:
    """What a handler needs besides its params."""

    client: HeartbeatClient
    heuristics: Heuristics = field(default_factory=Heuristics)
    clock: Callable[[], datetime] = utcnow

    def now(self) -> datetime:
        return self.clock()
