"""Heartbeat tool configuration.

Connection settings are read once at process start. Synthesis thresholds live in
``Heuristics`` so the dashboard and analytics proxies can be tuned without touching
the reducers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_BASE_URL = "https://api.heartbeat.chat/v0"
"""Versioned root of the upstream REST API."""

API_KEY_ENV_VAR = "HEARTBEAT_API_KEY"

DEFAULT_PORT = int(os.getenv("MCP_PORT", "4001"))
DEFAULT_HOST = "0.0.0.0"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class HeartbeatConfig:
    """Transport client configuration."""

    base_url: str = DEFAULT_BASE_URL
    cache_ttl: float = 60.0  # seconds
    request_timeout: float = 30.0  # seconds, per attempt
    max_retries: int = 3  # 429 only
    cache_sweep_threshold: int = 1000

    @classmethod
    def from_env(cls) -> HeartbeatConfig:
        return cls(
            base_url=os.getenv("HEARTBEAT_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            cache_ttl=_env_float("HEARTBEAT_CACHE_TTL", 60.0),
            request_timeout=_env_float("HEARTBEAT_TIMEOUT", 30.0),
            max_retries=int(_env_float("HEARTBEAT_MAX_RETRIES", 3)),
        )


@dataclass(frozen=True)
class Heuristics:
    """Thresholds behind the dashboard and analytics proxies.

    Join dates are not exposed upstream, so "new" and "at risk" are
    approximations built from lesson completions and thread authorship.
    """

    recent_thread_days: int = 7
    at_risk_days: int = 30
    dashboard_channel_limit: int = 10
    search_channel_limit: int = 10
    attention_limit: int = 15
    attention_new_members: int = 5
    attention_at_risk: int = 5
    upcoming_events: int = 5
    recent_activity: int = 10
    top_channel_authors: int = 5
    default_limit: int = 20
