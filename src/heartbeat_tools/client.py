"""Heartbeat.chat REST API client used by the MCP tool.

Reads are cached in memory for a fixed freshness window; any write clears the
whole cache. Only HTTP 429 is retried (1s, 2s, 4s); every other failure is
classified and raised immediately.

Usage:
    async with HeartbeatClient(api_key) as client:
        users = await client.get_list("/users", User)
        await client.put("/threads", {"text": "<p>hi</p>", "channelID": channel_id})
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .config import HeartbeatConfig
from .errors import UnexpectedError, classify_error

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


@dataclass
class CacheEntry:
    """A cached GET payload and its absolute expiry on the client clock."""

    value: Any
    expires_at: float


class HeartbeatClient:
    """Async Heartbeat API v0 client with response caching and 429 backoff."""

    def __init__(
        self,
        api_key: str,
        config: HeartbeatConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ):
        self.config = config or HeartbeatConfig()
        self._clock = clock
        self._sleep = sleep
        self._cache: dict[str, CacheEntry] = {}
        self._generation = 0
        self._http = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.request_timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )

    async def __aenter__(self) -> HeartbeatClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    @staticmethod
    def cache_key(method: str, path: str, params: dict[str, Any] | None = None) -> str:
        return f"{method}:{path}:{json.dumps(params or {}, sort_keys=True, default=str)}"

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def clear_cache(self) -> None:
        if self._cache:
            logger.debug("Invalidating %d cached responses", len(self._cache))
        self._cache.clear()
        self._generation += 1

    def _sweep_expired(self, now: float) -> None:
        expired = [k for k, entry in self._cache.items() if entry.expires_at <= now]
        for k in expired:
            del self._cache[k]
        logger.debug("Swept %d expired cache entries", len(expired))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET ``path`` and return the decoded JSON, served from cache when fresh."""
        params = _clean_params(params)
        key = self.cache_key("GET", path, params)
        now = self._clock()

        entry = self._cache.get(key)
        if entry is not None and entry.expires_at > now:
            logger.debug("Cache hit: %s", key)
            return entry.value

        if len(self._cache) > self.config.cache_sweep_threshold:
            self._sweep_expired(now)

        logger.debug("Cache miss: %s", key)
        generation = self._generation
        value = await self._request("GET", path, params=params)
        # a write that landed while this read was in flight makes the payload stale
        if generation == self._generation:
            self._cache[key] = CacheEntry(
                value=value, expires_at=self._clock() + self.config.cache_ttl
            )
        return value

    async def get_list(
        self,
        path: str,
        model: type[ModelT],
        params: dict[str, Any] | None = None,
    ) -> list[ModelT]:
        """GET a collection and decode each record, skipping malformed ones."""
        payload = await self.get(path, params)
        if isinstance(payload, dict) and isinstance(payload.get("data"), list):
            payload = payload["data"]
        if not isinstance(payload, list):
            raise UnexpectedError(
                f"Unexpected error: expected a list from {path}, got {type(payload).__name__}"
            )

        records: list[ModelT] = []
        for item in payload:
            try:
                records.append(model.model_validate(item))
            except PydanticValidationError as e:
                logger.warning("Skipping malformed %s record from %s: %s", model.__name__, path, e)
        return records

    async def get_one(self, path: str, model: type[ModelT]) -> ModelT:
        payload = await self.get(path)
        try:
            return model.model_validate(payload)
        except PydanticValidationError as e:
            raise UnexpectedError(
                f"Unexpected error: malformed {model.__name__} from {path}", cause=e
            ) from e

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def mutate(self, method: str, path: str, body: Any = None) -> Any:
        """Issue a write. The whole cache is invalidated before the request."""
        self.clear_cache()
        return await self._request(method.upper(), path, body=body)

    async def put(self, path: str, body: Any = None) -> Any:
        return await self.mutate("PUT", path, body)

    async def post(self, path: str, body: Any = None) -> Any:
        return await self.mutate("POST", path, body)

    async def delete(self, path: str) -> Any:
        return await self.mutate("DELETE", path)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: Any = None,
    ) -> Any:
        max_retries = self.config.max_retries
        for attempt in range(max_retries + 1):
            try:
                response = await self._http.request(
                    method,
                    path,
                    params=params or None,
                    json=body,
                )
            except httpx.HTTPError as e:
                raise classify_error(e) from e

            if response.status_code == 429 and attempt < max_retries:
                delay = 2**attempt
                logger.warning(
                    "Rate limited on %s %s (attempt %d/%d), retrying in %ds",
                    method,
                    path,
                    attempt + 1,
                    max_retries + 1,
                    delay,
                )
                await self._sleep(delay)
                continue

            try:
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise classify_error(e) from e
            return _decode(response)

        # unreachable: the final attempt either returns or raises
        raise UnexpectedError(f"Unexpected error: retries exhausted for {method} {path}")


def _clean_params(params: dict[str, Any] | None) -> dict[str, Any] | None:
    if not params:
        return None
    return {k: v for k, v in params.items() if v is not None}


def _decode(response: httpx.Response) -> Any:
    if response.status_code == 204 or not response.content:
        return None
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
        return {"result": response.text}
