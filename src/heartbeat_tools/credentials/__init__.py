"""
Credential management for the Heartbeat tool.

Sources are consulted in priority order; the first non-None value wins.
Default chain: environment variables, then the file named by
HEARTBEAT_CREDENTIALS_FILE (if set).

Usage:
    credentials = CredentialManager.default()
    api_key = credentials.get("heartbeat")

    # In tests
    credentials = CredentialManager.for_testing({"heartbeat": "test-key"})
"""

from __future__ import annotations

import logging
import os

from .base import (
    ConfigFileSource,
    CredentialError,
    CredentialSource,
    CredentialSpec,
    DictSource,
    EnvVarSource,
)
from .heartbeat import HEARTBEAT_CREDENTIALS

logger = logging.getLogger(__name__)

CREDENTIAL_SPECS: dict[str, CredentialSpec] = {**HEARTBEAT_CREDENTIALS}


class CredentialManager:
    """Chains multiple CredentialSources."""

    def __init__(
        self,
        sources: list[CredentialSource] | None = None,
        specs: dict[str, CredentialSpec] | None = None,
    ):
        self.specs = specs if specs is not None else CREDENTIAL_SPECS
        if sources is None:
            aliases = {key: spec.env_var for key, spec in self.specs.items()}
            self.sources: list[CredentialSource] = [EnvVarSource(aliases)]
        else:
            self.sources = sources

    @classmethod
    def default(cls) -> CredentialManager:
        aliases = {key: spec.env_var for key, spec in CREDENTIAL_SPECS.items()}
        sources: list[CredentialSource] = [EnvVarSource(aliases)]
        path = os.getenv("HEARTBEAT_CREDENTIALS_FILE")
        if path:
            sources.append(ConfigFileSource(path))
        return cls(sources)

    @classmethod
    def for_testing(cls, values: dict[str, str]) -> CredentialManager:
        return cls([DictSource(values)])

    def get_spec(self, key: str) -> CredentialSpec | None:
        return self.specs.get(key)

    def get(self, key: str, default: str | None = None) -> str | None:
        for source in self.sources:
            try:
                val = source.get(key)
            except Exception as e:
                logger.warning("Error reading from credential source %s: %s", source.name, e)
                continue
            if val:
                return val
        return default

    def get_or_error(self, key: str) -> str:
        val = self.get(key)
        if val is None:
            spec = self.specs.get(key)
            hint = f" Set {spec.env_var}." if spec else ""
            raise CredentialError(
                f"Missing required credential: {key}.{hint} "
                f"Checked sources: {', '.join(s.name for s in self.sources)}"
            )
        return val

    def validate_startup(self) -> None:
        """Raise CredentialError if any startup-required credential is missing."""
        missing = [
            spec.env_var
            for key, spec in self.specs.items()
            if spec.startup_required and self.get(key) is None
        ]
        if missing:
            raise CredentialError(f"Missing startup credentials: {', '.join(missing)}")


__all__ = [
    "CREDENTIAL_SPECS",
    "ConfigFileSource",
    "CredentialError",
    "CredentialManager",
    "CredentialSource",
    "CredentialSpec",
    "DictSource",
    "EnvVarSource",
]
