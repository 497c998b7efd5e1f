"""Credential specification and sources."""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


class CredentialError(Exception):
    """Raised when a required credential is missing or unreadable."""


@dataclass
class CredentialSpec:
    """Describes one credential a tool needs."""

    env_var: str
    tools: list[str] = field(default_factory=list)
    required: bool = True
    startup_required: bool = False
    help_url: str = ""
    description: str = ""
    api_key_instructions: str = ""
    health_check_endpoint: str = ""
    health_check_method: str = "GET"


class CredentialSource(ABC):
    """Abstract base class for credential sources."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Retrieve a credential value by key."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of the source for logging."""


class EnvVarSource(CredentialSource):
    """Reads credentials from environment variables."""

    def __init__(self, aliases: dict[str, str] | None = None):
        # credential id -> env var name
        self.aliases = aliases or {}

    @property
    def name(self) -> str:
        return "Environment Variables"

    def get(self, key: str) -> str | None:
        val = os.environ.get(self.aliases.get(key, key))
        if val is None and key in self.aliases:
            val = os.environ.get(key)
        return val


class ConfigFileSource(CredentialSource):
    """Reads a flat key-value YAML or JSON file.

    A missing file is treated as empty.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser().resolve()
        self._values: dict[str, Any] = {}
        self._load()

    @property
    def name(self) -> str:
        return f"Config File ({self.path})"

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            with open(self.path) as f:
                content = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to load credential file %s: %s", self.path, e)
            return
        if isinstance(content, dict):
            self._values = content
        else:
            logger.warning("Credential file %s must contain a mapping", self.path)

    def get(self, key: str) -> str | None:
        val = self._values.get(key)
        return str(val) if val is not None else None


class DictSource(CredentialSource):
    """In-memory source, used by tests."""

    def __init__(self, values: dict[str, str]):
        self._values = dict(values)

    @property
    def name(self) -> str:
        return "In-memory"

    def get(self, key: str) -> str | None:
        return self._values.get(key)
