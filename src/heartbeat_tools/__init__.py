"""
Heartbeat Tools - MCP gateway for a Heartbeat.chat community.

Usage:
    from fastmcp import FastMCP
    from heartbeat_tools import register_tools

    mcp = FastMCP("heartbeat")
    register_tools(mcp)
"""

__version__ = "0.1.0"

from .client import HeartbeatClient
from .config import HeartbeatConfig, Heuristics
from .credentials import CredentialManager
from .errors import HeartbeatError
from .router import dispatch
from .tool import register_tools

__all__ = [
    "__version__",
    "CredentialManager",
    "HeartbeatClient",
    "HeartbeatConfig",
    "HeartbeatError",
    "Heuristics",
    "dispatch",
    "register_tools",
]
