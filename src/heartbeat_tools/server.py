"""Process entry point for the Heartbeat MCP server.

``heartbeat-mcp`` serves the ``heartbeat`` tool over streamable HTTP by default,
or over STDIO for desktop MCP clients (``--stdio``). Connection settings come from
``HEARTBEAT_*`` environment variables (see ``config.HeartbeatConfig.from_env``);
the API key is looked up through ``CredentialManager.default()``.
"""

import argparse
import logging
import signal
import sys
from typing import Any

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from .config import DEFAULT_HOST, DEFAULT_PORT, LOG_LEVEL, HeartbeatConfig
from .credentials import CredentialError, CredentialManager
from .tool import TOOL_NAME, register_tools

SERVER_NAME = "heartbeat"

logger = logging.getLogger("heartbeat_tools")


def setup_logger(use_stdio: bool, level: str = LOG_LEVEL) -> None:
    """Attach one handler to the package logger.

    Under STDIO stdout carries the protocol, so records go to stderr.
    """
    if logger.handlers:
        return
    handler = logging.StreamHandler(sys.stderr if use_stdio else sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s", "%Y-%m-%d %H:%M:%S"
        )
    )
    logger.addHandler(handler)
    logger.setLevel(level)


def health_payload(credentials: CredentialManager, config: HeartbeatConfig) -> dict[str, Any]:
    """Snapshot reported by ``GET /health``. Never calls the upstream API."""
    try:
        credentials.validate_startup()
        key_status = "configured"
    except CredentialError:
        key_status = "missing"
    return {
        "status": "ok",
        "tool": TOOL_NAME,
        "credentials": key_status,
        "upstream": config.base_url,
    }


def create_app(
    credentials: CredentialManager | None = None,
    config: HeartbeatConfig | None = None,
) -> FastMCP:
    """Build the FastMCP app with the heartbeat tool and a health route.

    A missing API key is not fatal at startup: the tool answers with a
    credentials error envelope until one is configured.
    """
    credentials = credentials or CredentialManager.default()
    config = config or HeartbeatConfig.from_env()

    if health_payload(credentials, config)["credentials"] == "missing":
        logger.warning("HEARTBEAT_API_KEY is not set; heartbeat calls will fail until it is")

    mcp = FastMCP(SERVER_NAME)
    register_tools(mcp, credentials=credentials, config=config)
    logger.info("Registered %s tool against %s", TOOL_NAME, config.base_url)

    @mcp.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> JSONResponse:
        return JSONResponse(health_payload(credentials, config))

    return mcp


def _exit_on_signal(signum: int, frame: Any) -> None:
    logger.info("Received %s, shutting down", signal.Signals(signum).name)
    sys.exit(0)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="heartbeat-mcp", description="Heartbeat.chat community tools over MCP"
    )
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="HTTP server port")
    parser.add_argument("--host", default=DEFAULT_HOST, help="HTTP server host")
    parser.add_argument("--stdio", action="store_true", help="Serve over STDIO instead of HTTP")
    parser.add_argument("--log-level", default=LOG_LEVEL, type=str.upper, help="Logging level")
    args = parser.parse_args(argv)

    setup_logger(use_stdio=args.stdio, level=args.log_level)
    for signum in (signal.SIGINT, signal.SIGTERM):
        signal.signal(signum, _exit_on_signal)

    mcp = create_app()
    if args.stdio:
        logger.info("Serving %s over STDIO", SERVER_NAME)
        mcp.run(transport="stdio")
    else:
        logger.info("Serving %s on http://%s:%d", SERVER_NAME, args.host, args.port)
        mcp.run(transport="http", host=args.host, port=args.port)


if __name__ == "__main__":
    main()
