#!/usr/bin/env python3
"""Run the Heartbeat MCP server from a source checkout.

    python mcp_server.py --stdio
"""

from heartbeat_tools.server import main

if __name__ == "__main__":
    main()
