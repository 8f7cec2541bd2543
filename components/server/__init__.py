# components/server/__init__.py
"""
Incubator tool server.

Exposes a simulator-shaped state record as callable tools over the
Model Context Protocol (stdio transport).

Example:
    # Terminal: run the server and talk to it with an MCP client
    $ python -m tools.tool_server
"""

from components.server.mcp_server import IncubatorToolServer, build_tool_definitions
from components.server.tool_handlers import ToolDispatcher, ToolResult
from components.server.tool_schema import (
    ToolError,
    ToolValidationError,
    UnknownToolError,
)

__all__ = [
    "IncubatorToolServer",
    "build_tool_definitions",
    "ToolDispatcher",
    "ToolResult",
    "ToolError",
    "ToolValidationError",
    "UnknownToolError",
]
