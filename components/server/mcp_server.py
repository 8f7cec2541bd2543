# components/server/mcp_server.py
"""
Incubator tool server over the Model Context Protocol.

Exposes the ToolDispatcher's five tools through the MCP SDK's low-level
Server on the stdio transport (newline-delimited JSON-RPC on
stdin/stdout). Everything else the process prints goes to stderr.

Example from a terminal:
    $ python -m tools.tool_server
    # then connect with any MCP client, e.g. the MCP Inspector:
    $ npx @modelcontextprotocol/inspector python -m tools.tool_server
"""

import asyncio
from typing import Any

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from components.logging_system import EventSeverity
from components.server.base_server import BaseProtocolServer
from components.server.tool_handlers import ToolDispatcher
from components.server.tool_schema import TOOL_DEFINITIONS


class ToolCallError(Exception):
    """Raised towards the SDK so the response is flagged ``isError``."""


def build_tool_definitions() -> list[types.Tool]:
    """Tool definitions advertised by tools/list."""
    return [
        types.Tool(
            name=name,
            description=definition["description"],
            inputSchema=definition["inputSchema"],
        )
        for name, definition in TOOL_DEFINITIONS.items()
    ]


class IncubatorToolServer(BaseProtocolServer):
    """
    MCP server wrapping one ToolDispatcher.

    Error results from the dispatcher (bad arguments, unknown tool) are
    returned to the client as tool errors, never as protocol faults.
    """

    def __init__(
        self,
        dispatcher: ToolDispatcher,
        name: str = "incunest-sim-server",
        version: str = "1.0.0",
    ):
        super().__init__(name=name, version=version)
        self.dispatcher = dispatcher

        self._server = Server(name, version=version)
        self._server.list_tools()(self.list_tools)
        self._server.call_tool()(self.call_tool)

        self._running = False
        self._serve_task: asyncio.Task | None = None
        self._calls = 0
        self._errors = 0

    @property
    def running(self) -> bool:
        """Check if server is running."""
        return self._running

    # ----------------------------------------------------------------
    # Request handlers
    # ----------------------------------------------------------------

    async def list_tools(self) -> list[types.Tool]:
        return build_tool_definitions()

    async def call_tool(
        self, name: str, arguments: dict[str, Any] | None
    ) -> list[types.TextContent]:
        """Dispatch one tools/call request.

        Raises:
            ToolCallError: If the dispatcher reported an error result
        """
        self._calls += 1
        result = await self.dispatcher.call(name, arguments)

        if result.is_error:
            self._errors += 1
            raise ToolCallError(result.text)

        return [types.TextContent(type="text", text=result.text)]

    # ----------------------------------------------------------------
    # Lifecycle
    # ----------------------------------------------------------------

    async def serve(self, read_stream, write_stream) -> None:
        """Serve one session over the given SDK streams until it closes."""
        self._running = True
        await self.log_communication(
            f"{self.name} {self.version} serving",
            data={"tools": self.dispatcher.tool_names},
        )
        try:
            await self._server.run(
                read_stream,
                write_stream,
                self._server.create_initialization_options(),
            )
        finally:
            self._running = False
            self.logger.info(
                f"{self.name} session closed "
                f"({self._calls} calls, {self._errors} errors)"
            )

    async def run_stdio(self) -> None:
        """Serve over stdin/stdout until the client disconnects."""
        async with stdio_server() as (read_stream, write_stream):
            await self.serve(read_stream, write_stream)

    async def start(self) -> bool:
        """Start serving stdio in a background task."""
        if self._serve_task and not self._serve_task.done():
            return True

        self._serve_task = asyncio.create_task(self.run_stdio())
        self.logger.info(f"{self.name} running on stdio")
        return True

    async def stop(self) -> None:
        """Stop the background stdio task."""
        if not self._serve_task:
            return

        self._serve_task.cancel()
        try:
            await self._serve_task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            await self.log_communication(
                f"{self.name} stopped with error: {e}", severity=EventSeverity.ERROR
            )
        self._serve_task = None
        self._running = False
        self.logger.info(f"{self.name} stopped")

    def get_status(self) -> dict[str, Any]:
        status = super().get_status()
        status.update(
            {
                "transport": "stdio",
                "tools": self.dispatcher.tool_names,
                "calls": self._calls,
                "errors": self._errors,
            }
        )
        return status
