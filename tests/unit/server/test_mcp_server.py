# tests/unit/server/test_mcp_server.py
"""Tests for IncubatorToolServer.

Handlers are tested directly, then once end to end through an
in-memory MCP client session.

Test Coverage:
- Tool definitions
- Success and error results
- Status and counters
- Client session round trip
"""

import json

import mcp.types as types
import pytest
from mcp.shared.memory import create_connected_server_and_client_session

from components.server.mcp_server import (
    IncubatorToolServer,
    ToolCallError,
    build_tool_definitions,
)


@pytest.fixture
def server(dispatcher):
    """Create a tool server around the shared dispatcher."""
    return IncubatorToolServer(dispatcher)


# ================================================================
# HANDLER TESTS
# ================================================================
class TestHandlers:
    """Test list_tools and call_tool."""

    def test_build_tool_definitions(self):
        tools = build_tool_definitions()

        assert all(isinstance(tool, types.Tool) for tool in tools)
        assert [tool.name for tool in tools] == [
            "get_simulation_state",
            "set_temperature_setpoint",
            "control_heater",
            "control_fan",
            "get_sensor_history",
        ]

    async def test_list_tools(self, server):
        tools = await server.list_tools()

        assert len(tools) == 5

    async def test_call_tool_returns_text_content(self, server):
        content = await server.call_tool("control_heater", {"state": False})

        assert len(content) == 1
        assert content[0].type == "text"
        assert content[0].text == "Heater turned OFF"

    async def test_call_tool_raises_on_error_result(self, server, tool_state):
        """Test that error results are raised for the SDK to flag.

        WHY: The SDK turns handler exceptions into isError results.
        """
        with pytest.raises(ToolCallError, match="Error: Unknown tool: reboot"):
            await server.call_tool("reboot", {})

        assert tool_state.heater_on is True

    async def test_call_tool_accepts_missing_arguments(self, server):
        content = await server.call_tool("get_simulation_state", None)

        assert json.loads(content[0].text)["setpoint"] == 37

    async def test_counters(self, server):
        await server.call_tool("control_fan", {"state": True})
        with pytest.raises(ToolCallError):
            await server.call_tool("control_fan", {"state": "yes"})

        status = server.get_status()

        assert status["calls"] == 2
        assert status["errors"] == 1
        assert status["transport"] == "stdio"
        assert status["name"] == "incunest-sim-server"
        assert status["version"] == "1.0.0"
        assert status["running"] is False

    async def test_stop_without_start(self, server):
        await server.stop()

        assert not server.running


# ================================================================
# SESSION TESTS
# ================================================================
class TestClientSession:
    """Test the server through an in-memory MCP client."""

    async def test_round_trip(self, server, tool_state):
        async with create_connected_server_and_client_session(server._server) as client:
            listed = await client.list_tools()
            assert {tool.name for tool in listed.tools} == {
                "get_simulation_state",
                "set_temperature_setpoint",
                "control_heater",
                "control_fan",
                "get_sensor_history",
            }

            result = await client.call_tool("control_fan", {"state": False})
            assert not result.isError
            assert result.content[0].text == "Fan turned OFF"
            assert tool_state.fan_on is False

            result = await client.call_tool(
                "set_temperature_setpoint", {"temperature": 50}
            )
            assert result.isError
            assert tool_state.setpoint == 37.0
