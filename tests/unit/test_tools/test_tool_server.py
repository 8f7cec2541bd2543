# tests/unit/test_tools/test_tool_server.py
"""
Unit tests for the tool server CLI.

Tests server assembly from configuration; the stdio transport itself is
covered through an in-memory session in the server tests.
"""

import json

import pytest

from tools.tool_server import build_parser, build_server


class TestBuildServer:
    """Test build_server()."""

    def test_defaults(self, temp_config_dir):
        server = build_server(str(temp_config_dir))

        assert server.name == "incunest-sim-server"
        assert server.version == "1.0.0"
        assert server.dispatcher.history_samples == 10
        assert server.dispatcher.history_duration == 3600.0
        assert server.dispatcher.state.setpoint == 37.0

    async def test_server_config_applied(self, temp_config_dir, write_config_file):
        write_config_file(
            {
                "name": "ward-3",
                "version": "2.1.0",
                "history_samples": 5,
                "default_history_duration": 900,
            },
            filename="server.yml",
        )

        server = build_server(str(temp_config_dir))
        content = await server.call_tool("get_sensor_history", {"duration": 50})

        assert server.name == "ward-3"
        assert server.version == "2.1.0"
        assert len(json.loads(content[0].text)) == 5
        assert server.dispatcher.history_duration == 900.0

    def test_each_server_has_its_own_state(self, temp_config_dir):
        first = build_server(str(temp_config_dir))
        second = build_server(str(temp_config_dir))

        assert first.dispatcher.state is not second.dispatcher.state


class TestParser:
    """Test argument parsing."""

    def test_defaults(self):
        args = build_parser().parse_args([])

        assert args.config_dir == "config"
        assert args.log_level is None

    def test_unknown_option(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--port", "8080"])
