# tests/unit/state/test_incubator_state.py
"""Tests for IncubatorState and ToolServerState.

Test Coverage:
- Documented defaults
- Snapshot independence
- External (camelCase) key mapping
- Reset semantics
- Timestamp format
"""

import re
from datetime import datetime, timezone

from components.state.incubator_state import (
    IncubatorState,
    ToolServerState,
    utc_timestamp,
)

ISO_MILLIS_Z = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


# ================================================================
# TIMESTAMP TESTS
# ================================================================
class TestUtcTimestamp:
    """Test utc_timestamp()."""

    def test_format_has_millis_and_z_suffix(self):
        """Test ISO-8601 with milliseconds and Z."""
        assert ISO_MILLIS_Z.match(utc_timestamp())

    def test_fixed_moment(self):
        """Test a known instant."""
        moment = datetime(2024, 1, 2, 3, 4, 5, 678900, tzinfo=timezone.utc)

        assert utc_timestamp(moment) == "2024-01-02T03:04:05.678Z"


# ================================================================
# INCUBATOR STATE TESTS
# ================================================================
class TestIncubatorState:
    """Test the engine's state record."""

    def test_defaults(self):
        """Test documented defaults."""
        state = IncubatorState()

        assert state.temperature == 36.5
        assert state.setpoint == 37.0
        assert state.humidity == 65.0
        assert state.heater_on is True
        assert state.fan_on is True
        assert state.ambient_temp == 24.0
        assert state.integral == 0.0
        assert state.last_error == 0.0

    def test_wire_form_excludes_controller_memory(self):
        """Test that PID internals are not part of the public record."""
        snapshot = IncubatorState().to_wire()

        assert "integral" not in snapshot
        assert "last_error" not in snapshot

    def test_wire_form_is_a_new_dict(self):
        """Test that the wire form is detached from the record."""
        state = IncubatorState()
        snapshot = state.to_wire()

        snapshot["temperature"] = 99.0
        state.humidity = 70.0

        assert state.temperature == 36.5
        assert snapshot["humidity"] == 65.0

    def test_to_wire_uses_camel_case(self):
        """Test external key names."""
        assert IncubatorState().to_wire() == {
            "temperature": 36.5,
            "setpoint": 37.0,
            "humidity": 65.0,
            "heaterOn": True,
            "fanOn": True,
            "ambientTemp": 24.0,
        }

    def test_reset(self):
        """Test that reset restores everything but ambient_temp."""
        state = IncubatorState(ambient_temp=18.0)
        state.temperature = 30.0
        state.setpoint = 39.0
        state.humidity = 80.0
        state.heater_on = False
        state.fan_on = False
        state.integral = 12.0
        state.last_error = -1.0

        state.reset()

        assert state == IncubatorState(ambient_temp=18.0)


# ================================================================
# TOOL SERVER STATE TESTS
# ================================================================
class TestToolServerState:
    """Test the tool server's state record."""

    def test_wire_shape(self):
        """Test key order and values of the external shape."""
        wire = ToolServerState().to_wire()

        assert list(wire) == [
            "temperature",
            "humidity",
            "setpoint",
            "heaterOn",
            "fanOn",
            "timestamp",
        ]
        assert wire["temperature"] == 36.5
        assert wire["humidity"] == 65.0
        assert wire["setpoint"] == 37.0
        assert wire["heaterOn"] is True
        assert wire["fanOn"] is True
        assert ISO_MILLIS_Z.match(wire["timestamp"])

    def test_touch_refreshes_timestamp(self):
        """Test that touch() replaces the timestamp."""
        state = ToolServerState(timestamp="2000-01-01T00:00:00.000Z")

        state.touch()

        assert state.timestamp != "2000-01-01T00:00:00.000Z"
        assert ISO_MILLIS_Z.match(state.timestamp)

    def test_instances_are_independent(self):
        """Test that two records share nothing."""
        first = ToolServerState()
        second = ToolServerState()

        first.setpoint = 35.0

        assert second.setpoint == 37.0
