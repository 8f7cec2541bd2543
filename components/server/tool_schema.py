# components/server/tool_schema.py
"""
Typed request schema for the incubator tool server.

Each tool's arguments are parsed into a frozen request dataclass before
dispatch. Parsing validates exhaustively and raises ToolValidationError;
the dispatcher turns that into an error result, so a bad request never
touches state.
"""

import math
from dataclasses import dataclass
from typing import Any, Mapping

MIN_SETPOINT_C = 30.0
MAX_SETPOINT_C = 40.0

# Longest history window whose oldest timestamp still fits in a datetime
MAX_HISTORY_DURATION_S = 100 * 365.25 * 86400


class ToolError(Exception):
    """Base class for tool request failures reported back to the caller."""


class ToolValidationError(ToolError):
    """Tool arguments have the wrong type or are out of range."""


class UnknownToolError(ToolError):
    """No tool with the requested name."""

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


def _arguments(arguments: Mapping[str, Any] | None) -> Mapping[str, Any]:
    if arguments is None:
        return {}
    if not isinstance(arguments, Mapping):
        raise ToolValidationError("Arguments must be an object")
    return arguments


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid number here
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


@dataclass(frozen=True)
class StateRequest:
    """get_simulation_state takes no arguments."""

    @classmethod
    def from_arguments(cls, arguments: Mapping[str, Any] | None) -> "StateRequest":
        _arguments(arguments)
        return cls()


@dataclass(frozen=True)
class SetpointRequest:
    temperature: float

    @classmethod
    def from_arguments(cls, arguments: Mapping[str, Any] | None) -> "SetpointRequest":
        temperature = _arguments(arguments).get("temperature")
        if not _is_number(temperature):
            raise ToolValidationError("Invalid temperature value")
        if temperature < MIN_SETPOINT_C or temperature > MAX_SETPOINT_C:
            raise ToolValidationError(
                f"Temperature must be between {MIN_SETPOINT_C:g} and "
                f"{MAX_SETPOINT_C:g}°C"
            )
        return cls(temperature=temperature)


@dataclass(frozen=True)
class ActuatorRequest:
    """control_heater / control_fan."""

    state: bool

    @classmethod
    def from_arguments(cls, arguments: Mapping[str, Any] | None) -> "ActuatorRequest":
        state = _arguments(arguments).get("state")
        if not isinstance(state, bool):
            raise ToolValidationError("Invalid state value")
        return cls(state=state)


@dataclass(frozen=True)
class HistoryRequest:
    duration: float | None = None  # None: the server's default window

    @classmethod
    def from_arguments(cls, arguments: Mapping[str, Any] | None) -> "HistoryRequest":
        duration = _arguments(arguments).get("duration")
        # Missing, null and zero all mean "use the default window"
        if duration is None or (_is_number(duration) and duration == 0):
            return cls()
        if not _is_number(duration) or duration < 0:
            raise ToolValidationError("Duration must be a positive number of seconds")
        if duration > MAX_HISTORY_DURATION_S:
            raise ToolValidationError(
                f"Duration must not exceed {MAX_HISTORY_DURATION_S:.0f} seconds"
            )
        return cls(duration=float(duration))


# JSON Schemas advertised in tools/list, keyed by tool name
TOOL_DEFINITIONS: dict[str, dict[str, Any]] = {
    "get_simulation_state": {
        "description": "Get current state of the incubator simulation",
        "inputSchema": {
            "type": "object",
            "properties": {},
            "required": [],
        },
    },
    "set_temperature_setpoint": {
        "description": "Set the target temperature for the incubator",
        "inputSchema": {
            "type": "object",
            "properties": {
                "temperature": {
                    "type": "number",
                    "description": "Target temperature in Celsius (30-40)",
                    "minimum": MIN_SETPOINT_C,
                    "maximum": MAX_SETPOINT_C,
                },
            },
            "required": ["temperature"],
        },
    },
    "control_heater": {
        "description": "Turn heater on or off",
        "inputSchema": {
            "type": "object",
            "properties": {
                "state": {
                    "type": "boolean",
                    "description": "true to turn on, false to turn off",
                },
            },
            "required": ["state"],
        },
    },
    "control_fan": {
        "description": "Turn fan on or off",
        "inputSchema": {
            "type": "object",
            "properties": {
                "state": {
                    "type": "boolean",
                    "description": "true to turn on, false to turn off",
                },
            },
            "required": ["state"],
        },
    },
    "get_sensor_history": {
        "description": "Get historical sensor data",
        "inputSchema": {
            "type": "object",
            "properties": {
                "duration": {
                    "type": "number",
                    "description": "Duration in seconds to retrieve (server default if omitted)",
                    "maximum": MAX_HISTORY_DURATION_S,
                },
            },
            "required": [],
        },
    },
}
