# components/state/incubator_state.py
"""
State records for the incubator simulator.

IncubatorState is the single mutable record owned by the simulation
engine. ToolServerState is the tool server's own record of the same
conceptual shape; the two are never synchronised.

Python attributes are snake_case. The external (browser / Wokwi / tool
protocol) shape uses camelCase keys; WIRE_KEYS maps between the two.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

# Documented defaults
DEFAULT_TEMPERATURE_C = 36.5
DEFAULT_SETPOINT_C = 37.0
DEFAULT_HUMIDITY_PERCENT = 65.0
DEFAULT_AMBIENT_TEMP_C = 24.0

# attribute name -> external key
WIRE_KEYS = {
    "temperature": "temperature",
    "setpoint": "setpoint",
    "humidity": "humidity",
    "heater_on": "heaterOn",
    "fan_on": "fanOn",
    "ambient_temp": "ambientTemp",
}

PUBLIC_FIELDS = tuple(WIRE_KEYS)


def utc_timestamp(moment: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


@dataclass
class IncubatorState:
    """Current incubator state.

    Attributes:
        temperature: Chamber temperature in Celsius
        setpoint: Target temperature in Celsius
        humidity: Relative humidity (%)
        heater_on: Heater actuator state
        fan_on: Fan actuator state
        ambient_temp: Room temperature in Celsius
        integral: PID integral accumulator
        last_error: PID error from the previous step
    """

    temperature: float = DEFAULT_TEMPERATURE_C
    setpoint: float = DEFAULT_SETPOINT_C
    humidity: float = DEFAULT_HUMIDITY_PERCENT
    heater_on: bool = True
    fan_on: bool = True
    ambient_temp: float = DEFAULT_AMBIENT_TEMP_C
    integral: float = 0.0
    last_error: float = 0.0

    def to_wire(self) -> dict[str, Any]:
        """Public fields under their external keys, as a new dict."""
        return {WIRE_KEYS[name]: getattr(self, name) for name in PUBLIC_FIELDS}

    def reset(self) -> None:
        """Restore every field to its documented default.

        ambient_temp is a fixed property of the room and is left as is.
        """
        self.temperature = DEFAULT_TEMPERATURE_C
        self.setpoint = DEFAULT_SETPOINT_C
        self.humidity = DEFAULT_HUMIDITY_PERCENT
        self.heater_on = True
        self.fan_on = True
        self.integral = 0.0
        self.last_error = 0.0


@dataclass
class ToolServerState:
    """State record served by the tool server.

    Constructed once at process start with the documented defaults and
    handed to the request handlers; dies with the process.
    """

    temperature: float = DEFAULT_TEMPERATURE_C
    humidity: float = DEFAULT_HUMIDITY_PERCENT
    setpoint: float = DEFAULT_SETPOINT_C
    heater_on: bool = True
    fan_on: bool = True
    timestamp: str = field(default_factory=utc_timestamp)

    def touch(self) -> None:
        """Refresh the timestamp after a mutation."""
        self.timestamp = utc_timestamp()

    def to_wire(self) -> dict[str, Any]:
        return {
            "temperature": self.temperature,
            "humidity": self.humidity,
            "setpoint": self.setpoint,
            "heaterOn": self.heater_on,
            "fanOn": self.fan_on,
            "timestamp": self.timestamp,
        }
