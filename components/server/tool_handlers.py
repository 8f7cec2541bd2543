# components/server/tool_handlers.py
"""
Request handlers for the incubator tool server.

ToolDispatcher owns the explicit state record it was constructed with
and maps tool names to handlers. Every call returns a ToolResult; request
failures become error results and never reach the transport.
"""

import json
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping

from components.logging_system import EventCategory, EventSeverity, get_logger
from components.server.tool_schema import (
    TOOL_DEFINITIONS,
    ActuatorRequest,
    HistoryRequest,
    SetpointRequest,
    StateRequest,
    ToolError,
    UnknownToolError,
)
from components.state.incubator_state import ToolServerState
from components.state.sensor_history import (
    DEFAULT_DURATION_S,
    DEFAULT_SAMPLES,
    synthesize_history,
)


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one tool call."""

    text: str
    is_error: bool = False

    @classmethod
    def error(cls, message: str) -> "ToolResult":
        return cls(text=f"Error: {message}", is_error=True)


def _format_number(value: float) -> str:
    """Render a number the way the JSON side prints it (37, 36.5)."""
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


def _on_off(state: bool) -> str:
    return "ON" if state else "OFF"


class ToolDispatcher:
    """
    Dispatches tool calls against one ToolServerState.

    Example:
        >>> dispatcher = ToolDispatcher(ToolServerState())
        >>> result = await dispatcher.call("control_fan", {"state": False})
        >>> result.text
        'Fan turned OFF'
    """

    def __init__(
        self,
        state: ToolServerState,
        rng: random.Random | None = None,
        history_samples: int = DEFAULT_SAMPLES,
        history_duration: float = DEFAULT_DURATION_S,
    ):
        self.state = state
        self.rng = rng or random.Random()
        self.history_samples = history_samples
        self.history_duration = history_duration
        self.logger = get_logger(__name__, device="tool_server")

        self._handlers: dict[str, Callable[[Any], Awaitable[ToolResult]]] = {
            "get_simulation_state": self._get_simulation_state,
            "set_temperature_setpoint": self._set_temperature_setpoint,
            "control_heater": self._control_heater,
            "control_fan": self._control_fan,
            "get_sensor_history": self._get_sensor_history,
        }
        self._requests = {
            "get_simulation_state": StateRequest,
            "set_temperature_setpoint": SetpointRequest,
            "control_heater": ActuatorRequest,
            "control_fan": ActuatorRequest,
            "get_sensor_history": HistoryRequest,
        }

    @property
    def tool_names(self) -> list[str]:
        return list(TOOL_DEFINITIONS)

    async def call(
        self, name: str, arguments: Mapping[str, Any] | None = None
    ) -> ToolResult:
        """Validate and dispatch one tool call.

        Args:
            name: Tool name
            arguments: Raw tool arguments

        Returns:
            ToolResult; ``is_error`` is set for unknown tools and invalid
            arguments, in which case state is untouched
        """
        try:
            handler = self._handlers.get(name)
            if handler is None:
                raise UnknownToolError(name)
            request = self._requests[name].from_arguments(arguments)
        except ToolError as e:
            await self.logger.log_event(
                EventSeverity.WARNING,
                EventCategory.COMMUNICATION,
                f"Rejected tool call {name!r}: {e}",
                data={"tool": name},
            )
            return ToolResult.error(str(e))

        self.logger.debug(f"Dispatching {name} with {request}")
        return await handler(request)

    # ----------------------------------------------------------------
    # Handlers
    # ----------------------------------------------------------------

    async def _get_simulation_state(self, request: StateRequest) -> ToolResult:
        return ToolResult(json.dumps(self.state.to_wire(), indent=2))

    async def _set_temperature_setpoint(self, request: SetpointRequest) -> ToolResult:
        previous = self.state.setpoint
        self.state.setpoint = request.temperature
        self.state.touch()

        await self.logger.log_audit(
            f"Setpoint changed {previous} -> {request.temperature}°C",
            action="set_temperature_setpoint",
            result="APPLIED",
            data={"previous": previous, "setpoint": request.temperature},
        )
        return ToolResult(
            f"Temperature setpoint updated to {_format_number(request.temperature)}°C"
        )

    async def _control_heater(self, request: ActuatorRequest) -> ToolResult:
        self.state.heater_on = request.state
        self.state.touch()

        await self.logger.log_audit(
            f"Heater turned {_on_off(request.state)}",
            action="control_heater",
            result="APPLIED",
        )
        return ToolResult(f"Heater turned {_on_off(request.state)}")

    async def _control_fan(self, request: ActuatorRequest) -> ToolResult:
        self.state.fan_on = request.state
        self.state.touch()

        await self.logger.log_audit(
            f"Fan turned {_on_off(request.state)}",
            action="control_fan",
            result="APPLIED",
        )
        return ToolResult(f"Fan turned {_on_off(request.state)}")

    async def _get_sensor_history(self, request: HistoryRequest) -> ToolResult:
        try:
            history = synthesize_history(
                duration=request.duration or self.history_duration,
                samples=self.history_samples,
                rng=self.rng,
            )
        except ValueError as e:
            self.logger.warning(f"History request failed: {e}")
            return ToolResult.error(str(e))
        return ToolResult(
            json.dumps([sample.to_wire() for sample in history], indent=2)
        )
