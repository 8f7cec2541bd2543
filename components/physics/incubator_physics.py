# components/physics/incubator_physics.py
"""
Infant incubator physics simulation.

Models the chamber of a neonatal incubator:
- Heater on/off control from a PID controller
- Heat loss to the room
- Fan circulation blending the chamber towards a target
- Humidity rising while the heater evaporates the water reservoir

The controller overwrites the heater flag on every step, so a manual
toggle_heater() only lasts until the next update.
"""

import logging
from dataclasses import dataclass, fields
from typing import Any, Mapping

from components.physics.base_physics_engine import BasePhysicsEngine
from components.state.incubator_state import WIRE_KEYS, IncubatorState
from components.time.simulation_clock import SimulationClock

logger = logging.getLogger(__name__)

# Keys accepted from the Wokwi side, mapped onto state attributes
WOKWI_FIELDS = ("temperature", "humidity", "heater_on", "fan_on")


@dataclass
class IncubatorParameters:
    """Incubator design parameters.

    Attributes:
        kp: PID proportional gain
        ki: PID integral gain
        kd: PID derivative gain
        heater_threshold: Control output above which the heater runs
        heat_rate: Heater input in °C/s (independent of control output)
        heat_loss_coefficient: Fraction of (T - ambient) lost per second
        fan_blend_rate: Fraction of the gap to the fan target closed per second
        humidity_rise_rate: %/s while heating
        humidity_fall_rate: %/s while not heating
        min_temperature_c: Lower temperature clamp
        max_temperature_c: Upper temperature clamp
        min_setpoint_c: Lower setpoint clamp
        max_setpoint_c: Upper setpoint clamp
        min_humidity_percent: Lower humidity clamp
        max_humidity_percent: Upper humidity clamp
        ambient_temp: Room temperature in Celsius
    """

    kp: float = 0.5
    ki: float = 0.01
    kd: float = 0.1
    heater_threshold: float = 0.1
    heat_rate: float = 0.01
    heat_loss_coefficient: float = 0.002
    fan_blend_rate: float = 0.005
    humidity_rise_rate: float = 0.1
    humidity_fall_rate: float = 0.05
    min_temperature_c: float = 25.0
    max_temperature_c: float = 40.0
    min_setpoint_c: float = 30.0
    max_setpoint_c: float = 40.0
    min_humidity_percent: float = 40.0
    max_humidity_percent: float = 85.0
    ambient_temp: float = 24.0

    @classmethod
    def from_config(cls, incubator_cfg: Mapping[str, Any]) -> "IncubatorParameters":
        """Build parameters from the ``simulation.incubator`` config section.

        Unknown keys are ignored with a warning.
        """
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in incubator_cfg.items():
            if key in known:
                values[key] = float(value)
            else:
                logger.warning(f"Ignoring unknown incubator parameter {key!r}")
        return cls(**values)


class IncubatorPhysics(BasePhysicsEngine):
    """
    Simulates the incubator chamber.

    update() measures the elapsed clock time and calls step(dt); tests and
    the Wokwi bridge may call step(dt) directly.

    Example:
        >>> engine = IncubatorPhysics()
        >>> engine.update()  # Called once per frame
        >>> engine.get_data()["temperature"]
        36.5
    """

    def __init__(
        self,
        params: IncubatorParameters | None = None,
        clock: SimulationClock | None = None,
    ):
        """Initialise incubator physics engine.

        Args:
            params: Incubator parameters (uses defaults if None)
            clock: Time source for update()
        """
        super().__init__(params or IncubatorParameters(), clock)
        self.params: IncubatorParameters
        self.state = IncubatorState(ambient_temp=self.params.ambient_temp)
        self._control_output: float = 0.0
        self._at_limit = False

        logger.info(
            f"Incubator physics created "
            f"(kp={self.params.kp}, ki={self.params.ki}, kd={self.params.kd}, "
            f"ambient {self.params.ambient_temp}°C)"
        )

    # ----------------------------------------------------------------
    # Physics simulation
    # ----------------------------------------------------------------

    def step(self, dt: float) -> None:
        """Update incubator physics for one simulation step.

        Args:
            dt: Time delta in seconds
        """
        if self._validate_step(dt):
            self._update_controller(dt)
            self._update_temperature(dt)
            self._update_humidity(dt)
        elif dt < 0:
            return

        # Bands hold after every update, including a zero-length one that
        # follows a Wokwi overwrite
        self._clamp_temperature()
        self._clamp_humidity()

        logger.debug(
            f"T={self.state.temperature:.2f}°C "
            f"(SP {self.state.setpoint:.1f}°C), "
            f"RH={self.state.humidity:.1f}%, "
            f"heater={'ON' if self.state.heater_on else 'OFF'}, "
            f"u={self._control_output:.3f}"
        )

    def _update_controller(self, dt: float) -> None:
        """Run the PID controller and set the heater flag from its output."""
        error = self.state.setpoint - self.state.temperature
        self.state.integral += error * dt
        derivative = (error - self.state.last_error) / dt
        self._control_output = (
            self.params.kp * error
            + self.params.ki * self.state.integral
            + self.params.kd * derivative
        )
        self.state.last_error = error

        self.state.heater_on = self._control_output > self.params.heater_threshold

    def _update_temperature(self, dt: float) -> None:
        """Apply heater input, heat loss and fan circulation."""
        if self.state.heater_on:
            # Fixed input rate, not proportional to control output
            self.state.temperature += self.params.heat_rate * dt

        heat_loss = (
            (self.state.temperature - self.state.ambient_temp)
            * self.params.heat_loss_coefficient
            * dt
        )
        self.state.temperature -= heat_loss

        if self.state.fan_on:
            target = (
                self.state.setpoint if self.state.heater_on else self.state.ambient_temp
            )
            self.state.temperature += (
                (target - self.state.temperature) * self.params.fan_blend_rate * dt
            )

    def _clamp_temperature(self) -> None:
        clamped = max(
            self.params.min_temperature_c,
            min(self.params.max_temperature_c, self.state.temperature),
        )
        at_limit = clamped != self.state.temperature
        # Warn once per excursion, not on every frame spent at the limit
        if at_limit and not self._at_limit:
            logger.warning(
                f"Chamber temperature {self.state.temperature:.2f}°C outside "
                f"[{self.params.min_temperature_c}, {self.params.max_temperature_c}], "
                f"clamped to {clamped}°C"
            )
        self._at_limit = at_limit
        self.state.temperature = clamped

    def _update_humidity(self, dt: float) -> None:
        """Evaporation while heating, slow drying otherwise."""
        if self.state.heater_on:
            self.state.humidity += self.params.humidity_rise_rate * dt
        else:
            self.state.humidity -= self.params.humidity_fall_rate * dt

    def _clamp_humidity(self) -> None:
        self.state.humidity = max(
            self.params.min_humidity_percent,
            min(self.params.max_humidity_percent, self.state.humidity),
        )

    # ----------------------------------------------------------------
    # Operator controls
    # ----------------------------------------------------------------

    def toggle_heater(self) -> bool:
        """Flip the heater flag. Overwritten by the controller on the next step."""
        self.state.heater_on = not self.state.heater_on
        logger.info(f"Heater toggled {'ON' if self.state.heater_on else 'OFF'}")
        return self.state.heater_on

    def toggle_fan(self) -> bool:
        """Flip the fan flag."""
        self.state.fan_on = not self.state.fan_on
        logger.info(f"Fan toggled {'ON' if self.state.fan_on else 'OFF'}")
        return self.state.fan_on

    def set_temperature_setpoint(self, temp: float) -> float:
        """Clamp ``temp`` to the setpoint range and assign it.

        Returns:
            The setpoint actually applied
        """
        self.state.setpoint = max(
            self.params.min_setpoint_c, min(self.params.max_setpoint_c, temp)
        )
        logger.info(f"Setpoint set to {self.state.setpoint}°C (requested {temp}°C)")
        return self.state.setpoint

    def reset(self) -> None:
        """Restore all state to the documented defaults."""
        self.state.reset()
        self._control_output = 0.0
        self._at_limit = False
        logger.info("Incubator state reset to defaults")

    def set_from_wokwi(self, data: Mapping[str, Any]) -> None:
        """Overwrite fields reported by the Wokwi simulation.

        Only ``temperature``, ``humidity``, ``heaterOn`` and ``fanOn`` are
        read; absent keys leave the field untouched. Values are applied as
        given, without clamping or validation.

        Raises:
            TypeError: If data is not a mapping
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"Wokwi data must be a mapping, got {type(data).__name__}")

        for name in WOKWI_FIELDS:
            key = WIRE_KEYS[name]
            if key in data:
                setattr(self.state, name, data[key])

    # ----------------------------------------------------------------
    # State access
    # ----------------------------------------------------------------

    def get_data(self) -> dict[str, Any]:
        """Public fields under their camelCase keys, as a new dict.

        The result can be fed straight back into set_from_wokwi().
        """
        return self.state.to_wire()

    def get_state(self) -> IncubatorState:
        """Get current incubator state."""
        return self.state

    def get_control_output(self) -> float:
        """PID output computed on the last step."""
        return self._control_output

    def is_temperature_at_limit(self) -> bool:
        """True if the last step clamped the chamber temperature."""
        return self._at_limit

    def get_telemetry(self) -> dict[str, Any]:
        """Get telemetry data in dictionary format."""
        return {
            "temperature_c": round(self.state.temperature, 2),
            "setpoint_c": round(self.state.setpoint, 1),
            "humidity_percent": round(self.state.humidity, 1),
            "heater_on": self.state.heater_on,
            "fan_on": self.state.fan_on,
            "ambient_temp_c": self.state.ambient_temp,
            "control_output": round(self._control_output, 4),
            "error_c": round(self.state.setpoint - self.state.temperature, 2),
        }
