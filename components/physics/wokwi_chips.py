# components/physics/wokwi_chips.py
"""
Models of the custom Wokwi chips wired into the incubator circuit.

- HeaterElementChip: resistive heater with an analogue temperature
  feedback pin (DAC, 12-bit)
- TemperatureControllerChip: PID controller reading the feedback pin
  (ADC, 12-bit) and switching the heater's control pin
- WokwiBridge: runs both chips on their own timer periods, wires their
  pins together and pushes the result into IncubatorPhysics via
  set_from_wokwi()

Both chips map 20-50°C onto the 0-4095 converter range.
"""

import logging
from dataclasses import dataclass
from typing import Any

from components.physics.base_physics_engine import BasePhysicsEngine
from components.physics.incubator_physics import IncubatorPhysics
from components.time.simulation_clock import SimulationClock

logger = logging.getLogger(__name__)

CONVERTER_MAX = 4095
FEEDBACK_MIN_C = 20.0
FEEDBACK_SPAN_C = 30.0


def temperature_to_dac(temperature_c: float) -> int:
    """Map a temperature onto the 12-bit feedback range (clamped)."""
    normalised = (temperature_c - FEEDBACK_MIN_C) / FEEDBACK_SPAN_C
    normalised = max(0.0, min(1.0, normalised))
    return int(normalised * CONVERTER_MAX)


def adc_to_temperature(value: int) -> float:
    """Inverse of temperature_to_dac (without the clamp)."""
    return FEEDBACK_MIN_C + (value / CONVERTER_MAX) * FEEDBACK_SPAN_C


# ----------------------------------------------------------------
# Heater element
# ----------------------------------------------------------------


@dataclass
class HeaterElementState:
    """Heater element state.

    Attributes:
        temperature_c: Element temperature
        is_on: Control pin level
        feedback_dac: Value on the TEMP_FEEDBACK pin (0-4095)
    """

    temperature_c: float = 24.0
    is_on: bool = False
    feedback_dac: int = 0


@dataclass
class HeaterElementParameters:
    power_watts: float = 50.0
    ambient_temp_c: float = 24.0
    heat_rate: float = 0.5  # °C/s at 50 W
    cool_rate: float = 0.1  # fraction of (T - ambient) per second
    max_temperature_c: float = 50.0
    update_interval: float = 0.5  # seconds


class HeaterElementChip(BasePhysicsEngine):
    """Heater element chip."""

    def __init__(
        self,
        params: HeaterElementParameters | None = None,
        clock: SimulationClock | None = None,
    ):
        params = params or HeaterElementParameters()
        if params.power_watts <= 0:
            raise ValueError(f"power_watts must be > 0, got {params.power_watts}")

        super().__init__(params, clock)
        self.params: HeaterElementParameters
        self.state = HeaterElementState(temperature_c=params.ambient_temp_c)
        self.state.feedback_dac = temperature_to_dac(self.state.temperature_c)

        logger.info(f"Heater element initialised. Power: {params.power_watts:.0f}W")

    def set_control(self, level: bool) -> None:
        """Drive the CONTROL pin."""
        if level != self.state.is_on:
            logger.debug(f"Heater {'ON' if level else 'OFF'}")
        self.state.is_on = level

    def step(self, dt: float) -> None:
        if not self._validate_step(dt):
            return

        if self.state.is_on:
            heat_rate = self.params.heat_rate * (self.params.power_watts / 50.0)
            self.state.temperature_c += heat_rate * dt
            self.state.temperature_c = min(
                self.state.temperature_c, self.params.max_temperature_c
            )
        else:
            temp_diff = self.state.temperature_c - self.params.ambient_temp_c
            self.state.temperature_c -= self.params.cool_rate * temp_diff * dt

        self.state.feedback_dac = temperature_to_dac(self.state.temperature_c)

    def get_state(self) -> HeaterElementState:
        return self.state

    def get_telemetry(self) -> dict[str, Any]:
        return {
            "temperature_c": round(self.state.temperature_c, 1),
            "is_on": self.state.is_on,
            "feedback_dac": self.state.feedback_dac,
        }


# ----------------------------------------------------------------
# Temperature controller
# ----------------------------------------------------------------


@dataclass
class TemperatureControllerState:
    current_temp_c: float = 36.5
    setpoint_c: float = 37.0
    integral: float = 0.0
    last_error: float = 0.0
    output: float = 0.0
    heater_out: bool = False


@dataclass
class TemperatureControllerParameters:
    kp: float = 2.0
    ki: float = 0.5
    kd: float = 1.0
    integral_limit: float = 10.0  # anti-windup
    heater_threshold: float = 0.5
    update_interval: float = 1.0  # seconds


class TemperatureControllerChip(BasePhysicsEngine):
    """PID temperature controller chip.

    Reads the TEMP_IN pin as an ADC value, drives HEATER_OUT high when the
    PID output exceeds the threshold.
    """

    def __init__(
        self,
        setpoint_c: float = 37.0,
        params: TemperatureControllerParameters | None = None,
        clock: SimulationClock | None = None,
    ):
        super().__init__(params or TemperatureControllerParameters(), clock)
        self.params: TemperatureControllerParameters
        self.state = TemperatureControllerState(setpoint_c=setpoint_c)
        self._temp_in_adc = 0

        logger.info(f"Temperature controller initialised. Setpoint: {setpoint_c:.1f}°C")

    def write_temp_in(self, adc_value: int) -> None:
        """Drive the TEMP_IN pin."""
        self._temp_in_adc = max(0, min(CONVERTER_MAX, int(adc_value)))

    def set_setpoint(self, setpoint_c: float) -> None:
        self.state.setpoint_c = setpoint_c

    def step(self, dt: float) -> None:
        if not self._validate_step(dt):
            return

        self.state.current_temp_c = adc_to_temperature(self._temp_in_adc)

        error = self.state.setpoint_c - self.state.current_temp_c
        self.state.integral += error * dt
        self.state.integral = max(
            -self.params.integral_limit,
            min(self.params.integral_limit, self.state.integral),
        )

        derivative = (error - self.state.last_error) / dt
        self.state.output = (
            self.params.kp * error
            + self.params.ki * self.state.integral
            + self.params.kd * derivative
        )
        self.state.last_error = error

        self.state.heater_out = self.state.output > self.params.heater_threshold

        logger.debug(
            f"Temp: {self.state.current_temp_c:.1f}°C, "
            f"Setpoint: {self.state.setpoint_c:.1f}°C, Error: {error:.2f}, "
            f"Heater: {'ON' if self.state.heater_out else 'OFF'}"
        )

    def get_state(self) -> TemperatureControllerState:
        return self.state

    def get_telemetry(self) -> dict[str, Any]:
        return {
            "current_temp_c": round(self.state.current_temp_c, 1),
            "setpoint_c": self.state.setpoint_c,
            "output": round(self.state.output, 3),
            "heater_out": self.state.heater_out,
        }


# ----------------------------------------------------------------
# Bridge
# ----------------------------------------------------------------


class WokwiBridge:
    """
    Couples the chip models and feeds the incubator engine.

    Each chip runs on its own timer period. The controller reads the
    heater's feedback DAC and drives the heater's control pin; after every
    tick the heater temperature and control level are pushed into the
    engine with set_from_wokwi().

    Example:
        >>> bridge = WokwiBridge(engine)
        >>> bridge.advance(5.0)
    """

    def __init__(
        self,
        engine: IncubatorPhysics,
        heater: HeaterElementChip | None = None,
        controller: TemperatureControllerChip | None = None,
    ):
        self.engine = engine
        self.heater = heater or HeaterElementChip()
        self.controller = controller or TemperatureControllerChip()

        self._heater_due = self.heater.params.update_interval
        self._controller_due = self.controller.params.update_interval
        self.elapsed = 0.0

    def advance(self, seconds: float) -> int:
        """Run chip timers for ``seconds`` of simulated time.

        Returns:
            Number of chip ticks executed
        """
        if seconds < 0:
            raise ValueError(f"Cannot advance negative time: {seconds}")

        target = self.elapsed + seconds
        ticks = 0

        while min(self._heater_due, self._controller_due) <= target:
            # Controller fires first when both timers expire together
            if self._controller_due <= self._heater_due:
                self.elapsed = self._controller_due
                self.controller.write_temp_in(self.heater.state.feedback_dac)
                self.controller.step(self.controller.params.update_interval)
                self.heater.set_control(self.controller.state.heater_out)
                self._controller_due += self.controller.params.update_interval
            else:
                self.elapsed = self._heater_due
                self.heater.step(self.heater.params.update_interval)
                self._heater_due += self.heater.params.update_interval

            self._push_to_engine()
            ticks += 1

        self.elapsed = target
        return ticks

    def _push_to_engine(self) -> None:
        self.engine.set_from_wokwi(
            {
                "temperature": self.heater.state.temperature_c,
                "heaterOn": self.heater.state.is_on,
            }
        )

    def get_status(self) -> dict[str, Any]:
        return {
            "elapsed": self.elapsed,
            "heater": self.heater.get_telemetry(),
            "controller": self.controller.get_telemetry(),
        }
