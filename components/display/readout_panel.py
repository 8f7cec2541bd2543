# components/display/readout_panel.py
"""
Headless readout panel for the incubator.

Renders the engine state into the text of the front-panel readouts,
keyed by the element ids the browser front-end uses, and forwards the
panel buttons into the engine. Also tracks the two animated bits of the
scene that depend on state: fan blade angle and heater glow.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any

from components.physics.incubator_physics import IncubatorPhysics

logger = logging.getLogger(__name__)

# Readout element ids
TEMP_INTERNAL = "temp-internal"
TEMP_SETPOINT = "temp-setpoint"
HUMIDITY = "humidity"
HEATER_STATUS = "heater-status"
FAN_STATUS = "fan-status"

READOUT_IDS = (TEMP_INTERNAL, TEMP_SETPOINT, HUMIDITY, HEATER_STATUS, FAN_STATUS)

# Action element ids
TOGGLE_DOOR = "toggle-door"
TOGGLE_HEATER = "toggle-heater"
RESET_SIM = "reset-sim"

ACTION_IDS = (TOGGLE_DOOR, TOGGLE_HEATER, RESET_SIM)

FAN_BLADE_STEP_RAD = 0.1
HEATER_GLOW_ON = 0.8
HEATER_GLOW_OFF = 0.2


def format_readouts(data: dict[str, Any]) -> dict[str, str]:
    """Format an engine snapshot into readout text."""
    return {
        TEMP_INTERNAL: f"{data['temperature']:.1f}°C",
        TEMP_SETPOINT: f"{data['setpoint']:.1f}°C",
        HUMIDITY: f"{data['humidity']:.0f}%",
        HEATER_STATUS: "ON" if data["heaterOn"] else "OFF",
        FAN_STATUS: "ON" if data["fanOn"] else "OFF",
    }


@dataclass
class SceneState:
    """State-driven parts of the 3D scene."""

    fan_blade_angle: float = 0.0
    heater_glow: float = HEATER_GLOW_ON
    door_open: bool = False


class ReadoutPanel:
    """
    Per-frame bridge between the engine and the front panel.

    Example:
        >>> panel = ReadoutPanel(IncubatorPhysics())
        >>> panel.frame()[TEMP_INTERNAL]
        '36.5°C'
    """

    def __init__(self, engine: IncubatorPhysics):
        self.engine = engine
        self.scene = SceneState()
        self.frames = 0

    def render(self) -> dict[str, str]:
        """Readout text for the current engine state."""
        return format_readouts(self.engine.get_data())

    def frame(self) -> dict[str, str]:
        """Advance one animation frame: update engine, scene and readouts."""
        self.engine.update()
        data = self.engine.get_data()

        if data["fanOn"]:
            self.scene.fan_blade_angle = (
                self.scene.fan_blade_angle + FAN_BLADE_STEP_RAD
            ) % (2 * math.pi)
        self.scene.heater_glow = HEATER_GLOW_ON if data["heaterOn"] else HEATER_GLOW_OFF

        self.frames += 1
        return format_readouts(data)

    def dispatch(self, element_id: str) -> None:
        """Handle a click on one of the panel buttons.

        Raises:
            ValueError: If element_id is not a known action
        """
        if element_id == TOGGLE_DOOR:
            self.scene.door_open = not self.scene.door_open
            logger.info(f"Door {'opened' if self.scene.door_open else 'closed'}")
        elif element_id == TOGGLE_HEATER:
            self.engine.toggle_heater()
        elif element_id == RESET_SIM:
            self.engine.reset()
        else:
            raise ValueError(f"Unknown panel action: {element_id}")
