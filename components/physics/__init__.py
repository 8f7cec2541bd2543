# components/physics/__init__.py
"""
Physics simulation engines for the incubator simulator.

- Incubator chamber (PID heater control, heat loss, fan, humidity)
- Wokwi chip models (heater element, temperature controller) and the
  bridge that feeds them into the chamber model
"""

from components.physics.incubator_physics import (
    IncubatorParameters,
    IncubatorPhysics,
)
from components.physics.wokwi_chips import (
    HeaterElementChip,
    HeaterElementParameters,
    TemperatureControllerChip,
    TemperatureControllerParameters,
    WokwiBridge,
)

__all__ = [
    # Incubator
    "IncubatorPhysics",
    "IncubatorParameters",
    # Wokwi
    "HeaterElementChip",
    "HeaterElementParameters",
    "TemperatureControllerChip",
    "TemperatureControllerParameters",
    "WokwiBridge",
]
