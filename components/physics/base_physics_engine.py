# components/physics/base_physics_engine.py
"""
Base class for physics simulation engines.

Provides common infrastructure for:
- SimulationClock integration (wall-clock driven update())
- Time-step validation
- State access interface

IncubatorPhysics and the Wokwi chip models inherit from BasePhysicsEngine.
"""

from abc import ABC, abstractmethod
from typing import Any

from components.logging_system import IncubatorLogger, get_logger
from components.time.simulation_clock import SimulationClock

__all__ = ["BasePhysicsEngine"]


class BasePhysicsEngine(ABC):
    """
    Abstract base class for all physics simulation engines.

    Subclasses must implement:
    - step(dt): Advance physics by an explicit time delta
    - get_state(): Return current state object
    - get_telemetry(): Return telemetry dictionary
    """

    def __init__(
        self,
        params: Any | None = None,
        clock: SimulationClock | None = None,
    ):
        """Initialise base physics engine.

        Args:
            params: Engine-specific parameters (typed in subclass)
            clock: Time source for update(); realtime clock if None
        """
        self.params = params
        self.clock = clock or SimulationClock()
        self._last_update_time = self.clock.now()

        self.logger: IncubatorLogger = get_logger(self.__class__.__name__)

    # ----------------------------------------------------------------
    # Physics update
    # ----------------------------------------------------------------

    def update(self) -> float:
        """Advance physics by the clock time elapsed since the last call.

        Returns:
            The time delta that was applied (or skipped)
        """
        now = self.clock.now()
        dt = now - self._last_update_time
        self._last_update_time = now
        self.step(dt)
        return dt

    def _validate_step(self, dt: float) -> bool:
        """Check a time delta before running physics.

        Args:
            dt: Time delta in seconds

        Returns:
            True if the step should proceed, False if it should be skipped
        """
        if dt < 0:
            self.logger.warning(
                f"Invalid time delta {dt} for {self.__class__.__name__}, skipping update"
            )
            return False
        if dt == 0:
            self.logger.debug(f"Zero time delta for {self.__class__.__name__}")
            return False
        return True

    @abstractmethod
    def step(self, dt: float) -> None:
        """Advance physics state by ``dt`` seconds.

        Subclasses call self._validate_step(dt) first and run no time-based
        physics when it returns False.
        """

    # ----------------------------------------------------------------
    # State access
    # ----------------------------------------------------------------

    @abstractmethod
    def get_state(self) -> Any:
        """Get current physics state object."""

    @abstractmethod
    def get_telemetry(self) -> dict[str, Any]:
        """Get current telemetry in dictionary format."""
