# components/time/simulation_clock.py
"""
Simulation clock for the incubator engine.

Supplies the elapsed time that IncubatorPhysics.update() turns into a
time delta. Wall-clock driven in REALTIME and ACCELERATED modes, advanced
by hand in STEPPED mode, frozen while paused.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

# Configure logging
logger = logging.getLogger(__name__)


# ----------------------------------------------------------------
# Time modes
# ----------------------------------------------------------------
class TimeMode(Enum):
    """Simulation clock operation modes."""

    REALTIME = "realtime"
    ACCELERATED = "accelerated"
    STEPPED = "stepped"


@dataclass
class ClockState:
    """State container for simulation clock tracking."""

    mode: TimeMode = TimeMode.REALTIME
    speed_multiplier: float = 1.0
    # Simulation seconds banked before the current wall-clock segment
    banked_time: float = 0.0
    segment_start: float = 0.0
    paused: bool = False


class SimulationClock:
    """Time source for the simulation engine.

    Each wall-clock segment (between start, pause, resume or speed change)
    contributes ``wall_elapsed * speed`` simulation seconds; completed
    segments are banked so speed changes keep time continuous.

    Example:
        >>> clock = SimulationClock(TimeMode.STEPPED)
        >>> clock.advance(0.5)
        >>> clock.now()
        0.5
    """

    _MAX_SPEED_MULTIPLIER = 1000.0  # Safety limit

    def __init__(
        self,
        mode: TimeMode = TimeMode.REALTIME,
        speed: float = 1.0,
        wall_clock: Callable[[], float] = time.monotonic,
    ):
        """Initialise the clock.

        Args:
            mode: Operating mode
            speed: Speed multiplier (only used in ACCELERATED mode)
            wall_clock: Monotonic wall-clock source in seconds

        Raises:
            ValueError: If speed is <= 0 or exceeds the maximum
        """
        self._wall_clock = wall_clock
        self.state = ClockState(mode=mode, segment_start=wall_clock())
        self._validate_speed(speed)
        self.state.speed_multiplier = speed if mode == TimeMode.ACCELERATED else 1.0

        logger.debug(
            f"SimulationClock created: mode={self.state.mode.value}, "
            f"speed={self.state.speed_multiplier}x"
        )

    @classmethod
    def from_config(cls, runtime_cfg: dict[str, Any]) -> "SimulationClock":
        """Build a clock from the ``simulation.runtime`` config section.

        Invalid values fall back to realtime at 1x with a warning.
        """
        mode_name = runtime_cfg.get("mode", TimeMode.REALTIME.value)
        try:
            mode = TimeMode(mode_name)
        except ValueError:
            logger.warning(f"Invalid clock mode {mode_name!r}, using realtime")
            mode = TimeMode.REALTIME

        speed = runtime_cfg.get("time_acceleration", 1.0)
        if speed <= 0:
            logger.warning(f"Invalid time_acceleration {speed}, using default 1.0")
            speed = 1.0
        elif speed > cls._MAX_SPEED_MULTIPLIER:
            logger.warning(
                f"time_acceleration {speed} exceeds maximum "
                f"{cls._MAX_SPEED_MULTIPLIER}, capping"
            )
            speed = cls._MAX_SPEED_MULTIPLIER

        return cls(mode=mode, speed=speed)

    # ----------------------------------------------------------------
    # Time queries
    # ----------------------------------------------------------------
    def now(self) -> float:
        """Get current simulation time in seconds."""
        if self.state.paused or self.state.mode == TimeMode.STEPPED:
            return self.state.banked_time
        return self.state.banked_time + self._segment_elapsed()

    def delta(self, last_time: float) -> float:
        """Calculate simulation time elapsed since a previous reading."""
        return self.now() - last_time

    def speed(self) -> float:
        """Get current speed multiplier (1.0 = realtime)."""
        return self.state.speed_multiplier

    def is_paused(self) -> bool:
        """Check if the clock is currently paused."""
        return self.state.paused

    # ----------------------------------------------------------------
    # Time control
    # ----------------------------------------------------------------
    def pause(self) -> None:
        """Freeze simulation time."""
        if self.state.paused:
            logger.warning("SimulationClock already paused")
            return

        self._bank_segment()
        self.state.paused = True
        logger.info("SimulationClock paused")

    def resume(self) -> None:
        """Resume simulation time after pause."""
        if not self.state.paused:
            logger.warning("SimulationClock not paused")
            return

        self.state.paused = False
        self.state.segment_start = self._wall_clock()
        logger.info("SimulationClock resumed")

    def set_speed(self, multiplier: float) -> None:
        """Change the speed multiplier and switch to ACCELERATED mode.

        Raises:
            ValueError: If multiplier is <= 0 or exceeds maximum
            RuntimeError: If the clock is in STEPPED mode
        """
        self._validate_speed(multiplier)
        if self.state.mode == TimeMode.STEPPED:
            raise RuntimeError("set_speed() is not valid in stepped mode")

        old_speed = self.state.speed_multiplier
        self._bank_segment()
        self.state.speed_multiplier = multiplier
        self.state.mode = TimeMode.ACCELERATED
        logger.info(f"SimulationClock speed changed: {old_speed}x -> {multiplier}x")

    def advance(self, delta_seconds: float) -> None:
        """Manually advance simulation time (STEPPED mode).

        Raises:
            ValueError: If delta_seconds is negative
            RuntimeError: If not in STEPPED mode
        """
        if delta_seconds < 0:
            raise ValueError(f"Cannot step negative time: {delta_seconds}")
        if self.state.mode != TimeMode.STEPPED:
            raise RuntimeError(
                f"advance() only valid in stepped mode, "
                f"current mode is {self.state.mode.value}"
            )

        self.state.banked_time += delta_seconds

    def reset(self) -> None:
        """Reset simulation time to zero, keeping mode and speed."""
        self.state.banked_time = 0.0
        self.state.segment_start = self._wall_clock()
        logger.info("SimulationClock reset to zero")

    def get_status(self) -> dict[str, Any]:
        """Get clock status."""
        return {
            "simulation_time": self.now(),
            "mode": self.state.mode.value,
            "speed_multiplier": self.state.speed_multiplier,
            "paused": self.state.paused,
        }

    # ----------------------------------------------------------------
    # Internals
    # ----------------------------------------------------------------
    def _segment_elapsed(self) -> float:
        wall_delta = self._wall_clock() - self.state.segment_start
        return wall_delta * self.state.speed_multiplier

    def _bank_segment(self) -> None:
        if not self.state.paused and self.state.mode != TimeMode.STEPPED:
            self.state.banked_time += self._segment_elapsed()
        self.state.segment_start = self._wall_clock()

    def _validate_speed(self, multiplier: float) -> None:
        if multiplier <= 0:
            raise ValueError(f"Speed multiplier must be > 0, got {multiplier}")
        if multiplier > self._MAX_SPEED_MULTIPLIER:
            raise ValueError(
                f"Speed multiplier {multiplier} exceeds maximum "
                f"{self._MAX_SPEED_MULTIPLIER}"
            )


def manual_clock(start: Optional[float] = None) -> SimulationClock:
    """Create a STEPPED clock, optionally pre-advanced to ``start`` seconds."""
    clock = SimulationClock(TimeMode.STEPPED)
    if start:
        clock.advance(start)
    return clock
