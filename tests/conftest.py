# tests/conftest.py
"""Shared pytest fixtures for incubator simulator tests.

This file provides common fixtures used across all test modules,
following the bottom-up testing strategy where foundation components
are tested with real dependencies wherever possible.
"""

import logging
import random
from pathlib import Path

import pytest
import yaml

from components.logging_system import configure_logging
from components.physics.incubator_physics import IncubatorPhysics
from components.server.tool_handlers import ToolDispatcher
from components.state.incubator_state import ToolServerState
from components.time.simulation_clock import SimulationClock, manual_clock


# ----------------------------------------------------------------
# Time-related fixtures
# ----------------------------------------------------------------
class FakeWallClock:
    """Monotonic wall clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def tick(self, seconds: float) -> None:
        self.value += seconds


@pytest.fixture
def wall_clock() -> FakeWallClock:
    """Provide a controllable wall-clock source."""
    return FakeWallClock()


@pytest.fixture
def stepped_clock() -> SimulationClock:
    """Provide a STEPPED clock at t=0 for deterministic engine updates."""
    return manual_clock()


# ----------------------------------------------------------------
# Engine fixtures
# ----------------------------------------------------------------
@pytest.fixture
def engine(stepped_clock) -> IncubatorPhysics:
    """Provide an incubator engine with default parameters on a stepped clock."""
    return IncubatorPhysics(clock=stepped_clock)


# ----------------------------------------------------------------
# Tool server fixtures
# ----------------------------------------------------------------
@pytest.fixture
def tool_state() -> ToolServerState:
    """Provide a fresh tool server state record."""
    return ToolServerState()


@pytest.fixture
def dispatcher(tool_state) -> ToolDispatcher:
    """Provide a dispatcher with a seeded random source."""
    return ToolDispatcher(tool_state, rng=random.Random(42))


# ----------------------------------------------------------------
# Configuration fixtures
# ----------------------------------------------------------------
@pytest.fixture
def temp_config_dir(tmp_path) -> Path:
    """Create a temporary directory for test configuration files."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def write_config_file(temp_config_dir):
    """Factory fixture for writing YAML configuration files.

    Returns:
        Function that writes a config dict to a YAML file
    """

    def _write_config(config: dict, filename: str = "simulation.yml") -> Path:
        config_file = temp_config_dir / filename
        with open(config_file, "w") as f:
            yaml.dump(config, f)
        return config_file

    return _write_config


# ----------------------------------------------------------------
# Logging fixtures
# ----------------------------------------------------------------
@pytest.fixture
def restore_logging_defaults():
    """Undo configure_logging() side effects after a test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    # Puts registered loggers back on INFO with no clock
    configure_logging()
    root.handlers[:] = handlers
    root.setLevel(level)
