#!/usr/bin/env python3
# tools/incubator_runner.py
"""
Incubator Runner - headless front-end for the simulation engine

Drives IncubatorPhysics in a frame loop the way the browser front-end
does: update the engine once per frame, refresh the panel readouts, and
forward panel actions into the engine. Readouts are logged at a fixed
report interval.

Optionally couples the Wokwi chip models (heater element + temperature
controller) through WokwiBridge.

Usage:
  python tools/incubator_runner.py --duration 60
  python tools/incubator_runner.py --speed 50 --duration 3600 --setpoint 38
  python tools/incubator_runner.py --wokwi --duration 120
"""

import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import Any

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from components.display.readout_panel import ACTION_IDS, ReadoutPanel
from components.logging_system import (
    AlarmPriority,
    AlarmState,
    configure_logging,
    get_logger,
)
from components.physics.incubator_physics import IncubatorParameters, IncubatorPhysics
from components.physics.wokwi_chips import (
    HeaterElementChip,
    HeaterElementParameters,
    TemperatureControllerChip,
    WokwiBridge,
)
from components.time.simulation_clock import SimulationClock, TimeMode
from config.config_loader import ConfigLoader

logger = get_logger(__name__)


class IncubatorRunner:
    """
    Frame loop around one engine instance.

    Example:
        >>> runner = IncubatorRunner()
        >>> runner.initialise()
        >>> await runner.run(duration=10.0)
    """

    def __init__(self, config_dir: str = "config"):
        """Initialise runner.

        Args:
            config_dir: Directory containing configuration files
        """
        self.config_dir = Path(config_dir)
        self.config_loader = ConfigLoader(config_dir=str(self.config_dir))

        self.config: dict[str, Any] = {}
        self.clock: SimulationClock | None = None
        self.engine: IncubatorPhysics | None = None
        self.panel: ReadoutPanel | None = None
        self.bridge: WokwiBridge | None = None

        self.frame_interval = 1 / 60
        self.report_interval = 1.0

        self._initialised = False
        self._last_report_time = 0.0
        self._last_bridge_time = 0.0
        self._limit_alarm_active = False
        self._shutdown_event = asyncio.Event()

    # ----------------------------------------------------------------
    # Initialisation
    # ----------------------------------------------------------------

    def initialise(
        self,
        speed: float | None = None,
        wokwi: bool | None = None,
        log_level: str | None = None,
    ) -> None:
        """Load configuration, set up logging and build clock, engine, panel
        and bridge.

        Args:
            speed: Override time acceleration (switches to accelerated mode)
            wokwi: Override the wokwi.enabled setting
            log_level: Override the logging.level setting

        Raises:
            RuntimeError: If initialisation fails
        """
        if self._initialised:
            logger.warning("Runner already initialised")
            return

        try:
            self.config = self.config_loader.load_all()
            simulation_cfg = self.config["simulation"]
            runtime_cfg = dict(simulation_cfg.get("runtime", {}))

            if speed is not None:
                runtime_cfg["mode"] = TimeMode.ACCELERATED.value
                runtime_cfg["time_acceleration"] = speed

            self.frame_interval = runtime_cfg.get("frame_interval", 1 / 60)
            self.report_interval = runtime_cfg.get("report_interval", 1.0)

            self.clock = SimulationClock.from_config(runtime_cfg)

            # Configured before the engine so its logger picks up this clock
            logging_cfg = self.config["logging"]
            configure_logging(
                log_dir=logging_cfg.get("log_dir") if logging_cfg.get("json_logs") else None,
                clock=self.clock,
                level=log_level or logging_cfg.get("level", "INFO"),
            )

            params = IncubatorParameters.from_config(simulation_cfg.get("incubator", {}))
            self.engine = IncubatorPhysics(params, clock=self.clock)
            self.panel = ReadoutPanel(self.engine)

            wokwi_cfg = simulation_cfg.get("wokwi", {})
            if wokwi is None:
                wokwi = wokwi_cfg.get("enabled", False)
            if wokwi:
                self.bridge = self._create_bridge(wokwi_cfg)

            self._last_report_time = self.clock.now()
            self._last_bridge_time = self.clock.now()
            self._initialised = True

            logger.info(
                f"Runner initialised: clock={self.clock.state.mode.value} "
                f"x{self.clock.speed()}, frame={self.frame_interval:.4f}s, "
                f"wokwi={'on' if self.bridge else 'off'}"
            )
        except Exception as e:
            logger.error(f"Initialisation failed: {e}", exc_info=True)
            raise RuntimeError(f"Failed to initialise runner: {e}") from e

    def _create_bridge(self, wokwi_cfg: dict[str, Any]) -> WokwiBridge:
        heater = HeaterElementChip(
            HeaterElementParameters(
                power_watts=wokwi_cfg.get("heater_power_watts", 50.0),
                ambient_temp_c=self.engine.params.ambient_temp,
            ),
            clock=self.clock,
        )
        controller = TemperatureControllerChip(
            setpoint_c=wokwi_cfg.get("controller_setpoint", 37.0),
            clock=self.clock,
        )
        return WokwiBridge(self.engine, heater, controller)

    # ----------------------------------------------------------------
    # Frame loop
    # ----------------------------------------------------------------

    def step_frame(self) -> dict[str, str]:
        """Run one frame and return the readouts.

        Raises:
            RuntimeError: If not initialised
        """
        if not self._initialised:
            raise RuntimeError("Runner not initialised. Call initialise() first.")

        readouts = self.panel.frame()

        if self.bridge:
            elapsed = self.clock.delta(self._last_bridge_time)
            self.bridge.advance(max(0.0, elapsed))
            self._last_bridge_time += elapsed
            readouts = self.panel.render()

        if self.clock.now() - self._last_report_time >= self.report_interval:
            self._last_report_time = self.clock.now()
            logger.info(
                "  ".join(f"{element_id}={text}" for element_id, text in readouts.items())
            )

        return readouts

    def perform(self, element_id: str) -> dict[str, str]:
        """Click a panel button and return the refreshed readouts."""
        if not self._initialised:
            raise RuntimeError("Runner not initialised. Call initialise() first.")

        self.panel.dispatch(element_id)
        logger.info(f"Panel action: {element_id}")
        return self.panel.render()

    async def run(
        self, duration: float | None = None, max_frames: int | None = None
    ) -> int:
        """Run frames until duration (simulation seconds), max_frames or shutdown.

        Shutdown is checked before each frame, so a request made before the
        call runs no frames and one made mid-run lets the current frame finish.

        Returns:
            Number of frames run
        """
        if not self._initialised:
            raise RuntimeError("Runner not initialised. Call initialise() first.")

        start = self.clock.now()
        frames = 0

        while not self._shutdown_event.is_set():
            self.step_frame()
            frames += 1
            await self._check_limit_alarm()

            if max_frames is not None and frames >= max_frames:
                break
            if duration is not None and self.clock.now() - start >= duration:
                break

            await asyncio.sleep(self.frame_interval)

        logger.info(f"Runner stopped after {frames} frames: {self.engine.get_telemetry()}")
        return frames

    async def _check_limit_alarm(self) -> None:
        at_limit = self.engine.is_temperature_at_limit()
        if at_limit == self._limit_alarm_active:
            return

        self._limit_alarm_active = at_limit
        await logger.log_alarm(
            f"Chamber temperature at limit: {self.engine.state.temperature:.2f}°C",
            priority=AlarmPriority.HIGH,
            state=AlarmState.ACTIVE if at_limit else AlarmState.CLEARED,
            data={"temperature": self.engine.state.temperature},
        )

    def request_shutdown(self) -> None:
        self._shutdown_event.set()

    def setup_signal_handlers(self) -> None:
        """Set up signal handlers for graceful shutdown."""

        def signal_handler(signum, frame):
            logger.info(f"Received signal {signum}")
            self.request_shutdown()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def get_status(self) -> dict[str, Any]:
        return {
            "initialised": self._initialised,
            "clock": self.clock.get_status() if self.clock else None,
            "engine": self.engine.get_telemetry() if self.engine else None,
            "frames": self.panel.frames if self.panel else 0,
            "wokwi": self.bridge.get_status() if self.bridge else None,
        }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run the incubator simulation headless",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config-dir", default="config", help="Directory with YAML config files"
    )
    parser.add_argument(
        "--duration", type=float, help="Simulation seconds to run (default: forever)"
    )
    parser.add_argument(
        "--speed", type=float, help="Time acceleration factor (e.g. 60)"
    )
    parser.add_argument("--setpoint", type=float, help="Temperature setpoint in °C")
    parser.add_argument(
        "--fan-off", action="store_true", help="Start with the fan switched off"
    )
    parser.add_argument(
        "--action",
        action="append",
        default=[],
        choices=ACTION_IDS,
        help="Panel action to perform before the loop starts (repeatable)",
    )
    parser.add_argument(
        "--wokwi", action="store_true", help="Couple the Wokwi chip models"
    )
    parser.add_argument("--log-level", help="Override logging level")
    return parser


async def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    runner = IncubatorRunner(config_dir=args.config_dir)
    try:
        runner.initialise(
            speed=args.speed,
            wokwi=True if args.wokwi else None,
            log_level=args.log_level,
        )

        if args.setpoint is not None:
            runner.engine.set_temperature_setpoint(args.setpoint)
        if args.fan_off:
            runner.engine.toggle_fan()
        for element_id in args.action:
            runner.perform(element_id)

        runner.setup_signal_handlers()
        await runner.run(duration=args.duration)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1

    return 0


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
