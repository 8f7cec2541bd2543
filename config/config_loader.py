# config/config_loader.py
"""
Config loader module for modular YAML configuration.
"""

import sys
from pathlib import Path

import yaml


class ConfigLoader:
    """Loads and merges modular configuration files."""

    def __init__(self, config_dir="config"):
        self.config_dir = Path(config_dir)
        self.config_dir.mkdir(parents=True, exist_ok=True)

    def load_all(self):
        """Load all configuration files and merge them."""
        config = {}

        # Load simulation config
        simulation_path = self.config_dir / "simulation.yml"
        if simulation_path.exists():
            simulation_data = self._read_yaml(simulation_path)
            config["simulation"] = {
                "runtime": simulation_data.get("runtime", {}),
                "incubator": simulation_data.get("incubator", {}),
                "wokwi": simulation_data.get("wokwi", {}),
            }
        else:
            config["simulation"] = self._create_default_simulation()
            self._save_simulation(config["simulation"])

        # Load tool server config
        server_path = self.config_dir / "server.yml"
        if server_path.exists():
            server_data = self._read_yaml(server_path)
            config["server"] = {
                "name": server_data.get("name", "incunest-sim-server"),
                "version": server_data.get("version", "1.0.0"),
                "history_samples": server_data.get("history_samples", 10),
                "default_history_duration": server_data.get(
                    "default_history_duration", 3600
                ),
            }
        else:
            config["server"] = {
                "name": "incunest-sim-server",
                "version": "1.0.0",
                "history_samples": 10,
                "default_history_duration": 3600,
            }

        # Load logging config
        logging_path = self.config_dir / "logging.yml"
        if logging_path.exists():
            logging_data = self._read_yaml(logging_path)
            config["logging"] = {
                "level": logging_data.get("level", "INFO"),
                "log_dir": logging_data.get("log_dir"),
                "json_logs": logging_data.get("json_logs", False),
            }
        else:
            config["logging"] = {
                "level": "INFO",
                "log_dir": None,
                "json_logs": False,
            }

        return config

    def _read_yaml(self, path):
        """Read one YAML file, treating an empty file as an empty mapping."""
        with open(path) as f:
            return yaml.safe_load(f) or {}

    def _create_default_simulation(self):
        """Create default simulation configuration."""
        return {
            "runtime": {
                "mode": "realtime",
                "time_acceleration": 1.0,
                "frame_interval": 1 / 60,
                "report_interval": 1.0,
            },
            "incubator": {
                "kp": 0.5,
                "ki": 0.01,
                "kd": 0.1,
                "ambient_temp": 24.0,
            },
            "wokwi": {
                "enabled": False,
                "heater_power_watts": 50.0,
                "controller_setpoint": 37.0,
            },
        }

    def _save_simulation(self, simulation):
        """Save simulation configuration to file."""
        simulation_path = self.config_dir / "simulation.yml"
        with open(simulation_path, "w") as f:
            yaml.dump(simulation, f, default_flow_style=False)
        # stdout belongs to the stdio transport when the tool server is running
        print(
            f"[INFO] Created default simulation config at {simulation_path}",
            file=sys.stderr,
        )
