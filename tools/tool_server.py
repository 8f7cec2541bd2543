#!/usr/bin/env python3
# tools/tool_server.py
"""
Incubator Tool Server - MCP tools over stdio

Starts the incunest-sim-server and serves the five incubator tools to
an MCP client on stdin/stdout. The server keeps its own state record,
independent of any running simulation engine.

All logging goes to stderr; stdout carries protocol traffic only.

Usage:
  python tools/tool_server.py
  python tools/tool_server.py --config-dir config --log-level DEBUG
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from components.logging_system import configure_logging, get_logger
from components.server.mcp_server import IncubatorToolServer
from components.server.tool_handlers import ToolDispatcher
from components.state.incubator_state import ToolServerState
from config.config_loader import ConfigLoader

logger = get_logger(__name__)


def build_server(config_dir: str = "config") -> IncubatorToolServer:
    """Load configuration and assemble state, dispatcher and server."""
    config = ConfigLoader(config_dir=config_dir).load_all()
    server_cfg = config["server"]

    dispatcher = ToolDispatcher(
        ToolServerState(),
        history_samples=server_cfg.get("history_samples", 10),
        history_duration=float(server_cfg.get("default_history_duration", 3600)),
    )
    return IncubatorToolServer(
        dispatcher,
        name=server_cfg.get("name", "incunest-sim-server"),
        version=str(server_cfg.get("version", "1.0.0")),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Serve the incubator tools over MCP stdio",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config-dir", default="config", help="Directory with YAML config files"
    )
    parser.add_argument("--log-level", help="Override logging level")
    return parser


async def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        logging_cfg = ConfigLoader(config_dir=args.config_dir).load_all()["logging"]
        configure_logging(
            log_dir=logging_cfg.get("log_dir") if logging_cfg.get("json_logs") else None,
            level=args.log_level or logging_cfg.get("level", "INFO"),
        )

        server = build_server(args.config_dir)
        logger.info(f"{server.name} {server.version} running on stdio")
        await server.run_stdio()
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1

    return 0


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
