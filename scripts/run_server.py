"""Script to launch the message relay server."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

import uvicorn

# Ensure src/ is on sys.path (so imports work when run directly)
SRC_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from message_relay.config import load_config  # noqa: E402
from message_relay.reload import NullReload  # noqa: E402
from message_relay.server import create_app  # noqa: E402

logger = logging.getLogger("message_relay")

APP_FACTORY = "message_relay.server:create_app"


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Run the message relay server.")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a YAML config file (default: $MESSAGE_RELAY_CONFIG or config/default.yaml)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=os.environ.get("HOST"),
        help="Host to bind the server to (default: server.host from config)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ["PORT"]) if os.environ.get("PORT") else None,
        help="Port to bind the server to (default: server.port from config, 4000)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Run under uvicorn's file watcher so POST /restart (strategy 'touch') restarts the server",
    )
    args = parser.parse_args(argv)

    cfg = load_config(args.config)
    level = str(cfg.get("logging", {}).get("level", "INFO")).upper()
    logging.basicConfig(level=level, format="[%(asctime)s] %(levelname)s %(name)s - %(message)s")

    server_cfg = cfg.get("server", {})
    host = args.host or server_cfg.get("host", "127.0.0.1")
    port = args.port or int(server_cfg.get("port", 4000))
    logger.info("Server running on %s:%s", host, port)

    if args.reload:
        # uvicorn can only reload from an import string; the factory re-reads
        # the config path from the environment in the worker process.
        if args.config:
            os.environ["MESSAGE_RELAY_CONFIG"] = args.config
        uvicorn.run(
            APP_FACTORY,
            factory=True,
            host=host,
            port=port,
            reload=True,
            reload_dirs=[SRC_DIR],
            log_level="info",
        )
        return

    reloader = None
    restart_cfg = cfg.get("restart", {}) or {}
    if str(restart_cfg.get("strategy", "touch")).lower() == "touch" and not restart_cfg.get("watch_file"):
        logger.warning("No file watcher is running; POST /restart will not restart. Use --reload.")
        reloader = NullReload()

    app = create_app(args.config, reloader=reloader)
    uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()
