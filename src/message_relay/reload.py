"""Ways to ask an external process supervisor to restart the server."""
from __future__ import annotations

import logging
import os
import signal
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger("message_relay.reload")


class ReloadTrigger(Protocol):
    def trigger(self) -> None: ...


class TouchFileReload:
    """Bump the mtime of a watched file (uvicorn --reload, nodemon, watchfiles...)."""

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = Path(path) if path else Path(__file__).resolve().with_name("server.py")

    def trigger(self) -> None:
        # Raises if the file is gone; the caller reports it.
        os.utime(self.path, None)
        logger.info("Restart requested, touched %s", self.path)


class SignalReload:
    """Send a signal to an explicit supervisor pid."""

    def __init__(self, pid: int, signum: int = signal.SIGHUP) -> None:
        self.pid = pid
        self.signum = signum

    def trigger(self) -> None:
        os.kill(self.pid, self.signum)
        logger.info("Restart requested, sent signal %s to pid %s", self.signum, self.pid)


class NullReload:
    def trigger(self) -> None:
        logger.info("Restart requested but no reload strategy is configured")


def create_from_config(cfg: Dict[str, Any]) -> ReloadTrigger:
    restart_cfg = (cfg or {}).get("restart", {}) or {}
    strategy = str(restart_cfg.get("strategy", "touch")).lower()
    if strategy == "touch":
        return TouchFileReload(restart_cfg.get("watch_file"))
    if strategy == "signal":
        pid = restart_cfg.get("pid")
        # Never guess the supervisor: the parent may be an interactive shell.
        if pid is None:
            raise RuntimeError("restart.strategy=signal requires restart.pid")
        signame = str(restart_cfg.get("signal", "SIGHUP")).upper()
        return SignalReload(pid=int(pid), signum=getattr(signal, signame))
    if strategy in {"none", "null", "off"}:
        return NullReload()
    raise RuntimeError(f"Unknown restart strategy: {strategy!r}")
