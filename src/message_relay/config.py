"""Configuration loading utilities for the message relay.

This module handles layered configuration:
1. Explicit path argument (highest precedence)
2. Environment variable MESSAGE_RELAY_CONFIG
3. Fallback to "config/default.yaml"

Values from the file are merged over :data:`DEFAULTS`, and a ``.env`` file in
the working directory is loaded first so ``OPENAI_API_KEY`` can live there.

It also supports optional overrides from environment variables with prefix
``MESSAGE_RELAY__`` (e.g., MESSAGE_RELAY__LLM__MODEL=gpt-4o).
"""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict

import yaml
from dotenv import load_dotenv

logger = logging.getLogger("message_relay.config")

ENV_PREFIX = "MESSAGE_RELAY__"
SECRET_KEYS = {"api_key"}

DEFAULTS: Dict[str, Any] = {
    "server": {
        "host": "127.0.0.1",
        "port": 4000,
        "enable_restart": True,
        "cors": {
            "allow_origins": [],
            "allow_methods": ["GET", "POST"],
            "allow_headers": ["Content-Type"],
        },
    },
    "llm": {
        "model": "gpt-4",
        "max_tokens": 400,
        "temperature": 0.7,
        "timeout": None,
        "base_url": None,
    },
    "prompts": {
        "default_category": "collaborative",
        "allow_freeform": True,
        "require_category": False,
    },
    "restart": {
        "strategy": "touch",
        "watch_file": None,
        "pid": None,
        "signal": "SIGHUP",
    },
    "logging": {"level": "INFO"},
}


def _coerce(value: str) -> Any:
    if value.lower() in {"true", "false"}:
        return value.lower() == "true"
    if value.lower() in {"null", "none"}:
        return None
    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        return value


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable overrides with prefix MESSAGE_RELAY__."""
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        # e.g., MESSAGE_RELAY__SERVER__PORT -> cfg["server"]["port"]
        parts = key[len(ENV_PREFIX):].lower().split("__")
        sub = cfg
        for p in parts[:-1]:
            if p not in sub or not isinstance(sub[p], dict):
                sub[p] = {}
            sub = sub[p]
        sub[parts[-1]] = _coerce(value)
    return cfg


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _deep_merge(out[key], value)
        else:
            out[key] = value
    return out


def load_config(path: str | None = None) -> Dict[str, Any]:
    """Load YAML configuration for the relay.

    Parameters
    ----------
    path : str | None
        Optional path to a configuration file. If not provided, the
        environment variable ``MESSAGE_RELAY_CONFIG`` is consulted. As a
        last resort ``config/default.yaml`` is used.

    Returns
    -------
    Dict[str, Any]
        Defaults merged with the parsed file, with environment overrides applied.
    """
    load_dotenv()

    if path is None:
        path = os.environ.get("MESSAGE_RELAY_CONFIG", "config/default.yaml")

    path_obj = Path(path)
    if not path_obj.exists():
        logger.warning("Config file not found at %s. Using defaults.", path_obj)
        return _apply_env_overrides(copy.deepcopy(DEFAULTS))

    with path_obj.open("r", encoding="utf-8") as f:
        try:
            loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise RuntimeError(f"Failed to parse config file {path_obj}: {e}")

    if not isinstance(loaded, dict):
        raise RuntimeError(f"Invalid config format in {path_obj}, expected dict.")

    return _apply_env_overrides(_deep_merge(DEFAULTS, loaded))


def redact(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``cfg`` with secret values masked, safe for logging."""
    out: Dict[str, Any] = {}
    for key, value in cfg.items():
        if isinstance(value, dict):
            out[key] = redact(value)
        elif key in SECRET_KEYS and value:
            out[key] = "***"
        else:
            out[key] = value
    return out
