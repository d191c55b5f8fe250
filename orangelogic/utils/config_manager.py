"""
Connection Configuration Persistence
====================================

This module manages the serialization and deserialization of the
OrangeLogic connection settings, so scripts and the command line can connect
without repeating the domain and credentials on every run.

Key Responsibilities:
---------------------
- File-System Persistence: Stores config in a hidden JSON file in the
  user's home directory (`~/.orangelogic_config.json`).
- Environment Overrides: `ORANGELOGIC_<FIELD>` variables (e.g.
  `ORANGELOGIC_PASSWORD`) take precedence over the file, which keeps
  secrets out of it on shared machines.
- Security Logging: Records save/load events while automatically redacting
  the password.
"""

import json
import logging
import os
from dataclasses import asdict, fields
from pathlib import Path
from typing import Mapping, Optional, Union

from ..core.session import ConnectionConfig
from .logger import log_config

CONFIG_PATH = Path.home() / ".orangelogic_config.json"
ENV_PREFIX = "ORANGELOGIC_"

_TRUE_VALUES = ("1", "true", "yes", "on")


def _coerce(raw: str, current):
    """Convert an environment string to the type of the field's current value."""
    if isinstance(current, bool):
        return raw.strip().lower() in _TRUE_VALUES
    if isinstance(current, int):
        return int(raw)
    return raw


def save_config(config: ConnectionConfig, path: Optional[Union[str, Path]] = None):
    """
    Persist the connection settings to the configuration file.

    Args:
        config: Settings to write
        path: Target file (defaults to CONFIG_PATH)
    """
    logger = logging.getLogger(__name__)
    path = Path(path) if path else CONFIG_PATH

    data = asdict(config)
    log_config("Saving Configuration", data, logger)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)

    logger.info(f"Configuration saved successfully to {path}")


def load_config(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None
) -> ConnectionConfig:
    """
    Load connection settings from the JSON file and the environment.

    A missing file yields the defaults; unknown keys in the file are ignored.
    Environment variables are applied last.

    Args:
        path: Source file (defaults to CONFIG_PATH)
        environ: Environment mapping (defaults to os.environ)

    Returns:
        ConnectionConfig with file and environment values applied

    Raises:
        ValueError: If the file is not valid JSON or a numeric override is not a number
    """
    logger = logging.getLogger(__name__)
    path = Path(path) if path else CONFIG_PATH
    environ = os.environ if environ is None else environ

    config = ConnectionConfig()

    if path.exists():
        logger.info(f"Loading configuration from {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Configuration file is corrupted: {e}")
            raise ValueError(f"Configuration file {path} is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {path} must hold a JSON object")

        for k, v in data.items():
            if hasattr(config, k):
                setattr(config, k, v)
    else:
        logger.info(f"No existing configuration file found at {path}")

    for config_field in fields(ConnectionConfig):
        env_name = f"{ENV_PREFIX}{config_field.name.upper()}"
        if env_name in environ:
            setattr(config, config_field.name, _coerce(environ[env_name], getattr(config, config_field.name)))
            logger.debug(f"Applied override from {env_name}")

    config.domain = config.domain.strip()
    log_config("Loaded Configuration", asdict(config), logger)
    return config
