"""Logging configuration helpers."""
from __future__ import annotations

import logging
import logging.config
import os
from pathlib import Path

import yaml  # type: ignore[import-untyped]

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "../.." / "configs" / "logging.yaml"


def configure_logging(config_path: Path | None = None) -> None:
    """Configure logging from YAML, honouring ``FUEL_LOG_CONFIG`` and ``FUEL_LOG_LEVEL``."""
    override = os.environ.get("FUEL_LOG_CONFIG")
    path = config_path or (Path(override) if override else DEFAULT_CONFIG_PATH)
    level = os.environ.get("FUEL_LOG_LEVEL", "").upper() or None

    if path.exists():
        with path.open("r", encoding="utf-8") as config_file:
            config = yaml.safe_load(config_file)
        if level:
            for logger_config in config.get("loggers", {}).values():
                logger_config["level"] = level
            config.setdefault("root", {})["level"] = level
        logging.config.dictConfig(config)
    else:
        logging.basicConfig(level=level or logging.INFO)


__all__ = ["configure_logging"]
