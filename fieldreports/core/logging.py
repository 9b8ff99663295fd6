"""Logging utilities."""
from __future__ import annotations

import logging.config
from pathlib import Path

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "configs" / "logging.yaml"


def configure_logging(config_path: str | Path | None = None, *, level: str = "INFO") -> None:
    """Apply the YAML dictConfig, or a basic console setup when the file is missing."""
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if path.exists():
        with path.open("r", encoding="utf-8") as config_file:
            logging.config.dictConfig(yaml.safe_load(config_file))
        return
    logging.basicConfig(level=level.upper(), format="%(asctime)s %(levelname)s [%(name)s] %(message)s")


__all__ = ["DEFAULT_CONFIG_PATH", "configure_logging"]
