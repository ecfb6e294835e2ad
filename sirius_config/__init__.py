"""
sirius_config -- single public entrypoint for wizard engine settings.

Responsibility:
    ``get_settings()`` is the only way services obtain configuration.
    Resolution order: explicit path, then the ``SIRIUS_CONFIG_FILE``
    environment variable, then the packaged ``defaults.yaml``.
"""

from __future__ import annotations

import os
from pathlib import Path

from sirius_config.loader import load_yaml_file, parse_settings
from sirius_config.schema import RETENTION_DAYS, WizardSettings
from sirius_kernel.logging_config import get_logger

logger = get_logger("config")

_DEFAULT_CONFIG_FILE = Path(__file__).parent / "defaults.yaml"
CONFIG_ENV_VAR = "SIRIUS_CONFIG_FILE"


def get_settings(config_path: Path | str | None = None) -> WizardSettings:
    """
    Load settings.

    Raises:
        FileNotFoundError: If the resolved file does not exist.
        ValueError: If the file contains unknown keys or invalid values.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    path = Path(config_path or env_path or _DEFAULT_CONFIG_FILE)
    settings = parse_settings(load_yaml_file(path))
    logger.debug(
        "settings_loaded",
        extra={"config_path": str(path), "batch_size": settings.batch_size},
    )
    return settings


__all__ = ["get_settings", "WizardSettings", "RETENTION_DAYS", "CONFIG_ENV_VAR"]
