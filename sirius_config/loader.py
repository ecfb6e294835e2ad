"""
Configuration Loader (``sirius_config.loader``).

Loads a YAML settings file and parses it into ``WizardSettings``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or bad values  -> ``ValueError``.
"""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from sirius_config.schema import WizardSettings


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Postconditions:
        - Returns a ``dict`` (possibly empty if the YAML is empty).
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_settings(data: dict[str, Any]) -> WizardSettings:
    """Build WizardSettings from a parsed ``wizards:`` mapping."""
    section = data.get("wizards", data)
    if not isinstance(section, dict):
        raise ValueError("Settings must be a mapping")

    known = {f.name for f in fields(WizardSettings)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(unknown)}")

    kwargs: dict[str, Any] = dict(section)
    if "allowed_mime_types" in kwargs:
        kwargs["allowed_mime_types"] = tuple(kwargs["allowed_mime_types"])
    for int_key in ("batch_size", "error_limit_per_type", "max_upload_bytes", "preview_rows"):
        if int_key in kwargs:
            kwargs[int_key] = int(kwargs[int_key])
    return WizardSettings(**kwargs)
