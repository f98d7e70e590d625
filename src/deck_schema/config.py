"""
Configuration

Loads converter and middleware settings from a YAML or JSON file. Both
sections are optional; anything missing takes the model defaults.

Example ``deck-schema.yaml``::

    converter:
      error_handling: skip
      validate_output: true
    middleware:
      default_version: v2
      log_level: info
"""

import json
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from pydantic import BaseModel, Field

from .converter import ConversionOptions
from .middleware import MiddlewareConfig

YAML_SUFFIXES = (".yaml", ".yml")


class DeckSchemaConfig(BaseModel):
    """Top-level settings file."""
    converter: ConversionOptions = Field(default_factory=ConversionOptions)
    middleware: MiddlewareConfig = Field(default_factory=MiddlewareConfig)


def create_default_config() -> DeckSchemaConfig:
    return DeckSchemaConfig()


def load_config(path: Union[str, Path]) -> DeckSchemaConfig:
    """Load a DeckSchemaConfig from ``.yaml``/``.yml`` or ``.json``.

    Raises:
        FileNotFoundError: if the file does not exist
        ValueError: for any other extension
        pydantic.ValidationError: if a value is out of range
    """
    path = Path(path)
    suffix = path.suffix.lower()

    with open(path, "r", encoding="utf-8") as f:
        if suffix in YAML_SUFFIXES:
            data = yaml.safe_load(f) or {}
        elif suffix == ".json":
            data = json.load(f)
        else:
            raise ValueError(f"Unsupported config format: {path.suffix}")

    return DeckSchemaConfig.model_validate(data)


def save_config(config: DeckSchemaConfig, path: Union[str, Path]) -> None:
    """Write ``config`` as YAML or JSON, chosen by extension. Callbacks are not saved."""
    path = Path(path)
    suffix = path.suffix.lower()
    data: Dict[str, Any] = config.model_dump(mode="json")

    if suffix not in YAML_SUFFIXES and suffix != ".json":
        raise ValueError(f"Unsupported config format: {path.suffix}")

    with open(path, "w", encoding="utf-8") as f:
        if suffix in YAML_SUFFIXES:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
        else:
            json.dump(data, f, indent=2)
