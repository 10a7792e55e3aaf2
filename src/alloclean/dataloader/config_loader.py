# src/alloclean/dataloader/config_loader.py
from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from alloclean.errors import ConfigError
from alloclean.schemas.models import Config

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = {".yaml", ".yml"}


class ConfigLoader:
    """
    @brief
    Reads config.yaml into a validated `Config`.

    @details
    Every failure mode (bad path, unreadable or malformed YAML, schema
    mismatch) is reported as a `ConfigError`; a missing optional config
    falls back to defaults only through `load_or_default`.
    """

    def load(self, path: Path) -> Config:
        """
        @brief
        Load and validate configuration from a YAML file.

        @raises
            ConfigError
                File missing, not YAML, unparsable, or not matching the schema.
        """
        return self._validate(self._read_yaml(path), path)

    def load_or_default(self, path: Path | None) -> Config:
        """Like `load`, but `None` yields `Config()` with all defaults."""
        if path is None:
            logger.info("No configuration file given, using defaults.")
            return Config()
        return self.load(path)

    def _read_yaml(self, path: Path) -> dict[str, Any]:
        if not isinstance(path, Path):
            raise ConfigError(
                message=f"Invalid path type: expected pathlib.Path, got {type(path).__name__}",
                source="ConfigLoader._read_yaml",
                suggested_action="Pass a pathlib.Path object pointing to config.yaml.",
            )
        if path.suffix.lower() not in _YAML_SUFFIXES:
            raise ConfigError(
                message=f"Invalid configuration file extension: {path.suffix or '<none>'}",
                source="ConfigLoader._read_yaml",
                suggested_action="Use a .yaml or .yml configuration file.",
            )
        if not path.exists():
            raise ConfigError(
                message=f"Configuration file not found: {path}",
                source="ConfigLoader._read_yaml",
                suggested_action="Ensure config.yaml exists or omit --config to use defaults.",
            )

        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigError(
                message=f"YAML parsing failed: {e}",
                source="ConfigLoader._read_yaml",
                suggested_action="Fix YAML syntax or indentation.",
            ) from e
        except OSError as e:
            raise ConfigError(
                message=f"Unable to read configuration file: {e}",
                source="ConfigLoader._read_yaml",
                suggested_action="Check file permissions and path accessibility.",
            ) from e

        if data is None:
            raise ConfigError(
                message="Configuration file is empty.",
                source="ConfigLoader._read_yaml",
                suggested_action="Populate config.yaml or omit it to use defaults.",
            )
        if not isinstance(data, Mapping):
            raise ConfigError(
                message="Configuration root must be a mapping (key: value pairs).",
                source="ConfigLoader._read_yaml",
                suggested_action="Use top-level sections such as 'validation:' and 'export:'.",
            )
        return dict(data)

    def _validate(self, data: dict[str, Any], path: Path) -> Config:
        try:
            cfg = Config(**data)
        except ValidationError as e:
            raise ConfigError(
                message=f"Invalid configuration structure: {e}",
                source="ConfigLoader._validate",
                suggested_action=(
                    "Check section names, field types and bounds in config.yaml. "
                    "Unknown keys are rejected."
                ),
            ) from e
        logger.info("Configuration loaded from %s", path)
        return cfg


__all__ = ["ConfigLoader"]
