# Copyright 2026 CNA Modeling Contributors
# SPDX-License-Identifier: Apache-2.0

"""Data model and YAML parser for the converter configuration file."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from cnamodel.model.types import TOSCA_DEFINITIONS_VERSION

# ###############
# Public Interface
# ###############

CONFIG_FILE_NAME = ".cnamodel.yaml"


class ConverterConfigError(Exception):
    """Raised when a converter configuration file is invalid or cannot be loaded."""


@dataclass
class ConverterConfig:
    """Settings stamped into exported service templates.

    Attributes:
        template_author: Value of the ``template_author`` metadata entry.
        template_version: Value of the ``template_version`` metadata entry.
        definitions_version: The ``tosca_definitions_version`` to declare.
        description: Description of the service template.
    """

    template_author: str = "CNA modeling tool"
    template_version: str = "0.1.0"
    definitions_version: str = TOSCA_DEFINITIONS_VERSION
    description: str = "Service template generated by the CNA modeling tool"


def load_converter_config(path: Path) -> ConverterConfig:
    """Load and parse a converter configuration file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        A ConverterConfig; settings absent from the file keep their defaults.

    Raises:
        ConverterConfigError: If the file cannot be read or the configuration is invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConverterConfigError(f"Converter config file not found: {path}") from None
    except (OSError, UnicodeDecodeError) as exc:
        raise ConverterConfigError(f"Cannot read converter config file: {exc}") from exc

    return _parse_converter_config(text, source_label=str(path))


# ################
# Implementation
# ################

_KEYS: dict[str, str] = {
    "template-author": "template_author",
    "template-version": "template_version",
    "definitions-version": "definitions_version",
    "description": "description",
}


def _parse_converter_config(text: str, source_label: str = "<string>") -> ConverterConfig:
    """Parse converter config YAML text into a ConverterConfig.

    An empty document yields the default configuration.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConverterConfigError(f"Invalid YAML in {source_label}: {exc}") from exc

    if data is None:
        return ConverterConfig()
    if not isinstance(data, dict):
        raise ConverterConfigError(f"{source_label}: converter config must be a YAML mapping")

    unknown = sorted(str(k) for k in data if k not in _KEYS)
    if unknown:
        raise ConverterConfigError(f"{source_label}: unknown field(s): {', '.join(unknown)}")

    settings: dict[str, str] = {}
    for key, attribute in _KEYS.items():
        if key not in data:
            continue
        value = data[key]
        if not isinstance(value, str):
            raise ConverterConfigError(f"{source_label}: '{key}' must be a string")
        settings[attribute] = value
    return ConverterConfig(**settings)
