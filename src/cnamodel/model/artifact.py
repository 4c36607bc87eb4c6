# Copyright 2026 CNA Modeling Contributors
# SPDX-License-Identifier: Apache-2.0

"""Serialization and deserialization of System artifacts.

Artifacts are stored as compact JSON files so that a model can be handed to
the converter without the diagram editor. The format is versioned so future
schema changes can be detected.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from cnamodel.model.entities import System

# ###############
# Public Interface
# ###############

ARTIFACT_FORMAT_VERSION = "1"
ARTIFACT_SUFFIX = ".cna.json"


class ArtifactError(Exception):
    """Raised when an artifact cannot be read, written, or decoded."""


def serialize(system: System) -> str:
    """Serialize a System to a compact JSON string."""
    payload = {"v": ARTIFACT_FORMAT_VERSION, "system": system.model_dump(mode="json")}
    return json.dumps(payload, separators=(",", ":"))


def deserialize(data: str) -> System:
    """Deserialize a System from a JSON string.

    Args:
        data: JSON string produced by :func:`serialize`.

    Returns:
        The reconstructed :class:`System` model.

    Raises:
        ArtifactError: If the data is not JSON, the format version is not
            recognised, or the payload does not describe a valid System.
    """
    try:
        obj = json.loads(data)
    except json.JSONDecodeError as exc:
        raise ArtifactError(f"Artifact is not valid JSON: {exc}") from exc
    if not isinstance(obj, dict):
        raise ArtifactError("Artifact must be a JSON object")
    version = obj.get("v")
    if version != ARTIFACT_FORMAT_VERSION:
        raise ArtifactError(f"Unsupported artifact format version: {version!r}")
    try:
        return System.model_validate(obj.get("system"))
    except ValidationError as exc:
        raise ArtifactError(f"Invalid system in artifact: {exc}") from exc


def write_artifact(system: System, path: Path) -> None:
    """Write a System artifact to *path*, creating parent directories as needed."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(serialize(system), encoding="utf-8")
    except OSError as exc:
        raise ArtifactError(f"Cannot write artifact '{path}': {exc}") from exc


def read_artifact(path: Path) -> System:
    """Read and deserialize a System artifact from *path*."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ArtifactError(f"Cannot read artifact '{path}': {exc}") from exc
    return deserialize(text)
