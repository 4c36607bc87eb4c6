# Copyright 2026 CNA Modeling Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for System artifact serialization."""

import json
from pathlib import Path

import pytest

from cnamodel.model.artifact import (
    ARTIFACT_FORMAT_VERSION,
    ArtifactError,
    deserialize,
    read_artifact,
    serialize,
    write_artifact,
)
from cnamodel.model.entities import ExternalEndpoint, System
from cnamodel.model.types import ComponentKind

# ###############
# Normal Cases
# ###############


def test_serialize_is_versioned_json(shop_system: System) -> None:
    payload = json.loads(serialize(shop_system))
    assert payload["v"] == ARTIFACT_FORMAT_VERSION
    assert payload["system"]["name"] == "Online Shop"


def test_deserialize_restores_the_system(shop_system: System) -> None:
    restored = deserialize(serialize(shop_system))
    assert restored.model_dump() == shop_system.model_dump()


def test_entity_subtypes_survive(shop_system: System) -> None:
    restored = deserialize(serialize(shop_system))
    frontend = next(c for c in restored.components.values() if c.name == "Frontend")
    assert isinstance(frontend.external_endpoints[0], ExternalEndpoint)
    kinds = {c.name: c.kind for c in restored.components.values()}
    assert kinds["Order DB"] == ComponentKind.STORAGE_BACKING_SERVICE


def test_write_and_read(shop_system: System, tmp_path: Path) -> None:
    path = tmp_path / "models" / "shop.cna.json"
    write_artifact(shop_system, path)
    assert path.exists()
    assert read_artifact(path).model_dump() == shop_system.model_dump()


# ###############
# Error Cases
# ###############


class TestArtifactErrors:
    def test_not_json(self) -> None:
        with pytest.raises(ArtifactError, match="not valid JSON"):
            deserialize("{nope")

    def test_not_an_object(self) -> None:
        with pytest.raises(ArtifactError, match="JSON object"):
            deserialize("[1, 2]")

    def test_unknown_version(self) -> None:
        with pytest.raises(ArtifactError, match="version"):
            deserialize(json.dumps({"v": "99", "system": {"name": "S"}}))

    def test_invalid_system(self) -> None:
        with pytest.raises(ArtifactError, match="Invalid system"):
            deserialize(json.dumps({"v": ARTIFACT_FORMAT_VERSION, "system": {"components": []}}))

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ArtifactError, match="Cannot read"):
            read_artifact(tmp_path / "missing.cna.json")

    def test_not_utf8(self, tmp_path: Path) -> None:
        path = tmp_path / "shop.cna.json"
        path.write_bytes(b"\xff\xfe{}")
        with pytest.raises(ArtifactError, match="Cannot read"):
            read_artifact(path)
