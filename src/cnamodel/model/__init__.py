# Copyright 2026 CNA Modeling Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entity model for cloud-native architectures (components, data, infrastructure, traces)."""

from cnamodel.model.artifact import (
    ARTIFACT_SUFFIX,
    ArtifactError,
    deserialize,
    read_artifact,
    serialize,
    write_artifact,
)
from cnamodel.model.entities import (
    BackingData,
    Component,
    DataAggregate,
    DataUsage,
    DeploymentMapping,
    Endpoint,
    Entity,
    EntityGraphError,
    ExternalEndpoint,
    Infrastructure,
    Link,
    MetaData,
    RequestTrace,
    System,
    new_entity_id,
)
from cnamodel.model.types import ComponentKind

__all__ = [
    # Types
    "ComponentKind",
    # Entities
    "MetaData",
    "DataUsage",
    "DataAggregate",
    "BackingData",
    "Infrastructure",
    "Endpoint",
    "ExternalEndpoint",
    "Component",
    "DeploymentMapping",
    "Link",
    "RequestTrace",
    "System",
    "Entity",
    "EntityGraphError",
    "new_entity_id",
    # Artifacts
    "ARTIFACT_SUFFIX",
    "ArtifactError",
    "serialize",
    "deserialize",
    "write_artifact",
    "read_artifact",
]
