# Copyright 2026 CNA Modeling Contributors
# SPDX-License-Identifier: Apache-2.0

"""Type identifiers shared by the entity model and the TOSCA converter."""

from __future__ import annotations

from enum import Enum

# ###############
# Public Interface
# ###############


class ComponentKind(Enum):
    """Concrete variant of a component entity."""

    COMPONENT = "component"
    SERVICE = "service"
    BACKING_SERVICE = "backing_service"
    STORAGE_BACKING_SERVICE = "storage_backing_service"


TOSCA_DEFINITIONS_VERSION = "tosca_simple_yaml_1_3"

# Node types.
DATA_AGGREGATE_TOSCA_KEY = "cna.qualityModel.entities.DataAggregate"
BACKING_DATA_TOSCA_KEY = "cna.qualityModel.entities.BackingData"
INFRASTRUCTURE_TOSCA_KEY = "cna.qualityModel.entities.Infrastructure"
COMPONENT_TOSCA_KEY = "cna.qualityModel.entities.Component"
SERVICE_TOSCA_KEY = "cna.qualityModel.entities.Component.Service"
BACKING_SERVICE_TOSCA_KEY = "cna.qualityModel.entities.Component.BackingService"
STORAGE_BACKING_SERVICE_TOSCA_KEY = "cna.qualityModel.entities.Component.StorageBackingService"
ENDPOINT_TOSCA_KEY = "cna.qualityModel.entities.Endpoint"
EXTERNAL_ENDPOINT_TOSCA_KEY = "cna.qualityModel.entities.Endpoint.External"
REQUEST_TRACE_TOSCA_KEY = "cna.qualityModel.entities.RequestTrace"

# Relationship types.
DEPLOYMENT_MAPPING_TOSCA_KEY = "cna.qualityModel.relationships.HostedOn"
LINK_TOSCA_KEY = "cna.qualityModel.relationships.ConnectsTo.Link"
DATA_USAGE_TOSCA_KEY = "cna.qualityModel.relationships.AttachesTo.Data"
PROVIDES_ENDPOINT_TOSCA_KEY = "cna.qualityModel.relationships.Provides.Endpoint"

# Capability types.
ENDPOINT_CAPABILITY = "tosca.capabilities.Endpoint"
EXTERNAL_ENDPOINT_CAPABILITY = "tosca.capabilities.Endpoint.Public"
HOST_CAPABILITY = "tosca.capabilities.Compute"

# Requirement names.
USES_DATA = "uses_data"
USES_BACKING_DATA = "uses_backing_data"
PROVIDES_ENDPOINT = "provides_endpoint"
PROVIDES_EXTERNAL_ENDPOINT = "provides_external_endpoint"
HOST = "host"
ENDPOINT_LINK = "endpoint_link"

COMPONENT_TOSCA_KEYS: dict[ComponentKind, str] = {
    ComponentKind.COMPONENT: COMPONENT_TOSCA_KEY,
    ComponentKind.SERVICE: SERVICE_TOSCA_KEY,
    ComponentKind.BACKING_SERVICE: BACKING_SERVICE_TOSCA_KEY,
    ComponentKind.STORAGE_BACKING_SERVICE: STORAGE_BACKING_SERVICE_TOSCA_KEY,
}

COMPONENT_KINDS_BY_TOSCA_KEY: dict[str, ComponentKind] = {v: k for k, v in COMPONENT_TOSCA_KEYS.items()}
