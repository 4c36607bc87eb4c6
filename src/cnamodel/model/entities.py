# Copyright 2026 CNA Modeling Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entities of the cloud-native architecture model.

Entities reference each other by id. Endpoints are the one exception: they are
owned by (embedded in) exactly one component.
"""

from __future__ import annotations

import uuid
from typing import Any, Union

from pydantic import BaseModel
from pydantic import Field as _Field

from cnamodel.model.types import ComponentKind

# ###############
# Public Interface
# ###############


class EntityGraphError(Exception):
    """Raised when an entity cannot be added to a system."""


def new_entity_id() -> str:
    """Return a fresh, never reused entity id."""
    return str(uuid.uuid4())


class MetaData(BaseModel):
    """Presentation data needed to place an entity in a diagram."""

    label: str = ""
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0


class DataUsage(BaseModel):
    """A reference to a data entity together with a usage-relation label."""

    entity_id: str
    usage_relation: str = ""


class DataAggregate(BaseModel):
    """A domain data aggregate (e.g. an order or a customer)."""

    id: str = _Field(default_factory=new_entity_id)
    name: str
    metadata: MetaData = _Field(default_factory=MetaData)
    properties: dict[str, Any] = _Field(default_factory=dict)


class BackingData(BaseModel):
    """Configuration-like data (credentials, config files) used by services."""

    id: str = _Field(default_factory=new_entity_id)
    name: str
    metadata: MetaData = _Field(default_factory=MetaData)
    included_data: list[tuple[str, Any]] = _Field(default_factory=list)
    properties: dict[str, Any] = _Field(default_factory=dict)


class Infrastructure(BaseModel):
    """A compute or DBMS node components can be deployed on."""

    id: str = _Field(default_factory=new_entity_id)
    name: str
    metadata: MetaData = _Field(default_factory=MetaData)
    properties: dict[str, Any] = _Field(default_factory=dict)
    backing_data: list[DataUsage] = _Field(default_factory=list)


class Endpoint(BaseModel):
    """An endpoint provided by a component for internal communication."""

    id: str = _Field(default_factory=new_entity_id)
    name: str
    metadata: MetaData = _Field(default_factory=MetaData)
    properties: dict[str, Any] = _Field(default_factory=dict)


class ExternalEndpoint(Endpoint):
    """An endpoint reachable from outside the system."""


class Component(BaseModel):
    """A component; ``kind`` tells plain components and service variants apart."""

    id: str = _Field(default_factory=new_entity_id)
    name: str
    kind: ComponentKind = ComponentKind.COMPONENT
    metadata: MetaData = _Field(default_factory=MetaData)
    properties: dict[str, Any] = _Field(default_factory=dict)
    endpoints: list[Endpoint] = _Field(default_factory=list)
    external_endpoints: list[ExternalEndpoint] = _Field(default_factory=list)
    data_usages: list[DataUsage] = _Field(default_factory=list)

    def all_endpoints(self) -> list[Endpoint]:
        """Return owned endpoints followed by owned external endpoints."""
        return [*self.endpoints, *self.external_endpoints]


class DeploymentMapping(BaseModel):
    """Places a component or infrastructure entity on an infrastructure entity."""

    id: str = _Field(default_factory=new_entity_id)
    deployed_entity_id: str
    underlying_infrastructure_id: str
    properties: dict[str, Any] = _Field(default_factory=dict)


class Link(BaseModel):
    """A connection from a component to an endpoint."""

    id: str = _Field(default_factory=new_entity_id)
    source_entity_id: str
    target_endpoint_id: str
    properties: dict[str, Any] = _Field(default_factory=dict)


class RequestTrace(BaseModel):
    """An ordered call path starting at an external endpoint."""

    id: str = _Field(default_factory=new_entity_id)
    name: str
    metadata: MetaData = _Field(default_factory=MetaData)
    external_endpoint_id: str
    link_ids: list[str] = _Field(default_factory=list)
    properties: dict[str, Any] = _Field(default_factory=dict)


Entity = Union[
    DataAggregate, BackingData, Infrastructure, Component, DeploymentMapping, Link, RequestTrace
]


class System(BaseModel):
    """The architecture model: one id-keyed collection per entity kind."""

    name: str
    data_aggregates: dict[str, DataAggregate] = _Field(default_factory=dict)
    backing_data: dict[str, BackingData] = _Field(default_factory=dict)
    infrastructure: dict[str, Infrastructure] = _Field(default_factory=dict)
    components: dict[str, Component] = _Field(default_factory=dict)
    deployment_mappings: dict[str, DeploymentMapping] = _Field(default_factory=dict)
    links: dict[str, Link] = _Field(default_factory=dict)
    request_traces: dict[str, RequestTrace] = _Field(default_factory=dict)

    def add_entity(self, entity: Entity) -> None:
        """File *entity* into the collection for its kind.

        Raises:
            EntityGraphError: If the entity kind is unknown or its id is
                already used by another entity of this system.
        """
        collection = self._collection_for(entity)
        if self.contains_id(entity.id):
            raise EntityGraphError(f"Entity id '{entity.id}' is already used in system '{self.name}'")
        collection[entity.id] = entity

    def contains_id(self, entity_id: str) -> bool:
        """Return True if any entity (endpoints included) has *entity_id*."""
        if any(entity_id in c for c in self._collections()):
            return True
        return self.get_endpoint(entity_id) is not None

    def get_endpoint(self, endpoint_id: str) -> Endpoint | None:
        """Return the endpoint or external endpoint with *endpoint_id*, if owned by any component."""
        for component in self.components.values():
            for endpoint in component.all_endpoints():
                if endpoint.id == endpoint_id:
                    return endpoint
        return None

    def search_component_of_endpoint(self, endpoint_id: str) -> Component | None:
        """Return the component owning the endpoint with *endpoint_id*."""
        for component in self.components.values():
            if any(e.id == endpoint_id for e in component.all_endpoints()):
                return component
        return None

    def get_host_of(self, entity_id: str) -> Infrastructure | None:
        """Return the infrastructure *entity_id* is deployed on, if any."""
        for mapping in self.deployment_mappings.values():
            if mapping.deployed_entity_id == entity_id:
                return self.infrastructure.get(mapping.underlying_infrastructure_id)
        return None

    def entity_count(self) -> dict[str, int]:
        """Return the number of entities per kind, endpoints included."""
        components = list(self.components.values())
        return {
            "data_aggregates": len(self.data_aggregates),
            "backing_data": len(self.backing_data),
            "infrastructure": len(self.infrastructure),
            "components": len(components),
            "endpoints": sum(len(c.endpoints) for c in components),
            "external_endpoints": sum(len(c.external_endpoints) for c in components),
            "deployment_mappings": len(self.deployment_mappings),
            "links": len(self.links),
            "request_traces": len(self.request_traces),
        }

    def _collections(self) -> list[dict[str, Any]]:
        return [
            self.data_aggregates,
            self.backing_data,
            self.infrastructure,
            self.components,
            self.deployment_mappings,
            self.links,
            self.request_traces,
        ]

    def _collection_for(self, entity: Entity) -> dict[str, Any]:
        if isinstance(entity, DataAggregate):
            return self.data_aggregates
        if isinstance(entity, BackingData):
            return self.backing_data
        if isinstance(entity, Infrastructure):
            return self.infrastructure
        if isinstance(entity, Component):
            return self.components
        if isinstance(entity, DeploymentMapping):
            return self.deployment_mappings
        if isinstance(entity, Link):
            return self.links
        if isinstance(entity, RequestTrace):
            return self.request_traces
        raise EntityGraphError(f"Cannot add entity of type {type(entity).__name__} to a system")
