# Copyright 2026 CNA Modeling Contributors
# SPDX-License-Identifier: Apache-2.0

"""Import of a TOSCA service template into a new System.

Requirement targets are identifiers, so the import mirrors the export order:
data, infrastructure, endpoints, components, relationship properties, and
finally request traces. Each stage resolves identifiers registered by earlier
stages only. Any identifier that does not resolve aborts the import with a
:class:`MalformedDocumentError`; no partial System is returned.

Every imported entity gets a fresh id. Names are derived from node keys with
:func:`to_label` and are therefore not the names the document was exported
from.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any

from cnamodel.model.entities import (
    BackingData,
    Component,
    DataAggregate,
    DataUsage,
    DeploymentMapping,
    Endpoint,
    EntityGraphError,
    ExternalEndpoint,
    Infrastructure,
    Link,
    MetaData,
    RequestTrace,
    System,
    new_entity_id,
)
from cnamodel.model.types import (
    BACKING_DATA_TOSCA_KEY,
    COMPONENT_KINDS_BY_TOSCA_KEY,
    DATA_AGGREGATE_TOSCA_KEY,
    DATA_USAGE_TOSCA_KEY,
    DEPLOYMENT_MAPPING_TOSCA_KEY,
    ENDPOINT_LINK,
    ENDPOINT_TOSCA_KEY,
    EXTERNAL_ENDPOINT_TOSCA_KEY,
    HOST,
    INFRASTRUCTURE_TOSCA_KEY,
    LINK_TOSCA_KEY,
    PROVIDES_ENDPOINT,
    PROVIDES_EXTERNAL_ENDPOINT,
    REQUEST_TRACE_TOSCA_KEY,
    USES_BACKING_DATA,
    USES_DATA,
)
from cnamodel.tosca.document import (
    NodeTemplate,
    RelationshipRef,
    RequirementTarget,
    RequirementValue,
    ServiceTemplate,
    load_service_template,
    read_metadata,
)
from cnamodel.tosca.errors import (
    DuplicateKeyError,
    KeyReferenceError,
    MalformedDocumentError,
    UnsupportedRequirementShapeError,
)
from cnamodel.tosca.keys import KeyIdMap, to_label

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


def import_service_template(source_name: str, document_text: str, system_name: str | None = None) -> System:
    """Build a new System from TOSCA YAML text.

    Args:
        source_name: Where the document came from, usually a file name. The
            System is named after it (directory and extensions removed)
            unless *system_name* is given.
        document_text: The TOSCA YAML document.
        system_name: Explicit name for the imported System.

    Returns:
        The imported System.

    Raises:
        MalformedDocumentError: If the text is not a supported service
            template or any reference in it does not resolve.
    """
    document = load_service_template(document_text)
    return import_document(document, system_name or _system_name_from_source(source_name))


def import_document(document: ServiceTemplate, system_name: str) -> System:
    """Build a new System named *system_name* from a parsed service template.

    Raises:
        MalformedDocumentError: If any reference in the document does not resolve.
    """
    state = _ImportState(document=document, system=System(name=system_name))
    _warn_about_unknown_types(document)
    for number, stage in enumerate(_IMPORT_STAGES, start=1):
        state.stage = number
        stage(state)
        logger.debug("Import stage %d (%s) done, %d identifiers registered", number, stage.__name__, len(state.key_ids))
    return state.system


# ################
# Implementation
# ################


@dataclass
class _ImportState:
    """Everything one import run reads and writes."""

    document: ServiceTemplate
    system: System
    key_ids: KeyIdMap = field(default_factory=KeyIdMap)
    # Endpoints built in stage 3, keyed by id, until a component claims them.
    endpoints: dict[str, Endpoint] = field(default_factory=dict)
    # Endpoint id -> key of the component that provides it.
    endpoint_owners: dict[str, str] = field(default_factory=dict)
    stage: int = 0

    def nodes_of_type(self, *tosca_types: str) -> list[tuple[str, NodeTemplate]]:
        nodes = self.document.topology_template.node_templates
        return [(key, node) for key, node in nodes.items() if node.type in tosca_types]

    def error(
        self,
        message: str,
        *,
        identifier: str | None = None,
        node: str | None = None,
        requirement: str | None = None,
    ) -> MalformedDocumentError:
        return MalformedDocumentError(
            message, identifier=identifier, node=node, requirement=requirement, stage=self.stage
        )

    def resolve(self, identifier: str, *, node: str, requirement: str | None = None) -> str:
        try:
            return self.key_ids.id_of(identifier)
        except KeyReferenceError:
            raise self.error(
                f"unknown identifier '{identifier}'", identifier=identifier, node=node, requirement=requirement
            ) from None

    def register(self, key: str, entity_id: str, *, node: str | None = None, requirement: str | None = None) -> None:
        try:
            self.key_ids.add(key, entity_id)
        except DuplicateKeyError:
            raise self.error(
                f"identifier '{key}' is used for more than one entity",
                identifier=key,
                node=node,
                requirement=requirement,
            ) from None

    def metadata(self, key: str, node: NodeTemplate) -> MetaData:
        try:
            return read_metadata(node.metadata)
        except MalformedDocumentError as exc:
            raise self.error(str(exc), identifier=key, node=key) from exc

    def add_entity(self, entity: Any, key: str) -> None:
        try:
            self.system.add_entity(entity)
        except EntityGraphError as exc:
            raise self.error(str(exc), identifier=key, node=key) from exc


def _import_data(state: _ImportState) -> None:
    """Stage 1: data aggregates and backing data."""
    for key, node in state.nodes_of_type(DATA_AGGREGATE_TOSCA_KEY, BACKING_DATA_TOSCA_KEY):
        entity_id = new_entity_id()
        metadata = state.metadata(key, node)
        properties = dict(node.properties or {})
        if node.type == DATA_AGGREGATE_TOSCA_KEY:
            entity: DataAggregate | BackingData = DataAggregate(
                id=entity_id, name=to_label(key), metadata=metadata, properties=properties
            )
        else:
            included = _included_data(state, key, properties)
            entity = BackingData(
                id=entity_id,
                name=to_label(key),
                metadata=metadata,
                included_data=list(included.items()),
                properties=properties,
            )
        state.add_entity(entity, key)
        state.register(key, entity_id, node=key)


def _included_data(state: _ImportState, key: str, properties: dict[str, Any]) -> dict[str, Any]:
    """Pop the included data of a backing data node out of *properties*.

    Both ``included_data`` and the camel-case ``includedData`` are accepted.
    """
    present = [name for name in _INCLUDED_DATA_KEYS if name in properties]
    if len(present) > 1:
        raise state.error("use either 'included_data' or 'includedData', not both", identifier=key, node=key)
    if not present:
        return {}
    included = properties.pop(present[0]) or {}
    if not isinstance(included, dict):
        raise state.error(f"'{present[0]}' must be a mapping", identifier=key, node=key)
    return included


_INCLUDED_DATA_KEYS = ("included_data", "includedData")


def _import_infrastructure(state: _ImportState) -> None:
    """Stage 2: infrastructure, its backing data, and infrastructure hosted on infrastructure."""
    infrastructure_nodes = state.nodes_of_type(INFRASTRUCTURE_TOSCA_KEY)
    for key, node in infrastructure_nodes:
        infrastructure = Infrastructure(
            id=new_entity_id(),
            name=to_label(key),
            metadata=state.metadata(key, node),
            properties=dict(node.properties or {}),
        )
        for name, target in node.iter_requirements():
            if name == USES_BACKING_DATA:
                infrastructure.backing_data.append(_data_usage(state, key, name, target, state.system.backing_data))
            elif name != HOST:
                logger.warning("Ignoring requirement '%s' of infrastructure node '%s'", name, key)
        state.add_entity(infrastructure, key)
        state.register(key, infrastructure.id, node=key)

    # Hosts may be declared after the hosted node, so wait until all exist.
    for key, node in infrastructure_nodes:
        for name, target in node.iter_requirements():
            if name == HOST:
                _add_deployment_mapping(state, key, state.key_ids.id_of(key), target)


def _import_endpoints(state: _ImportState) -> None:
    """Stage 3: endpoints, held back until a component provides them."""
    for key, node in state.nodes_of_type(ENDPOINT_TOSCA_KEY, EXTERNAL_ENDPOINT_TOSCA_KEY):
        if node.type == ENDPOINT_TOSCA_KEY:
            endpoint_class: type[Endpoint] = Endpoint
            capability_name = "endpoint"
        else:
            endpoint_class = ExternalEndpoint
            capability_name = "external_endpoint"

        properties = dict(node.properties or {})
        capability = (node.capabilities or {}).get(capability_name)
        if capability is not None and capability.properties:
            properties.update(capability.properties)

        endpoint = endpoint_class(
            id=new_entity_id(), name=to_label(key), metadata=state.metadata(key, node), properties=properties
        )
        state.endpoints[endpoint.id] = endpoint
        state.register(key, endpoint.id, node=key)


def _import_components(state: _ImportState) -> None:
    """Stage 4: components with their endpoints, data usages, hosts and links."""
    for key, node in state.nodes_of_type(*COMPONENT_KINDS_BY_TOSCA_KEY):
        component = Component(
            id=new_entity_id(),
            name=to_label(key),
            kind=COMPONENT_KINDS_BY_TOSCA_KEY[node.type],
            metadata=state.metadata(key, node),
            properties=dict(node.properties or {}),
        )
        state.register(key, component.id, node=key)

        for name, target in node.iter_requirements():
            if name == USES_DATA:
                component.data_usages.append(_data_usage(state, key, name, target, state.system.data_aggregates))
            elif name == USES_BACKING_DATA:
                component.data_usages.append(_data_usage(state, key, name, target, state.system.backing_data))
            elif name in (PROVIDES_ENDPOINT, PROVIDES_EXTERNAL_ENDPOINT):
                _provide_endpoint(state, key, component, name, target)
            elif name == HOST:
                _add_deployment_mapping(state, key, component.id, target)
            elif name == ENDPOINT_LINK:
                _add_link(state, key, component.id, target)
            else:
                logger.warning("Ignoring requirement '%s' of component node '%s'", name, key)

        state.add_entity(component, key)

    for endpoint_id in state.endpoints:
        if endpoint_id not in state.endpoint_owners:
            endpoint_key = state.key_ids.key_of(endpoint_id)
            raise state.error(
                f"endpoint '{endpoint_key}' is not provided by any component",
                identifier=endpoint_key,
                node=endpoint_key,
            )


def _import_relationship_properties(state: _ImportState) -> None:
    """Stage 5: copy relationship template properties onto links and deployment mappings."""
    system = state.system
    for key, relationship in state.document.topology_template.relationship_templates.items():
        if relationship.type == LINK_TOSCA_KEY:
            target = system.links.get(state.resolve(key, node=key))
        elif relationship.type == DEPLOYMENT_MAPPING_TOSCA_KEY:
            target = system.deployment_mappings.get(state.resolve(key, node=key))
        else:
            if relationship.type != DATA_USAGE_TOSCA_KEY:
                logger.warning("Ignoring relationship template '%s' of unknown type '%s'", key, relationship.type)
            continue
        if target is None:
            raise state.error(
                f"relationship '{key}' of type '{relationship.type}' is used by a requirement of another kind",
                identifier=key,
                node=key,
            )
        target.properties.update(relationship.properties or {})


def _import_request_traces(state: _ImportState) -> None:
    """Stage 6: request traces over the links created in stage 4."""
    for key, node in state.nodes_of_type(REQUEST_TRACE_TOSCA_KEY):
        properties = dict(node.properties or {})
        # Derived from the links on export; rebuilt from them when needed.
        properties.pop("nodes", None)

        referred = properties.pop("referred_endpoint", None)
        if not isinstance(referred, str):
            raise state.error("request trace needs a 'referred_endpoint' identifier", identifier=key, node=key)
        endpoint_id = state.resolve(referred, node=key)
        if not isinstance(state.endpoints.get(endpoint_id), ExternalEndpoint):
            raise state.error(f"'{referred}' is not an external endpoint", identifier=referred, node=key)

        link_keys = properties.pop("involved_links", None) or []
        if not isinstance(link_keys, list) or not all(isinstance(k, str) for k in link_keys):
            raise state.error("'involved_links' must be a list of identifiers", identifier=key, node=key)
        link_ids: list[str] = []
        for link_key in link_keys:
            link_id = state.resolve(link_key, node=key)
            if link_id not in state.system.links:
                raise state.error(f"'{link_key}' is not a link", identifier=link_key, node=key)
            link_ids.append(link_id)

        trace = RequestTrace(
            id=new_entity_id(),
            name=to_label(key),
            metadata=state.metadata(key, node),
            external_endpoint_id=endpoint_id,
            link_ids=link_ids,
            properties=properties,
        )
        state.register(key, trace.id, node=key)
        state.add_entity(trace, key)


_IMPORT_STAGES: tuple[Callable[[_ImportState], None], ...] = (
    _import_data,
    _import_infrastructure,
    _import_endpoints,
    _import_components,
    _import_relationship_properties,
    _import_request_traces,
)


def _data_usage(
    state: _ImportState,
    node_key: str,
    requirement: str,
    target: RequirementValue,
    candidates: dict[str, Any],
) -> DataUsage:
    """Resolve a data usage requirement against *candidates* (an id-keyed collection).

    The shorthand form carries no label. The structured form takes its label
    from the ``usage_relation`` property of the relationship it names.
    """
    if isinstance(target, str):
        data_key, usage_relation = target, ""
    else:
        data_key = _target_node(state, node_key, requirement, target)
        usage_relation = _usage_relation(state, node_key, requirement, target.relationship)

    data_id = state.resolve(data_key, node=node_key, requirement=requirement)
    if data_id not in candidates:
        raise state.error(
            f"'{data_key}' is not a valid target for '{requirement}'",
            identifier=data_key,
            node=node_key,
            requirement=requirement,
        )
    return DataUsage(entity_id=data_id, usage_relation=usage_relation)


def _usage_relation(
    state: _ImportState, node_key: str, requirement: str, relationship: str | RelationshipRef | None
) -> str:
    if relationship is None:
        return ""
    if isinstance(relationship, str):
        template = state.document.topology_template.relationship_templates.get(relationship)
        if template is None:
            raise state.error(
                f"unknown relationship '{relationship}'",
                identifier=relationship,
                node=node_key,
                requirement=requirement,
            )
        properties = template.properties or {}
    else:
        properties = relationship.properties or {}
    usage_relation = properties.get("usage_relation", "")
    if not isinstance(usage_relation, str):
        raise state.error(
            "'usage_relation' must be a string",
            identifier=relationship if isinstance(relationship, str) else node_key,
            node=node_key,
            requirement=requirement,
        )
    return usage_relation


def _provide_endpoint(
    state: _ImportState, node_key: str, component: Component, requirement: str, target: RequirementValue
) -> None:
    endpoint_key = _target_node(state, node_key, requirement, _structured(state, node_key, requirement, target))
    endpoint = state.endpoints.get(state.resolve(endpoint_key, node=node_key, requirement=requirement))
    if endpoint is None:
        raise state.error(
            f"'{endpoint_key}' is not an endpoint", identifier=endpoint_key, node=node_key, requirement=requirement
        )
    owner = state.endpoint_owners.get(endpoint.id)
    if owner is not None:
        raise state.error(
            f"endpoint '{endpoint_key}' is already provided by '{owner}'",
            identifier=endpoint_key,
            node=node_key,
            requirement=requirement,
        )
    state.endpoint_owners[endpoint.id] = node_key
    if isinstance(endpoint, ExternalEndpoint):
        component.external_endpoints.append(endpoint)
    else:
        component.endpoints.append(endpoint)


def _add_deployment_mapping(state: _ImportState, node_key: str, deployed_id: str, target: RequirementValue) -> None:
    structured = _structured(state, node_key, HOST, target)
    host_key = _target_node(state, node_key, HOST, structured)
    host_id = state.resolve(host_key, node=node_key, requirement=HOST)
    if host_id not in state.system.infrastructure:
        raise state.error(f"'{host_key}' is not infrastructure", identifier=host_key, node=node_key, requirement=HOST)
    relationship_key = _relationship_key(state, node_key, HOST, structured)

    mapping = DeploymentMapping(
        id=new_entity_id(), deployed_entity_id=deployed_id, underlying_infrastructure_id=host_id
    )
    state.register(relationship_key, mapping.id, node=node_key, requirement=HOST)
    state.add_entity(mapping, relationship_key)


def _add_link(state: _ImportState, node_key: str, source_id: str, target: RequirementValue) -> None:
    structured = _structured(state, node_key, ENDPOINT_LINK, target)
    endpoint_key = _target_node(state, node_key, ENDPOINT_LINK, structured)
    endpoint_id = state.resolve(endpoint_key, node=node_key, requirement=ENDPOINT_LINK)
    if endpoint_id not in state.endpoints:
        raise state.error(
            f"'{endpoint_key}' is not an endpoint", identifier=endpoint_key, node=node_key, requirement=ENDPOINT_LINK
        )
    relationship_key = _relationship_key(state, node_key, ENDPOINT_LINK, structured)

    link = Link(id=new_entity_id(), source_entity_id=source_id, target_endpoint_id=endpoint_id)
    state.register(relationship_key, link.id, node=node_key, requirement=ENDPOINT_LINK)
    state.add_entity(link, relationship_key)


def _structured(state: _ImportState, node_key: str, requirement: str, target: RequirementValue) -> RequirementTarget:
    # The shorthand form names no relationship template, so hosts and links
    # would have no identifier to register under.
    if isinstance(target, str):
        raise UnsupportedRequirementShapeError(
            f"shorthand target '{target}' is not supported, use {{node, relationship}}",
            identifier=target,
            node=node_key,
            requirement=requirement,
            stage=state.stage,
        )
    return target


def _target_node(state: _ImportState, node_key: str, requirement: str, target: RequirementTarget) -> str:
    if not target.node:
        raise state.error("requirement target has no 'node'", node=node_key, requirement=requirement)
    return target.node


def _relationship_key(state: _ImportState, node_key: str, requirement: str, target: RequirementTarget) -> str:
    if not isinstance(target.relationship, str):
        raise state.error(
            "requirement target must name a relationship template", node=node_key, requirement=requirement
        )
    return target.relationship


_KNOWN_NODE_TYPES = {
    DATA_AGGREGATE_TOSCA_KEY,
    BACKING_DATA_TOSCA_KEY,
    INFRASTRUCTURE_TOSCA_KEY,
    ENDPOINT_TOSCA_KEY,
    EXTERNAL_ENDPOINT_TOSCA_KEY,
    REQUEST_TRACE_TOSCA_KEY,
    *COMPONENT_KINDS_BY_TOSCA_KEY,
}


def _warn_about_unknown_types(document: ServiceTemplate) -> None:
    for key, node in document.topology_template.node_templates.items():
        if node.type not in _KNOWN_NODE_TYPES:
            logger.warning("Ignoring node template '%s' of unknown type '%s'", key, node.type)


def _system_name_from_source(source_name: str) -> str:
    """Return *source_name* without directories and extensions."""
    name = re.sub(r"\..*$", "", PurePath(source_name).name)
    return name or source_name
