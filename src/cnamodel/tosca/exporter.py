# Copyright 2026 CNA Modeling Contributors
# SPDX-License-Identifier: Apache-2.0

"""Export of a System into a TOSCA service template.

The document is a flat map of node and relationship templates whose edges are
identifier references, so the export runs as an ordered pipeline of stages:
producers (data, infrastructure, components and their endpoints) are given
keys before any consumer requirement (hosting, links, traces) refers to them.
Each stage may only read keys registered by an earlier stage.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from cnamodel.config import ConverterConfig
from cnamodel.model.entities import Component, DataUsage, Endpoint, ExternalEndpoint, System
from cnamodel.model.types import (
    BACKING_DATA_TOSCA_KEY,
    COMPONENT_TOSCA_KEYS,
    DATA_AGGREGATE_TOSCA_KEY,
    DATA_USAGE_TOSCA_KEY,
    DEPLOYMENT_MAPPING_TOSCA_KEY,
    ENDPOINT_CAPABILITY,
    ENDPOINT_LINK,
    ENDPOINT_TOSCA_KEY,
    EXTERNAL_ENDPOINT_CAPABILITY,
    EXTERNAL_ENDPOINT_TOSCA_KEY,
    HOST,
    HOST_CAPABILITY,
    INFRASTRUCTURE_TOSCA_KEY,
    LINK_TOSCA_KEY,
    PROVIDES_ENDPOINT,
    PROVIDES_ENDPOINT_TOSCA_KEY,
    PROVIDES_EXTERNAL_ENDPOINT,
    REQUEST_TRACE_TOSCA_KEY,
    USES_BACKING_DATA,
    USES_DATA,
)
from cnamodel.tosca.document import (
    CapabilityAssignment,
    NodeTemplate,
    RelationshipRef,
    RelationshipTemplate,
    RequirementTarget,
    ServiceTemplate,
    TopologyTemplate,
    dump_service_template,
    flatten_metadata,
)
from cnamodel.tosca.errors import DuplicateKeyError, ExportError, KeyReferenceError
from cnamodel.tosca.keys import KeyIdMap, UniqueKeyManager, to_identifier

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


def export_service_template(system: System, config: ConverterConfig | None = None) -> ServiceTemplate:
    """Convert *system* into a TOSCA service template.

    The System is not modified. Every call uses its own key registries, so
    concurrent exports of different Systems do not interfere.

    Args:
        system: The entity graph to export.
        config: Template metadata settings; defaults apply when omitted.

    Returns:
        The service template document.

    Raises:
        ExportError: If the System breaks a referential invariant, e.g. a
            link targets an endpoint no component owns.
    """
    config = config or ConverterConfig()
    state = _ExportState(system=system)
    for stage in _EXPORT_STAGES:
        stage(state)

    topology = state.topology
    logger.debug(
        "Exported system '%s': %d node templates, %d relationship templates",
        system.name,
        len(topology.node_templates),
        len(topology.relationship_templates),
    )
    return ServiceTemplate(
        tosca_definitions_version=config.definitions_version,
        metadata={
            "template_author": config.template_author,
            "template_name": system.name,
            "template_version": config.template_version,
        },
        description=config.description,
        topology_template=topology,
    )


def export_system_to_yaml(system: System, config: ConverterConfig | None = None) -> str:
    """Convert *system* into TOSCA YAML text."""
    return dump_service_template(export_service_template(system, config))


# ################
# Implementation
# ################


@dataclass
class _ExportState:
    """Everything one export run reads and writes."""

    system: System
    unique_keys: UniqueKeyManager = field(default_factory=UniqueKeyManager)
    key_ids: KeyIdMap = field(default_factory=KeyIdMap)
    topology: TopologyTemplate = field(
        default_factory=lambda: TopologyTemplate(
            description="Topology template generated by the CNA modeling tool",
        )
    )

    def new_key(self, candidate: str) -> str:
        return self.unique_keys.ensure_uniqueness(candidate)

    def register(self, key: str, entity_id: str) -> None:
        try:
            self.key_ids.add(key, entity_id)
        except DuplicateKeyError as exc:
            raise ExportError(f"Entity id '{entity_id}' occurs more than once in the system") from exc

    def key_of(self, entity_id: str, referrer: str) -> str:
        try:
            return self.key_ids.key_of(entity_id)
        except KeyReferenceError as exc:
            raise ExportError(f"{referrer} references entity '{entity_id}', which is not part of the system") from exc

    def add_node(self, key: str, node: NodeTemplate) -> None:
        self.topology.node_templates[key] = node

    def add_relationship(self, key: str, relationship: RelationshipTemplate) -> None:
        self.topology.relationship_templates[key] = relationship


def _export_data(state: _ExportState) -> None:
    """Stage 1: data aggregates, then backing data. Neither references anything."""
    for entity_id, data_aggregate in state.system.data_aggregates.items():
        key = state.new_key(to_identifier(data_aggregate.name))
        state.register(key, entity_id)
        node = NodeTemplate(type=DATA_AGGREGATE_TOSCA_KEY, metadata=flatten_metadata(data_aggregate.metadata))
        if data_aggregate.properties:
            node.properties = dict(data_aggregate.properties)
        state.add_node(key, node)

    for entity_id, backing_data in state.system.backing_data.items():
        key = state.new_key(to_identifier(backing_data.name))
        node = NodeTemplate(type=BACKING_DATA_TOSCA_KEY, metadata=flatten_metadata(backing_data.metadata))
        properties = dict(backing_data.properties)
        if backing_data.included_data:
            properties["included_data"] = dict(backing_data.included_data)
        if properties:
            node.properties = properties
        state.register(key, entity_id)
        state.add_node(key, node)


def _export_infrastructure(state: _ExportState) -> None:
    """Stage 2: infrastructure, with requirements on the backing data it holds."""
    system = state.system
    for entity_id, infrastructure in system.infrastructure.items():
        key = state.new_key(to_identifier(infrastructure.name))
        node = NodeTemplate(type=INFRASTRUCTURE_TOSCA_KEY, metadata=flatten_metadata(infrastructure.metadata))
        if infrastructure.properties:
            node.properties = dict(infrastructure.properties)
        for usage in infrastructure.backing_data:
            if usage.entity_id not in system.backing_data:
                raise ExportError(
                    f"Infrastructure '{infrastructure.name}' uses '{usage.entity_id}', which is not backing data"
                )
            _add_data_usage(state, key, node, USES_BACKING_DATA, usage)
        state.register(key, entity_id)
        state.add_node(key, node)


def _export_components(state: _ExportState) -> None:
    """Stage 3: components, their owned endpoints, and their data usages."""
    system = state.system
    for entity_id, component in system.components.items():
        key = state.new_key(to_identifier(component.name))
        node = NodeTemplate(type=COMPONENT_TOSCA_KEYS[component.kind], metadata=flatten_metadata(component.metadata))
        if component.properties:
            node.properties = dict(component.properties)
        state.register(key, entity_id)
        state.add_node(key, node)

        for endpoint in component.endpoints:
            endpoint_key = _add_endpoint_node(state, endpoint, ENDPOINT_TOSCA_KEY, "endpoint")
            node.add_requirement(
                PROVIDES_ENDPOINT,
                RequirementTarget(
                    node=endpoint_key,
                    capability=ENDPOINT_CAPABILITY,
                    relationship=RelationshipRef(type=PROVIDES_ENDPOINT_TOSCA_KEY),
                ),
            )
        for external_endpoint in component.external_endpoints:
            endpoint_key = _add_endpoint_node(
                state, external_endpoint, EXTERNAL_ENDPOINT_TOSCA_KEY, "external_endpoint"
            )
            node.add_requirement(
                PROVIDES_EXTERNAL_ENDPOINT,
                RequirementTarget(
                    node=endpoint_key,
                    capability=EXTERNAL_ENDPOINT_CAPABILITY,
                    relationship=RelationshipRef(type=PROVIDES_ENDPOINT_TOSCA_KEY),
                ),
            )

        for usage in component.data_usages:
            _add_data_usage(state, key, node, _data_requirement_name(system, component, usage), usage)


def _export_deployment_mappings(state: _ExportState) -> None:
    """Stage 4: hosting relationships, attached to the deployed entity's node."""
    system = state.system
    for entity_id, mapping in system.deployment_mappings.items():
        referrer = f"Deployment mapping '{entity_id}'"
        if mapping.underlying_infrastructure_id not in system.infrastructure:
            raise ExportError(
                f"{referrer} is hosted on '{mapping.underlying_infrastructure_id}', which is not infrastructure"
            )
        host_key = state.key_of(mapping.underlying_infrastructure_id, referrer)
        hosted_key = state.key_of(mapping.deployed_entity_id, referrer)

        relationship_key = state.new_key(f"{host_key}_hosts_{hosted_key}")
        state.register(relationship_key, entity_id)
        state.add_relationship(
            relationship_key,
            RelationshipTemplate(type=DEPLOYMENT_MAPPING_TOSCA_KEY, properties=dict(mapping.properties) or None),
        )

        hosted_node = state.topology.node_templates.get(hosted_key)
        if hosted_node is None:
            raise ExportError(f"{referrer}: no node template '{hosted_key}' for the deployed entity")
        hosted_node.add_requirement(
            HOST,
            RequirementTarget(node=host_key, capability=HOST_CAPABILITY, relationship=relationship_key),
        )


def _export_links(state: _ExportState) -> None:
    """Stage 5: links, attached to the source component's node."""
    system = state.system
    for entity_id, link in system.links.items():
        referrer = f"Link '{entity_id}'"
        if link.source_entity_id not in system.components:
            raise ExportError(f"{referrer} starts at '{link.source_entity_id}', which is not a component")
        if system.get_endpoint(link.target_endpoint_id) is None:
            raise ExportError(f"{referrer} targets '{link.target_endpoint_id}', which is not an owned endpoint")
        source_key = state.key_of(link.source_entity_id, referrer)
        target_key = state.key_of(link.target_endpoint_id, referrer)

        relationship_key = state.new_key(f"{source_key}_linksTo_{target_key}")
        state.register(relationship_key, entity_id)
        state.add_relationship(
            relationship_key,
            RelationshipTemplate(type=LINK_TOSCA_KEY, properties=dict(link.properties) or None),
        )

        state.topology.node_templates[source_key].add_requirement(
            ENDPOINT_LINK,
            RequirementTarget(node=target_key, capability=ENDPOINT_CAPABILITY, relationship=relationship_key),
        )


def _export_request_traces(state: _ExportState) -> None:
    """Stage 6: request traces, listing their endpoint, links, and touched nodes."""
    system = state.system
    for entity_id, trace in system.request_traces.items():
        referrer = f"Request trace '{trace.name}'"
        if not isinstance(system.get_endpoint(trace.external_endpoint_id), ExternalEndpoint):
            raise ExportError(f"{referrer} refers to '{trace.external_endpoint_id}', which is not an external endpoint")

        involved_links: list[str] = []
        touched_nodes: list[str] = []
        for link_id in trace.link_ids:
            link = system.links.get(link_id)
            if link is None:
                raise ExportError(f"{referrer} involves '{link_id}', which is not a link")
            involved_links.append(state.key_of(link_id, referrer))
            touched_nodes.append(state.key_of(link.source_entity_id, referrer))
            owner = system.search_component_of_endpoint(link.target_endpoint_id)
            if owner is not None:
                touched_nodes.append(state.key_of(owner.id, referrer))

        properties = dict(trace.properties)
        properties["referred_endpoint"] = state.key_of(trace.external_endpoint_id, referrer)
        properties["involved_links"] = involved_links
        properties["nodes"] = list(dict.fromkeys(touched_nodes))

        key = state.new_key(to_identifier(trace.name))
        state.register(key, entity_id)
        state.add_node(
            key,
            NodeTemplate(
                type=REQUEST_TRACE_TOSCA_KEY,
                metadata=flatten_metadata(trace.metadata),
                properties=properties,
            ),
        )


_EXPORT_STAGES: tuple[Callable[[_ExportState], None], ...] = (
    _export_data,
    _export_infrastructure,
    _export_components,
    _export_deployment_mappings,
    _export_links,
    _export_request_traces,
)


def _add_endpoint_node(state: _ExportState, endpoint: Endpoint, tosca_type: str, capability_name: str) -> str:
    """Emit the node template of an owned endpoint and return its key."""
    key = state.new_key(to_identifier(endpoint.name))
    state.register(key, endpoint.id)
    state.add_node(
        key,
        NodeTemplate(
            type=tosca_type,
            metadata=flatten_metadata(endpoint.metadata),
            capabilities={capability_name: CapabilityAssignment(properties=dict(endpoint.properties))},
        ),
    )
    return key


def _add_data_usage(state: _ExportState, node_key: str, node: NodeTemplate, requirement: str, usage: DataUsage) -> None:
    """Append a data usage requirement to *node*.

    An unlabeled usage is written in shorthand form. A labeled one gets its own
    relationship template carrying the label as ``usage_relation``.
    """
    data_key = state.key_of(usage.entity_id, f"Node '{node_key}'")
    if not usage.usage_relation:
        node.add_requirement(requirement, data_key)
        return

    relationship_key = state.new_key(f"{node_key}_uses_{data_key}")
    state.add_relationship(
        relationship_key,
        RelationshipTemplate(type=DATA_USAGE_TOSCA_KEY, properties={"usage_relation": usage.usage_relation}),
    )
    node.add_requirement(requirement, RequirementTarget(node=data_key, relationship=relationship_key))


def _data_requirement_name(system: System, component: Component, usage: DataUsage) -> str:
    if usage.entity_id in system.data_aggregates:
        return USES_DATA
    if usage.entity_id in system.backing_data:
        return USES_BACKING_DATA
    raise ExportError(f"Component '{component.name}' uses '{usage.entity_id}', which is not a data entity")
