# Copyright 2026 CNA Modeling Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the TOSCA document schema, YAML handling, and metadata mapping."""

import pytest
import yaml

from cnamodel.model.entities import MetaData
from cnamodel.tosca.document import (
    NodeTemplate,
    RelationshipRef,
    RequirementTarget,
    ServiceTemplate,
    TopologyTemplate,
    dump_service_template,
    flatten_metadata,
    load_service_template,
    read_metadata,
)
from cnamodel.tosca.errors import MalformedDocumentError

# ###############
# Loading
# ###############


class TestLoadServiceTemplate:
    def test_minimal_document(self) -> None:
        template = load_service_template(
            """\
tosca_definitions_version: tosca_simple_yaml_1_3
topology_template:
  node_templates: {}
"""
        )
        assert template.tosca_definitions_version == "tosca_simple_yaml_1_3"
        assert template.topology_template.node_templates == {}
        assert template.topology_template.relationship_templates == {}

    def test_null_maps_are_empty(self) -> None:
        template = load_service_template(
            """\
tosca_definitions_version: tosca_simple_yaml_1_3
topology_template:
  node_templates:
  relationship_templates:
"""
        )
        assert template.topology_template.node_templates == {}
        assert template.topology_template.relationship_templates == {}

    def test_requirement_shapes(self) -> None:
        template = load_service_template(
            """\
tosca_definitions_version: tosca_simple_yaml_1_3
topology_template:
  node_templates:
    shop:
      type: cna.qualityModel.entities.Component.Service
      requirements:
        - uses_data: orders
        - provides_endpoint:
            node: shop_api
            capability: tosca.capabilities.Endpoint
            relationship:
              type: cna.qualityModel.relationships.Provides.Endpoint
        - host:
            node: cluster
            relationship: cluster_hosts_shop
"""
        )
        requirements = template.topology_template.node_templates["shop"].iter_requirements()
        assert requirements[0] == ("uses_data", "orders")
        name, target = requirements[1]
        assert name == "provides_endpoint"
        assert isinstance(target, RequirementTarget)
        assert target.node == "shop_api"
        assert isinstance(target.relationship, RelationshipRef)
        assert target.relationship.type == "cna.qualityModel.relationships.Provides.Endpoint"
        _, host = requirements[2]
        assert isinstance(host, RequirementTarget)
        assert host.relationship == "cluster_hosts_shop"

    def test_invalid_yaml(self) -> None:
        with pytest.raises(MalformedDocumentError, match="Invalid YAML"):
            load_service_template("topology_template: [unclosed")

    def test_non_mapping_document(self) -> None:
        with pytest.raises(MalformedDocumentError, match="mapping"):
            load_service_template("- just\n- a list\n")

    def test_missing_topology_template(self) -> None:
        with pytest.raises(MalformedDocumentError, match="topology_template"):
            load_service_template("tosca_definitions_version: tosca_simple_yaml_1_3\n")

    def test_node_without_type(self) -> None:
        with pytest.raises(MalformedDocumentError, match="type"):
            load_service_template(
                """\
tosca_definitions_version: tosca_simple_yaml_1_3
topology_template:
  node_templates:
    orders:
      metadata: {}
"""
            )

    def test_requirement_with_two_names(self) -> None:
        with pytest.raises(MalformedDocumentError, match="exactly one requirement name"):
            load_service_template(
                """\
tosca_definitions_version: tosca_simple_yaml_1_3
topology_template:
  node_templates:
    shop:
      type: cna.qualityModel.entities.Component
      requirements:
        - uses_data: orders
          uses_backing_data: secrets
"""
            )


# ###############
# Dumping
# ###############


class TestDumpServiceTemplate:
    def test_absent_fields_are_omitted(self) -> None:
        node = NodeTemplate(type="cna.qualityModel.entities.DataAggregate", metadata={"label": "Orders"})
        template = ServiceTemplate(
            tosca_definitions_version="tosca_simple_yaml_1_3",
            topology_template=TopologyTemplate(node_templates={"orders": node}),
        )
        data = yaml.safe_load(dump_service_template(template))
        assert data["topology_template"]["node_templates"]["orders"] == {
            "type": "cna.qualityModel.entities.DataAggregate",
            "metadata": {"label": "Orders"},
        }
        assert "metadata" not in data
        assert "description" not in data

    def test_field_order_is_kept(self) -> None:
        template = ServiceTemplate(
            tosca_definitions_version="tosca_simple_yaml_1_3",
            metadata={"template_name": "shop"},
            topology_template=TopologyTemplate(),
        )
        text = dump_service_template(template)
        assert text.index("tosca_definitions_version") < text.index("metadata") < text.index("topology_template")

    def test_added_requirements_are_dumped(self) -> None:
        node = NodeTemplate(type="cna.qualityModel.entities.Component")
        node.add_requirement("uses_data", "orders")
        node.add_requirement("host", RequirementTarget(node="cluster", relationship="cluster_hosts_shop"))
        template = ServiceTemplate(
            tosca_definitions_version="tosca_simple_yaml_1_3",
            topology_template=TopologyTemplate(node_templates={"shop": node}),
        )
        data = yaml.safe_load(dump_service_template(template))
        assert data["topology_template"]["node_templates"]["shop"]["requirements"] == [
            {"uses_data": "orders"},
            {"host": {"node": "cluster", "relationship": "cluster_hosts_shop"}},
        ]


# ###############
# Metadata
# ###############


class TestMetadata:
    def test_flatten_gives_strings(self) -> None:
        flat = flatten_metadata(MetaData(label="Orders", x=10.5, y=-3.0, width=120.0, height=60.0))
        assert flat == {"label": "Orders", "x": "10.5", "y": "-3.0", "width": "120.0", "height": "60.0"}

    def test_flatten_then_read_is_lossless(self) -> None:
        metadata = MetaData(label="Order Service", x=0.1, y=1e-7, width=333.3333, height=12.0)
        assert read_metadata(flatten_metadata(metadata)) == metadata

    def test_read_accepts_numbers_and_ignores_unknown_keys(self) -> None:
        metadata = read_metadata({"x": 5, "y": 6.5, "fill": "#fff"})
        assert metadata == MetaData(x=5.0, y=6.5)

    def test_read_missing_metadata(self) -> None:
        assert read_metadata(None) == MetaData()

    def test_read_invalid_number(self) -> None:
        with pytest.raises(MalformedDocumentError, match="metadata"):
            read_metadata({"x": "left"})
