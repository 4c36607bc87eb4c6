# Copyright 2026 CNA Modeling Contributors
# SPDX-License-Identifier: Apache-2.0

"""The subset of the TOSCA service template grammar used by the converter."""

from __future__ import annotations

from typing import Any, Union

import yaml
from pydantic import BaseModel, ValidationError, field_validator
from pydantic import Field as _Field

from cnamodel.model.entities import MetaData
from cnamodel.tosca.errors import MalformedDocumentError

# ###############
# Public Interface
# ###############


class RelationshipRef(BaseModel):
    """An inline relationship inside a structured requirement target."""

    type: str
    properties: dict[str, Any] | None = None


class RequirementTarget(BaseModel):
    """Structured requirement target: ``{node, capability, relationship}``.

    ``relationship`` names a relationship template by identifier, or gives
    an inline relationship type.
    """

    node: str | None = None
    capability: str | None = None
    relationship: Union[str, RelationshipRef, None] = None


# A requirement target is either a bare node identifier (shorthand) or the
# structured form.
RequirementValue = Union[str, RequirementTarget]


class CapabilityAssignment(BaseModel):
    properties: dict[str, Any] | None = None


class NodeTemplate(BaseModel):
    type: str
    metadata: dict[str, Any] | None = None
    properties: dict[str, Any] | None = None
    capabilities: dict[str, CapabilityAssignment] | None = None
    requirements: list[dict[str, RequirementValue]] | None = None

    @field_validator("requirements")
    @classmethod
    def _single_key_requirements(
        cls, value: list[dict[str, RequirementValue]] | None
    ) -> list[dict[str, RequirementValue]] | None:
        for index, assignment in enumerate(value or []):
            if len(assignment) != 1:
                raise ValueError(f"requirement #{index} must map exactly one requirement name, got {len(assignment)}")
        return value

    def add_requirement(self, name: str, target: RequirementValue) -> None:
        """Append a requirement assignment, creating the list if needed."""
        if self.requirements is None:
            self.requirements = []
        self.requirements.append({name: target})

    def iter_requirements(self) -> list[tuple[str, RequirementValue]]:
        """Return ``(name, target)`` pairs in document order."""
        return [(name, target) for assignment in self.requirements or [] for name, target in assignment.items()]


class RelationshipTemplate(BaseModel):
    type: str
    properties: dict[str, Any] | None = None


class TopologyTemplate(BaseModel):
    description: str | None = None
    node_templates: dict[str, NodeTemplate] = _Field(default_factory=dict)
    relationship_templates: dict[str, RelationshipTemplate] = _Field(default_factory=dict)

    @field_validator("node_templates", "relationship_templates", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class ServiceTemplate(BaseModel):
    """A TOSCA service template with a single topology template."""

    tosca_definitions_version: str
    metadata: dict[str, Any] | None = None
    description: str | None = None
    topology_template: TopologyTemplate


def load_service_template(text: str) -> ServiceTemplate:
    """Parse TOSCA YAML text into a :class:`ServiceTemplate`.

    Raises:
        MalformedDocumentError: If the text is not valid YAML or does not
            match the supported TOSCA subset.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise MalformedDocumentError(f"Invalid YAML: {exc}") from exc

    if not isinstance(data, dict):
        raise MalformedDocumentError("A service template must be a YAML mapping")

    try:
        return ServiceTemplate.model_validate(data)
    except ValidationError as exc:
        raise MalformedDocumentError(f"Invalid service template: {exc}") from exc


def dump_service_template(template: ServiceTemplate) -> str:
    """Render a :class:`ServiceTemplate` as YAML, keeping field order."""
    data = template.model_dump(mode="json", exclude_none=True)
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)


def flatten_metadata(metadata: MetaData) -> dict[str, str]:
    """Flatten entity metadata into a TOSCA metadata map (string values)."""
    return {name: str(value) for name, value in metadata.model_dump().items()}


def read_metadata(metadata: dict[str, Any] | None) -> MetaData:
    """Read entity metadata from a TOSCA metadata map; unknown keys are ignored."""
    known = {k: v for k, v in (metadata or {}).items() if k in MetaData.model_fields}
    try:
        return MetaData.model_validate(known)
    except ValidationError as exc:
        raise MalformedDocumentError(f"Invalid node metadata: {exc}") from exc
