# Copyright 2026 CNA Modeling Contributors
# SPDX-License-Identifier: Apache-2.0

"""Integrity checks for entity graphs.

These checks operate on a complete System and report every reference that
does not resolve, every id used twice, and names that will not survive a
trip through a TOSCA document.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from cnamodel.model.entities import ExternalEndpoint, System
from cnamodel.tosca.keys import to_identifier

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class ValidationWarning:
    """A non-fatal finding: the System is consistent but may lose information.

    Attributes:
        message: Human-readable description of the warning.
    """

    message: str


@dataclass(frozen=True)
class ValidationError:
    """A fatal finding: the System breaks a referential invariant.

    Attributes:
        message: Human-readable description of the error.
    """

    message: str


@dataclass
class ValidationResult:
    """Result of running integrity checks.

    Attributes:
        warnings: Non-fatal issues found during validation.
        errors: Broken invariants; the System cannot be exported.
    """

    warnings: list[ValidationWarning] = field(default_factory=list)
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Return True if any fatal validation errors were found."""
        return len(self.errors) > 0


def validate(system: System) -> ValidationResult:
    """Run all integrity checks on *system*.

    Checks performed:

    1. **Unique ids** (error): every entity, endpoints included, has its own
       id, and every collection files entities under their own id. An
       endpoint owned by two components shows up here.

    2. **Data usages** (error): infrastructure may only use BackingData;
       components may use DataAggregate or BackingData entities.

    3. **Deployment mappings** (error): the deployed entity is a component or
       an infrastructure entity; the host is an infrastructure entity.

    4. **Links** (error): the source is a component, the target an endpoint.

    5. **Request traces** (error): the referred endpoint is an external
       endpoint and every involved link exists. A trace without links is
       flagged as a warning.

    6. **Name collisions** (warning): entities of any kind whose names normalize to the
       same identifier are exported under suffixed keys, so their names are
       not restored on import.

    Args:
        system: The System to check.

    Returns:
        A :class:`ValidationResult`. An empty result means the System can be
        exported and imported without loss of structure.
    """
    warnings: list[ValidationWarning] = []
    errors: list[ValidationError] = []

    errors.extend(_check_unique_ids(system))
    errors.extend(_check_data_usages(system))
    errors.extend(_check_deployment_mappings(system))
    errors.extend(_check_links(system))
    trace_errors, trace_warnings = _check_request_traces(system)
    errors.extend(trace_errors)
    warnings.extend(trace_warnings)
    warnings.extend(_check_name_collisions(system))

    return ValidationResult(warnings=warnings, errors=errors)


# ################
# Implementation
# ################


def _check_unique_ids(system: System) -> list[ValidationError]:
    errors: list[ValidationError] = []
    ids: list[str] = []
    collections = {
        "data aggregates": system.data_aggregates,
        "backing data": system.backing_data,
        "infrastructure": system.infrastructure,
        "components": system.components,
        "deployment mappings": system.deployment_mappings,
        "links": system.links,
        "request traces": system.request_traces,
    }
    for label, collection in collections.items():
        for key, entity in collection.items():
            if key != entity.id:
                errors.append(ValidationError(message=f"Entity '{entity.id}' is filed under id '{key}' in {label}."))
            ids.append(entity.id)
    for component in system.components.values():
        ids.extend(e.id for e in component.all_endpoints())

    for entity_id, count in Counter(ids).items():
        if count > 1:
            errors.append(ValidationError(message=f"Entity id '{entity_id}' is used by {count} entities."))
    return errors


def _check_data_usages(system: System) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for infrastructure in system.infrastructure.values():
        for usage in infrastructure.backing_data:
            if usage.entity_id not in system.backing_data:
                errors.append(
                    ValidationError(
                        message=f"Infrastructure '{infrastructure.name}' uses unknown backing data '{usage.entity_id}'."
                    )
                )
    for component in system.components.values():
        for usage in component.data_usages:
            if usage.entity_id not in system.data_aggregates and usage.entity_id not in system.backing_data:
                errors.append(
                    ValidationError(message=f"Component '{component.name}' uses unknown data '{usage.entity_id}'.")
                )
    return errors


def _check_deployment_mappings(system: System) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for mapping in system.deployment_mappings.values():
        deployed = mapping.deployed_entity_id
        if deployed not in system.components and deployed not in system.infrastructure:
            errors.append(
                ValidationError(message=f"Deployment mapping '{mapping.id}' deploys unknown entity '{deployed}'.")
            )
        if mapping.underlying_infrastructure_id not in system.infrastructure:
            errors.append(
                ValidationError(
                    message=(
                        f"Deployment mapping '{mapping.id}' is hosted on unknown infrastructure "
                        f"'{mapping.underlying_infrastructure_id}'."
                    )
                )
            )
    return errors


def _check_links(system: System) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for link in system.links.values():
        if link.source_entity_id not in system.components:
            errors.append(
                ValidationError(message=f"Link '{link.id}' starts at unknown component '{link.source_entity_id}'.")
            )
        if system.get_endpoint(link.target_endpoint_id) is None:
            errors.append(
                ValidationError(message=f"Link '{link.id}' targets unknown endpoint '{link.target_endpoint_id}'.")
            )
    return errors


def _check_request_traces(system: System) -> tuple[list[ValidationError], list[ValidationWarning]]:
    errors: list[ValidationError] = []
    warnings: list[ValidationWarning] = []
    for trace in system.request_traces.values():
        endpoint = system.get_endpoint(trace.external_endpoint_id)
        if not isinstance(endpoint, ExternalEndpoint):
            errors.append(
                ValidationError(
                    message=(
                        f"Request trace '{trace.name}' refers to '{trace.external_endpoint_id}', "
                        "which is not an external endpoint."
                    )
                )
            )
        for link_id in trace.link_ids:
            if link_id not in system.links:
                message = f"Request trace '{trace.name}' involves unknown link '{link_id}'."
                errors.append(ValidationError(message=message))
        if not trace.link_ids:
            warnings.append(ValidationWarning(message=f"Request trace '{trace.name}' involves no links."))
    return errors, warnings


def _check_name_collisions(system: System) -> list[ValidationWarning]:
    names: list[str] = [
        *(e.name for e in system.data_aggregates.values()),
        *(e.name for e in system.backing_data.values()),
        *(e.name for e in system.infrastructure.values()),
        *(e.name for e in system.components.values()),
        *(e.name for c in system.components.values() for e in c.all_endpoints()),
        *(e.name for e in system.request_traces.values()),
    ]
    by_identifier: dict[str, list[str]] = {}
    for name in names:
        by_identifier.setdefault(to_identifier(name), []).append(name)

    warnings: list[ValidationWarning] = []
    for identifier, colliding in by_identifier.items():
        if len(colliding) > 1:
            quoted = ", ".join(f"'{n}'" for n in colliding)
            warnings.append(
                ValidationWarning(
                    message=f"Names {quoted} all normalize to '{identifier}'; exported keys will be suffixed."
                )
            )
    return warnings
