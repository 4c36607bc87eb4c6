# Copyright 2026 CNA Modeling Contributors
# SPDX-License-Identifier: Apache-2.0

"""Errors raised while converting between Systems and TOSCA service templates."""

from __future__ import annotations

# ###############
# Public Interface
# ###############


class ToscaConversionError(Exception):
    """Base class for all converter errors."""


class KeyReferenceError(ToscaConversionError, LookupError):
    """Raised when a key or id was never registered in a KeyIdMap."""


class DuplicateKeyError(ToscaConversionError, ValueError):
    """Raised when a key or id is registered twice in a KeyIdMap."""


class ExportError(ToscaConversionError):
    """Raised when a System breaks an invariant the exporter relies on.

    This indicates a defect in whatever built the System, not bad user input.
    """


class MalformedDocumentError(ToscaConversionError):
    """Raised when a TOSCA document cannot be imported.

    Attributes:
        identifier: The offending node, relationship, or target identifier.
        requirement: The requirement name being resolved, if any.
        node: The node template the problem was found in, if any.
        stage: The import stage (1-6) that failed, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        identifier: str | None = None,
        requirement: str | None = None,
        node: str | None = None,
        stage: int | None = None,
    ) -> None:
        self.identifier = identifier
        self.requirement = requirement
        self.node = node
        self.stage = stage
        super().__init__(_with_context(message, requirement, node, stage))


class UnsupportedRequirementShapeError(MalformedDocumentError):
    """Raised when a requirement uses the bare-identifier shorthand where only
    the structured form is defined."""


# ################
# Implementation
# ################


def _with_context(message: str, requirement: str | None, node: str | None, stage: int | None) -> str:
    parts: list[str] = []
    if stage is not None:
        parts.append(f"stage {stage}")
    if node is not None:
        parts.append(f"node '{node}'")
    if requirement is not None:
        parts.append(f"requirement '{requirement}'")
    if not parts:
        return message
    return f"{', '.join(parts)}: {message}"
