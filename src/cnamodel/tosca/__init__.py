# Copyright 2026 CNA Modeling Contributors
# SPDX-License-Identifier: Apache-2.0

"""Conversion between Systems and TOSCA service templates."""

from cnamodel.tosca.document import (
    ServiceTemplate,
    dump_service_template,
    flatten_metadata,
    load_service_template,
    read_metadata,
)
from cnamodel.tosca.errors import (
    DuplicateKeyError,
    ExportError,
    KeyReferenceError,
    MalformedDocumentError,
    ToscaConversionError,
    UnsupportedRequirementShapeError,
)
from cnamodel.tosca.exporter import export_service_template, export_system_to_yaml
from cnamodel.tosca.importer import import_document, import_service_template
from cnamodel.tosca.keys import KeyIdMap, UniqueKeyManager, to_identifier, to_label

__all__ = [
    # Keys
    "to_identifier",
    "to_label",
    "UniqueKeyManager",
    "KeyIdMap",
    # Document
    "ServiceTemplate",
    "load_service_template",
    "dump_service_template",
    "flatten_metadata",
    "read_metadata",
    # Conversion
    "export_service_template",
    "export_system_to_yaml",
    "import_service_template",
    "import_document",
    # Errors
    "ToscaConversionError",
    "KeyReferenceError",
    "DuplicateKeyError",
    "ExportError",
    "MalformedDocumentError",
    "UnsupportedRequirementShapeError",
]
