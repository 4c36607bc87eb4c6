# Copyright 2026 CNA Modeling Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entry point for the cnamodel command-line interface."""

import argparse
import logging
import sys
from pathlib import Path
from typing import TextIO

from cnamodel.config import CONFIG_FILE_NAME, ConverterConfig, ConverterConfigError, load_converter_config
from cnamodel.model.artifact import ARTIFACT_SUFFIX, ArtifactError, read_artifact, write_artifact
from cnamodel.tosca.errors import ToscaConversionError
from cnamodel.tosca.exporter import export_system_to_yaml
from cnamodel.tosca.importer import import_service_template
from cnamodel.validation.checks import ValidationResult, validate

# ###############
# Public Interface
# ###############


def main() -> None:
    """Run the cnamodel CLI."""
    parser = argparse.ArgumentParser(
        prog="cnamodel",
        description="cnamodel - convert cloud-native architecture models to and from TOSCA",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log conversion progress")
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # export subcommand
    export_parser = subparsers.add_parser(
        "export",
        help="Export a model to a TOSCA service template",
        description="Convert a model artifact into a TOSCA service template (YAML).",
    )
    export_parser.add_argument("model", help=f"Model artifact ({ARTIFACT_SUFFIX}) to export")
    export_parser.add_argument(
        "-o",
        "--output",
        help="File to write the service template to (default: standard output)",
    )
    export_parser.add_argument(
        "--config",
        help=f"Converter configuration file (default: {CONFIG_FILE_NAME} next to the model, if present)",
    )

    # import subcommand
    import_parser = subparsers.add_parser(
        "import",
        help="Import a TOSCA service template into a model",
        description="Convert a TOSCA service template (YAML) into a model artifact.",
    )
    import_parser.add_argument("document", help="TOSCA service template to import")
    import_parser.add_argument(
        "-o",
        "--output",
        help=f"Artifact to write (default: <document name>{ARTIFACT_SUFFIX} next to the document)",
    )
    import_parser.add_argument(
        "--name",
        help="Name of the imported system (default: derived from the document file name)",
    )

    # check subcommand
    check_parser = subparsers.add_parser(
        "check",
        help="Check the integrity of a model",
        description="Report dangling references, reused ids, and name collisions in a model artifact.",
    )
    check_parser.add_argument("model", help=f"Model artifact ({ARTIFACT_SUFFIX}) to check")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    sys.exit(_dispatch(args))


# ################
# Implementation
# ################


def _dispatch(args: argparse.Namespace) -> int:
    """Dispatch to the appropriate subcommand handler."""
    if args.command == "export":
        return _cmd_export(args)
    if args.command == "import":
        return _cmd_import(args)
    if args.command == "check":
        return _cmd_check(args)
    return 0


def _cmd_export(args: argparse.Namespace) -> int:
    """Handle the export subcommand."""
    model_path = Path(args.model)
    config_path = Path(args.config) if args.config is not None else model_path.parent / CONFIG_FILE_NAME
    config = ConverterConfig()
    try:
        if args.config is not None or config_path.is_file():
            config = load_converter_config(config_path)
        system = read_artifact(model_path)
    except (ConverterConfigError, ArtifactError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    # stdout may carry the document.
    if not _report(validate(system), warning_stream=sys.stderr):
        return 1

    try:
        document = export_system_to_yaml(system, config)
    except ToscaConversionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.output is None:
        sys.stdout.write(document)
        return 0
    output = Path(args.output)
    try:
        output.write_text(document, encoding="utf-8")
    except OSError as exc:
        print(f"Error: cannot write '{output}': {exc}", file=sys.stderr)
        return 1
    print(f"Exported system '{system.name}' to '{output}'.")
    return 0


def _cmd_import(args: argparse.Namespace) -> int:
    """Handle the import subcommand."""
    document_path = Path(args.document)
    try:
        text = document_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        print(f"Error: cannot read '{document_path}': {exc}", file=sys.stderr)
        return 1

    try:
        system = import_service_template(document_path.name, text, system_name=args.name)
    except ToscaConversionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.output is not None:
        output = Path(args.output)
    else:
        output = document_path.with_name(document_path.name.split(".")[0] + ARTIFACT_SUFFIX)
    try:
        write_artifact(system, output)
    except ArtifactError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    counts = ", ".join(f"{count} {kind.replace('_', ' ')}" for kind, count in system.entity_count().items() if count)
    print(f"Imported system '{system.name}' ({counts or 'empty'}) to '{output}'.")
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    """Handle the check subcommand."""
    try:
        system = read_artifact(Path(args.model))
    except ArtifactError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if not _report(validate(system)):
        return 1
    print(f"System '{system.name}' is consistent.")
    return 0


def _report(result: ValidationResult, warning_stream: TextIO | None = None) -> bool:
    """Print validation findings; return False if there were errors."""
    warning_stream = warning_stream or sys.stdout
    for warning in result.warnings:
        print(f"Warning: {warning.message}", file=warning_stream)
    for error in result.errors:
        print(f"Error: {error.message}", file=sys.stderr)
    return not result.has_errors
