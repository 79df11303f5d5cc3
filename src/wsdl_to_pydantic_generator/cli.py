"""Command line interface for WSDL to pydantic client generation."""

from __future__ import annotations

import argparse
from pathlib import Path

from .generator import ServiceLoadError, WriteError, run_generation
from .model_types import DEFAULT_RUNTIME_MODULE, GeneratorOptions
from .verify import format_report


class CLIError(RuntimeError):
    """Raised when CLI execution fails."""


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    parser = argparse.ArgumentParser(
        prog="wsdl-to-pydantic-client",
        description="Generate a pydantic SOAP client module from a WSDL document",
    )
    parser.add_argument("--input", required=True, help="Path to a WSDL or XSD file")
    parser.add_argument("--output", required=True, help="Output directory for the generated module")
    parser.add_argument(
        "--module-name",
        help="Name of the generated module (default: derived from the service name)",
    )
    parser.add_argument(
        "--runtime-module",
        default=DEFAULT_RUNTIME_MODULE,
        help="Module providing SoapClient and SoapResult for the generated client",
    )
    parser.add_argument(
        "--prohibited-attributes",
        choices=("optional", "omit"),
        default="optional",
        help="Emit prohibited attributes as optional fields or leave them out",
    )
    parser.add_argument(
        "--strict-duplicates",
        action="store_true",
        help="Fail when a schema defines the same name twice",
    )
    parser.add_argument(
        "--no-format",
        action="store_true",
        help="Skip running ruff on the generated module",
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace an existing generated module",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Import the generated module and verify its models against the schema",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run CLI and return process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        options = _options_from_args(args)
        run = run_generation(
            input_path=Path(args.input),
            output_dir=Path(args.output),
            options=options,
            verify=bool(args.verify),
        )
    except (ServiceLoadError, WriteError, CLIError) as exc:
        parser.error(str(exc))
        return 2

    for warning in run.result.warnings:
        print(f"Warning: {warning}")
    print(f"Wrote {run.result.client_class} to {run.result.output_file}")

    if run.verification_report is not None:
        print(format_report(run.verification_report))
        if run.verification_report.mismatch_count > 0:
            return 1

    return 0


def _options_from_args(args: argparse.Namespace) -> GeneratorOptions:
    module_name = args.module_name
    if module_name is not None and not module_name.isidentifier():
        raise CLIError(f"--module-name must be a valid Python identifier, got {module_name!r}")
    runtime_module = args.runtime_module
    if not all(part.isidentifier() for part in runtime_module.split(".")):
        raise CLIError(f"--runtime-module must be a dotted module path, got {runtime_module!r}")
    return GeneratorOptions(
        module_name=module_name,
        runtime_module=runtime_module,
        prohibited_attributes=args.prohibited_attributes,
        strict_duplicates=bool(args.strict_duplicates),
        format_output=not args.no_format,
        overwrite=bool(args.overwrite),
    )


if __name__ == "__main__":
    raise SystemExit(main())
