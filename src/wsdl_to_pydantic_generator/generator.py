"""High-level generator orchestration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .codegen_ast import render_module
from .loader import ServiceLoadError, load_service_definition
from .model_types import GenerationResult, GeneratorOptions
from .naming import module_name as module_name_for
from .schema_to_models import ModuleBuilder
from .verify import VerificationReport, verify_module
from .writer import WriteError, format_generated_file, write_module


@dataclass(frozen=True)
class GenerationRun:
    """Generation result with optional verification report."""

    result: GenerationResult
    verification_report: Optional[VerificationReport]


def run_generation(
    *,
    input_path: Path,
    output_dir: Path,
    options: Optional[GeneratorOptions] = None,
    verify: bool = False,
) -> GenerationRun:
    """Generate a pydantic SOAP client module from a WSDL document.

    Args:
        input_path (Path): Path to the input WSDL (or XSD) document.
        output_dir (Path): Directory where the module is written.
        options (Optional[GeneratorOptions]): Generation settings; defaults when omitted.
        verify (bool): Whether to import and verify the module after writing.

    Returns:
        GenerationRun: Generation metadata and optional verification report.
    """
    options = options or GeneratorOptions()
    loaded = load_service_definition(input_path, strict_duplicates=options.strict_duplicates)
    builder = ModuleBuilder(loaded.model, options)
    module = builder.build()

    name = options.module_name or module_name_for(module.client.service_name)
    output_file = write_module(
        output_dir,
        name,
        render_module(module),
        overwrite=options.overwrite,
    )
    if options.format_output:
        format_generated_file(output_file)

    result = GenerationResult(
        output_file=str(output_file),
        module_name=name,
        client_class=module.client.name,
        warnings=(*loaded.warnings, *builder.warnings),
    )

    if not verify:
        return GenerationRun(result=result, verification_report=None)

    report = verify_module(module_path=output_file, module=module)
    return GenerationRun(result=result, verification_report=report)


__all__ = [
    "GenerationRun",
    "run_generation",
    "ServiceLoadError",
    "WriteError",
]
