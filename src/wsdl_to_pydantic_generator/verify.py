"""Verification of generated modules against the definitions they were built from."""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import ModuleType
from typing import Any

from jsonschema.exceptions import SchemaError
from jsonschema.validators import validator_for
from pydantic import BaseModel
from pydantic.errors import PydanticUndefinedAnnotation, PydanticUserError

from .model_types import Capability, EnumDef, GeneratedModule, ModelDef
from .module_loading import load_module_from_path, unload_module

# Class attribute that provides each capability on a generated model.
_CAPABILITY_MEMBERS: dict[Capability, str] = {
    Capability.EQUALITY: "__eq__",
    Capability.COPY: "model_copy",
    Capability.DEBUG: "__repr__",
    Capability.SERIALIZE: "model_dump",
    Capability.DESERIALIZE: "model_validate",
    Capability.DEFAULT: "default",
}


@dataclass(frozen=True)
class VerificationMismatch:
    """One verification mismatch."""

    class_name: str
    path: str
    expected: Any
    actual: Any


@dataclass(frozen=True)
class VerificationReport:
    """Result of the verification phase."""

    verified_count: int
    mismatch_count: int
    mismatches: tuple[VerificationMismatch, ...]


def verify_module(*, module_path: Path, module: GeneratedModule) -> VerificationReport:
    """Import a generated module and compare its classes with their definitions.

    Every model's ``model_json_schema(by_alias=True)`` must be a valid JSON
    schema whose property names and required names equal the wire names of the
    definition, and the class must provide exactly the capabilities the
    definition lists. Every enum must carry exactly the enumeration values.

    Args:
        module_path (Path): Path of the written module.
        module (GeneratedModule): Definitions the module was rendered from.

    Returns:
        VerificationReport: Count of verified classes and all mismatches.
    """
    if not module_path.exists():
        raise RuntimeError(f"Generated module not found: {module_path}")

    module_name = f"generated_{module_path.stem}_{next(_COUNTER)}"
    loaded = load_module_from_path(module_name=module_name, module_path=module_path)
    mismatches: list[VerificationMismatch] = []
    try:
        for model in module.models:
            mismatches.extend(_verify_model(loaded, model))
        for enum in module.enums:
            mismatches.extend(_verify_enum(loaded, enum))
    finally:
        unload_module(module_name)

    return VerificationReport(
        verified_count=len(module.models) + len(module.enums),
        mismatch_count=len(mismatches),
        mismatches=tuple(mismatches),
    )


def format_report(report: VerificationReport) -> str:
    """Render report as CLI output text."""
    lines = [
        f"Verified classes: {report.verified_count}",
        f"Mismatches: {report.mismatch_count}",
    ]
    for mismatch in report.mismatches:
        lines.extend(
            [
                f"- {mismatch.class_name}",
                f"  path: {mismatch.path}",
                f"  expected: {short_repr(mismatch.expected)}",
                f"  actual: {short_repr(mismatch.actual)}",
            ]
        )
    return "\n".join(lines)


def short_repr(value: Any, *, limit: int = 160) -> str:
    """A short representation for mismatch diagnostics."""
    text = repr(value)
    return text if len(text) <= limit else f"{text[: limit - 3]}..."


def _verify_model(loaded: ModuleType, model: ModelDef) -> list[VerificationMismatch]:
    value = getattr(loaded, model.name, None)
    if not isinstance(value, type) or not issubclass(value, BaseModel):
        return [_mismatch(model.name, "class", "BaseModel subclass", value)]

    mismatches = _verify_capabilities(value, model)

    try:
        value.model_rebuild(_types_namespace=loaded.__dict__)
        generated_schema = value.model_json_schema(by_alias=True)
    except (PydanticUndefinedAnnotation, PydanticUserError) as exc:
        return [*mismatches, _mismatch(model.name, "schema", "buildable model", str(exc))]

    try:
        validator_for(generated_schema).check_schema(generated_schema)
    except SchemaError as exc:
        return [*mismatches, _mismatch(model.name, "schema", "valid JSON schema", exc.message)]

    expected_properties = [field.source_name for field in model.fields]
    actual_properties = list(generated_schema.get("properties", {}))
    if actual_properties != expected_properties:
        mismatches.append(
            _mismatch(model.name, "properties", expected_properties, actual_properties)
        )

    expected_required = sorted(field.source_name for field in model.fields if field.required)
    actual_required = sorted(generated_schema.get("required", []))
    if actual_required != expected_required:
        mismatches.append(_mismatch(model.name, "required", expected_required, actual_required))
    return mismatches


def _verify_capabilities(value: type, model: ModelDef) -> list[VerificationMismatch]:
    expected = [capability.value for capability in Capability if capability in model.capabilities]
    actual = [
        capability.value
        for capability, member in _CAPABILITY_MEMBERS.items()
        if callable(getattr(value, member, None))
    ]
    if actual != expected:
        return [_mismatch(model.name, "capabilities", expected, actual)]
    return []


def _verify_enum(loaded: ModuleType, enum: EnumDef) -> list[VerificationMismatch]:
    value = getattr(loaded, enum.name, None)
    if not isinstance(value, type) or not issubclass(value, Enum):
        return [_mismatch(enum.name, "class", "Enum subclass", value)]

    expected_values = [member.value for member in enum.members]
    actual_values = [member.value for member in value]
    if actual_values != expected_values:
        return [_mismatch(enum.name, "values", expected_values, actual_values)]
    return []


def _mismatch(class_name: str, path: str, expected: Any, actual: Any) -> VerificationMismatch:
    return VerificationMismatch(
        class_name=class_name,
        path=path,
        expected=expected,
        actual=actual,
    )


_COUNTER = itertools.count(1)
