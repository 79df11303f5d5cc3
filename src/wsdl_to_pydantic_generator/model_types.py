"""Internal datatypes for generation and verification."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional

type ProhibitedAttributePolicy = Literal["optional", "omit"]

DEFAULT_RUNTIME_MODULE = "soap_runtime"


class Capability(Enum):
    """Behaviour a generated type supports."""

    EQUALITY = "equality"
    COPY = "copy"
    DEBUG = "debug"
    SERIALIZE = "serialize"
    DESERIALIZE = "deserialize"
    DEFAULT = "default"


BASELINE_CAPABILITIES: tuple[Capability, ...] = (
    Capability.EQUALITY,
    Capability.COPY,
    Capability.DEBUG,
    Capability.SERIALIZE,
    Capability.DESERIALIZE,
)


@dataclass(frozen=True)
class GeneratorOptions:
    """User-controlled generation settings."""

    module_name: Optional[str] = None
    runtime_module: str = DEFAULT_RUNTIME_MODULE
    prohibited_attributes: ProhibitedAttributePolicy = "optional"
    strict_duplicates: bool = False
    format_output: bool = True
    overwrite: bool = False


@dataclass(frozen=True)
class FieldDef:
    """Represents a single pydantic model field."""

    name: str
    source_name: str
    annotation: str
    required: bool
    is_attribute: bool = False

    @property
    def needs_alias(self) -> bool:
        return self.name != self.source_name


@dataclass(frozen=True)
class ModelDef:
    """Represents a generated pydantic model class."""

    name: str
    source_name: str
    fields: tuple[FieldDef, ...]
    capabilities: tuple[Capability, ...]
    docstring: Optional[str]

    @property
    def default_constructible(self) -> bool:
        return Capability.DEFAULT in self.capabilities


@dataclass(frozen=True)
class EnumMemberDef:
    name: str
    value: str


@dataclass(frozen=True)
class EnumDef:
    """Represents a generated string enum."""

    name: str
    source_name: str
    members: tuple[EnumMemberDef, ...]
    docstring: Optional[str]


@dataclass(frozen=True)
class AliasDef:
    """Module-level alias from an element name to its type's class or builtin."""

    name: str
    target: str


@dataclass(frozen=True)
class OperationDef:
    """Represents one generated client method."""

    operation_name: str
    method_name: str
    input_annotation: str
    output_annotation: str
    input_resolved: bool
    soap_action: Optional[str]
    documentation_lines: tuple[str, ...]


@dataclass(frozen=True)
class ClientDef:
    """Represents the generated client class."""

    name: str
    service_name: str
    operations: tuple[OperationDef, ...]


@dataclass(frozen=True)
class GeneratedModule:
    """Everything rendered into one generated module."""

    docstring: str
    runtime_module: str
    target_namespace: Optional[str]
    element_form_qualified: bool
    default_endpoint: Optional[str]
    models: tuple[ModelDef, ...]
    enums: tuple[EnumDef, ...]
    aliases: tuple[AliasDef, ...]
    client: ClientDef


@dataclass(frozen=True)
class GenerationResult:
    """Generation output metadata."""

    output_file: str
    module_name: str
    client_class: str
    warnings: tuple[str, ...]
