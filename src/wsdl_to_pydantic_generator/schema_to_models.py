"""Convert parsed schema and service models into generated definitions."""

from __future__ import annotations

from typing import Optional

from .model_types import (
    BASELINE_CAPABILITIES,
    AliasDef,
    Capability,
    ClientDef,
    EnumDef,
    EnumMemberDef,
    FieldDef,
    GeneratedModule,
    GeneratorOptions,
    ModelDef,
    OperationDef,
    ProhibitedAttributePolicy,
)
from .naming import class_name, enum_member_name, field_name, method_name, unique_name
from .qname import QName
from .type_mapper import TypeMapper
from .wsdl_model import PortTypeOperation, WsdlModel
from .xsd_model import AttributeUse, ComplexType, ListType, Restriction, SimpleType, UnionType

# Unit type used when an operation payload cannot be resolved.
PLACEHOLDER_ANNOTATION = "None"
_CLIENT_SUFFIX = "Client"
_DEFAULT_SERVICE_NAME = "Service"


def build_model_def(
    type_name: str,
    complex_type: ComplexType,
    mapper: TypeMapper,
    *,
    prohibited_attributes: ProhibitedAttributePolicy = "optional",
) -> ModelDef:
    """Build the pydantic model definition of one complex type.

    Args:
        type_name (str): Schema name of the type.
        complex_type (ComplexType): Parsed type.
        mapper (TypeMapper): Mapper for the schema the type belongs to.
        prohibited_attributes (ProhibitedAttributePolicy): Whether prohibited
            attributes become optional fields or are left out.

    Returns:
        ModelDef: Attribute fields first, then group elements in document order.
    """
    fields: list[FieldDef] = []
    used_field_names: set[str] = set()

    for attribute in complex_type.attributes:
        if attribute.use is AttributeUse.PROHIBITED and prohibited_attributes == "omit":
            continue
        descriptor = mapper.map_attribute(attribute)
        fields.append(
            FieldDef(
                name=unique_name(field_name(attribute.name), used_field_names),
                source_name=f"@{attribute.name}",
                annotation=descriptor.annotation,
                required=not descriptor.optional,
                is_attribute=True,
            )
        )

    for element in complex_type.elements:
        descriptor = mapper.map_type_with_occurs(
            element.type_,
            element.min_occurs,
            element.max_occurs,
            element.nillable,
        )
        fields.append(
            FieldDef(
                name=unique_name(field_name(element.name), used_field_names),
                source_name=element.name,
                annotation=descriptor.annotation,
                required=not descriptor.optional,
            )
        )

    capabilities = BASELINE_CAPABILITIES
    if complex_type.fields_count() == 0:
        capabilities = (*capabilities, Capability.DEFAULT)

    return ModelDef(
        name=mapper.complex_class_name(type_name),
        source_name=type_name,
        fields=tuple(fields),
        capabilities=capabilities,
        docstring=f"Generated from XSD complexType: {type_name}",
    )


def build_enum_def(
    type_name: str,
    simple_type: SimpleType,
    mapper: TypeMapper,
) -> Optional[EnumDef]:
    """Build the enum definition of a simple type.

    Returns:
        Optional[EnumDef]: ``None`` unless the type is a restriction carrying
        enumeration facets.
    """
    match simple_type:
        case Restriction():
            values = simple_type.enumerations()
        case ListType() | UnionType():
            return None

    if not values:
        return None
    enum_name = mapper.enum_class_name(type_name) or class_name(type_name)

    members: list[EnumMemberDef] = []
    used_member_names: set[str] = set()
    seen_values: set[str] = set()
    for value in values:
        if value in seen_values:
            continue
        seen_values.add(value)
        members.append(
            EnumMemberDef(
                name=unique_name(enum_member_name(value), used_member_names),
                value=value,
            )
        )
    return EnumDef(
        name=enum_name,
        source_name=type_name,
        members=tuple(members),
        docstring=f"Generated from XSD simpleType: {type_name}",
    )


def resolve_payload_class(
    message_ref: Optional[QName],
    wsdl: WsdlModel,
    mapper: TypeMapper,
) -> Optional[str]:
    """Follow message -> first part -> element to a class name.

    Returns:
        Optional[str]: ``None`` when any step of the chain is missing.
    """
    if message_ref is None:
        return None
    message = wsdl.find_message(message_ref)
    if message is None or not message.parts:
        return None
    element = message.parts[0].element
    if element is None:
        return None
    local_name = element.local_name()
    if local_name in wsdl.schema.complex_types:
        return mapper.complex_class_name(local_name)
    return class_name(local_name)


def build_operation_def(
    operation: PortTypeOperation,
    wsdl: WsdlModel,
    mapper: TypeMapper,
    *,
    method: Optional[str] = None,
) -> OperationDef:
    """Build the client method definition of one operation.

    Unresolvable payloads become :data:`PLACEHOLDER_ANNOTATION`.
    """
    input_class = resolve_payload_class(operation.input, wsdl, mapper)
    output_class = resolve_payload_class(operation.output, wsdl, mapper)
    documentation_lines: tuple[str, ...] = ()
    if operation.documentation:
        documentation_lines = tuple(
            line.strip() for line in operation.documentation.splitlines() if line.strip()
        )
    return OperationDef(
        operation_name=operation.name,
        method_name=method or method_name(operation.name),
        input_annotation=input_class or PLACEHOLDER_ANNOTATION,
        output_annotation=output_class or PLACEHOLDER_ANNOTATION,
        input_resolved=input_class is not None,
        soap_action=wsdl.find_soap_action(operation.name),
        documentation_lines=documentation_lines,
    )


def client_class_name(service_name: Optional[str]) -> str:
    """Class name of the generated client for a service."""
    name = class_name(service_name or _DEFAULT_SERVICE_NAME)
    if not name.endswith(_CLIENT_SUFFIX):
        name = f"{name}{_CLIENT_SUFFIX}"
    return name


class ModuleBuilder:
    """Create all definitions of one generated module."""

    def __init__(self, wsdl: WsdlModel, options: GeneratorOptions) -> None:
        self._wsdl = wsdl
        self._options = options
        self._service_name = wsdl.service_name() or _DEFAULT_SERVICE_NAME
        self._client_name = client_class_name(self._service_name)
        self._mapper = TypeMapper(wsdl.schema, reserved_names=(self._client_name,))
        self.warnings: list[str] = []

    def build(self) -> GeneratedModule:
        """Build the module definition.

        Returns:
            GeneratedModule: Models, enums, element aliases and the client.
        """
        schema = self._wsdl.schema
        models = tuple(
            build_model_def(
                name,
                complex_type,
                self._mapper,
                prohibited_attributes=self._options.prohibited_attributes,
            )
            for name, complex_type in schema.complex_types.items()
        )
        enums: list[EnumDef] = []
        for name, simple_type in schema.simple_types.items():
            if isinstance(simple_type, (ListType, UnionType)):
                self.warnings.append(f"simpleType '{name}' uses list/union, which is not supported")
                continue
            enum_def = build_enum_def(name, simple_type, self._mapper)
            if enum_def is not None:
                enums.append(enum_def)

        defined_names = {model.name for model in models} | {enum.name for enum in enums}
        aliases = self._build_aliases(defined_names)
        defined_names.update(alias.name for alias in aliases)
        self._warn_unresolved(defined_names)

        service_name = self._service_name
        return GeneratedModule(
            docstring=(
                f"Generated SOAP client for the {service_name} service.\n\n"
                "This module was generated from a WSDL document; do not edit it by hand.\n"
            ),
            runtime_module=self._options.runtime_module,
            target_namespace=self._wsdl.effective_target_namespace(),
            element_form_qualified=schema.element_form_qualified,
            default_endpoint=self._wsdl.default_endpoint(),
            models=models,
            enums=tuple(enums),
            aliases=tuple(aliases),
            client=self._build_client(service_name),
        )

    def _build_aliases(self, defined_names: set[str]) -> list[AliasDef]:
        aliases: list[AliasDef] = []
        known_names = {*defined_names, self._client_name}
        for element in self._wsdl.schema.elements.values():
            alias_name = class_name(element.name)
            if alias_name in known_names:
                continue
            target = self._mapper.resolve(element.type_)
            # Resolved targets are generated classes or builtin annotations.
            if target is None or target == alias_name:
                continue
            aliases.append(AliasDef(name=alias_name, target=target))
            known_names.add(alias_name)
        return aliases

    def _build_client(self, service_name: str) -> ClientDef:
        operations: list[OperationDef] = []
        used_methods: set[str] = set()
        for operation in self._wsdl.operations():
            candidate = method_name(operation.name)
            if candidate in used_methods:
                self.warnings.append(
                    f"Operation '{operation.name}' is declared more than once; "
                    "keeping the first declaration"
                )
                continue
            used_methods.add(candidate)
            operations.append(
                build_operation_def(operation, self._wsdl, self._mapper, method=candidate)
            )
        return ClientDef(
            name=self._client_name,
            service_name=service_name,
            operations=tuple(operations),
        )

    def _warn_unresolved(self, defined_names: set[str]) -> None:
        schema = self._wsdl.schema
        for type_name, complex_type in schema.complex_types.items():
            references = [element.type_ for element in complex_type.elements]
            references.extend(attribute.type_ for attribute in complex_type.attributes)
            for reference in references:
                if reference.is_empty() or self._mapper.resolve(reference) is not None:
                    continue
                self.warnings.append(
                    f"Type '{reference}' used by '{type_name}' is not defined in the schema"
                )
        for operation in self._wsdl.operations():
            for direction, reference in (("input", operation.input), ("output", operation.output)):
                if reference is None:
                    continue
                resolved = resolve_payload_class(reference, self._wsdl, self._mapper)
                if resolved is None:
                    self.warnings.append(
                        f"Operation '{operation.name}' {direction} could not be resolved; "
                        f"using {PLACEHOLDER_ANNOTATION}"
                    )
                elif resolved not in defined_names:
                    self.warnings.append(
                        f"Operation '{operation.name}' {direction} type '{resolved}' "
                        "is not generated"
                    )
