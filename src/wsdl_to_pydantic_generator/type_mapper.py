"""Mapping of schema type references and occurrence bounds to Python annotations."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .naming import class_name, unique_name
from .qname import QName
from .xsd_model import (
    UNBOUNDED,
    Attribute,
    AttributeUse,
    ListType,
    Restriction,
    UnionType,
    XmlSchema,
)

_XSD_PREFIXES = {"xs", "xsd"}
_ANY_ANNOTATION = "Any"
_LEXICAL_ANNOTATION = "str"

_BUILTIN_TYPES: dict[str, str] = {
    # strings
    "string": "str",
    "normalizedstring": "str",
    "token": "str",
    "language": "str",
    "name": "str",
    "ncname": "str",
    "qname": "str",
    "notation": "str",
    "anyuri": "str",
    "id": "str",
    "idref": "str",
    "idrefs": "str",
    "entity": "str",
    "entities": "str",
    "nmtoken": "str",
    "nmtokens": "str",
    "gyear": "str",
    "gyearmonth": "str",
    "gmonth": "str",
    "gmonthday": "str",
    "gday": "str",
    # booleans and numbers
    "boolean": "bool",
    "int": "int",
    "integer": "int",
    "long": "int",
    "short": "int",
    "byte": "int",
    "unsignedint": "int",
    "unsignedlong": "int",
    "unsignedshort": "int",
    "unsignedbyte": "int",
    "positiveinteger": "int",
    "negativeinteger": "int",
    "nonnegativeinteger": "int",
    "nonpositiveinteger": "int",
    "float": "float",
    "double": "float",
    "decimal": "Decimal",
    # dates and times
    "datetime": "datetime",
    "date": "date",
    "time": "time",
    "duration": "timedelta",
    # binary
    "base64binary": "bytes",
    "hexbinary": "bytes",
    # wildcards
    "anytype": _ANY_ANNOTATION,
    "anysimpletype": _ANY_ANNOTATION,
}


class TypeKind(Enum):
    """Shape of a mapped type."""

    SCALAR = "scalar"
    OPTIONAL = "optional"
    REPEATED = "repeated"
    OPTIONAL_REPEATED = "optional_repeated"


@dataclass(frozen=True)
class TypeDescriptor:
    """A base annotation plus its optional/repeated wrappers."""

    base: str
    optional: bool = False
    repeated: bool = False

    @property
    def kind(self) -> TypeKind:
        if self.optional and self.repeated:
            return TypeKind.OPTIONAL_REPEATED
        if self.repeated:
            return TypeKind.REPEATED
        if self.optional:
            return TypeKind.OPTIONAL
        return TypeKind.SCALAR

    @property
    def annotation(self) -> str:
        """Python annotation source text."""
        annotation = self.base
        if self.repeated:
            annotation = f"list[{annotation}]"
        if self.optional:
            annotation = f"Optional[{annotation}]"
        return annotation


def is_repeated(max_occurs: Optional[str]) -> bool:
    """Return whether a ``maxOccurs`` value allows more than one occurrence."""
    if max_occurs is None:
        return False
    text = max_occurs.strip()
    if text == UNBOUNDED:
        return True
    try:
        return int(text) > 1
    except ValueError:
        return False


class TypeMapper:
    """Resolve schema type references to Python annotations.

    Class names for generated models and enums are assigned once, in schema
    order, so the mapper and the code builder always agree on them.
    ``reserved_names`` are taken by other module-level definitions and never
    assigned to a schema type.
    """

    def __init__(
        self,
        schema: Optional[XmlSchema] = None,
        *,
        reserved_names: Iterable[str] = (),
    ) -> None:
        self._schema = schema if schema is not None else XmlSchema()
        used_names: set[str] = set(reserved_names)
        self._complex_classes: dict[str, str] = {
            name: unique_name(class_name(name), used_names)
            for name in self._schema.complex_types
        }
        self._enum_classes: dict[str, str] = {}
        for name, simple_type in self._schema.simple_types.items():
            if isinstance(simple_type, Restriction) and simple_type.enumerations():
                self._enum_classes[name] = unique_name(class_name(name), used_names)

    def complex_class_name(self, type_name: str) -> str:
        """Generated class name of a complex type."""
        return self._complex_classes.get(type_name) or class_name(type_name)

    def enum_class_name(self, type_name: str) -> Optional[str]:
        """Generated enum name of a simple type, if it has enumerations."""
        return self._enum_classes.get(type_name)

    def map_type(self, type_ref: QName) -> str:
        """Map a type reference to a base annotation.

        Unknown references fall back to the PascalCased local name, assuming the
        type is defined elsewhere.
        """
        resolved = self.resolve(type_ref)
        if resolved is not None:
            return resolved
        return class_name(type_ref.local_name())

    def resolve(self, type_ref: QName) -> Optional[str]:
        """Map a type reference, or return ``None`` when it is unknown."""
        return self._resolve(type_ref, seen=())

    def map_type_with_occurs(
        self,
        type_ref: QName,
        min_occurs: Optional[int],
        max_occurs: Optional[str],
        nillable: bool,
    ) -> TypeDescriptor:
        """Map an element reference together with its occurrence bounds.

        Args:
            type_ref (QName): Referenced type.
            min_occurs (Optional[int]): ``minOccurs``; ``None`` means 1.
            max_occurs (Optional[str]): ``maxOccurs`` text; a count or ``unbounded``.
            nillable (bool): Whether the element is nillable.

        Returns:
            TypeDescriptor: ``list`` wrapping for repeated elements, then
            ``Optional`` wrapping for ``minOccurs == 0`` or nillable elements.
        """
        optional = min_occurs == 0 or nillable
        return TypeDescriptor(
            base=self.map_type(type_ref),
            optional=optional,
            repeated=is_repeated(max_occurs),
        )

    def map_attribute(self, attribute: Attribute) -> TypeDescriptor:
        """Map an attribute; only required attributes are unwrapped."""
        match attribute.use:
            case AttributeUse.REQUIRED:
                optional = False
            case AttributeUse.OPTIONAL | AttributeUse.PROHIBITED:
                optional = True
        return TypeDescriptor(base=self.map_type(attribute.type_), optional=optional)

    def _resolve(self, type_ref: QName, seen: tuple[str, ...]) -> Optional[str]:
        prefix, local_name = type_ref.split()
        if not local_name:
            return _ANY_ANNOTATION

        builtin = _BUILTIN_TYPES.get(local_name.lower())
        if prefix is not None and prefix.lower() in _XSD_PREFIXES and builtin is not None:
            return builtin

        complex_class = self._complex_classes.get(local_name)
        if complex_class is not None:
            return complex_class

        simple_type = self._schema.simple_types.get(local_name)
        if simple_type is not None and local_name not in seen:
            match simple_type:
                case Restriction():
                    enum_class = self._enum_classes.get(local_name)
                    if enum_class is not None:
                        return enum_class
                    base = self._resolve(simple_type.base, (*seen, local_name))
                    return base if base is not None else _LEXICAL_ANNOTATION
                case ListType() | UnionType():
                    return _LEXICAL_ANNOTATION

        return builtin
