"""In-memory model of parsed XML Schema constructs."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from .qname import QName

UNBOUNDED = "unbounded"


class DuplicateDefinitionError(RuntimeError):
    """Raised when a schema name is defined twice and duplicates are not allowed."""


@dataclass
class SequenceElement:
    """An element declared inside a model group."""

    name: str
    type_: QName = field(default_factory=lambda: QName(""))
    min_occurs: int = 1
    max_occurs: Optional[str] = None
    nillable: bool = False


@dataclass
class ModelGroup:
    """Elements of a content model group, in document order."""

    elements: list[SequenceElement] = field(default_factory=list)


@dataclass
class Sequence(ModelGroup):
    """Ordered group (``sequence``)."""


@dataclass
class All(ModelGroup):
    """Unordered group (``all``), generated with sequence semantics."""


@dataclass
class Choice(ModelGroup):
    """Choice group (``choice``), generated with sequence semantics."""


class AttributeUse(Enum):
    """Usage of an XML attribute."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    PROHIBITED = "prohibited"

    @classmethod
    def from_text(cls, value: Optional[str]) -> AttributeUse:
        """Map a ``use`` attribute value; absent or unknown values are optional."""
        if value == "required":
            return cls.REQUIRED
        if value == "prohibited":
            return cls.PROHIBITED
        return cls.OPTIONAL


@dataclass
class Attribute:
    """An XML attribute declared on a complex type."""

    name: str
    type_: QName
    use: AttributeUse = AttributeUse.OPTIONAL


@dataclass
class ComplexType:
    """A complex type definition.

    ``all`` and ``choice`` groups are stored in ``sequence``; the group's
    class records which one the document used. When a type declares several
    groups the last one parsed is kept.
    """

    name: str = ""
    sequence: Optional[ModelGroup] = None
    base_type: Optional[QName] = None
    attributes: list[Attribute] = field(default_factory=list)

    @property
    def elements(self) -> list[SequenceElement]:
        return self.sequence.elements if self.sequence is not None else []

    def fields_count(self) -> int:
        """Number of attributes plus group elements."""
        return len(self.attributes) + len(self.elements)


class WhiteSpace(Enum):
    PRESERVE = "preserve"
    REPLACE = "replace"
    COLLAPSE = "collapse"


@dataclass(frozen=True)
class MinInclusive:
    value: str


@dataclass(frozen=True)
class MaxInclusive:
    value: str


@dataclass(frozen=True)
class MinExclusive:
    value: str


@dataclass(frozen=True)
class MaxExclusive:
    value: str


@dataclass(frozen=True)
class MinLength:
    value: int


@dataclass(frozen=True)
class MaxLength:
    value: int


@dataclass(frozen=True)
class Length:
    value: int


@dataclass(frozen=True)
class Pattern:
    value: str


@dataclass(frozen=True)
class Enumeration:
    value: str


@dataclass(frozen=True)
class WhiteSpaceFacet:
    value: WhiteSpace


@dataclass(frozen=True)
class TotalDigits:
    value: int


@dataclass(frozen=True)
class FractionDigits:
    value: int


type Facet = Union[
    MinInclusive,
    MaxInclusive,
    MinExclusive,
    MaxExclusive,
    MinLength,
    MaxLength,
    Length,
    Pattern,
    Enumeration,
    WhiteSpaceFacet,
    TotalDigits,
    FractionDigits,
]

TEXT_FACETS: dict[str, Callable[[str], Facet]] = {
    "minInclusive": MinInclusive,
    "maxInclusive": MaxInclusive,
    "minExclusive": MinExclusive,
    "maxExclusive": MaxExclusive,
    "pattern": Pattern,
    "enumeration": Enumeration,
}

INTEGER_FACETS: dict[str, Callable[[int], Facet]] = {
    "minLength": MinLength,
    "maxLength": MaxLength,
    "length": Length,
    "totalDigits": TotalDigits,
    "fractionDigits": FractionDigits,
}


@dataclass
class Restriction:
    """Simple type derived by restricting a base type."""

    base: QName
    facets: list[Facet] = field(default_factory=list)

    def enumerations(self) -> list[str]:
        """Enumeration facet values in document order."""
        return [facet.value for facet in self.facets if isinstance(facet, Enumeration)]


@dataclass
class ListType:
    """Whitespace separated list of an item type. Not generated."""

    item_type: QName


@dataclass
class UnionType:
    """Union of member types. Not generated."""

    member_types: list[QName] = field(default_factory=list)


type SimpleType = Union[Restriction, ListType, UnionType]


@dataclass
class SchemaElement:
    """A top-level element declaration."""

    name: str
    type_: QName = field(default_factory=lambda: QName(""))
    nillable: bool = False
    min_occurs: Optional[int] = None
    max_occurs: Optional[str] = None


@dataclass
class XmlSchema:
    """Named schema constructs keyed by their (unique) names."""

    target_namespace: Optional[str] = None
    element_form_default: Optional[str] = None
    attribute_form_default: Optional[str] = None
    version: Optional[str] = None
    namespaces: dict[str, str] = field(default_factory=dict)
    elements: dict[str, SchemaElement] = field(default_factory=dict)
    complex_types: dict[str, ComplexType] = field(default_factory=dict)
    simple_types: dict[str, SimpleType] = field(default_factory=dict)
    schema_locations: list[str] = field(default_factory=list)

    @property
    def element_form_qualified(self) -> bool:
        return self.element_form_default == "qualified"

    def add_complex_type(self, complex_type: ComplexType) -> Optional[ComplexType]:
        """Register a complex type, returning the definition it replaced."""
        previous = self.complex_types.get(complex_type.name)
        self.complex_types[complex_type.name] = complex_type
        return previous

    def add_simple_type(self, name: str, simple_type: SimpleType) -> Optional[SimpleType]:
        """Register a simple type, returning the definition it replaced."""
        previous = self.simple_types.get(name)
        self.simple_types[name] = simple_type
        return previous

    def add_element(self, element: SchemaElement) -> Optional[SchemaElement]:
        """Register a top-level element, returning the declaration it replaced."""
        previous = self.elements.get(element.name)
        self.elements[element.name] = element
        return previous
