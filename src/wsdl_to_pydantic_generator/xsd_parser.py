"""Event-driven XML Schema parser."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Optional, Union

from .qname import QName
from .xml_events import EventKind, EventStream, XmlEvent
from .xsd_model import (
    INTEGER_FACETS,
    TEXT_FACETS,
    All,
    Attribute,
    AttributeUse,
    Choice,
    ComplexType,
    DuplicateDefinitionError,
    Facet,
    ListType,
    ModelGroup,
    Restriction,
    SchemaElement,
    Sequence,
    SequenceElement,
    SimpleType,
    UnionType,
    WhiteSpace,
    WhiteSpaceFacet,
    XmlSchema,
)

_GROUPS: dict[str, type[ModelGroup]] = {
    "sequence": Sequence,
    "all": All,
    "choice": Choice,
}
_CONTENT_DERIVATIONS = ("complexContent", "simpleContent")
_DERIVATION_METHODS = ("extension", "restriction")
_SCHEMA_REFERENCES = ("import", "include", "redefine")
_OPENING_KINDS = (EventKind.START, EventKind.EMPTY)

type InlineType = Union[ComplexType, Restriction, ListType, UnionType]


class SchemaParser:
    """Populate an :class:`XmlSchema` from structural events.

    Parsing is lenient: the end of the stream closes whatever construct is
    open, unknown container elements are skipped as whole subtrees, and
    incomplete declarations are dropped. Non-fatal findings are collected in
    ``warnings``.
    """

    def __init__(
        self,
        stream: EventStream,
        schema: Optional[XmlSchema] = None,
        *,
        strict_duplicates: bool = False,
    ) -> None:
        self._stream = stream
        self.schema = schema if schema is not None else XmlSchema()
        self._strict_duplicates = strict_duplicates
        self.warnings: list[str] = []
        self._top_level_handlers: dict[str, Callable[[XmlEvent], None]] = {
            "complexType": self._parse_top_level_complex_type,
            "simpleType": self._parse_top_level_simple_type,
            "element": self._parse_top_level_element,
        }

    def parse(self) -> XmlSchema:
        """Scan to the ``schema`` element and parse it.

        Returns:
            XmlSchema: The populated schema (empty when no schema was found).
        """
        while True:
            event = self._stream.next_event()
            if event is None:
                return self.schema
            if event.kind in _OPENING_KINDS and event.local_name == "schema":
                self.parse_schema(event)
                return self.schema

    def parse_schema(self, event: XmlEvent) -> XmlSchema:
        """Parse the body of a ``schema`` element whose START was already consumed.

        Args:
            event (XmlEvent): The ``schema`` START or EMPTY event.

        Returns:
            XmlSchema: The populated schema.
        """
        self._read_schema_attributes(event)
        if event.kind is EventKind.EMPTY:
            return self.schema

        while True:
            child = self._stream.next_event()
            if child is None or child.is_end("schema"):
                return self.schema
            if child.kind not in _OPENING_KINDS:
                continue
            local_name = child.local_name
            handler = self._top_level_handlers.get(local_name)
            if handler is not None:
                handler(child)
                continue
            if local_name in _SCHEMA_REFERENCES:
                location = child.attribute("schemaLocation")
                if location:
                    self.schema.schema_locations.append(location)
            if child.kind is EventKind.START:
                self._stream.skip_subtree(local_name)

    def _read_schema_attributes(self, event: XmlEvent) -> None:
        schema = self.schema
        if schema.target_namespace is None:
            schema.target_namespace = event.attribute("targetNamespace")
        if schema.element_form_default is None:
            schema.element_form_default = event.attribute("elementFormDefault")
        if schema.attribute_form_default is None:
            schema.attribute_form_default = event.attribute("attributeFormDefault")
        if schema.version is None:
            schema.version = event.attribute("version")
        for prefix, uri in event.namespaces:
            schema.namespaces.setdefault(prefix, uri)

    def _parse_top_level_complex_type(self, event: XmlEvent) -> None:
        complex_type = self._parse_complex_type(event)
        # Anonymous top-level types cannot be referenced.
        if complex_type.name:
            self._register_complex_type(complex_type)

    def _parse_top_level_simple_type(self, event: XmlEvent) -> None:
        name = event.attribute("name")
        simple_type = self._parse_simple_type(event)
        if name and simple_type is not None:
            self._register_simple_type(name, simple_type)

    def _parse_top_level_element(self, event: XmlEvent) -> None:
        name = event.attribute("name")
        if not name:
            if event.kind is EventKind.START:
                self._stream.skip_subtree("element")
            return

        type_text = event.attribute("type")
        element = SchemaElement(
            name=name,
            type_=QName(type_text or ""),
            nillable=event.attribute("nillable") == "true",
            min_occurs=_parse_optional_int(event.attribute("minOccurs")),
            max_occurs=event.attribute("maxOccurs"),
        )
        if event.kind is EventKind.START:
            inline = self._parse_inline_type()
            if inline is not None and not type_text:
                # The anonymous type is named after its element.
                if isinstance(inline, ComplexType):
                    inline.name = name
                    self._register_complex_type(inline)
                else:
                    self._register_simple_type(name, inline)
                element.type_ = QName(name)
        self._register_element(element)

    def _parse_complex_type(self, event: XmlEvent) -> ComplexType:
        complex_type = ComplexType(name=event.attribute("name") or "")
        if event.kind is EventKind.START:
            self._parse_complex_body(complex_type, "complexType")
        return complex_type

    def _parse_complex_body(self, complex_type: ComplexType, closing: str) -> None:
        while True:
            event = self._stream.next_event()
            if event is None or event.is_end(closing):
                return
            if event.kind not in _OPENING_KINDS:
                continue

            local_name = event.local_name
            if local_name in _GROUPS:
                complex_type.sequence = self._parse_group(event)
            elif local_name == "attribute":
                attribute = _parse_attribute(event)
                if attribute is not None:
                    complex_type.attributes.append(attribute)
                if event.kind is EventKind.START:
                    self._stream.skip_subtree("attribute")
            elif local_name in _CONTENT_DERIVATIONS and event.kind is EventKind.START:
                self._parse_complex_body(complex_type, local_name)
            elif local_name in _DERIVATION_METHODS:
                base = event.attribute("base")
                if base:
                    complex_type.base_type = QName(base)
                if event.kind is EventKind.START:
                    self._parse_complex_body(complex_type, local_name)
            elif event.kind is EventKind.START:
                self._stream.skip_subtree(local_name)

    def _parse_group(self, event: XmlEvent) -> ModelGroup:
        closing = event.local_name
        group = _GROUPS[closing]()
        if event.kind is EventKind.EMPTY:
            return group

        while True:
            child = self._stream.next_event()
            if child is None or child.is_end(closing):
                return group
            if child.kind not in _OPENING_KINDS:
                continue

            local_name = child.local_name
            if local_name in _GROUPS:
                group.elements.extend(self._parse_group(child).elements)
            elif local_name == "element":
                element = self._parse_element(child)
                if element is not None:
                    group.elements.append(element)
            elif child.kind is EventKind.START:
                self._stream.skip_subtree(local_name)

    def _parse_element(self, event: XmlEvent) -> Optional[SequenceElement]:
        name = event.attribute("name")
        type_text = event.attribute("type")
        ref = event.attribute("ref")
        if not name and ref:
            name = QName(ref).local_name()
            type_text = type_text or ref

        element = SequenceElement(
            name=name or "",
            type_=QName(type_text or ""),
            min_occurs=_parse_int(event.attribute("minOccurs"), default=1),
            max_occurs=event.attribute("maxOccurs"),
            nillable=event.attribute("nillable") == "true",
        )
        if event.kind is EventKind.START:
            inline = self._parse_inline_type()
            if inline is not None and not type_text:
                if isinstance(inline, Restriction):
                    element.type_ = inline.base
                else:
                    self.warnings.append(
                        f"Anonymous type of element '{element.name}' is not supported; "
                        "the element is left untyped"
                    )

        if not element.name:
            return None
        return element

    def _parse_inline_type(self) -> Optional[InlineType]:
        inline: Optional[InlineType] = None
        while True:
            event = self._stream.next_event()
            if event is None or event.is_end("element"):
                return inline
            if event.kind not in _OPENING_KINDS:
                continue
            local_name = event.local_name
            if local_name == "complexType":
                inline = self._parse_complex_type(event)
            elif local_name == "simpleType":
                simple_type = self._parse_simple_type(event)
                if simple_type is not None:
                    inline = simple_type
            elif event.kind is EventKind.START:
                self._stream.skip_subtree(local_name)

    def _parse_simple_type(self, event: XmlEvent) -> Optional[SimpleType]:
        if event.kind is EventKind.EMPTY:
            return None

        simple_type: Optional[SimpleType] = None
        while True:
            child = self._stream.next_event()
            if child is None or child.is_end("simpleType"):
                return simple_type
            if child.kind not in _OPENING_KINDS:
                continue

            local_name = child.local_name
            if local_name == "restriction":
                simple_type = self._parse_restriction(child)
                continue
            if local_name == "list":
                simple_type = ListType(item_type=QName(child.attribute("itemType") or ""))
            elif local_name == "union":
                member_types = (child.attribute("memberTypes") or "").split()
                simple_type = UnionType(member_types=[QName(member) for member in member_types])
            if child.kind is EventKind.START:
                self._stream.skip_subtree(local_name)

    def _parse_restriction(self, event: XmlEvent) -> Restriction:
        restriction = Restriction(base=QName(event.attribute("base") or ""))
        if event.kind is EventKind.EMPTY:
            return restriction

        while True:
            child = self._stream.next_event()
            if child is None or child.is_end("restriction"):
                return restriction
            if child.kind not in _OPENING_KINDS:
                continue
            facet = self._parse_facet(child)
            if facet is not None:
                restriction.facets.append(facet)
            if child.kind is EventKind.START:
                self._stream.skip_subtree(child.local_name)

    def _parse_facet(self, event: XmlEvent) -> Optional[Facet]:
        local_name = event.local_name
        known = local_name in TEXT_FACETS or local_name in INTEGER_FACETS
        if not known and local_name != "whiteSpace":
            return None

        value = event.attribute("value")
        if value is None:
            self.warnings.append(f"Facet '{local_name}' without a value was dropped")
            return None
        if local_name in TEXT_FACETS:
            return TEXT_FACETS[local_name](value)
        if local_name in INTEGER_FACETS:
            try:
                return INTEGER_FACETS[local_name](int(value))
            except ValueError:
                self.warnings.append(f"Facet '{local_name}' has a non-integer value {value!r}")
                return None
        try:
            return WhiteSpaceFacet(WhiteSpace(value))
        except ValueError:
            self.warnings.append(f"Unknown whiteSpace value {value!r} was dropped")
            return None

    def _register_complex_type(self, complex_type: ComplexType) -> None:
        self._check_duplicate("complexType", complex_type.name, self.schema.complex_types)
        self.schema.add_complex_type(complex_type)

    def _register_simple_type(self, name: str, simple_type: SimpleType) -> None:
        self._check_duplicate("simpleType", name, self.schema.simple_types)
        self.schema.add_simple_type(name, simple_type)

    def _register_element(self, element: SchemaElement) -> None:
        self._check_duplicate("element", element.name, self.schema.elements)
        self.schema.add_element(element)

    def _check_duplicate(self, kind: str, name: str, registry: Mapping[str, object]) -> None:
        if name not in registry:
            return
        if self._strict_duplicates:
            raise DuplicateDefinitionError(f"Duplicate {kind} definition: {name}")
        self.warnings.append(f"Duplicate {kind} '{name}' replaces the earlier definition")


def _parse_attribute(event: XmlEvent) -> Optional[Attribute]:
    name = event.attribute("name")
    type_text = event.attribute("type")
    if not name or not type_text:
        return None
    return Attribute(
        name=name,
        type_=QName(type_text),
        use=AttributeUse.from_text(event.attribute("use")),
    )


def _parse_int(value: Optional[str], *, default: int) -> int:
    parsed = _parse_optional_int(value)
    return default if parsed is None else parsed


def _parse_optional_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None
