"""Event-driven WSDL 1.1 parser."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Optional, Union

from .qname import QName
from .xml_events import EventKind, EventStream, XmlEvent, iter_xml_events
from .wsdl_model import (
    Binding,
    BindingOperation,
    Fault,
    Message,
    MessagePart,
    Port,
    PortType,
    PortTypeOperation,
    Service,
    WsdlModel,
)
from .xsd_model import XmlSchema
from .xsd_parser import SchemaParser

_OPENING_KINDS = (EventKind.START, EventKind.EMPTY)


class WsdlParser:
    """Populate a :class:`WsdlModel` from structural events.

    Embedded ``types/schema`` elements are handed to a :class:`SchemaParser`
    working on the same stream and the model's schema, so several embedded
    schemas merge into one.
    """

    def __init__(self, stream: EventStream, *, strict_duplicates: bool = False) -> None:
        self._stream = stream
        self.model = WsdlModel()
        self._schema_parser = SchemaParser(
            stream,
            self.model.schema,
            strict_duplicates=strict_duplicates,
        )
        self._own_warnings: list[str] = []
        self._handlers: dict[str, Callable[[XmlEvent], None]] = {
            "types": self._parse_types,
            "message": self._parse_message,
            "portType": self._parse_port_type,
            "binding": self._parse_binding,
            "service": self._parse_service,
            "import": self._parse_import,
        }

    @property
    def warnings(self) -> list[str]:
        """Non-fatal findings of this parser and its schema parser."""
        return [*self._own_warnings, *self._schema_parser.warnings]

    def parse(self) -> WsdlModel:
        """Parse the first ``definitions`` element of the stream.

        A bare ``schema`` document is accepted as well and yields a model
        without operations.

        Returns:
            WsdlModel: The populated service definition.
        """
        while True:
            event = self._stream.next_event()
            if event is None:
                return self.model
            if event.kind not in _OPENING_KINDS:
                continue
            if event.local_name == "definitions":
                self._parse_definitions(event)
                return self.model
            if event.local_name == "schema":
                self._schema_parser.parse_schema(event)
                return self.model

    def _parse_definitions(self, event: XmlEvent) -> None:
        self.model.name = event.attribute("name")
        self.model.target_namespace = event.attribute("targetNamespace")
        self.model.namespaces.update(event.namespaces)
        if event.kind is EventKind.EMPTY:
            return

        while True:
            child = self._stream.next_event()
            if child is None or child.is_end("definitions"):
                return
            if child.kind not in _OPENING_KINDS:
                continue
            handler = self._handlers.get(child.local_name)
            if handler is not None:
                handler(child)
            elif child.kind is EventKind.START:
                self._stream.skip_subtree(child.local_name)

    def _parse_types(self, event: XmlEvent) -> None:
        if event.kind is EventKind.EMPTY:
            return
        while True:
            child = self._stream.next_event()
            if child is None or child.is_end("types"):
                return
            if child.kind not in _OPENING_KINDS:
                continue
            if child.local_name == "schema":
                self._schema_parser.parse_schema(child)
            elif child.kind is EventKind.START:
                self._stream.skip_subtree(child.local_name)

    def _parse_message(self, event: XmlEvent) -> None:
        message = Message(name=event.attribute("name") or "")
        if event.kind is EventKind.START:
            while True:
                child = self._stream.next_event()
                if child is None or child.is_end("message"):
                    break
                if child.kind not in _OPENING_KINDS:
                    continue
                if child.local_name == "part":
                    message.parts.append(
                        MessagePart(
                            name=child.attribute("name") or "",
                            element=_optional_qname(child.attribute("element")),
                            type_=_optional_qname(child.attribute("type")),
                        )
                    )
                if child.kind is EventKind.START:
                    self._stream.skip_subtree(child.local_name)
        if message.name:
            self.model.messages[message.name] = message

    def _parse_port_type(self, event: XmlEvent) -> None:
        port_type = PortType(name=event.attribute("name") or "")
        self.model.port_types.append(port_type)
        if event.kind is EventKind.EMPTY:
            return
        while True:
            child = self._stream.next_event()
            if child is None or child.is_end("portType"):
                return
            if child.kind not in _OPENING_KINDS:
                continue
            if child.local_name == "operation":
                operation = self._parse_port_type_operation(child)
                if operation.name:
                    port_type.operations.append(operation)
            elif child.kind is EventKind.START:
                self._stream.skip_subtree(child.local_name)

    def _parse_port_type_operation(self, event: XmlEvent) -> PortTypeOperation:
        operation = PortTypeOperation(name=event.attribute("name") or "")
        if event.kind is EventKind.EMPTY:
            return operation
        while True:
            child = self._stream.next_event()
            if child is None or child.is_end("operation"):
                return operation
            if child.kind not in _OPENING_KINDS:
                continue

            local_name = child.local_name
            if local_name == "documentation" and child.kind is EventKind.START:
                operation.documentation = self._read_text("documentation")
                continue
            if local_name == "input":
                operation.input = _optional_qname(child.attribute("message"))
            elif local_name == "output":
                operation.output = _optional_qname(child.attribute("message"))
            elif local_name == "fault":
                operation.faults.append(
                    Fault(
                        name=child.attribute("name") or "",
                        message=_optional_qname(child.attribute("message")),
                    )
                )
            if child.kind is EventKind.START:
                self._stream.skip_subtree(local_name)

    def _parse_binding(self, event: XmlEvent) -> None:
        binding = Binding(
            name=event.attribute("name") or "",
            type_=_optional_qname(event.attribute("type")),
        )
        self.model.bindings.append(binding)
        if event.kind is EventKind.EMPTY:
            return
        while True:
            child = self._stream.next_event()
            if child is None or child.is_end("binding"):
                return
            if child.kind not in _OPENING_KINDS:
                continue

            local_name = child.local_name
            if local_name == "operation":
                binding.operations.append(self._parse_binding_operation(child))
                continue
            if local_name == "binding":
                # soap:binding / soap12:binding
                binding.style = child.attribute("style")
                binding.transport = child.attribute("transport")
            if child.kind is EventKind.START:
                self._stream.skip_subtree(local_name)

    def _parse_binding_operation(self, event: XmlEvent) -> BindingOperation:
        operation = BindingOperation(name=event.attribute("name") or "")
        if event.kind is EventKind.EMPTY:
            return operation
        while True:
            child = self._stream.next_event()
            if child is None or child.is_end("operation"):
                return operation
            if child.kind not in _OPENING_KINDS:
                continue

            local_name = child.local_name
            if local_name == "operation":
                # soap:operation / soap12:operation
                operation.soap_action = child.attribute("soapAction")
                operation.style = child.attribute("style")
            if child.kind is EventKind.START:
                self._stream.skip_subtree(local_name)

    def _parse_service(self, event: XmlEvent) -> None:
        service = Service(name=event.attribute("name") or "")
        self.model.services.append(service)
        if event.kind is EventKind.EMPTY:
            return
        while True:
            child = self._stream.next_event()
            if child is None or child.is_end("service"):
                return
            if child.kind not in _OPENING_KINDS:
                continue
            if child.local_name == "port":
                service.ports.append(self._parse_port(child))
            elif child.kind is EventKind.START:
                self._stream.skip_subtree(child.local_name)

    def _parse_port(self, event: XmlEvent) -> Port:
        port = Port(
            name=event.attribute("name") or "",
            binding=_optional_qname(event.attribute("binding")),
        )
        if event.kind is EventKind.EMPTY:
            return port
        while True:
            child = self._stream.next_event()
            if child is None or child.is_end("port"):
                return port
            if child.kind not in _OPENING_KINDS:
                continue
            if child.local_name == "address":
                port.address = child.attribute("location")
            if child.kind is EventKind.START:
                self._stream.skip_subtree(child.local_name)

    def _parse_import(self, event: XmlEvent) -> None:
        location = event.attribute("location") or event.attribute("namespace") or "?"
        self._own_warnings.append(f"WSDL import of {location} is not followed")
        if event.kind is EventKind.START:
            self._stream.skip_subtree("import")

    def _read_text(self, closing: str) -> Optional[str]:
        chunks: list[str] = []
        while True:
            event = self._stream.next_event()
            if event is None or event.is_end(closing):
                break
            if event.kind is EventKind.TEXT and event.text:
                chunks.append(event.text)
        text = "".join(chunks).strip()
        return text or None


def parse_wsdl(source: Union[bytes, Path], *, strict_duplicates: bool = False) -> WsdlParser:
    """Tokenize and parse a service definition.

    Args:
        source (Union[bytes, Path]): Document bytes or path.
        strict_duplicates (bool): Fail on duplicate schema names instead of
            keeping the last definition.

    Returns:
        WsdlParser: The finished parser; ``model`` holds the result and
        ``warnings`` the non-fatal findings.
    """
    parser = WsdlParser(EventStream(iter_xml_events(source)), strict_duplicates=strict_duplicates)
    parser.parse()
    return parser


def parse_schema(
    source: Union[bytes, Path],
    schema: Optional[XmlSchema] = None,
    *,
    strict_duplicates: bool = False,
) -> SchemaParser:
    """Tokenize and parse a standalone schema document into ``schema``.

    Args:
        source (Union[bytes, Path]): Document bytes or path.
        schema (Optional[XmlSchema]): Schema to merge into; a new one if omitted.
        strict_duplicates (bool): Fail on duplicate names.

    Returns:
        SchemaParser: The finished parser.
    """
    parser = SchemaParser(
        EventStream(iter_xml_events(source)),
        schema,
        strict_duplicates=strict_duplicates,
    )
    parser.parse()
    return parser


def _optional_qname(value: Optional[str]) -> Optional[QName]:
    return QName(value) if value else None
