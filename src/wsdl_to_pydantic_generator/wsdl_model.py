"""In-memory model of a parsed WSDL service definition."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .qname import QName
from .xsd_model import SchemaElement, XmlSchema


@dataclass
class MessagePart:
    name: str
    element: Optional[QName] = None
    type_: Optional[QName] = None


@dataclass
class Message:
    name: str
    parts: list[MessagePart] = field(default_factory=list)


@dataclass
class Fault:
    name: str
    message: Optional[QName] = None


@dataclass
class PortTypeOperation:
    """An abstract operation declared by a port type."""

    name: str
    input: Optional[QName] = None
    output: Optional[QName] = None
    faults: list[Fault] = field(default_factory=list)
    documentation: Optional[str] = None


@dataclass
class PortType:
    name: str
    operations: list[PortTypeOperation] = field(default_factory=list)


@dataclass
class BindingOperation:
    """Transport details a binding attaches to an operation name."""

    name: str
    soap_action: Optional[str] = None
    style: Optional[str] = None


@dataclass
class Binding:
    name: str
    type_: Optional[QName] = None
    style: Optional[str] = None
    transport: Optional[str] = None
    operations: list[BindingOperation] = field(default_factory=list)


@dataclass
class Port:
    name: str
    binding: Optional[QName] = None
    address: Optional[str] = None


@dataclass
class Service:
    name: str
    ports: list[Port] = field(default_factory=list)


@dataclass
class WsdlModel:
    """Everything declared by one service definition, including its schema."""

    name: Optional[str] = None
    target_namespace: Optional[str] = None
    namespaces: dict[str, str] = field(default_factory=dict)
    schema: XmlSchema = field(default_factory=XmlSchema)
    messages: dict[str, Message] = field(default_factory=dict)
    port_types: list[PortType] = field(default_factory=list)
    bindings: list[Binding] = field(default_factory=list)
    services: list[Service] = field(default_factory=list)

    def find_message(self, qname: QName) -> Optional[Message]:
        """Look up a message by the local part of a reference."""
        return self.messages.get(qname.local_name())

    def find_element(self, qname: QName) -> Optional[SchemaElement]:
        """Look up a top-level schema element by the local part of a reference."""
        return self.schema.elements.get(qname.local_name())

    def find_soap_action(self, operation_name: str) -> Optional[str]:
        """Return the SOAP action of the first binding operation with this name.

        An empty ``soapAction`` is reported as no action.
        """
        for binding in self.bindings:
            for operation in binding.operations:
                if operation.name == operation_name:
                    return operation.soap_action or None
        return None

    def operations(self) -> list[PortTypeOperation]:
        """All port type operations in document order."""
        return [operation for port_type in self.port_types for operation in port_type.operations]

    def default_endpoint(self) -> Optional[str]:
        """Address of the first service port that declares one."""
        for service in self.services:
            for port in service.ports:
                if port.address:
                    return port.address
        return None

    def service_name(self) -> Optional[str]:
        """Name used for the generated client."""
        if self.services:
            return self.services[0].name
        if self.port_types:
            return self.port_types[0].name
        return self.name

    def effective_target_namespace(self) -> Optional[str]:
        """Schema target namespace, falling back to the definitions namespace."""
        return self.schema.target_namespace or self.target_namespace
