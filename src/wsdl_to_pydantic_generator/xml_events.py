"""Structural XML events consumed by the schema and service parsers."""

from __future__ import annotations

import io
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from lxml import etree

from .qname import QName


class StreamError(RuntimeError):
    """Raised when the underlying XML token stream is malformed."""


class EventKind(Enum):
    """Kinds of structural events."""

    START = "start"
    END = "end"
    EMPTY = "empty"
    TEXT = "text"


@dataclass(frozen=True)
class XmlEvent:
    """One structural event.

    ``name`` is the element name as written (``prefix:local`` or ``local``).
    Attribute keys are local names. ``namespaces`` lists the ``(prefix, uri)``
    declarations introduced on a START or EMPTY element.
    """

    kind: EventKind
    name: str = ""
    attributes: Mapping[str, str] = field(default_factory=dict)
    text: Optional[str] = None
    namespaces: tuple[tuple[str, str], ...] = ()

    @classmethod
    def start(
        cls,
        name: str,
        attributes: Optional[Mapping[str, str]] = None,
        namespaces: tuple[tuple[str, str], ...] = (),
    ) -> XmlEvent:
        return cls(EventKind.START, name, dict(attributes or {}), None, namespaces)

    @classmethod
    def empty(cls, name: str, attributes: Optional[Mapping[str, str]] = None) -> XmlEvent:
        return cls(EventKind.EMPTY, name, dict(attributes or {}))

    @classmethod
    def end(cls, name: str) -> XmlEvent:
        return cls(EventKind.END, name)

    @classmethod
    def text_node(cls, text: str) -> XmlEvent:
        return cls(EventKind.TEXT, text=text)

    @property
    def local_name(self) -> str:
        """Element name without its prefix."""
        return QName(self.name).local_name()

    def attribute(self, name: str) -> Optional[str]:
        """Return an attribute value by local name."""
        return self.attributes.get(name)

    def is_start(self, local_name: str) -> bool:
        """Return whether this is a START event for ``local_name``."""
        return self.kind is EventKind.START and self.local_name == local_name

    def is_end(self, local_name: str) -> bool:
        """Return whether this is an END event for ``local_name``."""
        return self.kind is EventKind.END and self.local_name == local_name


class EventStream:
    """Pull-style cursor over structural events.

    The end of the stream is reported as ``None`` and every consumer treats it
    as an implicit close of whatever construct it was reading.
    """

    def __init__(self, events: Iterable[XmlEvent]) -> None:
        self._events: Iterator[XmlEvent] = iter(events)

    def next_event(self) -> Optional[XmlEvent]:
        """Return the next event, or ``None`` at end of stream."""
        return next(self._events, None)

    def skip_subtree(self, local_name: str) -> None:
        """Consume events up to the END matching an already consumed START.

        Nested START events with the same local name increase the depth and
        their END events decrease it. Stops when the depth reaches zero or the
        stream ends.
        """
        depth = 1
        while depth > 0:
            event = self.next_event()
            if event is None:
                return
            if event.is_start(local_name):
                depth += 1
            elif event.is_end(local_name):
                depth -= 1


def iter_xml_events(source: Union[bytes, Path]) -> Iterator[XmlEvent]:
    """Tokenize an XML document into structural events.

    Args:
        source (Union[bytes, Path]): Raw document bytes or a file path.

    Returns:
        Iterator[XmlEvent]: START, TEXT and END events in document order.
        Text before a child element comes right before the child's START
        event, and trailing text right before the enclosing element's END event.

    Raises:
        StreamError: The document is not well-formed XML.
    """
    target: Union[str, io.BytesIO]
    target = str(source) if isinstance(source, Path) else io.BytesIO(source)
    context = etree.iterparse(
        target,
        events=("start", "end", "start-ns"),
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
        remove_pis=True,
    )

    pending_namespaces: list[tuple[str, str]] = []
    try:
        for action, payload in context:
            if action == "start-ns":
                prefix, uri = payload
                pending_namespaces.append((prefix or "", uri))
                continue
            name = _element_name(payload)
            if action == "start":
                yield from _preceding_text(payload)
                yield XmlEvent.start(
                    name,
                    _element_attributes(payload),
                    tuple(pending_namespaces),
                )
                pending_namespaces.clear()
                continue
            text = payload[-1].tail if len(payload) else payload.text
            yield from _text_events(text)
            yield XmlEvent.end(name)
            payload.clear(keep_tail=True)
    except etree.XMLSyntaxError as exc:
        raise StreamError(f"Malformed XML: {exc}") from exc


def _preceding_text(element: etree._Element) -> Iterator[XmlEvent]:
    parent = element.getparent()
    if parent is None:
        return
    previous = element.getprevious()
    yield from _text_events(parent.text if previous is None else previous.tail)


def _text_events(text: Optional[str]) -> Iterator[XmlEvent]:
    if text is not None and text.strip():
        yield XmlEvent.text_node(text)


def _element_name(element: etree._Element) -> str:
    local_name = etree.QName(element).localname
    if element.prefix:
        return f"{element.prefix}:{local_name}"
    return local_name


def _element_attributes(element: etree._Element) -> dict[str, str]:
    return {etree.QName(key).localname: value for key, value in element.attrib.items()}
