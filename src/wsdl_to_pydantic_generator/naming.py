"""Naming helpers turning schema names into Python identifiers."""

from __future__ import annotations

import keyword
import re

from pydantic import BaseModel

_IDENTIFIER_SANITIZE_RE = re.compile(r"[^0-9a-zA-Z_]+")
_MULTIPLE_UNDERSCORES_RE = re.compile(r"_+")
_LOWER_TO_UPPER_RE = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_END_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")

_BASEMODEL_RESERVED = set(dir(BaseModel))
# Names the generated module imports or defines at module level.
_MODULE_RESERVED = {
    "Any",
    "BaseModel",
    "ConfigDict",
    "Decimal",
    "ELEMENT_FORM_QUALIFIED",
    "Enum",
    "Field",
    "Optional",
    "SoapClient",
    "SoapResult",
    "TARGET_NAMESPACE",
    "TYPE_CHECKING",
    "date",
    "datetime",
    "time",
    "timedelta",
}
_BUILTIN_IDENTIFIER_RESERVED = {
    "bool",
    "bytes",
    "dict",
    "float",
    "int",
    "list",
    "str",
    "type",
}


def sanitize_identifier(raw: str, *, fallback: str = "value") -> str:
    """Convert arbitrary text into a valid Python identifier without changing case."""
    text = _IDENTIFIER_SANITIZE_RE.sub("_", raw)
    text = _MULTIPLE_UNDERSCORES_RE.sub("_", text).strip("_")
    if not text:
        text = fallback
    if text[0].isdigit():
        text = f"x_{text}"
    if keyword.iskeyword(text):
        text = f"{text}_"
    return text


def to_snake_case(raw: str) -> str:
    """Convert ``camelCase``, ``PascalCase`` or dashed text to ``snake_case``."""
    text = _ACRONYM_END_RE.sub(r"\1_\2", raw)
    text = _LOWER_TO_UPPER_RE.sub(r"\1_\2", text)
    text = _IDENTIFIER_SANITIZE_RE.sub("_", text)
    return _MULTIPLE_UNDERSCORES_RE.sub("_", text).strip("_").lower()


def to_pascal_case(raw: str) -> str:
    """Convert text to ``PascalCase``."""
    return "".join(part.capitalize() for part in to_snake_case(raw).split("_") if part)


def field_name(raw: str) -> str:
    """Python attribute name for a schema element or attribute."""
    candidate = sanitize_identifier(to_snake_case(raw), fallback="field")
    if (
        candidate in _BASEMODEL_RESERVED
        or candidate in _MODULE_RESERVED
        or candidate in _BUILTIN_IDENTIFIER_RESERVED
    ):
        candidate = f"{candidate}_field"
    return candidate


def method_name(raw: str) -> str:
    """Client method name for an operation."""
    candidate = sanitize_identifier(to_snake_case(raw), fallback="call")
    if candidate == "client":
        candidate = "client_"
    return candidate


def class_name(raw: str) -> str:
    """Class name for a schema type."""
    candidate = sanitize_identifier(to_pascal_case(raw), fallback="Model")
    if candidate in _MODULE_RESERVED:
        candidate = f"{candidate}Type"
    return candidate


def enum_member_name(raw: str) -> str:
    """Enum member name (``UPPER_SNAKE``) for an enumeration value."""
    return sanitize_identifier(to_snake_case(raw), fallback="empty").upper()


def module_name(raw: str) -> str:
    """Module file stem for a service name."""
    return sanitize_identifier(to_snake_case(raw), fallback="soap_client")


def unique_name(candidate: str, used_names: set[str]) -> str:
    """Return ``candidate`` or a numbered variant not in ``used_names`` and record it."""
    name = candidate
    # Keyword escapes such as "class_" take the counter in place of the underscore.
    stem = candidate.rstrip("_") or candidate
    suffix = 2
    while name in used_names:
        name = f"{stem}_{suffix}"
        suffix += 1
    used_names.add(name)
    return name
