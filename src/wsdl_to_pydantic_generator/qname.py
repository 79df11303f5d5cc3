"""Qualified name value type for schema and service references."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

_SEPARATOR = ":"


@dataclass(frozen=True)
class QName:
    """A ``prefix:local`` reference exactly as written in the source document.

    Prefixes are kept as text and never resolved to namespace URIs.
    """

    value: str

    @classmethod
    def with_prefix(cls, prefix: str, local_name: str) -> QName:
        """Build a qualified name from its two parts."""
        return cls(f"{prefix}{_SEPARATOR}{local_name}")

    def prefix(self) -> Optional[str]:
        """Return the text before the last separator, if any."""
        prefix, separator, _ = self.value.rpartition(_SEPARATOR)
        if not separator:
            return None
        return prefix

    def local_name(self) -> str:
        """Return the text after the last separator, or the whole value."""
        return self.value.rpartition(_SEPARATOR)[2]

    def split(self) -> tuple[Optional[str], str]:
        """Return ``(prefix, local_name)``."""
        return self.prefix(), self.local_name()

    def is_empty(self) -> bool:
        """Return whether the reference carries no text at all."""
        return not self.value

    def __str__(self) -> str:
        return self.value
