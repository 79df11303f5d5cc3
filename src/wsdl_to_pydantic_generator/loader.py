"""Service definition loading, including referenced schema documents."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from .wsdl_model import WsdlModel
from .wsdl_parser import parse_schema, parse_wsdl
from .xml_events import StreamError
from .xsd_model import DuplicateDefinitionError

_REMOTE_SCHEMES = {"http", "https", "ftp"}


class ServiceLoadError(RuntimeError):
    """Raised when a source service definition cannot be loaded."""


@dataclass(frozen=True)
class LoadedDefinition:
    """Parsed service definition with loader and parser warnings."""

    model: WsdlModel
    warnings: tuple[str, ...]


def load_service_definition(path: Path, *, strict_duplicates: bool = False) -> LoadedDefinition:
    """Load a WSDL (or bare XSD) document and the local schemas it references.

    ``schemaLocation`` references of ``import``/``include``/``redefine`` are
    resolved relative to the referencing file and merged into the model's
    schema. Every file is read once; remote locations are reported and skipped.

    Args:
        path (Path): Path to the service definition.
        strict_duplicates (bool): Fail on duplicate schema names.

    Returns:
        LoadedDefinition: The parsed model and all non-fatal findings.
    """
    try:
        parser = parse_wsdl(path, strict_duplicates=strict_duplicates)
    except (OSError, StreamError) as exc:
        raise ServiceLoadError(f"Failed to load service definition {path}: {exc}") from exc
    except DuplicateDefinitionError as exc:
        raise ServiceLoadError(f"Duplicate definition in {path}: {exc}") from exc

    model = parser.model
    warnings = list(parser.warnings)
    schema = model.schema

    visited = {path.resolve()}
    pending = [(path.parent, location) for location in schema.schema_locations]
    while pending:
        base_dir, location = pending.pop(0)
        if _is_remote(location):
            warnings.append(f"Remote schema {location} is not fetched")
            continue
        schema_path = (base_dir / location).resolve()
        if schema_path in visited:
            continue
        visited.add(schema_path)

        known_locations = len(schema.schema_locations)
        try:
            schema_parser = parse_schema(
                schema_path,
                schema,
                strict_duplicates=strict_duplicates,
            )
        except (OSError, StreamError) as exc:
            raise ServiceLoadError(f"Failed to load schema {schema_path}: {exc}") from exc
        except DuplicateDefinitionError as exc:
            raise ServiceLoadError(f"Duplicate definition in {schema_path}: {exc}") from exc
        warnings.extend(schema_parser.warnings)
        pending.extend(
            (schema_path.parent, nested)
            for nested in schema.schema_locations[known_locations:]
        )

    return LoadedDefinition(model=model, warnings=tuple(warnings))


def _is_remote(location: str) -> bool:
    return urlparse(location).scheme.lower() in _REMOTE_SCHEMES
