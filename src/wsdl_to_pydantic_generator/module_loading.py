"""Helpers for importing generated client modules from disk."""

from __future__ import annotations

import importlib.util
from pathlib import Path
import sys
from types import ModuleType


class GeneratedModuleImportError(RuntimeError):
    """Raised when a generated module cannot be imported."""


def load_module_from_path(*, module_name: str, module_path: Path) -> ModuleType:
    """Import a module file and register it in ``sys.modules``.

    Registration happens before execution so that pydantic can resolve the
    postponed annotations of the generated models through the module namespace.

    Args:
        module_name (str): Import name to register the module under.
        module_path (Path): File system path to the Python module.

    Returns:
        ModuleType: Imported Python module object.
    """
    spec = importlib.util.spec_from_file_location(module_name, module_path)
    if spec is None or spec.loader is None:
        raise GeneratedModuleImportError(f"Unable to import module from: {module_path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        raise GeneratedModuleImportError(f"Importing {module_path} failed: {exc}") from exc
    return module


def unload_module(module_name: str) -> None:
    """Remove a module registered by :func:`load_module_from_path`."""
    sys.modules.pop(module_name, None)
