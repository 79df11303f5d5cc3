"""WSDL to pydantic SOAP client generator package."""

from __future__ import annotations

from .cli import main
from .generator import GenerationRun, run_generation
from .model_types import GeneratorOptions

__all__ = ["GenerationRun", "GeneratorOptions", "main", "run_generation"]
