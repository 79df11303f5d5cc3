"""Allow ``python -m wsdl_to_pydantic_generator``."""

from __future__ import annotations

from .cli import main

raise SystemExit(main())
