"""Service package exports."""

from __future__ import annotations

import importlib
from typing import Any

__all__ = ["topology"]


def __getattr__(name: str) -> Any:
    if name == "topology":
        return importlib.import_module("app.services.topology")
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
