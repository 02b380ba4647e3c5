"""Gate reviews: criteria, scoring, reviewer assignment and review sessions."""

import importlib
import sys
import types

__all__ = [
    "assignment",
    "catalog",
    "error",
    "evaluation",
    "export",
    "matrix",
    "permission",
    "project",
    "session",
    "stage",
    "validator",
]


def __getattr__(name: str) -> types.ModuleType:
    # service modules pull in stagegate.core, which itself imports the catalog
    if name in __all__:
        module = importlib.import_module(f"{__name__}.{name}")
        setattr(sys.modules[__name__], name, module)
        return module
    raise AttributeError(f"module {__name__} has no attribute {name}")
