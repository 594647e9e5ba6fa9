"""Task and expense tracking backend exposing a small REST API."""

from __future__ import annotations

__all__ = [
    "__version__",
    "cli",
    "config",
    "database",
    "errors",
    "models",
    "schemas",
    "seed",
    "server",
    "services",
    "status",
]

__version__ = "1.0.0"
