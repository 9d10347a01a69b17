"""Task Studio: per-user task tracking service and client."""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
