"""Route modules for the gateway."""

from . import diagnostics, listing, objects

__all__ = [
    "diagnostics",
    "listing",
    "objects",
]
