"""Storage layer for analyses and favorites."""

from .db import Storage
from .export import export_csv, export_json

__all__ = [
    "Storage",
    "export_csv",
    "export_json",
]
