"""Telemetry helpers for novelshelf."""

from .logger import CatalogLogger

__all__ = ["CatalogLogger"]
