"""Renderer package."""

from .document import DocumentExporter, ExportResult, export_source

__all__ = ["DocumentExporter", "ExportResult", "export_source"]
