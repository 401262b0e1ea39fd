"""
Image export for generated terrain.
"""

from .png import ExportResult, PngExporter, write_palette_png

__all__ = ['ExportResult', 'PngExporter', 'write_palette_png']
