"""
Exporters package.
"""

from exporters.png_stack import PngStackExporter, ExportResult, encode_png, slice_entry_name

__all__ = [
    'PngStackExporter',
    'ExportResult',
    'encode_png',
    'slice_entry_name',
]
