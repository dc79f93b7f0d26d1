"""Reading, normalising, and exporting company import spreadsheets."""
from __future__ import annotations

from .exporters import export_import_result, export_records, write_template
from .loaders import (
    CorruptFileError,
    EmptyFileError,
    FileImportError,
    FileTooLargeError,
    NoRowsError,
    NoSheetsError,
    UnsupportedFileTypeError,
    load_rows,
    load_rows_from_bytes,
)
from .normalizer import canonical_field, normalize_header, normalize_rows

__all__ = [
    "CorruptFileError",
    "EmptyFileError",
    "FileImportError",
    "FileTooLargeError",
    "NoRowsError",
    "NoSheetsError",
    "UnsupportedFileTypeError",
    "canonical_field",
    "export_import_result",
    "export_records",
    "load_rows",
    "load_rows_from_bytes",
    "normalize_header",
    "normalize_rows",
    "write_template",
]
