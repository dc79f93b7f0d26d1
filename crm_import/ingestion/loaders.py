"""Utilities for loading raw company rows from spreadsheets."""
from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]
RawRow = Dict[str, str]

MAX_FILE_SIZE = 10 * 1024 * 1024
SUPPORTED_EXTENSIONS = (".csv", ".xlsx", ".xls")

_EXCEL_ENGINES = {".xlsx": "openpyxl", ".xls": "xlrd"}


class FileImportError(ValueError):
    """Base class for problems that reject a whole file."""


class UnsupportedFileTypeError(FileImportError):
    """Raised when an unsupported file format is passed to the loader."""


class EmptyFileError(FileImportError):
    """Raised for 0-byte uploads."""


class FileTooLargeError(FileImportError):
    """Raised when a file exceeds :data:`MAX_FILE_SIZE`."""


class CorruptFileError(FileImportError):
    """Raised when a workbook or CSV cannot be parsed."""


class NoSheetsError(FileImportError):
    """Raised when a workbook contains no worksheets."""


class NoRowsError(FileImportError):
    """Raised when the file has no header or no data rows."""


def load_rows(path: PathLike) -> List[RawRow]:
    """Load the data rows of a CSV/XLSX/XLS file as ``{header: text}`` dicts.

    The file-level checks (extension, emptiness, size) run before any parsing
    so an obviously bad upload never reaches pandas.
    """

    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(file_path)
    suffix = _check_extension(file_path.name)
    _check_size(file_path.stat().st_size)
    return _read_rows(file_path.read_bytes(), suffix)


def load_rows_from_bytes(filename: str, data: bytes) -> List[RawRow]:
    """Same as :func:`load_rows` for an in-memory upload."""

    suffix = _check_extension(filename)
    _check_size(len(data))
    return _read_rows(data, suffix)


def _check_extension(filename: str) -> str:
    suffix = Path(filename).suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFileTypeError(
            f"Unsupported file extension: {suffix or '(none)'}. Use CSV, XLSX or XLS"
        )
    return suffix


def _check_size(size: int) -> None:
    if size == 0:
        raise EmptyFileError("The selected file is empty")
    if size > MAX_FILE_SIZE:
        raise FileTooLargeError(
            f"File is too large ({size / (1024 * 1024):.1f} MB). Maximum size is 10 MB"
        )


def _read_rows(data: bytes, suffix: str) -> List[RawRow]:
    if suffix == ".csv":
        dataframe = _read_csv(data)
    else:
        dataframe = _read_excel(io.BytesIO(data), engine=_EXCEL_ENGINES[suffix])

    if len(dataframe.columns) == 0:
        raise NoRowsError("The file has no header row")
    if dataframe.empty:
        raise NoRowsError("The file has no data rows")

    headers = [str(column).strip() for column in dataframe.columns]
    rows: List[RawRow] = []
    for values in dataframe.itertuples(index=False, name=None):
        rows.append({header: _cell_to_text(value) for header, value in zip(headers, values) if header})
    LOGGER.debug("Loaded %s rows with columns %s", len(rows), headers)
    return rows


def _decode(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        # Excel on Windows saves CSV as cp1252 by default
        return data.decode("cp1252", errors="replace")


def _sniff_separator(text: str) -> str:
    header = next((line for line in text.splitlines() if line.strip()), "")
    return ";" if header.count(";") > header.count(",") else ","


def _read_csv(data: bytes) -> pd.DataFrame:
    text = _decode(data)
    if not text.strip():
        raise NoRowsError("The file has no header row")
    try:
        return pd.read_csv(
            io.StringIO(text),
            sep=_sniff_separator(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError as exc:
        raise NoRowsError("The file has no header row") from exc
    except (pd.errors.ParserError, ValueError) as exc:
        raise CorruptFileError(f"Could not read CSV file: {exc}") from exc


def _read_excel(source: Any, *, engine: str) -> pd.DataFrame:
    try:
        workbook = pd.ExcelFile(source, engine=engine)
    except ImportError:
        raise
    except Exception as exc:
        raise CorruptFileError(f"Could not open workbook: {exc}") from exc

    with workbook:
        if not workbook.sheet_names:
            raise NoSheetsError("The workbook has no sheets")
        try:
            return workbook.parse(workbook.sheet_names[0], dtype=object)
        except Exception as exc:
            raise CorruptFileError(f"Could not read sheet '{workbook.sheet_names[0]}': {exc}") from exc


def _cell_to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


__all__ = [
    "CorruptFileError",
    "EmptyFileError",
    "FileImportError",
    "FileTooLargeError",
    "MAX_FILE_SIZE",
    "NoRowsError",
    "NoSheetsError",
    "SUPPORTED_EXTENSIONS",
    "UnsupportedFileTypeError",
    "load_rows",
    "load_rows_from_bytes",
]
