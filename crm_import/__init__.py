"""Top-level package for the CRM bulk company import pipeline."""

from . import models  # noqa: F401
from .models import (
    DetailStatus,
    ImportDetail,
    ImportRecord,
    ImportResult,
    ImportStatus,
    NormalizedRow,
    RosterEntry,
)
from .session import ImportSession, ImportStep
from .submitter import BatchSubmitter, HttpImportTransport, LocalImportTransport

__all__ = [
    "BatchSubmitter",
    "DetailStatus",
    "HttpImportTransport",
    "ImportDetail",
    "ImportRecord",
    "ImportResult",
    "ImportSession",
    "ImportStatus",
    "ImportStep",
    "LocalImportTransport",
    "NormalizedRow",
    "RosterEntry",
]
