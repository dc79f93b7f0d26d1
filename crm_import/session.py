"""Headless import session: upload, preview, importing, and results steps."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .ingestion.loaders import FileImportError, load_rows, load_rows_from_bytes
from .ingestion.normalizer import normalize_rows
from .models import ImportDetail, ImportRecord, ImportResult, RosterEntry
from .preview import Page, Paginator, PreviewSummary
from .submitter import BatchSubmitter, failure_result
from .validation import validate_rows

LOGGER = logging.getLogger(__name__)


class ImportStep(str, Enum):
    UPLOAD = "upload"
    PREVIEW = "preview"
    IMPORTING = "importing"
    RESULTS = "results"


class NotificationLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Notification:
    level: NotificationLevel
    message: str


class ImportSession:
    """Drives a single import from file upload to the final result table.

    File problems and transport failures never escape: they become
    notifications and leave the session in a terminal or retryable step.
    """

    def __init__(
        self,
        submitter: BatchSubmitter,
        roster: Sequence[RosterEntry] = (),
        *,
        owner_id: Optional[str] = None,
        notify: Optional[Callable[[Notification], None]] = None,
    ) -> None:
        self._submitter = submitter
        self._roster = list(roster)
        self._owner_id = owner_id
        self._notify_callback = notify
        self._lock = threading.Lock()
        self.notifications: List[Notification] = []
        self._reset()

    # ------------------------------------------------------------------
    @property
    def step(self) -> ImportStep:
        return self._step

    @property
    def records(self) -> List[ImportRecord]:
        return list(self._records)

    @property
    def result(self) -> Optional[ImportResult]:
        return self._result

    @property
    def summary(self) -> PreviewSummary:
        return PreviewSummary.from_records(self._records)

    @property
    def can_submit(self) -> bool:
        return self._step is ImportStep.PREVIEW and self.summary.valid_count > 0

    # ------------------------------------------------------------------
    def load_file(self, path: str | Path) -> bool:
        """Parse and validate ``path``; returns ``True`` when the preview is ready."""

        return self._load(lambda: load_rows(path), str(path))

    def load_bytes(self, filename: str, data: bytes) -> bool:
        return self._load(lambda: load_rows_from_bytes(filename, data), filename)

    def _load(self, reader: Callable[[], List[dict]], label: str) -> bool:
        if self._step not in (ImportStep.UPLOAD, ImportStep.PREVIEW):
            raise RuntimeError(f"Cannot load a file while the session is in the {self._step.value} step")
        try:
            raw_rows = reader()
        except (FileImportError, FileNotFoundError) as exc:
            LOGGER.warning("Rejected import file %s: %s", label, exc)
            self._reset()
            self._emit(NotificationLevel.ERROR, str(exc) if str(exc) else f"Could not read {label}")
            return False

        records = validate_rows(normalize_rows(raw_rows), self._roster)
        if not records:
            self._reset()
            self._emit(NotificationLevel.ERROR, "The file does not contain any company rows")
            return False

        self._records = records
        self._result = None
        self._step = ImportStep.PREVIEW
        summary = self.summary
        LOGGER.info(
            "Loaded %s: %s records, %s valid, %s with errors",
            label,
            summary.total,
            summary.valid_count,
            summary.error_count,
        )
        return True

    # ------------------------------------------------------------------
    def preview_page(self, number: int) -> Page[ImportRecord]:
        return Paginator(self._records).page(number)

    def results_page(self, number: int) -> Page[ImportDetail]:
        details = self._result.details if self._result else []
        return Paginator(details).page(number)

    # ------------------------------------------------------------------
    def submit(self) -> Optional[ImportResult]:
        """Send the valid records; only one submission may be in flight."""

        if not self._lock.acquire(blocking=False):
            LOGGER.warning("Ignoring submit while another submission is in flight")
            return None
        try:
            if self._step is not ImportStep.PREVIEW:
                LOGGER.warning("Ignoring submit in the %s step", self._step.value)
                return None
            if self.summary.valid_count == 0:
                self._emit(NotificationLevel.ERROR, "No valid records to import")
                return None

            self._step = ImportStep.IMPORTING
            try:
                result = self._submitter.submit(self._records, owner_id=self._owner_id)
            except Exception as exc:
                LOGGER.exception("Submitter raised instead of returning a result")
                result = failure_result(exc, self.summary.valid_count)
            self._result = result
            self._step = ImportStep.RESULTS
            if result.success_count > 0:
                self._emit(NotificationLevel.SUCCESS, f"{result.success_count} companies imported successfully")
            if result.error_count > 0:
                self._emit(NotificationLevel.ERROR, f"{result.error_count} rows could not be imported")
            return result
        finally:
            self._lock.release()

    def back_to_upload(self) -> None:
        if self._step is ImportStep.PREVIEW:
            self._reset()

    def close(self) -> None:
        """Discard every record and result, as closing the import dialog does."""

        self._reset()
        self.notifications.clear()

    # ------------------------------------------------------------------
    def _reset(self) -> None:
        self._step = ImportStep.UPLOAD
        self._records: List[ImportRecord] = []
        self._result: Optional[ImportResult] = None

    def _emit(self, level: NotificationLevel, message: str) -> None:
        notification = Notification(level=level, message=message)
        self.notifications.append(notification)
        if self._notify_callback:
            self._notify_callback(notification)


__all__ = ["ImportSession", "ImportStep", "Notification", "NotificationLevel"]
