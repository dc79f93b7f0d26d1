"""Batch submission of validated import records."""
from __future__ import annotations

import logging
import math
import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence

import requests
from sqlmodel import Session

from .models import DetailStatus, ImportDetail, ImportRecord, ImportResult

LOGGER = logging.getLogger(__name__)

DEFAULT_COMPANY_TYPE = "Lead"

CONNECTIVITY_FAILURE = "Connection error: could not reach the import service. Check your internet connection and try again."
TIMEOUT_FAILURE = "Timeout: the import service took too long to respond. Try again with a smaller file."
UNKNOWN_FAILURE = "Import failed: {error}"


class ImportTransport(Protocol):
    """Sends one batch to the bulk import operation and returns its JSON reply."""

    def send(self, payload: Mapping[str, Any]) -> Mapping[str, Any]:  # pragma: no cover - runtime protocol
        ...


class HttpImportTransport:
    """Posts the batch to the import endpoint with :mod:`requests`."""

    def __init__(
        self,
        url: str,
        *,
        token: Optional[str] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._url = url
        self._token = token
        self._timeout = timeout
        self._session = session or requests.Session()

    def send(self, payload: Mapping[str, Any]) -> Mapping[str, Any]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        response = self._session.post(self._url, json=dict(payload), headers=headers, timeout=self._timeout)
        response.raise_for_status()
        return response.json()


class LocalImportTransport:
    """Runs the server-side bulk insert in-process against a database session."""

    def __init__(self, session_factory: Callable[[], Session], user_id: str) -> None:
        self._session_factory = session_factory
        self._user_id = user_id

    def send(self, payload: Mapping[str, Any]) -> Mapping[str, Any]:
        from .server.models import User
        from .server.service import bulk_import_companies

        with self._session_factory() as session:
            user = session.get(User, self._user_id)
            if user is None:
                raise LookupError(f"Importing user '{self._user_id}' does not exist")
            return bulk_import_companies(
                session,
                payload.get("companies") or [],
                user=user,
                owner_id=payload.get("owner_id"),
            )


def parse_revenue(value: Optional[str]) -> Optional[float]:
    """Parse revenue text such as ``5000000``, ``R$ 1.234.567,89`` or ``1,234.5``."""

    if value is None:
        return None
    text = re.sub(r"[^\d,.\-]", "", str(value))
    if not text:
        return None
    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif "," in text:
        text = text.replace(",", ".")
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_employees(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        number = parse_revenue(text)
    return int(number) if number is not None else None


def build_company_payload(record: ImportRecord, default_owner_id: Optional[str] = None) -> Dict[str, Any]:
    """Map a validated record to the shape expected by the bulk import endpoint."""

    owner_id = record.resolved_manager.id if record.resolved_manager else default_owner_id
    return {
        "name": record.value("name"),
        "cnpj": record.value("cnpj"),
        "phone": record.value("phone"),
        "email": record.value("email"),
        "city": record.value("city"),
        "state": record.value("state"),
        "sector": record.value("sector"),
        "website": record.value("website"),
        "type": record.value("type") or DEFAULT_COMPANY_TYPE,
        "annual_revenue": parse_revenue(record.value("annual_revenue")),
        "number_of_employees": parse_employees(record.value("number_of_employees")),
        "size": record.value("size"),
        "owner_id": owner_id,
        "contact_name": record.value("contact_name"),
        "contact_phone": record.contact_phone,
        "contact_cargo": record.value("contact_role"),
    }


def classify_failure(exc: BaseException) -> str:
    """Turn a transport exception into a user-facing message."""

    if isinstance(exc, requests.Timeout):
        return TIMEOUT_FAILURE
    if isinstance(exc, requests.ConnectionError):
        return CONNECTIVITY_FAILURE
    if isinstance(exc, TimeoutError):
        return TIMEOUT_FAILURE
    if isinstance(exc, ConnectionError):
        return CONNECTIVITY_FAILURE
    return UNKNOWN_FAILURE.format(error=str(exc) or exc.__class__.__name__)


def failure_result(exc: BaseException, submitted: int) -> ImportResult:
    return ImportResult(
        total=submitted,
        success_count=0,
        error_count=1,
        warning_count=0,
        details=[ImportDetail(row=0, status=DetailStatus.ERROR, message=classify_failure(exc))],
    )


class BatchSubmitter:
    """Submits every valid record in a single call to the bulk import operation."""

    def __init__(self, transport: ImportTransport, *, default_owner_id: Optional[str] = None) -> None:
        self._transport = transport
        self._default_owner_id = default_owner_id

    def submit(self, records: Sequence[ImportRecord], *, owner_id: Optional[str] = None) -> ImportResult:
        valid: List[ImportRecord] = [record for record in records if record.is_valid]
        if not valid:
            LOGGER.warning("No valid records to import")
            return ImportResult()

        LOGGER.info("Submitting %s of %s records", len(valid), len(records))
        try:
            payload: Dict[str, Any] = {
                "companies": [build_company_payload(record, self._default_owner_id) for record in valid],
                "owner_id": owner_id,
            }
            response = self._transport.send(payload)
            result = ImportResult.from_response(response)
        except Exception as exc:
            LOGGER.exception("Import submission failed")
            return failure_result(exc, len(valid))

        for detail in result.details:
            if 1 <= detail.row <= len(valid):
                detail.source_row = valid[detail.row - 1].row
        return result


__all__ = [
    "BatchSubmitter",
    "CONNECTIVITY_FAILURE",
    "DEFAULT_COMPANY_TYPE",
    "HttpImportTransport",
    "ImportTransport",
    "LocalImportTransport",
    "TIMEOUT_FAILURE",
    "build_company_payload",
    "classify_failure",
    "failure_result",
    "parse_employees",
    "parse_revenue",
]
