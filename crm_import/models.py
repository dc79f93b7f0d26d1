"""Data models shared by the import pipeline, the submitter, and the server."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class ImportStatus(str, Enum):
    VALID = "valid"
    ERROR = "error"


class DetailStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


# --- Reference data ---

@dataclass(frozen=True, slots=True)
class RosterEntry:
    """A salesperson or admin eligible to own imported companies."""

    id: str
    name: str
    role: str = "salesperson"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RosterEntry":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            role=str(data.get("role") or "salesperson"),
        )


# --- Client-side pipeline models ---

@dataclass(slots=True)
class NormalizedRow:
    """A spreadsheet row whose headers were rewritten to canonical field names."""

    row: int
    fields: Dict[str, str] = field(default_factory=dict)

    def get(self, name: str) -> Optional[str]:
        value = self.fields.get(name)
        if value is None:
            return None
        text = value.strip()
        return text or None


@dataclass(slots=True)
class ImportRecord:
    """Validated representation of one spreadsheet row."""

    row: int
    fields: Dict[str, str] = field(default_factory=dict)
    status: ImportStatus = ImportStatus.VALID
    errors: List[str] = field(default_factory=list)
    resolved_manager: Optional[RosterEntry] = None
    contact_phone: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.status is ImportStatus.VALID

    @property
    def name(self) -> Optional[str]:
        return _clean(self.fields.get("name"))

    def value(self, name: str) -> Optional[str]:
        return _clean(self.fields.get(name))


# --- Result models ---

@dataclass(slots=True)
class ImportDetail:
    """Outcome of a single submitted row."""

    row: int
    status: DetailStatus
    message: str
    source_row: Optional[int] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ImportDetail":
        return cls(
            row=int(data.get("row", 0)),
            status=DetailStatus(str(data.get("status", "error"))),
            message=str(data.get("message", "")),
        )

    def as_dict(self) -> Dict[str, Any]:
        return {"row": self.row, "status": self.status.value, "message": self.message}


@dataclass(slots=True)
class ImportResult:
    """Summary returned for one import run."""

    total: int = 0
    success_count: int = 0
    error_count: int = 0
    warning_count: int = 0
    details: List[ImportDetail] = field(default_factory=list)

    @classmethod
    def from_response(cls, data: Mapping[str, Any]) -> "ImportResult":
        """Build a result from the JSON body returned by the import endpoint."""

        return cls(
            total=int(data.get("total", 0)),
            success_count=int(data.get("success", 0)),
            error_count=int(data.get("errors", 0)),
            warning_count=int(data.get("warnings", 0)),
            details=[ImportDetail.from_mapping(item) for item in data.get("details") or []],
        )

    def as_response(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "success": self.success_count,
            "errors": self.error_count,
            "warnings": self.warning_count,
            "details": [detail.as_dict() for detail in self.details],
        }


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


__all__ = [
    "DetailStatus",
    "ImportDetail",
    "ImportRecord",
    "ImportResult",
    "ImportStatus",
    "NormalizedRow",
    "RosterEntry",
]
