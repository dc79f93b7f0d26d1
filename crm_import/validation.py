"""Row validation for the company import pipeline."""
from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence, Tuple

from .cnpj import is_valid_cnpj
from .models import ImportRecord, ImportStatus, NormalizedRow, RosterEntry

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"\(\d{2}\) \d{4,5}-?\d{4}")

NAME_REQUIRED = "Company name is required"
INVALID_CNPJ = "Invalid CNPJ"
INVALID_EMAIL = "Invalid email"
INVALID_PHONE = "Invalid phone format (area code + number)"


def manager_not_found(name: str) -> str:
    return f"Manager '{name}' not found in system"


def multiple_managers(name: str) -> str:
    return f"Multiple managers found for '{name}'"


def find_manager_candidates(manager_name: str, roster: Sequence[RosterEntry]) -> List[RosterEntry]:
    """Return every roster entry whose name contains the manager's first name.

    Matching is a case-insensitive substring search on the first whitespace
    separated token of ``manager_name``. The roster is small, so a linear scan
    is fine.
    """

    tokens = manager_name.strip().lower().split()
    if not tokens:
        return []
    first_name = tokens[0]
    return [entry for entry in roster if first_name in entry.name.lower()]


def resolve_manager(manager_name: str, roster: Sequence[RosterEntry]) -> Tuple[Optional[RosterEntry], Optional[str]]:
    """Resolve a manager name to exactly one roster entry.

    Returns ``(entry, None)`` on a unique match, otherwise ``(None, message)``.
    """

    candidates = find_manager_candidates(manager_name, roster)
    if not candidates:
        return None, manager_not_found(manager_name.strip())
    if len(candidates) > 1:
        return None, multiple_managers(manager_name.strip())
    return candidates[0], None


def compose_phone(area_code: Optional[str], number: Optional[str]) -> Optional[str]:
    if area_code and number:
        return f"({area_code}) {number}"
    return number or None


def validate_row(
    row: NormalizedRow,
    roster: Sequence[RosterEntry] = (),
    *,
    strict_cnpj: bool = False,
) -> ImportRecord:
    """Check one normalised row and collect every applicable error message."""

    errors: List[str] = []

    if not row.get("name"):
        errors.append(NAME_REQUIRED)

    # bulk imports take the CNPJ as typed; only manual entry enforces the checksum
    cnpj = row.get("cnpj")
    if cnpj and strict_cnpj and not is_valid_cnpj(cnpj):
        errors.append(INVALID_CNPJ)

    email = row.get("email")
    if email and not EMAIL_PATTERN.match(email):
        errors.append(INVALID_EMAIL)

    area_code = row.get("contact_area_code")
    number = row.get("contact_number")
    contact_phone = compose_phone(area_code, number)
    if area_code and number and not PHONE_PATTERN.fullmatch(contact_phone or ""):
        errors.append(INVALID_PHONE)

    resolved_manager: Optional[RosterEntry] = None
    manager_name = row.get("manager_name")
    if manager_name:
        resolved_manager, manager_error = resolve_manager(manager_name, roster)
        if manager_error:
            errors.append(manager_error)

    return ImportRecord(
        row=row.row,
        fields=dict(row.fields),
        status=ImportStatus.ERROR if errors else ImportStatus.VALID,
        errors=errors,
        resolved_manager=resolved_manager,
        contact_phone=contact_phone,
    )


def validate_rows(
    rows: Iterable[NormalizedRow],
    roster: Sequence[RosterEntry] = (),
    *,
    strict_cnpj: bool = False,
) -> List[ImportRecord]:
    roster = list(roster)
    return [validate_row(row, roster, strict_cnpj=strict_cnpj) for row in rows]


__all__ = [
    "EMAIL_PATTERN",
    "INVALID_CNPJ",
    "INVALID_EMAIL",
    "INVALID_PHONE",
    "NAME_REQUIRED",
    "PHONE_PATTERN",
    "compose_phone",
    "find_manager_candidates",
    "manager_not_found",
    "multiple_managers",
    "resolve_manager",
    "validate_row",
    "validate_rows",
]
