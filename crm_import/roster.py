"""Roster lookups used to resolve the "manager" column of an import."""
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping

from sqlmodel import Session, select

from .config import ConfigurationError
from .models import RosterEntry
from .server.models import ACTIVE_STATUS, User, UserRole

LOGGER = logging.getLogger(__name__)

ELIGIBLE_ROLES = frozenset({UserRole.ADMIN.value, UserRole.SALESPERSON.value})


def roster_from_config(entries: Iterable[Mapping[str, Any]]) -> List[RosterEntry]:
    """Build roster entries from the ``roster`` list of a configuration file."""

    roster: List[RosterEntry] = []
    for entry in entries:
        if "id" not in entry or "name" not in entry:
            raise ConfigurationError(f"Roster entries need 'id' and 'name' fields: {dict(entry)!r}")
        roster_entry = RosterEntry.from_mapping(entry)
        if roster_entry.role not in ELIGIBLE_ROLES:
            LOGGER.debug("Skipping roster entry %s with role %s", roster_entry.name, roster_entry.role)
            continue
        roster.append(roster_entry)
    return sorted(roster, key=lambda item: item.name)


def roster_from_database(session: Session) -> List[RosterEntry]:
    """Active admins and salespeople, ordered by name."""

    users = session.exec(
        select(User)
        .where(User.status == ACTIVE_STATUS)
        .where(User.role.in_([UserRole.ADMIN, UserRole.SALESPERSON]))  # type: ignore[attr-defined]
        .order_by(User.name)
    ).all()
    return [RosterEntry(id=user.id, name=user.name, role=UserRole(user.role).value) for user in users]


__all__ = ["ELIGIBLE_ROLES", "roster_from_config", "roster_from_database"]
