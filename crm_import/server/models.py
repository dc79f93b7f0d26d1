"""Tables and request schemas used by the bulk import endpoint."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from sqlmodel import Field, SQLModel

ACTIVE_STATUS = "Ativo"
INACTIVE_STATUS = "Inativo"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, Enum):
    ADMIN = "admin"
    SALESPERSON = "salesperson"


class CompanyType(str, Enum):
    LEAD = "Lead"
    CLIENT = "Cliente"


class User(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    name: str
    email: str = Field(unique=True, index=True)
    role: UserRole = Field(default=UserRole.SALESPERSON)
    status: str = Field(default=ACTIVE_STATUS)
    api_token: Optional[str] = Field(default=None, unique=True, index=True)
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def is_active(self) -> bool:
        return self.status == ACTIVE_STATUS

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class Company(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    cnpj: Optional[str] = Field(default=None, unique=True, index=True)
    phone: Optional[str] = None
    email: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    sector: Optional[str] = None
    website: Optional[str] = None
    type: str = Field(default=CompanyType.LEAD.value)
    annual_revenue: Optional[float] = None
    number_of_employees: Optional[int] = None
    size: Optional[str] = None
    owner_id: Optional[str] = Field(default=None, foreign_key="user.id", index=True)
    source: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)


class Contact(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    phone: Optional[str] = None
    role: Optional[str] = None
    email: Optional[str] = None
    company_id: int = Field(foreign_key="company.id", index=True)
    owner_id: Optional[str] = Field(default=None, foreign_key="user.id")
    source: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)


class PipelineStage(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    color: Optional[str] = None
    position: int = Field(default=0, index=True)  # lowest position is the entry stage


class Opportunity(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: Optional[str] = None
    value: float = 0.0
    probability: int = 10
    company_id: int = Field(foreign_key="company.id", index=True)
    stage_id: int = Field(foreign_key="pipelinestage.id")
    owner_id: Optional[str] = Field(default=None, foreign_key="user.id")
    created_at: datetime = Field(default_factory=utc_now)


class ActivityLog(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    description: str
    type: str = Field(index=True)
    user_id: Optional[str] = Field(default=None, foreign_key="user.id")
    created_at: datetime = Field(default_factory=utc_now)


# --- Request schemas ---

class CompanyImportPayload(SQLModel):
    name: Optional[str] = None
    cnpj: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    sector: Optional[str] = None
    website: Optional[str] = None
    type: Optional[str] = None
    annual_revenue: Optional[float] = None
    number_of_employees: Optional[int] = None
    size: Optional[str] = None
    owner_id: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_cargo: Optional[str] = None


class ImportRequest(SQLModel):
    companies: List[CompanyImportPayload]
    owner_id: Optional[str] = None


__all__ = [
    "ACTIVE_STATUS",
    "ActivityLog",
    "Company",
    "CompanyImportPayload",
    "CompanyType",
    "Contact",
    "INACTIVE_STATUS",
    "ImportRequest",
    "Opportunity",
    "PipelineStage",
    "User",
    "UserRole",
]
