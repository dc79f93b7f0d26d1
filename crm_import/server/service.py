"""Server-side bulk insert of imported companies."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from .models import (
    ActivityLog,
    Company,
    CompanyImportPayload,
    CompanyType,
    Contact,
    Opportunity,
    PipelineStage,
    User,
)

LOGGER = logging.getLogger(__name__)

IMPORT_SOURCE = "import"
BULK_IMPORT_ACTIVITY = "BULK_IMPORT"
OPPORTUNITY_PROBABILITY = 10

CompanyLike = Union[CompanyImportPayload, Mapping[str, Any]]

# driver-level conversion failures (e.g. an integer wider than the column) are not wrapped by SQLAlchemy
ROW_ERRORS = (SQLAlchemyError, OverflowError, ValueError)


class ImportPermissionError(PermissionError):
    """Raised when the caller may not import on behalf of the requested owner."""

    def __init__(self, message: str, *, status_code: int = 403) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class BulkImportSummary:
    total: int
    success: int = 0
    errors: int = 0
    warnings: int = 0
    details: List[Dict[str, Any]] = field(default_factory=list)

    def add_success(self, row: int, message: str) -> None:
        self.success += 1
        self.details.append({"row": row, "status": "success", "message": message})

    def add_error(self, row: int, message: str) -> None:
        self.errors += 1
        self.details.append({"row": row, "status": "error", "message": message})

    def as_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "success": self.success,
            "errors": self.errors,
            "warnings": self.warnings,
            "details": list(self.details),
        }


def resolve_acting_owner(session: Session, user: User, owner_id: Optional[str]) -> str:
    """Return the owner for rows without their own ``owner_id``.

    Only admins may import on behalf of someone else, and the target must be an
    active user.
    """

    if not owner_id or owner_id == user.id:
        return user.id
    if not user.is_admin:
        raise ImportPermissionError("Only admins can assign companies to other users")
    target = session.get(User, owner_id)
    if target is None or not target.is_active:
        raise ImportPermissionError("Target user not found or inactive", status_code=400)
    return target.id


def bulk_import_companies(
    session: Session,
    companies: Sequence[CompanyLike],
    *,
    user: User,
    owner_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Insert each company independently and return the import summary.

    A failing row never aborts the batch: duplicate CNPJs and insert failures
    become row errors, while contact or opportunity failures only add a
    warning to an otherwise successful row. One activity log entry is written
    for the whole batch.
    """

    started = time.monotonic()
    acting_owner = resolve_acting_owner(session, user, owner_id)
    payloads = [_as_payload(company) for company in companies]
    summary = BulkImportSummary(total=len(payloads))
    LOGGER.info("Processing %s companies for user %s", len(payloads), user.id)

    entry_stage = _entry_stage(session)
    created = 0

    for index, payload in enumerate(payloads):
        row = index + 1
        name = (payload.name or "").strip()
        if not name:
            summary.add_error(row, "Nome da empresa é obrigatório")
            continue

        cnpj = (payload.cnpj or "").strip() or None
        if cnpj and _cnpj_exists(session, cnpj):
            summary.add_error(row, f'Empresa "{name}" não importada: CNPJ {cnpj} já existe no sistema')
            continue

        owner = payload.owner_id or acting_owner
        try:
            company = _insert_company(session, payload, name=name, cnpj=cnpj, owner_id=owner)
        except ROW_ERRORS as exc:
            LOGGER.error("Insert failed for row %s (%s): %s", row, name, exc)
            summary.add_error(row, f'Erro ao cadastrar empresa "{name}": {_short_error(exc)}')
            continue
        created += 1

        notes: List[str] = []
        if payload.contact_name and payload.contact_name.strip():
            if not _create_contact(session, payload, company, owner):
                summary.warnings += 1
                notes.append("contato não criado")

        if company.type == CompanyType.LEAD.value:
            if not _create_opportunity(session, payload, company, entry_stage, owner):
                summary.warnings += 1
                notes.append("oportunidade não criada")

        message = f'NOVO CADASTRO: Empresa "{name}" cadastrada com sucesso'
        if cnpj:
            message += f" (CNPJ: {cnpj})"
        if notes:
            message += f" [aviso: {', '.join(notes)}]"
        summary.add_success(row, message)

    session.commit()
    _log_activity(session, user, summary, created)
    LOGGER.info("Import completed in %.0fms", (time.monotonic() - started) * 1000)
    return summary.as_dict()


def _as_payload(company: CompanyLike) -> CompanyImportPayload:
    if isinstance(company, CompanyImportPayload):
        return company
    return CompanyImportPayload.model_validate(dict(company))


def _entry_stage(session: Session) -> Optional[PipelineStage]:
    return session.exec(select(PipelineStage).order_by(PipelineStage.position, PipelineStage.id)).first()


def _cnpj_exists(session: Session, cnpj: str) -> bool:
    return session.exec(select(Company.id).where(Company.cnpj == cnpj)).first() is not None


def _insert_company(
    session: Session,
    payload: CompanyImportPayload,
    *,
    name: str,
    cnpj: Optional[str],
    owner_id: str,
) -> Company:
    company = Company(
        name=name,
        cnpj=cnpj,
        phone=payload.phone,
        email=payload.email,
        city=payload.city,
        state=payload.state,
        sector=payload.sector,
        website=payload.website,
        type=(payload.type or "").strip() or CompanyType.LEAD.value,
        annual_revenue=payload.annual_revenue,
        number_of_employees=payload.number_of_employees,
        size=payload.size,
        owner_id=owner_id,
        source=IMPORT_SOURCE,
    )
    with session.begin_nested():
        session.add(company)
        session.flush()
    return company


def _create_contact(session: Session, payload: CompanyImportPayload, company: Company, owner_id: str) -> bool:
    contact = Contact(
        name=payload.contact_name.strip(),
        phone=payload.contact_phone,
        role=payload.contact_cargo,
        email=payload.email,
        company_id=company.id,
        owner_id=owner_id,
        source=IMPORT_SOURCE,
    )
    try:
        with session.begin_nested():
            session.add(contact)
            session.flush()
    except ROW_ERRORS as exc:
        LOGGER.warning("Contact creation failed for company %s: %s", company.id, exc)
        return False
    return True


def _create_opportunity(
    session: Session,
    payload: CompanyImportPayload,
    company: Company,
    stage: Optional[PipelineStage],
    owner_id: str,
) -> bool:
    if stage is None:
        LOGGER.warning("No pipeline stage configured; skipping opportunity for company %s", company.id)
        return False
    opportunity = Opportunity(
        title=f"Oportunidade - {company.name}",
        description="Oportunidade criada automaticamente via importação",
        value=payload.annual_revenue or 0,
        probability=OPPORTUNITY_PROBABILITY,
        company_id=company.id,
        stage_id=stage.id,
        owner_id=owner_id,
    )
    try:
        with session.begin_nested():
            session.add(opportunity)
            session.flush()
    except ROW_ERRORS as exc:
        LOGGER.warning("Opportunity creation failed for company %s: %s", company.id, exc)
        return False
    return True


def describe_import(summary: BulkImportSummary, created: int) -> str:
    """Portuguese one-line description stored in the activity log."""

    parts: List[str] = []
    if created:
        noun = "nova empresa cadastrada" if created == 1 else "novas empresas cadastradas"
        parts.append(f"{created} {noun}")
    if summary.errors:
        parts.append(f"{summary.errors} {'erro' if summary.errors == 1 else 'erros'}")
    if summary.warnings:
        parts.append(f"{summary.warnings} {'aviso' if summary.warnings == 1 else 'avisos'}")
    description = "Importação em massa concluída"
    if parts:
        description += ": " + ", ".join(parts)
    return f"{description}. Total processado: {summary.success}/{summary.total} empresas."


def _log_activity(session: Session, user: User, summary: BulkImportSummary, created: int) -> None:
    try:
        session.add(
            ActivityLog(
                description=describe_import(summary, created),
                type=BULK_IMPORT_ACTIVITY,
                user_id=user.id,
            )
        )
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        LOGGER.exception("Failed to log import activity")


def _short_error(exc: Exception) -> str:
    original = getattr(exc, "orig", None)
    return str(original or exc).splitlines()[0]


__all__ = [
    "BULK_IMPORT_ACTIVITY",
    "BulkImportSummary",
    "ImportPermissionError",
    "bulk_import_companies",
    "describe_import",
    "resolve_acting_owner",
]
