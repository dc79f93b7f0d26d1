"""FastAPI application exposing the bulk import endpoint."""
from __future__ import annotations

import logging
from typing import Iterator, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from .database import create_db_engine, init_db, session_scope
from .models import ImportRequest, User
from .service import ImportPermissionError, bulk_import_companies

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/functions/v1", tags=["import"])


def get_session(request: Request) -> Iterator[Session]:
    """Dependency for getting database session"""
    yield from session_scope(request.app.state.engine)


def get_current_user(request: Request, session: Session = Depends(get_session)) -> User:
    """Resolve the caller from the ``Authorization: Bearer <token>`` header."""

    authorization = request.headers.get("Authorization") or ""
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = session.exec(select(User).where(User.api_token == token.strip())).first()
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


@router.post("/import-companies")
def import_companies(
    payload: ImportRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    try:
        return bulk_import_companies(
            session,
            payload.companies,
            user=current_user,
            owner_id=payload.owner_id,
        )
    except ImportPermissionError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


def create_app(engine: Optional[Engine] = None, *, database_url: str = "sqlite://") -> FastAPI:
    """Build the application; tables and default pipeline stages are created on startup."""

    app = FastAPI(title="CRM Company Import", version="1.0.0")
    app.state.engine = engine if engine is not None else create_db_engine(database_url)
    init_db(app.state.engine)

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        LOGGER.warning("Rejected import request: %s", exc.errors())
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid companies data"})

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    app.include_router(router)
    return app


__all__ = ["create_app", "get_current_user", "get_session", "router"]
