from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from ..api.dependencies import file_response, get_db
from ..auth.jwt import require_privileged
from ..models.models import Member
from ..schemas.schemas import StatementRead
from ..services.reports import export_statement
from ..services.settings_store import get_public_settings
from ..services.statement import StatementFilters, build_entries, summarize

router = APIRouter()


def statement_filters(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    entry_type: Optional[str] = Query(None, alias="type"),
    member_id: Optional[int] = Query(None, alias="memberId"),
) -> StatementFilters:
    return StatementFilters(
        start_date=start_date,
        end_date=end_date,
        entry_type=entry_type or None,
        member_id=member_id,
    )


def _build(db: Session, filters: StatementFilters):
    try:
        return build_entries(db, filters)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("", response_model=StatementRead)
def read_statement(
    filters: StatementFilters = Depends(statement_filters),
    db: Session = Depends(get_db),
    _: Member = Depends(require_privileged),
) -> StatementRead:
    entries = _build(db, filters)
    return StatementRead.model_validate(
        {"entries": entries, "summary": summarize(entries)},
        from_attributes=True,
    )


@router.get("/export")
def export_statement_file(
    export_format: str = Query("csv", alias="format"),
    filters: StatementFilters = Depends(statement_filters),
    db: Session = Depends(get_db),
    _: Member = Depends(require_privileged),
) -> Response:
    entries = _build(db, filters)
    try:
        report = export_statement(entries, summarize(entries), get_public_settings(db), export_format)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return file_response(report)
