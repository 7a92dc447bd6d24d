from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from ..api.dependencies import file_response, get_db
from ..auth.jwt import get_current_user, require_privileged
from ..models.models import Member
from ..schemas.schemas import AnnualTotalRead, BalanceReportRead, MonthlyTotalRead
from ..services.reports import annual_total, balance_totals, export_records, monthly_total

router = APIRouter()


@router.get("/monthly", response_model=MonthlyTotalRead)
def monthly_report(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(...),
    db: Session = Depends(get_db),
    _: Member = Depends(get_current_user),
) -> MonthlyTotalRead:
    return MonthlyTotalRead(**monthly_total(db, month, year))


@router.get("/annual", response_model=AnnualTotalRead)
def annual_report(
    year: int = Query(...),
    db: Session = Depends(get_db),
    _: Member = Depends(get_current_user),
) -> AnnualTotalRead:
    return AnnualTotalRead(**annual_total(db, year))


@router.get("/balance", response_model=BalanceReportRead)
def balance_report(
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    _: Member = Depends(get_current_user),
) -> BalanceReportRead:
    return BalanceReportRead(**balance_totals(db, year))


@router.get("/export")
def export_report(
    export_format: str = Query("csv", alias="format"),
    export_type: str = Query("payments", alias="type"),
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    _: Member = Depends(require_privileged),
) -> Response:
    try:
        report = export_records(db, export_type, export_format, month=month, year=year)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return file_response(report)
