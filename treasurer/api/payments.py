from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session, joinedload

from ..api.dependencies import ensure_member_access, file_response, get_db, scoped_member_id
from ..auth.jwt import get_current_user, require_privileged
from ..models.models import Member, Payment
from ..schemas.schemas import MessageResponse, PaymentCreate, PaymentRead, PaymentUpdate
from ..services import ledger
from ..services.reports import payment_receipt
from ..services.settings_store import get_public_settings

router = APIRouter()


def _translate_service_error(exc: Exception) -> HTTPException:
    if isinstance(exc, LookupError):
        return HTTPException(status_code=404, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


@router.get("", response_model=List[PaymentRead])
def list_payments(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = None,
    member_id: Optional[int] = Query(None, alias="memberId"),
    db: Session = Depends(get_db),
    user: Member = Depends(get_current_user),
) -> List[Payment]:
    query = db.query(Payment).options(joinedload(Payment.member))
    if month:
        query = query.filter(Payment.month == month)
    if year:
        query = query.filter(Payment.year == year)
    effective_member_id = scoped_member_id(user, member_id)
    if effective_member_id:
        query = query.filter(Payment.member_id == effective_member_id)
    return query.order_by(Payment.year.desc(), Payment.month.desc(), Payment.id.desc()).all()


@router.get("/history/{member_id}", response_model=List[PaymentRead])
def payment_history(
    member_id: int,
    db: Session = Depends(get_db),
    user: Member = Depends(get_current_user),
) -> List[Payment]:
    ensure_member_access(user, member_id)
    return (
        db.query(Payment)
        .options(joinedload(Payment.member))
        .filter(Payment.member_id == member_id)
        .order_by(Payment.year.desc(), Payment.month.desc())
        .all()
    )


@router.post("", response_model=PaymentRead)
def create_payment(
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    _: Member = Depends(require_privileged),
) -> Payment:
    data = ledger.PaymentInput(**payload.model_dump())
    try:
        payment = ledger.create_or_replace_payment(db, data)
    except (LookupError, ValueError) as exc:
        db.rollback()
        raise _translate_service_error(exc) from exc
    db.commit()
    db.refresh(payment)
    return payment


@router.put("/{payment_id}", response_model=PaymentRead)
def update_payment(
    payment_id: int,
    payload: PaymentUpdate,
    db: Session = Depends(get_db),
    _: Member = Depends(require_privileged),
) -> Payment:
    data = ledger.PaymentUpdate(**payload.model_dump())
    try:
        payment = ledger.update_payment(db, payment_id, data)
    except (LookupError, ValueError) as exc:
        db.rollback()
        raise _translate_service_error(exc) from exc
    db.commit()
    db.refresh(payment)
    return payment


@router.delete("/{payment_id}", response_model=MessageResponse)
def delete_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    _: Member = Depends(require_privileged),
) -> MessageResponse:
    try:
        ledger.delete_payment(db, payment_id)
    except LookupError as exc:
        db.rollback()
        raise _translate_service_error(exc) from exc
    db.commit()
    return MessageResponse(ok=True)


@router.get("/{payment_id}/receipt")
def download_receipt(
    payment_id: int,
    db: Session = Depends(get_db),
    user: Member = Depends(get_current_user),
) -> Response:
    payment = db.get(Payment, payment_id)
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    ensure_member_access(user, payment.member_id)
    return file_response(payment_receipt(payment, get_public_settings(db)))
