import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import require_privileged
from ..models.models import Member
from ..schemas.schemas import BalanceRead, BalanceUpdate, PublicSettingsRead, SettingsRead, SettingsUpdate
from ..services import settings_store

logger = logging.getLogger(__name__)

router = APIRouter()


def _public_settings(db: Session) -> PublicSettingsRead:
    public = settings_store.get_public_settings(db)
    return PublicSettingsRead(
        org_name=public["orgName"],
        org_tagline=public["orgTagline"],
        default_payment_amount=public["defaultPaymentAmount"],
        payment_due_day=public["paymentDueDay"],
        pix_key=public["pixKey"],
        pix_receiver=public["pixReceiver"],
        dashboard_note=public["dashboardNote"],
        disclaimer_text=public["disclaimerText"],
        document_footer=public["documentFooter"],
    )


def _settings_response(db: Session) -> SettingsRead:
    return SettingsRead(
        settings=_public_settings(db),
        current_balance=settings_store.get_current_balance(db),
    )


@router.get("/public", response_model=PublicSettingsRead)
def read_public_settings(db: Session = Depends(get_db)) -> PublicSettingsRead:
    return _public_settings(db)


@router.get("", response_model=SettingsRead)
def read_settings(
    db: Session = Depends(get_db),
    _: Member = Depends(require_privileged),
) -> SettingsRead:
    response = _settings_response(db)
    # Reading may have materialized the balance row.
    db.commit()
    return response


@router.put("", response_model=SettingsRead)
def update_settings(
    payload: SettingsUpdate,
    db: Session = Depends(get_db),
    user: Member = Depends(require_privileged),
) -> SettingsRead:
    values = payload.model_dump(exclude_unset=True, exclude={"current_balance"})
    if "payment_due_day" in values:
        due_day = settings_store.normalize_due_day(values["payment_due_day"])
        values["payment_due_day"] = "" if due_day is None else due_day
    settings_store.set_settings(db, {key: "" if value is None else value for key, value in values.items()})

    if payload.current_balance is not None:
        balance = settings_store.set_current_balance(db, payload.current_balance)
        logger.info("Member %s set the current balance to %s", user.id, balance)

    response = _settings_response(db)
    db.commit()
    return response


@router.put("/balance", response_model=BalanceRead)
def update_balance(
    payload: BalanceUpdate,
    db: Session = Depends(get_db),
    user: Member = Depends(require_privileged),
) -> BalanceRead:
    balance = settings_store.set_current_balance(db, payload.value)
    db.commit()
    logger.info("Member %s set the current balance to %s", user.id, balance)
    return BalanceRead(current_balance=settings_store.get_current_balance(db))
