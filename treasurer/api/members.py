import logging
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..api.dependencies import get_db, scoped_member_id
from ..auth.jwt import get_current_user, require_roles
from ..constants import ROLE_ADMIN
from ..models.models import Member
from ..schemas.schemas import (
    DelinquentMemberRead,
    MemberCreate,
    MemberInvite,
    MemberPublicRead,
    MemberRead,
    MemberUpdate,
    MessageResponse,
)
from ..services.dashboard import delinquent_members
from ..services.members import (
    create_pending_member,
    find_conflicting_member,
    issue_setup_token,
    normalize_email,
    validate_registration_number,
)

logger = logging.getLogger(__name__)

router = APIRouter()

require_admin = require_roles(ROLE_ADMIN)


def _get_member(db: Session, member_id: int) -> Member:
    member = db.get(Member, member_id)
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")
    return member


def _validated_identity(db: Session, payload: MemberCreate, exclude_id: Optional[int] = None):
    email = normalize_email(payload.email)
    try:
        registration_number = validate_registration_number(payload.registration_number)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if find_conflicting_member(db, email, registration_number, exclude_id=exclude_id):
        raise HTTPException(status_code=409, detail="Email or registration number already registered")
    return email, registration_number


@router.get("", response_model=List[Union[MemberRead, MemberPublicRead]])
def list_members(
    db: Session = Depends(get_db),
    user: Member = Depends(get_current_user),
):
    query = db.query(Member)
    if not user.is_privileged:
        query = query.filter(Member.id == user.id)
    members = query.order_by(Member.name).all()
    schema = MemberRead if user.is_privileged else MemberPublicRead
    return [schema.model_validate(member) for member in members]


@router.get("/delinquent", response_model=List[DelinquentMemberRead])
def list_delinquent_members(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = None,
    member_id: Optional[int] = Query(None, alias="memberId"),
    db: Session = Depends(get_db),
    user: Member = Depends(get_current_user),
) -> List[Member]:
    return delinquent_members(db, month=month, year=year, member_id=scoped_member_id(user, member_id))


@router.post("", response_model=MemberInvite)
def create_member(
    payload: MemberCreate,
    db: Session = Depends(get_db),
    _: Member = Depends(require_admin),
) -> MemberInvite:
    email, registration_number = _validated_identity(db, payload)
    member, setup_token = create_pending_member(
        db,
        name=payload.name,
        email=email,
        registration_number=registration_number,
        nickname=payload.nickname,
    )
    db.commit()
    db.refresh(member)
    logger.info("Created pending member %s", member.id)
    return MemberInvite(member=MemberRead.model_validate(member), setup_token=setup_token)


@router.put("/{member_id}", response_model=MemberRead)
def update_member(
    member_id: int,
    payload: MemberUpdate,
    db: Session = Depends(get_db),
    _: Member = Depends(require_admin),
) -> Member:
    member = _get_member(db, member_id)
    email, registration_number = _validated_identity(db, payload, exclude_id=member_id)
    member.name = payload.name
    member.email = email
    member.nickname = payload.nickname or None
    member.registration_number = registration_number
    if payload.role is not None:
        member.role = payload.role
    if payload.active is not None:
        member.active = payload.active
    db.commit()
    db.refresh(member)
    return member


@router.post("/{member_id}/invite", response_model=MemberInvite)
def invite_member(
    member_id: int,
    db: Session = Depends(get_db),
    _: Member = Depends(require_admin),
) -> MemberInvite:
    member = _get_member(db, member_id)
    if not member.email:
        raise HTTPException(status_code=400, detail="Member needs an email before an access link can be issued")
    setup_token = issue_setup_token(member)
    db.commit()
    db.refresh(member)
    return MemberInvite(member=MemberRead.model_validate(member), setup_token=setup_token)


@router.delete("/{member_id}", response_model=MessageResponse)
def delete_member(
    member_id: int,
    db: Session = Depends(get_db),
    user: Member = Depends(require_admin),
) -> MessageResponse:
    member = _get_member(db, member_id)
    if member.id == user.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    removed_payments = len(member.payments)
    db.delete(member)
    db.commit()
    # Cascaded payments leave the scalar balance untouched.
    logger.info("Deleted member %s along with %s payments", member_id, removed_payments)
    return MessageResponse(ok=True)
