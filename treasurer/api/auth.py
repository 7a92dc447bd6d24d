import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..api.dependencies import get_db
from ..auth.jwt import create_access_token, get_current_user, get_password_hash, verify_password
from ..config import settings
from ..constants import ROLE_ADMIN, ROLE_VIEWER
from ..core.rate_limit import rate_limit_dependency
from ..core.version import get_version_info
from ..models.models import Member
from ..schemas.schemas import (
    AuthResponse,
    HealthRead,
    LoginRequest,
    MemberRead,
    RegisterRequest,
    SetupPasswordRequest,
)
from ..services.members import (
    create_member_account,
    find_conflicting_member,
    hash_setup_token,
    normalize_email,
    validate_registration_number,
)

logger = logging.getLogger(__name__)

router = APIRouter()

login_rate_limit = rate_limit_dependency(
    "login",
    limit=settings.login_rate_limit,
    window_seconds=settings.login_rate_window_seconds,
)


def _auth_response(member: Member) -> AuthResponse:
    return AuthResponse(
        token=create_access_token(member),
        role=member.role,
        email=member.email,
        name=member.name,
        member_id=member.id,
    )


@router.get("/health", response_model=HealthRead)
def health() -> HealthRead:
    return HealthRead(status="ok", version=get_version_info())


@router.post("/login", response_model=AuthResponse, dependencies=[Depends(login_rate_limit)])
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> AuthResponse:
    email = normalize_email(payload.email)
    member = db.query(Member).filter(func.lower(Member.email) == email).first()
    if not member or not member.password_hash or not verify_password(payload.password, member.password_hash):
        logger.info("Rejected login for %s", email)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not member.active:
        raise HTTPException(status_code=403, detail="Account is inactive")
    if member.must_reset_password:
        raise HTTPException(status_code=403, detail="Password setup is pending for this account")
    return _auth_response(member)


@router.post("/register", response_model=AuthResponse)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> AuthResponse:
    email = normalize_email(payload.email)
    try:
        registration_number = validate_registration_number(payload.registration_number)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    if find_conflicting_member(db, email, registration_number):
        raise HTTPException(status_code=409, detail="Email or registration number already registered")

    # The very first account bootstraps the organization as its admin.
    is_first_member = db.query(Member.id).first() is None
    member = create_member_account(
        db,
        name=payload.name,
        email=email,
        password=payload.password,
        registration_number=registration_number,
        role=ROLE_ADMIN if is_first_member else ROLE_VIEWER,
    )
    db.commit()
    db.refresh(member)
    logger.info("Registered member %s with role %s", member.id, member.role)
    return _auth_response(member)


@router.post("/setup-password", response_model=AuthResponse)
def setup_password(payload: SetupPasswordRequest, db: Session = Depends(get_db)) -> AuthResponse:
    member = db.query(Member).filter(Member.setup_token_hash == hash_setup_token(payload.token)).first()
    if not member:
        raise HTTPException(status_code=400, detail="Invalid or expired setup token")

    member.password_hash = get_password_hash(payload.password)
    member.must_reset_password = False
    member.setup_token_hash = None
    member.setup_token_created_at = None
    db.commit()
    db.refresh(member)
    return _auth_response(member)


@router.get("/me", response_model=MemberRead)
def read_me(current_user: Member = Depends(get_current_user)) -> Member:
    return current_user
