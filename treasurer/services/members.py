import hashlib
import secrets
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..auth.jwt import get_password_hash
from ..constants import REGISTRATION_NUMBER_MAX_LENGTH, ROLE_VIEWER
from ..models.models import Member


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def normalize_registration_number(value: Optional[str]) -> str:
    return (value or "").strip()


def validate_registration_number(value: Optional[str]) -> str:
    normalized = normalize_registration_number(value)
    if not normalized or len(normalized) > REGISTRATION_NUMBER_MAX_LENGTH:
        raise ValueError(
            f"Registration number must have between 1 and {REGISTRATION_NUMBER_MAX_LENGTH} characters"
        )
    return normalized


def hash_setup_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_setup_token(length: int = 24) -> str:
    return secrets.token_hex(length)


def generate_password() -> str:
    return secrets.token_urlsafe(18)


def find_conflicting_member(
    session: Session,
    email: str,
    registration_number: str,
    exclude_id: Optional[int] = None,
) -> Optional[Member]:
    query = session.query(Member).filter(
        or_(
            func.lower(Member.email) == email,
            Member.registration_number == registration_number,
        )
    )
    if exclude_id is not None:
        query = query.filter(Member.id != exclude_id)
    return query.first()


def create_member_account(
    session: Session,
    *,
    name: str,
    email: str,
    password: str,
    registration_number: str,
    nickname: Optional[str] = None,
    role: str = ROLE_VIEWER,
    setup_token_hash: Optional[str] = None,
) -> Member:
    member = Member(
        name=name or "",
        email=email,
        nickname=nickname or None,
        registration_number=registration_number,
        password_hash=get_password_hash(password),
        role=role,
        active=True,
        must_reset_password=setup_token_hash is not None,
        setup_token_hash=setup_token_hash,
        setup_token_created_at=datetime.now(timezone.utc) if setup_token_hash else None,
    )
    session.add(member)
    session.flush()
    return member


def issue_setup_token(member: Member) -> str:
    """Reset the member to a pending state and return a fresh one-time token."""
    token = generate_setup_token()
    member.password_hash = get_password_hash(generate_password())
    member.must_reset_password = True
    member.setup_token_hash = hash_setup_token(token)
    member.setup_token_created_at = datetime.now(timezone.utc)
    return token


def create_pending_member(
    session: Session,
    *,
    name: str,
    email: str,
    registration_number: str,
    nickname: Optional[str] = None,
) -> Tuple[Member, str]:
    token = generate_setup_token()
    member = create_member_account(
        session,
        name=name,
        email=email,
        password=generate_password(),
        registration_number=registration_number,
        nickname=nickname,
        setup_token_hash=hash_setup_token(token),
    )
    return member, token
