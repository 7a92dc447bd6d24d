from datetime import datetime, timedelta, timezone
from typing import Generator, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .. import config
from ..config import settings
from ..constants import PRIVILEGED_ROLES
from ..models.models import Member

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/login")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(member: Member) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": str(member.id),
        "role": member.role,
        "email": member.email,
        "type": "access",
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def get_db() -> Generator[Session, None, None]:
    db = config.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> Member:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(token)
        member_id: Optional[str] = payload.get("sub")
        if member_id is None or payload.get("type") != "access":
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    member = db.get(Member, int(member_id))
    if member is None or not member.active:
        raise credentials_exception
    return member


def require_roles(*allowed_roles: str):
    allowed = set(allowed_roles)

    def role_checker(user: Member = Depends(get_current_user)) -> Member:
        if not allowed:
            return user
        if user.has_any_role(*allowed):
            return user
        raise HTTPException(status_code=403, detail="Operation not permitted for your role")

    return role_checker


require_privileged = require_roles(*PRIVILEGED_ROLES)
