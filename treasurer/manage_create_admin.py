"""Create (or promote) the administrator account for the treasurer assistant.

Run: `python -m treasurer.manage_create_admin --email admin@example.com --password changeme --registration ADM-001`
"""

import argparse
from contextlib import contextmanager

from treasurer.config import Base, SessionLocal, engine
from treasurer.constants import ROLE_ADMIN
from treasurer.models.models import Member
from treasurer.services.members import (
    create_member_account,
    find_conflicting_member,
    normalize_email,
    validate_registration_number,
)


@contextmanager
def session_scope():
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_admin(db, email: str, password: str, name: str, registration_number: str) -> Member:
    normalized_email = normalize_email(email)
    registration = validate_registration_number(registration_number)

    existing = find_conflicting_member(db, normalized_email, registration)
    if existing:
        existing.role = ROLE_ADMIN
        existing.active = True
        db.flush()
        return existing

    return create_member_account(
        db,
        name=name,
        email=normalized_email,
        password=password,
        registration_number=registration,
        role=ROLE_ADMIN,
    )


def main():
    parser = argparse.ArgumentParser(description="Create the initial admin member")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--name", default="Tesoureiro")
    parser.add_argument("--registration", default="ADMIN-001")
    args = parser.parse_args()

    Base.metadata.create_all(bind=engine)
    with session_scope() as db:
        member = create_admin(db, args.email, args.password, args.name, args.registration)
        print(f"Admin member ready with id {member.id} ({member.email})")


if __name__ == "__main__":
    main()
