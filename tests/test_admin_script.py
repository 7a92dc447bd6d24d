from treasurer.auth.jwt import verify_password
from treasurer.constants import ROLE_ADMIN, ROLE_VIEWER
from treasurer.manage_create_admin import create_admin
from treasurer.models.models import Member


def test_create_admin_creates_a_new_account(db_session):
    member = create_admin(db_session, " Chefe@Example.com ", "segredo1", "Chefe", "ADM-001")
    db_session.commit()

    stored = db_session.get(Member, member.id)
    assert stored.email == "chefe@example.com"
    assert stored.role == ROLE_ADMIN
    assert verify_password("segredo1", stored.password_hash)


def test_create_admin_promotes_an_existing_member(db_session, create_member):
    existing = create_member("Alice", role=ROLE_VIEWER)
    existing.active = False
    db_session.commit()

    member = create_admin(db_session, existing.email, "ignored", "Outro nome", "ADM-777")
    db_session.commit()

    assert member.id == existing.id
    assert member.role == ROLE_ADMIN
    assert member.active is True
    assert db_session.query(Member).count() == 1
