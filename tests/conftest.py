import sys
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from treasurer.config import Base  # noqa: E402
import treasurer.config as app_config  # noqa: E402
import treasurer.main as app_main  # noqa: E402
from treasurer.auth.jwt import get_current_user, get_db, get_password_hash  # noqa: E402
from treasurer.constants import ROLE_ADMIN  # noqa: E402
from treasurer.core.persistence import build_engine  # noqa: E402
from treasurer.core.rate_limit import login_limiter  # noqa: E402
# Import the full models module so every table registers with Base metadata.
from treasurer.models import models as _all_models  # noqa: E402,F401
from treasurer.models.models import Member  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def _configure_global_test_db(tmp_path_factory):
    """Configure the app-wide SessionLocal/engine so TestClient uses a DB with all tables."""
    db_dir = tmp_path_factory.mktemp("globaldb")
    engine = build_engine(f"sqlite:///{db_dir / 'app.db'}")
    Base.metadata.create_all(engine)
    app_config.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    app_config.engine = engine
    app_main.engine = engine
    yield
    engine.dispose()


@pytest.fixture(autouse=True)
def _reset_login_limiter():
    login_limiter.reset()
    yield
    login_limiter.reset()


@pytest.fixture
def db_session(tmp_path) -> Generator[Session, None, None]:
    """Provide a fresh SQLite database for each test."""
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def create_member(db_session: Session) -> Callable[..., Member]:
    counter = {"value": 0}

    def _create(
        name: str = "Membro",
        role: str = ROLE_ADMIN,
        email: Optional[str] = None,
        password: str = "changeme",
    ) -> Member:
        counter["value"] += 1
        member = Member(
            name=f"{name} {counter['value']}",
            email=email or f"member{counter['value']}@example.com",
            registration_number=f"REG-{counter['value']:03d}",
            role=role,
            password_hash=get_password_hash(password),
        )
        db_session.add(member)
        db_session.commit()
        return member

    return _create


@pytest.fixture
def api_client(db_session: Session) -> Generator[Callable[[Optional[Member]], TestClient], None, None]:
    """Build a TestClient bound to ``db_session``, optionally authenticated as ``user``."""

    def _build(user: Optional[Member] = None) -> TestClient:
        def _override_get_db():
            yield db_session

        app_main.app.dependency_overrides[get_db] = _override_get_db
        if user is not None:
            app_main.app.dependency_overrides[get_current_user] = lambda: user
        else:
            app_main.app.dependency_overrides.pop(get_current_user, None)
        return TestClient(app_main.app)

    try:
        yield _build
    finally:
        app_main.app.dependency_overrides.clear()
