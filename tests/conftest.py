import os

# must be set before portal.db builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from portal.db import Base, get_db
from portal.main import create_app
from portal.models.enums import UserRole
from portal.models.user import User
from portal.rbac.admin import ensure_system_roles
from portal.rbac.deps import get_super_admins

SUPER_ADMINS = frozenset({"root@example.com"})

@pytest.fixture()
def db_session() -> Session:
    database_url = os.environ.get("TEST_DATABASE_URL", "sqlite+pysqlite://")

    kwargs: dict = {}
    if database_url.startswith("sqlite"):
        # one shared in-memory db across the test client's threads
        kwargs = {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    engine = create_engine(database_url, **kwargs)
    Base.metadata.create_all(engine)

    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session: Session = TestingSessionLocal()
    ensure_system_roles(session)

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()

@pytest.fixture()
def client(db_session: Session) -> TestClient:
    app = create_app()

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_super_admins] = lambda: SUPER_ADMINS
    return TestClient(app)

@pytest.fixture()
def make_user(db_session: Session):
    def _make(role: UserRole, email: str | None = None, name: str | None = None) -> User:
        email = email or f"{role.value}+{uuid.uuid4().hex[:8]}@example.com"
        u = User(email=email, display_name=name or role.value, role=role, projects=[])
        db_session.add(u)
        db_session.commit()
        db_session.refresh(u)
        return u

    return _make
