"""Pytest configuration and shared fixtures."""
import os

# Settings are read at import time; pin them before anything from wellbeing loads.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-access-secret"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret"

import pytest  # noqa: E402
from datetime import datetime  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from wellbeing.database import Base, create_db_engine, get_db, get_session_factory  # noqa: E402
from wellbeing.main import app  # noqa: E402
from wellbeing.models.domain import Membership, User  # noqa: E402
from wellbeing.models.enums import MemberRole, MembershipStatus  # noqa: E402
from wellbeing.services import security  # noqa: E402
from wellbeing.services.membership import MembershipStateMachine  # noqa: E402

PASSWORD = "Password123!"


@pytest.fixture
def engine():
    """A fresh in-memory database for each test, shared across threads."""
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(db_session):
    """Create an active, consenting user. Password is always PASSWORD."""
    password_hash = security.get_password_hash(PASSWORD)
    counter = {"n": 0}

    def _make_user(email=None, first_name="Test", last_name="User", **fields):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            display_name=f"{first_name} {last_name}",
            consent_given=True,
            consent_date=datetime.utcnow(),
            data_processing_consent=True,
            **fields
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_group(db_session):
    """Create a group through the state machine so the owner is its facilitator."""
    def _make_group(owner, name="Mindfulness", max_members=8, **fields):
        return MembershipStateMachine(db_session).create_group(owner.id, name, max_members, **fields)

    return _make_group


@pytest.fixture
def add_member(db_session):
    """Put a user straight into a group as ACTIVE, bypassing invite/accept."""
    def _add_member(group, user, role=MemberRole.MEMBER):
        membership = Membership(
            user_id=user.id,
            group_id=group.id,
            role=role,
            status=MembershipStatus.ACTIVE,
            joined_at=datetime.utcnow()
        )
        db_session.add(membership)
        db_session.commit()
        db_session.refresh(membership)
        return membership

    return _add_member


@pytest.fixture
def alice(make_user):
    return make_user(email="alice@example.com", first_name="Alice", last_name="Smith")


@pytest.fixture
def bob(make_user):
    return make_user(email="bob@example.com", first_name="Bob", last_name="Jones")


@pytest.fixture
def carol(make_user):
    return make_user(email="carol@example.com", first_name="Carol", last_name="White")


@pytest.fixture
def group(make_group, alice):
    """Alice's group, Alice as its only facilitator."""
    return make_group(alice, name="Mindfulness", max_members=10)


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {security.create_access_token(user.id, user.email)}"}

    return _auth_headers


@pytest.fixture
def client(session_factory):
    """TestClient wired to the per-test database, audit writes included."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    yield TestClient(app)
    app.dependency_overrides.clear()
