import os
import random

# Keep the app's own engine off disk; every test talks to test_engine below
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from swiss_bracket.database import get_rng, get_session  # noqa: E402
from swiss_bracket.main import app  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"
TEST_PAIRING_SEED = 20240611

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. Tables are dropped and recreated per test (see session_fixture)
# 4. App dependencies overridden to use test_engine and a seeded rng
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


class NoShuffle(random.Random):
    """Keeps the pairing queue in input order so pairs are predictable."""

    def shuffle(self, x):
        pass


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


def override_get_rng():
    return random.Random(TEST_PAIRING_SEED)


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a freshly created schema"""
    from swiss_bracket.models import Match, Player, RoundLock  # noqa: F401

    SQLModel.metadata.drop_all(test_engine)
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="rng")
def rng_fixture():
    return NoShuffle()


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session and rng

    Overrides MUST be set BEFORE TestClient() and stay in place for the
    entire duration so the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_rng] = override_get_rng

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
