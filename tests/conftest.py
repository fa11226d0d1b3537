import os

os.environ["ENV"] = "test"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite://")
os.environ.setdefault("VERIFICATION_DELAY_SECONDS", "0")
os.environ.setdefault("SUBSCRIPTION_BACKOFF_INITIAL_SECONDS", "0.01")
os.environ.setdefault("SUBSCRIPTION_BACKOFF_MAX_SECONDS", "0.05")

from contextlib import contextmanager  # noqa: E402

import pytest  # noqa: E402

import app.models  # noqa: E402,F401
from app.db import Base, build_engine, db_manager  # noqa: E402

pytest_plugins = [
    "tests.fixtures.profile_fixtures",
    "tests.fixtures.lost_item_fixtures",
    "tests.fixtures.chat_fixtures",
    "tests.fixtures.access_log_fixtures",
]


@pytest.fixture(scope="function")
def engine():
    engine = build_engine(os.environ["TEST_DATABASE_URL"])
    Base.metadata.create_all(engine)
    db_manager.configure(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(engine):
    session = db_manager.session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def session_factory(db):
    """Hands the test session to components that open their own (the verification scorer)."""

    @contextmanager
    def factory():
        yield db

    return factory
