import pytest
from fastapi.testclient import TestClient

from app.core.app_state import AppState
from app.db import get_db
from app.main import create_app


@pytest.fixture
def app_state(message_bus, scorer):
    return AppState(bus=message_bus, scorer=scorer)


@pytest.fixture
def client_with_db(db, app_state):
    """Client with db override and a deterministic scorer."""
    app = create_app(testing=True, state=app_state)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
