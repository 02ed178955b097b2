"""
Integration fixtures: a TestClient bound to the in-memory database and
bearer-token helpers.
"""
import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def api_client(session_factory):
    from lms.api import app
    from lms.config import get_db

    def _override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    from lms.schemas.auth_schemas import AuthTokenPayload
    from lms.utils.jwt import create_access_token

    def _headers(user=None, sub=None, email=None, name=None):
        payload = AuthTokenPayload(
            sub=sub or user.external_id,
            email=email or (user.email if user is not None else None),
            name=name or (user.name if user is not None else None),
        )
        return {"Authorization": f"Bearer {create_access_token(payload)}"}

    return _headers
