"""Tests for health domain router."""

from unittest.mock import MagicMock

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlmodel import Session

from valida.db.engine import get_session
from valida.main import app


def test_health_endpoint_database_healthy(session: Session):
    """Test GET /health returns ok status when database is healthy."""
    app.dependency_overrides[get_session] = lambda: session

    client = TestClient(app, raise_server_exceptions=False)
    response = client.get("/health")

    app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "ok"}


def test_health_endpoint_database_unhealthy():
    """Test GET /health returns 503 when database is unreachable."""
    mock_session = MagicMock(spec=Session)
    mock_session.exec.side_effect = OperationalError(
        "SELECT 1", {}, Exception("Connection refused")
    )
    app.dependency_overrides[get_session] = lambda: mock_session

    client = TestClient(app, raise_server_exceptions=False)
    response = client.get("/health")

    app.dependency_overrides.clear()

    assert response.status_code == 503
    assert response.json() == {"status": "unhealthy", "database": "error"}


def test_health_response_carries_request_id(session: Session):
    app.dependency_overrides[get_session] = lambda: session

    response = TestClient(app).get("/health", headers={"X-Request-ID": "req-42"})

    app.dependency_overrides.clear()

    assert response.headers["X-Request-ID"] == "req-42"
