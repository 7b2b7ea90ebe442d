"""Tests for valida/admin/auth.py - SQLAdmin authentication."""

from unittest.mock import MagicMock

import pytest

from valida.admin.auth import AdminAuth
from valida.core.settings import get_settings


@pytest.fixture
def admin_auth():
    """Create AdminAuth instance."""
    return AdminAuth()


@pytest.fixture
def mock_request():
    """Create a mock Starlette request with session."""
    request = MagicMock()
    request.session = {}
    return request


def _form(**fields):
    async def mock_form():
        return fields

    return mock_form


@pytest.mark.asyncio
async def test_admin_login_success(admin_auth, mock_request):
    """Test AdminAuth.login() with valid credentials returns True."""
    settings = get_settings()
    mock_request.form = _form(
        username=settings.admin_username, password=settings.admin_password
    )

    result = await admin_auth.login(mock_request)

    assert result is True
    assert mock_request.session["admin_user"] == settings.admin_username


@pytest.mark.asyncio
async def test_admin_login_with_email_field(admin_auth, mock_request):
    """Test AdminAuth.login() falls back to email field."""
    settings = get_settings()
    mock_request.form = _form(
        email=f"  {settings.admin_username} ", password=settings.admin_password
    )

    assert await admin_auth.login(mock_request) is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("username", "password"),
    [("admin", "wrong"), ("intruder", "admin"), ("", "")],
)
async def test_admin_login_failure(admin_auth, mock_request, username, password):
    mock_request.form = _form(username=username, password=password)

    assert await admin_auth.login(mock_request) is False
    assert "admin_user" not in mock_request.session


@pytest.mark.asyncio
async def test_admin_logout_clears_session(admin_auth, mock_request):
    mock_request.session = {"admin_user": "admin"}

    assert await admin_auth.logout(mock_request) is True
    assert mock_request.session == {}


@pytest.mark.asyncio
async def test_admin_authenticate(admin_auth, mock_request):
    assert await admin_auth.authenticate(mock_request) is False

    mock_request.session["admin_user"] = "admin"

    assert await admin_auth.authenticate(mock_request) is True
