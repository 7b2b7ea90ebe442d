from sqladmin.authentication import AuthenticationBackend
from starlette.requests import Request

from valida.core.security import secrets_match
from valida.core.settings import get_settings


class AdminAuth(AuthenticationBackend):
    """SQLAdmin auth using Starlette sessions.

    Credentials come from ADMIN_USERNAME / ADMIN_PASSWORD. The JSON dashboard
    routes use the ``is_admin`` profile flag instead.
    """

    def __init__(self) -> None:
        # Must be stable across restarts, otherwise admin sessions are dropped
        settings = get_settings()
        super().__init__(secret_key=settings.session_secret_key)

    async def login(self, request: Request) -> bool:
        form = await request.form()
        username = str(form.get("username", form.get("email", "")))
        password = str(form.get("password", ""))

        settings = get_settings()
        username_ok = secrets_match(username.strip(), settings.admin_username)
        password_ok = secrets_match(password, settings.admin_password)
        if username_ok and password_ok:
            request.session["admin_user"] = username.strip()
            return True
        return False

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> bool:
        return bool(request.session.get("admin_user"))
