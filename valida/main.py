from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqladmin import Admin

from valida.admin.auth import AdminAuth
from valida.admin.views import GenerationAdmin, ProfileAdmin
from valida.core.cors import add_cors_middleware
from valida.core.email import init_resend
from valida.core.exception_handlers import register_exception_handlers
from valida.core.http import close_http_clients
from valida.core.logging import configure_logging
from valida.core.request_logging import add_request_logging_middleware
from valida.db.engine import engine
from valida.realtime.feed import get_change_feed
from valida.router import api_router

configure_logging()


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_resend()
    yield
    await get_change_feed().aclose()
    await close_http_clients()


app = FastAPI(title="Valida AI", version="0.1.0", lifespan=lifespan)

app.include_router(api_router)

add_request_logging_middleware(app)
add_cors_middleware(app)
register_exception_handlers(app)

# Mount SQLAdmin UI at /admin (SQLAdmin enables sessions via auth backend secret)
admin = Admin(
    app=app,
    engine=engine,
    authentication_backend=AdminAuth(),
)
admin.add_view(ProfileAdmin)
admin.add_view(GenerationAdmin)
