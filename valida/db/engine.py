from collections.abc import Generator

from sqlmodel import Session, create_engine

from valida.core.settings import get_settings

_settings = get_settings()

connect_args: dict[str, object] = {}
if _settings.database_url.startswith("sqlite"):
    # Required for SQLite when used with FastAPI across threads.
    connect_args = {"check_same_thread": False}

# Supabase's pooler drops idle connections, so check them out with a ping.
engine = create_engine(
    _settings.database_url,
    echo=False,
    connect_args=connect_args,
    pool_pre_ping=True,
)


def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session
