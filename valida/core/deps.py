"""Centralized dependency type aliases for FastAPI routes.

Import shared dependencies from this module:
    from valida.core.deps import SessionDep, SettingsDep, UpstreamClientDep

Identity dependencies (current, active and admin profile) live in
``valida.auth.dependencies``.
"""

from typing import Annotated

import httpx
from fastapi import Depends
from sqlmodel import Session

from valida.core.http import get_upstream_client
from valida.core.settings import Settings, get_settings
from valida.db.engine import get_session

# Database session
SessionDep = Annotated[Session, Depends(get_session)]

# Application settings
SettingsDep = Annotated[Settings, Depends(get_settings)]

# Shared HTTP client for third-party APIs and image downloads
UpstreamClientDep = Annotated[httpx.AsyncClient, Depends(get_upstream_client)]
