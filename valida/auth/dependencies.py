"""Auth domain dependencies.

Authentication dependencies for FastAPI routes: bearer token verification,
lazy profile creation, the ban gate and the admin gate.
"""

import logging
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from valida.auth.exceptions import AdminRequiredError, InvalidCredentialsError
from valida.auth.service import (
    SupabaseAuthService,
    TokenClaims,
    get_supabase_auth_service,
)
from valida.db.engine import get_session
from valida.profile.exceptions import UserBannedError
from valida.profile.models import Profile

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

SupabaseAuthDep = Annotated[SupabaseAuthService, Depends(get_supabase_auth_service)]


def get_token_claims(
    auth_service: SupabaseAuthDep,
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(security)
    ] = None,
) -> TokenClaims:
    """Verify the bearer access token.

    Raises:
        InvalidCredentialsError: If no bearer token was sent
        InvalidTokenError: If the token is invalid or expired
    """
    if credentials is None or not credentials.credentials:
        raise InvalidCredentialsError()
    return auth_service.verify_access_token(credentials.credentials)


TokenClaimsDep = Annotated[TokenClaims, Depends(get_token_claims)]


def load_profile(session: Session, claims: TokenClaims) -> Profile:
    """Return the profile of a verified identity, creating it on first sight."""
    profile = session.get(Profile, claims.uid)
    if profile is not None:
        return profile

    profile = Profile(
        id=claims.uid,
        email=claims.email or "",
        name=claims.user_metadata.get("name"),
    )
    session.add(profile)
    try:
        session.commit()
    except IntegrityError:
        # A concurrent first request created the same profile
        session.rollback()
        existing = session.get(Profile, claims.uid)
        if existing is None:
            raise
        return existing
    session.refresh(profile)
    logger.info("Created profile on first login", extra={"user_id": claims.uid})
    return profile


def ensure_not_banned(profile: Profile) -> Profile:
    """Refuse banned accounts even though their token is valid.

    Raises:
        UserBannedError: If the profile is banned
    """
    if profile.is_banned:
        raise UserBannedError()
    return profile


def authenticate_access_token(
    access_token: str | None,
    session: Session,
    auth_service: SupabaseAuthService,
) -> Profile:
    """Resolve a raw access token to an active profile.

    Used where no Authorization header is available (WebSocket query string).
    """
    if not access_token:
        raise InvalidCredentialsError()
    claims = auth_service.verify_access_token(access_token)
    return ensure_not_banned(load_profile(session, claims))


def get_current_profile(
    claims: TokenClaimsDep,
    session: Annotated[Session, Depends(get_session)],
) -> Profile:
    """Verify the bearer token and return the caller's profile.

    Banned profiles are returned too, so they can read their own state.
    """
    return load_profile(session, claims)


CurrentProfileDep = Annotated[Profile, Depends(get_current_profile)]


def get_active_profile(profile: CurrentProfileDep) -> Profile:
    """Return the caller's profile if the account is not banned.

    Every gateway depends on this, so a banned account gets the same
    ``user_banned`` error everywhere.
    """
    return ensure_not_banned(profile)


ActiveProfileDep = Annotated[Profile, Depends(get_active_profile)]


def get_admin_profile(profile: ActiveProfileDep) -> Profile:
    """Verify the caller has admin privileges.

    Raises:
        AdminRequiredError: If the profile is not an admin
    """
    if not profile.is_admin:
        raise AdminRequiredError()
    return profile


AdminProfileDep = Annotated[Profile, Depends(get_admin_profile)]


def require_admin(_profile: AdminProfileDep) -> None:
    """Require admin privileges without injecting the profile.

    Use as a router-level dependency:
        router = APIRouter(dependencies=[Depends(require_admin)])
    """
