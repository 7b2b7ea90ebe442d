"""Supabase Authentication Service.

This module wraps the Supabase auth admin API (service-role client) and the
verification of Supabase access tokens.

Follows Single Responsibility Principle - handles only Supabase auth communication.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Protocol

import jwt
from supabase import AuthError, Client

from valida.auth.exceptions import (
    AccountNotFoundError,
    AuthProviderError,
    InvalidTokenError,
)
from valida.core.exceptions import ConfigurationError
from valida.core.supabase import get_supabase_client

JWT_ALGORITHM = "HS256"
LIST_USERS_PAGE_SIZE = 1000


@dataclass(frozen=True)
class TokenClaims:
    """Decoded claims of a Supabase access token."""

    uid: str
    email: str | None = None
    user_metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_first_access(self) -> bool:
        return bool(self.user_metadata.get("is_first_access", False))


@dataclass(frozen=True)
class AuthAccount:
    """Represents a Supabase auth account."""

    uid: str
    email: str | None = None
    user_metadata: dict[str, Any] = field(default_factory=dict)


class SupabaseAuthServiceProtocol(Protocol):
    """Protocol for Supabase authentication operations.

    Enables dependency inversion - code depends on this protocol,
    not the concrete implementation.
    """

    def verify_access_token(self, access_token: str) -> TokenClaims:
        """Verify an access token and return its claims."""
        ...

    def find_user_by_email(self, email: str) -> AuthAccount | None:
        """Find an account by email (case-insensitive)."""
        ...

    def create_user(
        self, email: str, password: str, user_metadata: dict[str, Any]
    ) -> AuthAccount:
        """Create a confirmed account with an initial password."""
        ...

    def complete_first_access(self, uid: str, new_password: str) -> None:
        """Replace the initial password and clear the first-access flag."""
        ...


def _to_account(user: Any) -> AuthAccount:
    return AuthAccount(
        uid=str(user.id),
        email=user.email,
        user_metadata=dict(user.user_metadata or {}),
    )


class SupabaseAuthService:
    """Supabase Authentication Service implementation.

    Handles:
    - Access token verification (HS256, shared JWT secret)
    - Account lookup and creation through the admin API
    - First-access password replacement
    """

    def __init__(
        self,
        jwt_secret: str | None,
        audience: str = "authenticated",
        client_factory: Callable[[], Client] = get_supabase_client,
    ):
        self._jwt_secret = jwt_secret
        self._audience = audience
        self._client_factory = client_factory

    def _ensure_jwt_secret(self) -> str:
        if not self._jwt_secret:
            raise ConfigurationError("SUPABASE_JWT_SECRET is not configured")
        return self._jwt_secret

    def verify_access_token(self, access_token: str) -> TokenClaims:
        """Verify a Supabase access token and return claims.

        Args:
            access_token: JWT issued by Supabase Auth

        Returns:
            TokenClaims with uid, email and user metadata

        Raises:
            InvalidTokenError: If the signature, audience or expiry is invalid
            ConfigurationError: If the JWT secret is not configured
        """
        secret = self._ensure_jwt_secret()
        try:
            decoded = jwt.decode(
                access_token,
                secret,
                algorithms=[JWT_ALGORITHM],
                audience=self._audience,
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidTokenError("Authentication token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError() from e

        uid = decoded.get("sub")
        if not uid:
            raise InvalidTokenError("Invalid token: missing subject")

        return TokenClaims(
            uid=uid,
            email=decoded.get("email"),
            user_metadata=decoded.get("user_metadata") or {},
        )

    def find_user_by_email(self, email: str) -> AuthAccount | None:
        """Find an account by email.

        The admin API has no lookup by email, so accounts are listed page
        by page until a match or a short page.

        Args:
            email: Email address to look up (compared case-insensitively)

        Returns:
            Matching AuthAccount, or None if no account uses the email

        Raises:
            AuthProviderError: If the admin API fails
        """
        wanted = email.strip().lower()
        client = self._client_factory()
        page = 1
        while True:
            try:
                users = client.auth.admin.list_users(
                    page=page, per_page=LIST_USERS_PAGE_SIZE
                )
            except AuthError as e:
                raise AuthProviderError(f"Failed to list accounts: {e}") from e

            for user in users:
                if (user.email or "").lower() == wanted:
                    return _to_account(user)

            if len(users) < LIST_USERS_PAGE_SIZE:
                return None
            page += 1

    def create_user(
        self, email: str, password: str, user_metadata: dict[str, Any]
    ) -> AuthAccount:
        """Create an account with a confirmed email.

        Args:
            email: Account email address
            password: Initial password
            user_metadata: Metadata stored on the auth identity

        Returns:
            AuthAccount of the new identity

        Raises:
            AuthProviderError: If Supabase rejects the account
        """
        client = self._client_factory()
        try:
            response = client.auth.admin.create_user(
                {
                    "email": email,
                    "password": password,
                    "email_confirm": True,
                    "user_metadata": user_metadata,
                }
            )
        except AuthError as e:
            raise AuthProviderError(f"Failed to create account: {e}") from e
        return _to_account(response.user)

    def get_user(self, uid: str) -> AuthAccount:
        """Get an account by id.

        Raises:
            AccountNotFoundError: If the account does not exist
        """
        client = self._client_factory()
        try:
            response = client.auth.admin.get_user_by_id(uid)
        except AuthError as e:
            raise AccountNotFoundError() from e
        if response is None or response.user is None:
            raise AccountNotFoundError()
        return _to_account(response.user)

    def complete_first_access(self, uid: str, new_password: str) -> None:
        """Set a personal password and clear the first-access flag.

        Args:
            uid: Account id
            new_password: Password chosen by the user

        Raises:
            AccountNotFoundError: If the account does not exist
            AuthProviderError: If Supabase rejects the update
        """
        account = self.get_user(uid)
        metadata = {**account.user_metadata, "is_first_access": False}
        client = self._client_factory()
        try:
            client.auth.admin.update_user_by_id(
                uid, {"password": new_password, "user_metadata": metadata}
            )
        except AuthError as e:
            raise AuthProviderError(f"Failed to update password: {e}") from e


@lru_cache
def get_supabase_auth_service() -> SupabaseAuthService:
    """Get cached Supabase Auth Service instance.

    The service is cached for the application lifetime since
    its configuration doesn't change at runtime.
    """
    from valida.core.settings import get_settings

    settings = get_settings()
    return SupabaseAuthService(
        jwt_secret=settings.supabase_jwt_secret,
        audience=settings.supabase_jwt_audience,
    )
