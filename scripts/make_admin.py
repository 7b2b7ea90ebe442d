#!/usr/bin/env python3
"""Grant dashboard admin rights to an existing account.

Usage:
    python scripts/make_admin.py user@example.com

The account must already exist in Supabase Auth (signed up or provisioned
by a purchase). Its profile row is created if the user never signed in.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlmodel import Session  # noqa: E402

from valida.auth.service import get_supabase_auth_service  # noqa: E402
from valida.core.exceptions import AppException  # noqa: E402
from valida.db.engine import engine  # noqa: E402
from valida.profile.models import Profile  # noqa: E402


def make_admin(session: Session, email: str) -> Profile | None:
    """Set ``is_admin`` on the profile of the account using ``email``.

    Returns:
        The updated profile, or None if no account uses the email
    """
    account = get_supabase_auth_service().find_user_by_email(email)
    if account is None:
        return None

    profile = session.get(Profile, account.uid)
    if profile is None:
        profile = Profile(
            id=account.uid,
            email=account.email or email,
            name=account.user_metadata.get("name"),
        )
    profile.is_admin = True
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


def main() -> int:
    if len(sys.argv) != 2:
        print("Usage: python scripts/make_admin.py <email>")
        return 2

    email = sys.argv[1].strip()
    try:
        with Session(engine) as session:
            profile = make_admin(session, email)
    except AppException as e:
        print(f"Error: {e.message}")
        return 1

    if profile is None:
        print(f"No account found for {email}")
        return 1

    print(f"{profile.email} ({profile.id}) is now an admin")
    return 0


if __name__ == "__main__":
    sys.exit(main())
