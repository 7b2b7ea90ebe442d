"""Account provisioning for approved purchases.

A new buyer gets an account whose initial password is the transaction code,
flagged for a mandatory password change. An existing account is never given
a new password, so a redelivered notification cannot reset anyone's login.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from valida.auth.service import SupabaseAuthServiceProtocol
from valida.core.email import send_welcome_email
from valida.core.exceptions import PersistenceError
from valida.profile.models import Profile
from valida.webhook.hotmart import Buyer, generate_fallback_password

logger = logging.getLogger(__name__)

ACCOUNT_SOURCE = "hotmart"


@dataclass(frozen=True)
class ProvisioningResult:
    user_id: str
    created: bool
    email_sent: bool = False


def _send_welcome_email(buyer: Buyer, initial_password: str, login_url: str) -> bool:
    try:
        return send_welcome_email(
            to_email=buyer.email,
            name=buyer.name,
            initial_password=initial_password,
            login_url=login_url,
        )
    except Exception:
        # Account creation is the durable side effect; email is best-effort
        logger.warning("Welcome email to %s failed", buyer.email, exc_info=True)
        return False


def upsert_profile(session: Session, user_id: str, buyer: Buyer) -> Profile:
    """Create or refresh the display fields of a profile.

    Admin and ban flags of an existing profile are left untouched.

    Raises:
        PersistenceError: If the profile cannot be saved
    """
    profile = session.get(Profile, user_id)
    if profile is None:
        profile = Profile(id=user_id, email=buyer.email, name=buyer.name)
    else:
        profile.email = buyer.email
        profile.name = buyer.name
    try:
        session.add(profile)
        session.commit()
        session.refresh(profile)
    except SQLAlchemyError as e:
        session.rollback()
        raise PersistenceError("Failed to save the buyer profile") from e
    return profile


def provision_account(
    session: Session,
    auth_service: SupabaseAuthServiceProtocol,
    buyer: Buyer,
    transaction_code: str | None,
    login_url: str,
) -> ProvisioningResult:
    """Create the buyer's account if needed, then upsert the profile."""
    existing = auth_service.find_user_by_email(buyer.email)

    if existing is not None:
        logger.info(
            "Purchase for existing account, credential left unchanged",
            extra={"user_id": existing.uid},
        )
        upsert_profile(session, existing.uid, buyer)
        return ProvisioningResult(user_id=existing.uid, created=False)

    if not transaction_code:
        logger.warning("Transaction code not found in payload, using a generated one")
    initial_password = transaction_code or generate_fallback_password()

    account = auth_service.create_user(
        email=buyer.email,
        password=initial_password,
        user_metadata={
            "name": buyer.name,
            "source": ACCOUNT_SOURCE,
            "is_first_access": True,
            "transaction_code": initial_password,
        },
    )
    logger.info("Account created for purchase", extra={"user_id": account.uid})

    email_sent = _send_welcome_email(buyer, initial_password, login_url)
    upsert_profile(session, account.uid, buyer)
    return ProvisioningResult(user_id=account.uid, created=True, email_sent=email_sent)
