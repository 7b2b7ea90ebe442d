import logging

import resend

from valida.core.constants import JinjaCompiledEmailTemplatesEnv
from valida.core.settings import get_settings

logger = logging.getLogger(__name__)


def _render_template(template_name: str, **context: str) -> str:
    """Render a pre-compiled email template.

    Templates are pre-compiled with CSS inlined and HTML minified.
    Run `python scripts/compile_emails.py` after modifying source templates.

    Args:
        template_name: Name of the template file
        **context: Template variables

    Returns:
        Rendered HTML
    """
    template = JinjaCompiledEmailTemplatesEnv.get_template(template_name)
    return template.render(**context)


def init_resend() -> None:
    """Initialize Resend with API key if available."""
    settings = get_settings()
    if not settings.resend_api_key:
        return
    resend.api_key = settings.resend_api_key


def send_welcome_email(
    *, to_email: str, name: str, initial_password: str, login_url: str
) -> bool:
    """Send the access credentials of a freshly provisioned account.

    Without a Resend API key nothing is sent and the attempt is only logged.

    Args:
        to_email: Buyer's email address (also the login)
        name: Buyer's display name
        initial_password: Initial password (the purchase transaction code)
        login_url: Public login page

    Returns:
        True if the email was handed to Resend, False if it was skipped

    Raises:
        resend.exceptions.ResendError: If Resend rejects the request
    """
    settings = get_settings()

    if not settings.resend_api_key:
        logger.warning(
            "RESEND_API_KEY not configured, welcome email for %s not sent", to_email
        )
        return False

    html_content = _render_template(
        "welcome.html",
        name=name,
        email=to_email,
        initial_password=initial_password,
        login_url=login_url,
    )

    resend.Emails.send(
        {
            "from": settings.email_from,
            "to": [to_email],
            "subject": "Bem-vindo ao Valida AI - Seus dados de acesso",
            "html": html_content,
        }
    )
    return True
