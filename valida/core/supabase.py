from functools import lru_cache

from supabase import AsyncClient, Client, ClientOptions, acreate_client, create_client

from valida.core.exceptions import ConfigurationError
from valida.core.settings import get_settings


def _service_credentials() -> tuple[str, str]:
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_service_role_key:
        raise ConfigurationError("Supabase service credentials are not configured")
    return settings.supabase_url, settings.supabase_service_role_key


@lru_cache
def get_supabase_client() -> Client:
    """Get the service-role Supabase client (cached for the process lifetime).

    Used for privileged operations only: account administration and storage
    writes. Sessions are neither persisted nor refreshed.

    Raises:
        ConfigurationError: If SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY is unset
    """
    url, key = _service_credentials()
    return create_client(
        url,
        key,
        options=ClientOptions(auto_refresh_token=False, persist_session=False),
    )


async def create_realtime_client() -> AsyncClient:
    """Create an async service-role client for Supabase Realtime channels.

    The service role bypasses row-level security, so row changes of every
    owner are visible; callers must filter by record.

    Raises:
        ConfigurationError: If SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY is unset
    """
    url, key = _service_credentials()
    return await acreate_client(url, key)
