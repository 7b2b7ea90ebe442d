"""HTTP client factory for external API calls.

Provides per-purpose HTTP clients with connection pooling, timeouts,
and proper resource management.
"""

import httpx

# Default timeout configuration (seconds)
DEFAULT_CONNECT_TIMEOUT = 5.0
DEFAULT_READ_TIMEOUT = 10.0
DEFAULT_WRITE_TIMEOUT = 10.0
DEFAULT_POOL_TIMEOUT = 5.0

# Model inference and image downloads routinely take tens of seconds.
UPSTREAM_READ_TIMEOUT = 120.0
UPSTREAM_WRITE_TIMEOUT = 60.0

# Module-level client storage for singleton pattern
_upstream_client: httpx.AsyncClient | None = None
_workflow_client: httpx.AsyncClient | None = None


def create_http_client(
    base_url: str = "",
    max_connections: int = 20,
    max_keepalive_connections: int = 10,
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    read_timeout: float | None = DEFAULT_READ_TIMEOUT,
    write_timeout: float = DEFAULT_WRITE_TIMEOUT,
    pool_timeout: float = DEFAULT_POOL_TIMEOUT,
    follow_redirects: bool = False,
) -> httpx.AsyncClient:
    """Create a configured async HTTP client.

    Args:
        base_url: Base URL for all requests (empty string for none)
        max_connections: Maximum number of concurrent connections
        max_keepalive_connections: Maximum idle connections to keep alive
        connect_timeout: Timeout for establishing connection
        read_timeout: Timeout for reading response (None disables it)
        write_timeout: Timeout for sending request
        pool_timeout: Timeout for acquiring connection from pool
        follow_redirects: Whether to follow 3xx responses

    Returns:
        Configured httpx.AsyncClient instance
    """
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=httpx.Timeout(
            connect=connect_timeout,
            read=read_timeout,
            write=write_timeout,
            pool=pool_timeout,
        ),
        limits=httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
        ),
        follow_redirects=follow_redirects,
    )


def get_upstream_client() -> httpx.AsyncClient:
    """Get singleton HTTP client for third-party APIs and image downloads.

    Shared by the Gemini, remove.bg and OpenAI gateways. Redirects are
    followed because public image URLs frequently redirect to a CDN.
    The client should be closed via close_http_clients() during shutdown.

    Returns:
        Configured httpx.AsyncClient instance
    """
    global _upstream_client
    if _upstream_client is None:
        _upstream_client = create_http_client(
            max_connections=50,
            max_keepalive_connections=10,
            read_timeout=UPSTREAM_READ_TIMEOUT,
            write_timeout=UPSTREAM_WRITE_TIMEOUT,
            follow_redirects=True,
        )
    return _upstream_client


def get_workflow_client() -> httpx.AsyncClient:
    """Get singleton HTTP client for the external workflow engine.

    Has no read timeout of its own: a single hand-off may legitimately block
    for minutes. The caller enforces the wall-clock bound.

    Returns:
        Configured httpx.AsyncClient instance
    """
    global _workflow_client
    if _workflow_client is None:
        _workflow_client = create_http_client(
            max_connections=10,
            max_keepalive_connections=2,
            read_timeout=None,
            write_timeout=UPSTREAM_WRITE_TIMEOUT,
        )
    return _workflow_client


async def close_http_clients() -> None:
    """Close the shared HTTP clients and release resources.

    Should be called during application shutdown to properly close
    connections and release resources.
    """
    global _upstream_client, _workflow_client
    if _upstream_client is not None:
        await _upstream_client.aclose()
        _upstream_client = None
    if _workflow_client is not None:
        await _workflow_client.aclose()
        _workflow_client = None
