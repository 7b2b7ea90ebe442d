"""Row-change feed for generations.

Bridges Supabase Realtime ``postgres_changes`` on the ``generations`` table
into the in-process broker. A row updated outside this process (the workflow
engine writing to Postgres directly, or another worker handling a request)
still reaches every viewer connected here.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any

from supabase import AsyncClient

from valida.core.settings import get_settings
from valida.core.supabase import create_realtime_client
from valida.realtime.broker import (
    GenerationEvent,
    GenerationEventBroker,
    get_event_broker,
)

logger = logging.getLogger(__name__)

GENERATIONS_SCHEMA = "public"
GENERATIONS_TABLE = "generations"
UPDATE_EVENT = "UPDATE"

type RealtimeClientFactory = Callable[[], Awaitable[AsyncClient]]


def _changed_record(payload: Any) -> dict[str, Any] | None:
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    candidates = (
        payload.get("new"),
        data.get("record") if isinstance(data, dict) else None,
        payload.get("record"),
    )
    for candidate in candidates:
        if isinstance(candidate, dict) and candidate:
            return candidate
    return None


def event_from_change(payload: Any) -> GenerationEvent | None:
    """Build a broker event from a ``postgres_changes`` payload.

    Accepts both the ``{"new": row}`` shape and the
    ``{"data": {"record": row}}`` shape. Returns None when no row is present.
    """
    record = _changed_record(payload)
    if record is None or not record.get("id"):
        return None
    image_url = record.get("image_url")
    status = record.get("status")
    return GenerationEvent(
        generation_id=str(record["id"]),
        image_url=str(image_url) if image_url else None,
        status=str(status) if status else None,
    )


class GenerationChangeFeed:
    """Opens one Realtime channel per watched generation.

    Without a client factory the feed is disabled and viewers only learn of
    updates written by this process.
    """

    def __init__(
        self,
        broker: GenerationEventBroker,
        client_factory: RealtimeClientFactory | None = None,
    ):
        self._broker = broker
        self._client_factory = client_factory
        self._client: AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self._client_factory is not None

    def handle_change(self, payload: Any) -> None:
        """Publish a row change to the broker (Realtime callback)."""
        event = event_from_change(payload)
        if event is None:
            logger.debug("Ignored row change without a record")
            return
        self._broker.publish(event)

    async def _get_client(self) -> AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = await self._client_factory()
            return self._client

    @asynccontextmanager
    async def watch(self, generation_id: str) -> AsyncIterator[None]:
        """Receive update events of one generation for the duration of the context.

        Raises:
            ConfigurationError: If the Realtime client cannot be created
        """
        if not self.enabled:
            yield
            return

        client = await self._get_client()
        channel = client.channel(f"generation-{generation_id}")
        channel.on_postgres_changes(
            UPDATE_EVENT,
            self.handle_change,
            table=GENERATIONS_TABLE,
            schema=GENERATIONS_SCHEMA,
            filter=f"id=eq.{generation_id}",
        )
        await channel.subscribe()
        logger.debug("Watching row changes", extra={"generation_id": generation_id})
        try:
            yield
        finally:
            await client.remove_channel(channel)

    async def aclose(self) -> None:
        """Close every open channel. Called during application shutdown."""
        if self._client is not None:
            await self._client.remove_all_channels()
            self._client = None


@lru_cache
def get_change_feed() -> GenerationChangeFeed:
    """Get the process-wide change feed (enabled when Supabase is configured)."""
    settings = get_settings()
    factory = None
    if settings.supabase_url and settings.supabase_service_role_key:
        factory = create_realtime_client
    else:
        logger.warning(
            "Supabase is not configured; realtime viewers only see updates "
            "written by this process"
        )
    return GenerationChangeFeed(get_event_broker(), factory)
