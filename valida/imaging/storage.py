"""Object storage for processed images.

Objects are never overwritten: every upload gets a fresh name built from the
record id, the epoch milliseconds and a random suffix, so repeated or
concurrent processing of the same record cannot collide. The database row is
the only mutable pointer to the current image.
"""

import logging
import time
import uuid
from collections.abc import Callable

import httpx
from starlette.concurrency import run_in_threadpool
from supabase import Client, StorageException

from valida.core.exceptions import PersistenceError
from valida.core.settings import get_settings
from valida.core.supabase import get_supabase_client

logger = logging.getLogger(__name__)

PNG_CONTENT_TYPE = "image/png"


def make_object_name(prefix: str, record_id: str | None) -> str:
    """Build a unique object name: ``{prefix}_{record}_{epoch_ms}_{random}.png``."""
    epoch_ms = time.time_ns() // 1_000_000
    suffix = uuid.uuid4().hex[:12]
    return f"{prefix}_{record_id or 'img'}_{epoch_ms}_{suffix}.png"


class ImageStorage:
    """Uploads PNG bytes to a public Supabase Storage bucket."""

    def __init__(
        self,
        bucket: str,
        client_factory: Callable[[], Client] = get_supabase_client,
    ):
        self._bucket = bucket
        self._client_factory = client_factory

    def _upload(self, name: str, data: bytes) -> str:
        bucket = self._client_factory().storage.from_(self._bucket)
        try:
            bucket.upload(
                name,
                data,
                file_options={"content-type": PNG_CONTENT_TYPE, "upsert": "false"},
            )
            return bucket.get_public_url(name)
        except (StorageException, httpx.HTTPError) as e:
            raise PersistenceError(f"Failed to upload image: {e}") from e

    async def upload_png(
        self, data: bytes, *, prefix: str, record_id: str | None
    ) -> str:
        """Upload PNG bytes under a fresh name.

        Args:
            data: PNG bytes
            prefix: Name prefix telling which gateway produced the image
            record_id: Owning record, part of the object name

        Returns:
            Public URL of the new object

        Raises:
            PersistenceError: If the upload fails
        """
        name = make_object_name(prefix, record_id)
        url = await run_in_threadpool(self._upload, name, data)
        logger.info("Uploaded %s (%d bytes) to %s", name, len(data), self._bucket)
        return url


def get_image_storage() -> ImageStorage:
    """Build the image storage from settings (FastAPI dependency)."""
    return ImageStorage(bucket=get_settings().storage_bucket)
