"""Supabase repository for archive records and image readiness."""
import asyncio
import logging
from typing import Iterable, Optional
from supabase import create_client, Client
from tenacity import retry, stop_after_attempt, wait_exponential

from hparchive.config import config
from hparchive.parse.models import ArchiveRecord
from hparchive.store.rows import archive_row, image_row

logger = logging.getLogger(__name__)


class SupabaseRepository:
    """Writes Archive/Image rows and tracks which images are downloaded."""

    def __init__(self, client: Optional[Client] = None):
        if client is None:
            if not config.SUPABASE_URL or not config.SUPABASE_SERVICE_ROLE:
                raise ValueError("Supabase configuration missing")
            client = create_client(config.SUPABASE_URL, config.SUPABASE_SERVICE_ROLE)
        self.client = client
        self.archive_table = config.SUPABASE_ARCHIVE_TABLE
        self.image_table = config.SUPABASE_IMAGE_TABLE

    async def insert(self, records: Iterable[ArchiveRecord]) -> None:
        """Insert archives; each distinct image is created once."""
        records = list(records)
        if not records:
            return

        images = {}
        for record in records:
            images.setdefault(record.image.url_base, image_row(record.image))
        archives = [archive_row(record) for record in records]

        # Run sync Supabase client in thread pool
        loop = asyncio.get_event_loop()
        try:
            await loop.run_in_executor(
                None, self._insert_sync, list(images.values()), archives
            )
            logger.info(f"Inserted {len(archives)} archives ({len(images)} images) to Supabase")
        except Exception as e:
            logger.error(f"Supabase insert error: {e}")
            raise

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _insert_sync(self, images: list[dict], archives: list[dict]) -> None:
        """Synchronous insert (called from thread pool)."""
        # Existing images keep their "available" flag
        (
            self.client.table(self.image_table)
            .upsert(images, on_conflict="urlbase", ignore_duplicates=True)
            .execute()
        )
        (
            self.client.table(self.archive_table)
            .upsert(archives, on_conflict="market,date")
            .execute()
        )

    async def unready_images(self) -> dict[str, bool]:
        """Map urlbase to high resolution flag for images not downloaded yet."""
        loop = asyncio.get_event_loop()
        rows = await loop.run_in_executor(None, self._unready_sync)
        return {row["urlbase"]: bool(row["wp"]) for row in rows}

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _unready_sync(self) -> list[dict]:
        response = (
            self.client.table(self.image_table)
            .select("urlbase,wp")
            .eq("available", False)
            .execute()
        )
        return response.data or []

    async def set_images_ready(self, url_bases: Iterable[str]) -> None:
        """Mark images as downloaded."""
        url_bases = list(url_bases)
        if not url_bases:
            return
        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, self._set_ready_sync, url_bases)
        logger.info(f"Marked {len(url_bases)} images as available")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _set_ready_sync(self, url_bases: list[str]) -> None:
        (
            self.client.table(self.image_table)
            .update({"available": True})
            .in_("urlbase", url_bases)
            .execute()
        )
