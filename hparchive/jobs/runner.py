"""Pipeline runner: fetch and persist archives, then download unready images."""
import logging
from datetime import date as date_type
from typing import Iterable, Optional

from hparchive.jobs.batch import BatchCoordinator
from hparchive.parse.models import ArchiveRecord
from hparchive.store.downloader import Downloader

logger = logging.getLogger(__name__)


class ArchiveRunner:
    """Hands batch results to the repository and downloads what is not ready."""

    def __init__(
        self,
        repository,
        coordinator: Optional[BatchCoordinator] = None,
        downloader: Optional[Downloader] = None,
    ):
        self.repository = repository
        self.coordinator = coordinator
        self.downloader = downloader

    async def fetch(
        self,
        markets: Iterable[str],
        date: Optional[date_type] = None,
    ) -> dict[str, ArchiveRecord]:
        """Fetch every market and insert the records."""
        if self.coordinator is None:
            raise RuntimeError("No batch coordinator configured")

        records = await self.coordinator.batch(markets, date)
        await self.repository.insert(records.values())

        images = {record.image.url_base for record in records.values()}
        logger.info(f"Stored {len(records)} archives referencing {len(images)} images")
        return records

    async def download(self) -> list[str]:
        """Download images not marked available yet, then mark them."""
        if self.downloader is None:
            raise RuntimeError("No downloader configured")

        images = await self.repository.unready_images()
        if not images:
            logger.info("No images to download")
            return []

        logger.info(f"Downloading {len(images)} images")
        await self.downloader.download(images)
        await self.repository.set_images_ready(list(images))
        return list(images)
