"""Downloads every rendition of the given images into a storage sink."""
import asyncio
import logging
from typing import Optional

import httpx
from tenacity import wait_exponential
from tenacity.wait import wait_base

from hparchive.config import config
from hparchive.errors import ArchiveError, ErrorKind
from hparchive.fetch.endpoints import rendition_path
from hparchive.fetch.transport import (
    RetryPolicy,
    is_retryable_download_status,
    logging_hooks,
    send_with_retry,
)

logger = logging.getLogger(__name__)

DEFAULT_SIZES = (
    "1920x1080",
    "1080x1920",
    "1366x768",
    "768x1280",
    "800x480",
    "480x800",
)

HIGH_RES = "1920x1200"


def rendition_sizes(high_res: bool) -> tuple[str, ...]:
    """Sizes to download for an image."""
    if high_res:
        return DEFAULT_SIZES + (HIGH_RES,)
    return DEFAULT_SIZES


class Downloader:
    """Fetches renditions concurrently; a failed file fails the whole call."""

    def __init__(
        self,
        sink,
        endpoint: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_policy: Optional[RetryPolicy] = None,
        wait: Optional[wait_base] = None,
        timeout: Optional[float] = None,
        concurrency: Optional[int] = None,
    ):
        self.sink = sink
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=config.MAX_ATTEMPTS,
            status_decider=is_retryable_download_status,
        )
        self.wait = wait or wait_exponential(multiplier=1, max=config.RETRY_WAIT_MAX)
        self.semaphore = asyncio.Semaphore(concurrency or config.CONCURRENCY)
        # A redirect means the rendition does not exist
        self.client = httpx.AsyncClient(
            base_url=endpoint or config.IMAGE_ENDPOINT,
            timeout=timeout or config.TIMEOUT,
            follow_redirects=False,
            transport=transport,
            event_hooks=logging_hooks(),
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _download_one(self, filename: str) -> None:
        async with self.semaphore:
            response = await send_with_retry(
                self.client, "GET", filename, self.retry_policy, self.wait
            )
            await self.sink.write(filename, response.content)

    async def download(self, images: dict[str, bool]) -> list[str]:
        """Download renditions of {urlbase: high_res}; returns the written file names."""
        filenames = [
            rendition_path(url_base, size)
            for url_base, high_res in images.items()
            for size in rendition_sizes(high_res)
        ]
        if not filenames:
            return []

        results = await asyncio.gather(
            *(self._download_one(name) for name in filenames),
            return_exceptions=True,
        )

        failures = {}
        for name, result in zip(filenames, results):
            if isinstance(result, Exception):
                failures[name] = result
                logger.critical(f"Error occurred while downloading {name}: {result}")

        if failures:
            # Failed files may be partially written too
            for name in filenames:
                try:
                    await self.sink.delete(name)
                except Exception as e:
                    logger.warning(f"Could not remove {name} from {self.sink!r}: {e}")
            raise ArchiveError(
                ErrorKind.DOWNLOAD_FAILED,
                "Download operation failed",
                failures=failures,
            )

        logger.info(f"Downloaded {len(filenames)} files for {len(images)} images to {self.sink!r}")
        return filenames
