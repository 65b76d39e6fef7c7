"""Storage sinks for downloaded renditions."""
import asyncio
import logging
from pathlib import Path
from typing import Optional
import aiofiles
import aiofiles.os
from supabase import create_client, Client
from tenacity import retry, stop_after_attempt, wait_exponential

from hparchive.config import config

logger = logging.getLogger(__name__)

# Renditions never change once published
CACHE_MAX_AGE = "31536000"


class LocalSink:
    """Writes files below a local directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def path(self, name: str) -> Path:
        return self.root / name.lstrip("/")

    async def write(self, name: str, data: bytes) -> None:
        path = self.path(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "wb") as f:
            await f.write(data)

    async def delete(self, name: str) -> None:
        path = self.path(name)
        if await aiofiles.os.path.exists(path):
            await aiofiles.os.remove(path)

    def __repr__(self) -> str:
        return f"LocalSink({self.root})"


class SupabaseStorageSink:
    """Uploads files to a Supabase Storage bucket under a prefix."""

    def __init__(self, bucket: str, prefix: str = "", client: Optional[Client] = None):
        if client is None:
            if not config.SUPABASE_URL or not config.SUPABASE_SERVICE_ROLE:
                raise ValueError("Supabase configuration missing")
            client = create_client(config.SUPABASE_URL, config.SUPABASE_SERVICE_ROLE)
        self.client = client
        self.bucket = bucket
        self.prefix = prefix.strip("/")

    def key(self, name: str) -> str:
        name = name.lstrip("/")
        return f"{self.prefix}/{name}" if self.prefix else name

    async def write(self, name: str, data: bytes) -> None:
        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, self._upload_sync, self.key(name), data)

    async def delete(self, name: str) -> None:
        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, self._remove_sync, self.key(name))

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _upload_sync(self, key: str, data: bytes) -> None:
        """Synchronous upload (called from thread pool)."""
        self.client.storage.from_(self.bucket).upload(
            key,
            data,
            {
                "content-type": "image/jpeg",
                "cache-control": CACHE_MAX_AGE,
                "upsert": "true",
            },
        )

    def _remove_sync(self, key: str) -> None:
        self.client.storage.from_(self.bucket).remove([key])

    def __repr__(self) -> str:
        return f"SupabaseStorageSink({self.bucket}/{self.prefix})"


class ReplicaSink:
    """Writes to every sink in order; the first one is the source of truth."""

    def __init__(self, *sinks):
        if not sinks:
            raise ValueError("ReplicaSink needs at least one sink")
        self.sinks = sinks

    async def write(self, name: str, data: bytes) -> None:
        for sink in self.sinks:
            await sink.write(name, data)

    async def delete(self, name: str) -> None:
        for sink in self.sinks:
            await sink.delete(name)

    def __repr__(self) -> str:
        return f"ReplicaSink({', '.join(repr(s) for s in self.sinks)})"
