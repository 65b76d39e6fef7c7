"""Local JSON repository: dry-run storage for inspection."""
import logging
from pathlib import Path
from typing import Iterable
import orjson

from hparchive.config import DATA_DIR
from hparchive.parse.models import ArchiveRecord
from hparchive.store.rows import archive_row, image_row

logger = logging.getLogger(__name__)

DEV_DIR = DATA_DIR / "dev"


class LocalRepository:
    """Stores archives as data/dev/archives/<date>/<market>.json and images in images.json."""

    def __init__(self, root: Path = DEV_DIR):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.images_path = self.root / "images.json"

    def _load_images(self) -> dict[str, dict]:
        if not self.images_path.exists():
            return {}
        return orjson.loads(self.images_path.read_bytes())

    def _save_images(self, images: dict[str, dict]) -> None:
        self.images_path.write_bytes(orjson.dumps(images, option=orjson.OPT_INDENT_2))

    async def insert(self, records: Iterable[ArchiveRecord]) -> None:
        """Write one file per archive; keep existing images untouched."""
        images = self._load_images()
        count = 0
        for record in records:
            row = archive_row(record)
            path = self.root / "archives" / row["date"] / f"{record.market}.json"
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(orjson.dumps(row, option=orjson.OPT_INDENT_2))
            images.setdefault(record.image.url_base, image_row(record.image))
            count += 1
        self._save_images(images)
        logger.info(f"Saved {count} archives to {self.root}")

    async def unready_images(self) -> dict[str, bool]:
        """Map urlbase to high resolution flag for images not downloaded yet."""
        return {
            url_base: bool(row["wp"])
            for url_base, row in self._load_images().items()
            if not row.get("available")
        }

    async def set_images_ready(self, url_bases: Iterable[str]) -> None:
        """Mark images as downloaded."""
        images = self._load_images()
        for url_base in url_bases:
            if url_base in images:
                images[url_base]["available"] = True
            else:
                logger.warning(f"Unknown image {url_base}, not marked as available")
        self._save_images(images)
