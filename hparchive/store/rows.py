"""Row layout of the Archive and Image tables."""
from typing import Any

from hparchive.parse.models import ArchiveRecord, Image


def image_row(image: Image) -> dict[str, Any]:
    """Image row; new images start as not available."""
    row = {
        "name": image.name,
        "urlbase": image.url_base,
        "copyright": image.copyright,
        "wp": image.high_res,
        "available": False,
    }
    if image.video_meta:
        row["vid"] = image.video_meta
    return row


def archive_row(record: ArchiveRecord) -> dict[str, Any]:
    """Archive row of one market and day, pointing at its image by urlbase."""
    row = {
        "market": record.market,
        "date": record.date.strftime("%Y%m%d"),
        "info": record.description,
        "link": record.link,
        "keyword": record.keyword,
        "image": record.image.url_base,
    }
    if record.hotspots:
        row["hs"] = record.hotspots
    if record.messages:
        row["msg"] = record.messages
    return row
