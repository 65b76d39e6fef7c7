"""Shared fixtures."""
from datetime import datetime, timezone

import pytest

from hparchive.dates.resolver import parse_provider_timestamp
from hparchive.parse.models import ArchiveRecord, Image


def image_entry(
    fullstartdate: str = "201905221600",
    urlbase: str = "/th?id=OHR.PingxiSky_ZH-CN0458915063",
    wp: bool = True,
    **extra,
) -> dict:
    """A realistic "images" entry of the archive API."""
    entry = {
        "startdate": str(fullstartdate)[:8],
        "fullstartdate": fullstartdate,
        "urlbase": urlbase,
        "copyright": "平溪天灯节，台湾新北市 (© Jeffrey Liao/Shutterstock)",
        "copyrightlink": "https://www.bing.com/search?q=%E5%B9%B3%E6%BA%AA%E5%A4%A9%E7%81%AF%E8%8A%82&form=hpcapt",
        "title": "",
        "wp": wp,
        "hsh": "04b2b4a6e1d1e5a0e4f4a0c2b8bd1c3b",
        "drk": 1,
        "top": 1,
        "bot": 1,
        "hs": [],
    }
    entry.update(extra)
    return entry


@pytest.fixture
def entry_factory():
    return image_entry


@pytest.fixture
def record_factory():
    """Build records without going through the parser."""

    def make(
        market: str = "zh-CN",
        fullstartdate: str = "201905221600",
        name: str = "PingxiSky",
        suffix: str = "ZH-CN0458915063",
        high_res: bool = True,
    ) -> ArchiveRecord:
        return ArchiveRecord(
            market=market,
            date=parse_provider_timestamp(fullstartdate),
            description="平溪天灯节，台湾新北市",
            link="https://www.bing.com/search?q=pingxi",
            keyword="pingxi",
            image=Image(
                name=name,
                url_base=f"/az/hprichbg/rb/{name}_{suffix}",
                copyright="Jeffrey Liao/Shutterstock",
                high_res=high_res,
            ),
        )

    return make


@pytest.fixture
def fixed_now():
    """2019-05-22 17:00 UTC: already 2019-05-23 in Shanghai, still the 22nd in Los Angeles."""
    return datetime(2019, 5, 22, 17, 0, tzinfo=timezone.utc)
