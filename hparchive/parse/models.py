"""Data models for normalized archive records."""
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field

from hparchive.dates.resolver import format_offset


class Image(BaseModel):
    """One image asset family, shared by every market reporting it."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Stable image name, e.g. PineBough")
    url_base: str = Field(..., description="/az/hprichbg/rb/<Name>_<MARKET><digits>")
    copyright: str = Field(..., description="Author and/or stock photo agency")
    high_res: bool = Field(..., description="A high resolution rendition exists")
    video_meta: Optional[Any] = Field(default=None, description="Provider video payload")


class ArchiveRecord(BaseModel):
    """Daily homepage image of one market."""

    model_config = ConfigDict(frozen=True)

    market: str
    date: datetime = Field(..., description="Local midnight with the provider's UTC offset")
    description: str
    link: Optional[str] = None
    keyword: Optional[str] = Field(default=None, description="Search keyword of the link")
    hotspots: Optional[Any] = None
    messages: Optional[Any] = None
    image: Image

    @property
    def date_string(self) -> str:
        """Calendar date as YYYY-MM-DD."""
        return self.date.strftime("%Y-%m-%d")

    @property
    def offset_name(self) -> str:
        """UTC offset of the record date, e.g. "+08:00"."""
        return format_offset(self.date.utcoffset())
