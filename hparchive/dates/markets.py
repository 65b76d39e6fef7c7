"""Static market to timezone table."""
from types import MappingProxyType
from typing import Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from hparchive.errors import ArchiveError, ErrorKind

# Timezone in which each market publishes its daily image
TIMEZONES: Mapping[str, str] = MappingProxyType({
    "ROW": "America/Los_Angeles",
    "en-US": "America/Los_Angeles",
    "pt-BR": "America/Los_Angeles",
    "en-CA": "America/Toronto",
    "fr-CA": "America/Toronto",
    "en-GB": "Europe/London",
    "fr-FR": "Europe/Paris",
    "de-DE": "Europe/Berlin",
    "en-IN": "Asia/Kolkata",
    "zh-CN": "Asia/Shanghai",
    "ja-JP": "Asia/Tokyo",
    "en-AU": "Australia/Sydney",
})


def load_zone(name: str) -> ZoneInfo:
    """Load an IANA timezone, raising ArchiveError for unknown names."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ArchiveError(
            ErrorKind.INVALID_INPUT, f"Unknown timezone {name}", cause=e
        ) from e


def timezone_for(market: str, timezones: Mapping[str, str] = TIMEZONES) -> ZoneInfo:
    """Get the timezone of a market from the table."""
    name = timezones.get(market)
    if name is None:
        raise ArchiveError(
            ErrorKind.UNKNOWN_MARKET,
            "Unknown market with no timezone provided",
            market=market,
        )
    return load_zone(name)
