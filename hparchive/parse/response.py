"""Parsing and validation of archive API image entries."""
import logging
import re
from typing import Any, Optional
from urllib.parse import parse_qs, urlsplit

from pydantic import AnyHttpUrl, TypeAdapter, ValidationError

from hparchive.dates.resolver import parse_provider_timestamp
from hparchive.errors import ArchiveError, ErrorKind
from hparchive.parse.models import ArchiveRecord, Image

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("fullstartdate", "urlbase", "copyright", "copyrightlink", "wp")

URL_BASE_ROOT = "/az/hprichbg/rb/"

# "PineBough_ROW6233127332", "PingxiSky_EN-GB0458915063"
URL_BASE_RE = re.compile(r"(\w+)_((?:ROW|[A-Z]{2}-[A-Z]{2})\d+)")

# "<description> (© <author>)", also with full-width spaces and parentheses
COPYRIGHT_RE = re.compile(
    r"(.+?)(?: |\u3000)?(?:\(|\uFF08)?\u00A9(?: |\u3000)?(.+?)(?:\)|\uFF09)?$"
)

# Provider value meaning "no link"
NO_LINK_RE = re.compile(r"^javascript:void\(0\);?$")

KEYWORD_FIELDS = ("q", "wd")

_url_adapter = TypeAdapter(AnyHttpUrl)


def parse_url_base(url_base: str) -> tuple[str, str]:
    """
    Normalize "urlbase" and extract the image name from it.

    Accepts "/az/hprichbg/rb/BemarahaNP_JA-JP15337355971" or
    "/th?id=OHR.BemarahaNP_JA-JP15337355971", returns
    ("BemarahaNP_JA-JP15337355971", "BemarahaNP").
    """
    match = URL_BASE_RE.search(url_base) if isinstance(url_base, str) else None
    if match is None:
        raise ArchiveError(ErrorKind.INVALID_INPUT, f"Failed to parse URL base {url_base}")
    return match.group(0), match.group(1)


def parse_copyright(copyright: str) -> tuple[str, str]:
    """Split "copyright" into the description and the author/agency."""
    match = COPYRIGHT_RE.search(copyright) if isinstance(copyright, str) else None
    if match is None:
        raise ArchiveError(
            ErrorKind.INVALID_INPUT, f"Failed to parse copyright string {copyright}"
        )
    return match.group(1).strip(), match.group(2).strip()


def extract_keyword(url: str) -> Optional[str]:
    """Parse a web search engine URL and extract the keyword from its query string."""
    query = urlsplit(url).query
    if not query:
        return None

    params = parse_qs(query, keep_blank_values=True)
    for field in KEYWORD_FIELDS:
        values = params.get(field)
        # Last occurrence wins, like most server-side query parsers
        if values and values[-1] != "":
            return values[-1]
    return None


def _is_missing(field: str, value: Any) -> bool:
    """Check a required field; "wp" is a flag, so False counts as present."""
    if field == "wp":
        return value is None or (value is not False and not value)
    return not value


def _validate_link(link: Any) -> Optional[str]:
    """Return the copyright link, or None for the provider's "no link" value."""
    if isinstance(link, str) and NO_LINK_RE.match(link):
        return None
    try:
        _url_adapter.validate_python(link)
    except ValidationError as e:
        raise ArchiveError(
            ErrorKind.VALIDATION, f"Invalid copyright link {link}", cause=e
        ) from e
    return link


def parse_response(entry: dict[str, Any], market: str) -> ArchiveRecord:
    """Validate one "images" entry and build the normalized record."""
    if not isinstance(entry, dict):
        raise ArchiveError(ErrorKind.VALIDATION, "Image entry is not an object", market=market)

    for field in REQUIRED_FIELDS:
        if _is_missing(field, entry.get(field)):
            raise ArchiveError(ErrorKind.VALIDATION, f"missing field {field}", market=market)

    for field in ("fullstartdate", "urlbase", "copyright"):
        if not isinstance(entry[field], str):
            raise ArchiveError(
                ErrorKind.VALIDATION,
                f"Field {field} is not a string: {entry[field]!r}",
                market=market,
            )
    if not isinstance(entry["wp"], bool):
        raise ArchiveError(
            ErrorKind.VALIDATION, f"Field wp is not a boolean: {entry['wp']!r}", market=market
        )

    date = parse_provider_timestamp(entry["fullstartdate"])
    url_base, name = parse_url_base(entry["urlbase"])
    description, copyright = parse_copyright(entry["copyright"])
    link = _validate_link(entry["copyrightlink"])

    image = Image(
        name=name,
        url_base=URL_BASE_ROOT + url_base,
        copyright=copyright,
        high_res=entry["wp"],
        video_meta=entry.get("vid") or None,
    )

    record = ArchiveRecord(
        market=market,
        date=date,
        description=description,
        link=link,
        keyword=extract_keyword(link) if link else None,
        hotspots=entry.get("hs") or None,
        messages=entry.get("msg") or None,
        image=image,
    )
    logger.debug(f"Parsed {market} {record.date_string} ({record.offset_name}): {image.name}")
    return record
