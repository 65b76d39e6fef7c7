"""Archive API client: one validated request per market and date."""
import logging
from datetime import date as date_type, datetime, time, timezone, tzinfo
from typing import Callable, Mapping, Optional, Union

import httpx
import orjson
from tenacity import wait_exponential
from tenacity.wait import wait_base

from hparchive.config import config
from hparchive.dates.markets import TIMEZONES, load_zone, timezone_for
from hparchive.dates.resolver import days_ago, offset_name, today
from hparchive.errors import ArchiveError, ErrorKind
from hparchive.fetch.endpoints import MAX_OFFSET, archive_query
from hparchive.fetch.transport import RetryPolicy, logging_hooks, send_with_retry
from hparchive.parse.models import ArchiveRecord
from hparchive.parse.response import parse_response

logger = logging.getLogger(__name__)

ZoneArg = Union[tzinfo, str, None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ArchiveFetchClient:
    """Fetches the archive entry of a market for one day and cross-checks its date."""

    def __init__(
        self,
        endpoint: Optional[str] = None,
        timezones: Mapping[str, str] = TIMEZONES,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_policy: Optional[RetryPolicy] = None,
        wait: Optional[wait_base] = None,
        timeout: Optional[float] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.endpoint = endpoint or config.ARCHIVE_ENDPOINT
        self.timezones = timezones
        self.retry_policy = retry_policy or RetryPolicy(max_attempts=config.MAX_ATTEMPTS)
        self.wait = wait or wait_exponential(multiplier=1, max=config.RETRY_WAIT_MAX)
        self.clock = clock or _utcnow

        limits = httpx.Limits(
            max_connections=100,
            max_keepalive_connections=20,
        )
        self.client = httpx.AsyncClient(
            timeout=timeout or config.TIMEOUT,
            follow_redirects=True,
            limits=limits,
            transport=transport,
            event_hooks=logging_hooks(),
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    def resolve(
        self,
        market: str,
        date: Optional[date_type] = None,
        tz: ZoneArg = None,
    ) -> tuple[tzinfo, datetime, int]:
        """Resolve the timezone, the target local midnight and the archive offset."""
        if tz is None:
            tz = timezone_for(market, self.timezones)
        elif isinstance(tz, str):
            tz = load_zone(tz)

        now = self.clock()
        current = today(tz, now)
        if date is None:
            target = current
        else:
            day = date.date() if isinstance(date, datetime) else date
            target = datetime.combine(day, time(), tzinfo=tz)

        offset = days_ago(target, current)
        if offset < 0 or offset > MAX_OFFSET:
            raise ArchiveError(
                ErrorKind.OUT_OF_RANGE,
                f"The date {target:%Y-%m-%d} in timezone {getattr(tz, 'key', tz)} "
                f"(UTC{offset_name(tz, now)}) has offset {offset} "
                f"which is out of the available range (0 to {MAX_OFFSET})",
                market=market,
                date=target,
                offset=offset,
            )
        return tz, target, offset

    async def request(self, market: str, index: int = 0, n: int = 1) -> httpx.Response:
        """Request "n" archive entries starting "index" days ago."""
        return await send_with_retry(
            self.client,
            "GET",
            self.endpoint,
            self.retry_policy,
            self.wait,
            params=archive_query(market, index, n),
        )

    def _parse(
        self, response: httpx.Response, market: str, target: datetime, offset: int
    ) -> ArchiveRecord:
        """Decode the body and parse its first image entry."""
        try:
            data = orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            raise ArchiveError(
                ErrorKind.EMPTY_OR_MALFORMED_RESPONSE,
                "Failed to parse JSON response",
                market=market,
                date=target,
                offset=offset,
                cause=e,
            ) from e

        images = data.get("images") if isinstance(data, dict) else None
        if not isinstance(images, list) or not images or not isinstance(images[0], dict) or not images[0]:
            raise ArchiveError(
                ErrorKind.EMPTY_OR_MALFORMED_RESPONSE,
                "Response has no image entry",
                market=market,
                date=target,
                offset=offset,
            )

        try:
            return parse_response(images[0], market)
        except ArchiveError as e:
            raise ArchiveError(
                e.kind,
                "Failed to parse response",
                market=market,
                date=target,
                offset=offset,
                cause=e,
            ) from e

    def _validate(self, record: ArchiveRecord, target: datetime, offset: int) -> None:
        """Check the response date against the requested one."""
        expected = target.strftime("%Y-%m-%d")
        if record.date_string != expected:
            raise ArchiveError(
                ErrorKind.DATE_MISMATCH,
                f"Got unexpected date {record.date_string} (UTC{record.offset_name}) "
                f"instead of {expected}",
                market=record.market,
                date=target,
                offset=offset,
                response_date=record.date,
            )

        if record.date.utcoffset() != target.utcoffset():
            # The response offset is authoritative
            mismatch = ArchiveError(
                ErrorKind.OFFSET_MISMATCH,
                f"Got offset UTC{record.offset_name} for {expected}",
                market=record.market,
                date=target,
                offset=offset,
                response_date=record.date,
            )
            logger.warning(f"{mismatch}")

    async def get(
        self,
        market: str,
        date: Optional[date_type] = None,
        tz: ZoneArg = None,
    ) -> ArchiveRecord:
        """Fetch without logging the failure; raises ArchiveError."""
        tz, target, offset = self.resolve(market, date, tz)

        try:
            response = await self.request(market, offset)
        except httpx.HTTPError as e:
            raise ArchiveError(
                ErrorKind.TRANSPORT_FAILURE,
                "Request failed",
                market=market,
                date=target,
                offset=offset,
                cause=e,
            ) from e

        record = self._parse(response, market, target, offset)
        self._validate(record, target, offset)
        logger.debug(f"Fetched {market} {record.date_string} (offset {offset}): {record.image.name}")
        return record

    async def fetch(
        self,
        market: str,
        date: Optional[date_type] = None,
        tz: ZoneArg = None,
    ) -> ArchiveRecord:
        """Fetch the record of "market" on "date" (default: today in its timezone)."""
        try:
            return await self.get(market, date, tz)
        except ArchiveError as e:
            logger.critical(f"Error occurred while fetching for market {market}: {e}")
            raise
