"""Concurrent fetch of many markets with an all-or-nothing result."""
import asyncio
import logging
from datetime import date as date_type, datetime, time, timezone, tzinfo
from typing import Callable, Iterable, Mapping, Optional, Union

from hparchive.config import config
from hparchive.dates.markets import TIMEZONES, load_zone
from hparchive.dates.resolver import day_roll_status, today
from hparchive.errors import ArchiveError, ErrorKind
from hparchive.fetch.client import ArchiveFetchClient
from hparchive.parse.models import ArchiveRecord

logger = logging.getLogger(__name__)


class BatchCoordinator:
    """Fans markets out to the fetch client and joins every outcome."""

    def __init__(
        self,
        client: ArchiveFetchClient,
        batch_timezone: Union[tzinfo, str, None] = None,
        timezones: Optional[Mapping[str, str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.client = client
        tz = batch_timezone or config.BATCH_TIMEZONE
        self.batch_timezone = load_zone(tz) if isinstance(tz, str) else tz
        # Same table as the client unless overridden
        if timezones is None:
            timezones = getattr(client, "timezones", TIMEZONES)
        self.timezones = timezones
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def anchor(self, date: Optional[date_type] = None) -> datetime:
        """Get the batch date as local midnight in the batch timezone."""
        if date is None:
            return today(self.batch_timezone, self.clock())
        if isinstance(date, datetime):
            return date
        return datetime.combine(date, time(), tzinfo=self.batch_timezone)

    def rolled_markets(self, markets: list[str], anchor: datetime) -> list[str]:
        """Markets whose local day is already past the batch anchor's day."""
        zones = {m: self.timezones[m] for m in markets if m in self.timezones}
        if not zones:
            return []
        reference = int(anchor.utcoffset().total_seconds()) if anchor.utcoffset() else 0
        status = day_roll_status(sorted(set(zones.values())), self.clock(), reference)
        return [m for m, zone in zones.items() if status[zone]]

    async def batch(
        self,
        markets: Iterable[str],
        date: Optional[date_type] = None,
    ) -> dict[str, ArchiveRecord]:
        """Fetch every market; raise BATCH_FAILED if any of them failed."""
        markets = list(dict.fromkeys(markets))
        anchor = self.anchor(date)
        if not markets:
            return {}

        rolled = self.rolled_markets(markets, anchor)
        if rolled:
            logger.info(f"Already past {anchor:%Y-%m-%d}: {', '.join(rolled)}")

        # One slot per market, read only once every task has completed
        results: list[Optional[ArchiveRecord]] = [None] * len(markets)
        errors: list[Optional[Exception]] = [None] * len(markets)
        remaining = len(markets)
        done = asyncio.Event()

        async def run(slot: int, market: str) -> None:
            nonlocal remaining
            try:
                results[slot] = await self.client.get(market, anchor)
            except Exception as e:
                errors[slot] = e
            finally:
                remaining -= 1
                if remaining == 0:
                    done.set()

        tasks = [asyncio.create_task(run(i, m)) for i, m in enumerate(markets)]
        await done.wait()
        logger.debug(f"Settled {len(tasks)} fetches for {anchor:%Y-%m-%d}")

        failures = {}
        for market, error in zip(markets, errors):
            if error is not None:
                failures[market] = error
                logger.critical(f"Error occurred while fetching for market {market}: {error}")

        if failures:
            raise ArchiveError(
                ErrorKind.BATCH_FAILED,
                "Batch operation failed",
                date=anchor,
                failures=failures,
            )

        return dict(zip(markets, results))
