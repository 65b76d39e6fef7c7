"""Main entry point with CLI."""
import argparse
import asyncio
import logging
import sys
from datetime import date

from hparchive.config import config, Config
from hparchive.dates.markets import TIMEZONES
from hparchive.errors import ArchiveError
from hparchive.fetch.client import ArchiveFetchClient
from hparchive.jobs.batch import BatchCoordinator
from hparchive.jobs.runner import ArchiveRunner
from hparchive.logging_conf import setup_logging
from hparchive.store.downloader import Downloader
from hparchive.store.local_repository import LocalRepository
from hparchive.store.sinks import LocalSink, ReplicaSink, SupabaseStorageSink
from hparchive.store.supabase_repository import SupabaseRepository

logger = logging.getLogger(__name__)


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD argument."""
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date {value!r}, expected YYYY-MM-DD")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Homepage image archive fetcher")
    parser.add_argument(
        "--log-level",
        default=None,
        help=f"Log level (default: {config.LOG_LEVEL})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    fetch = subparsers.add_parser("fetch", help="Fetch markets and store the archives")
    fetch.add_argument(
        "--market",
        action="append",
        dest="markets",
        default=None,
        help="Market to fetch, repeatable (default: MARKETS or every known market)",
    )
    fetch.add_argument(
        "--date",
        type=parse_date,
        default=None,
        help=f"Batch date YYYY-MM-DD (default: today in {config.BATCH_TIMEZONE})",
    )
    fetch.add_argument(
        "--dry-run",
        action="store_true",
        help="Store archives as local JSON instead of Supabase",
    )

    download = subparsers.add_parser("download", help="Download images not available yet")
    download.add_argument(
        "--dry-run",
        action="store_true",
        help="Use the local JSON repository and the local sink only",
    )

    show = subparsers.add_parser("show", help="Fetch one market and print the record")
    show.add_argument("--market", required=True, help="Market code, e.g. en-US")
    show.add_argument("--date", type=parse_date, default=None, help="Date YYYY-MM-DD")
    show.add_argument("--tz", default=None, help="IANA timezone for markets outside the table")

    return parser.parse_args(argv)


def build_repository(dry_run: bool):
    """Supabase repository, or the local one for dry runs."""
    if dry_run:
        return LocalRepository()
    return SupabaseRepository()


def build_sink(dry_run: bool):
    """Local directory and/or Supabase bucket, replicated when both are set."""
    sinks = []
    if config.DEST_DIR:
        sinks.append(LocalSink(config.DEST_DIR))
    if config.SUPABASE_BUCKET and not dry_run:
        sinks.append(SupabaseStorageSink(config.SUPABASE_BUCKET, config.SUPABASE_FOLDER))
    if not sinks:
        raise ValueError("No storage sink configured (DEST_DIR or SUPABASE_BUCKET)")
    if len(sinks) == 1:
        return sinks[0]
    return ReplicaSink(*sinks)


async def run_fetch(args: argparse.Namespace) -> None:
    markets = args.markets or config.MARKETS or list(TIMEZONES)
    async with ArchiveFetchClient() as client:
        runner = ArchiveRunner(
            repository=build_repository(args.dry_run),
            coordinator=BatchCoordinator(client),
        )
        await runner.fetch(markets, args.date)


async def run_download(args: argparse.Namespace) -> None:
    async with Downloader(build_sink(args.dry_run)) as downloader:
        runner = ArchiveRunner(
            repository=build_repository(args.dry_run),
            downloader=downloader,
        )
        await runner.download()


async def run_show(args: argparse.Namespace) -> None:
    async with ArchiveFetchClient() as client:
        record = await client.fetch(args.market, args.date, args.tz)
    print(record.model_dump_json(indent=2))


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    dry_run = getattr(args, "dry_run", False)
    try:
        if args.command == "fetch":
            Config.validate(require_supabase=not dry_run)
        elif args.command == "download":
            Config.validate(require_supabase=not dry_run, require_storage=True)
        else:
            Config.validate(require_supabase=False)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    if dry_run:
        logger.info("DRY-RUN mode: Supabase disabled")

    commands = {
        "fetch": run_fetch,
        "download": run_download,
        "show": run_show,
    }
    try:
        asyncio.run(commands[args.command](args))
    except ArchiveError as e:
        logger.error(f"{args.command} failed ({e.kind.value}): {e.message}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
