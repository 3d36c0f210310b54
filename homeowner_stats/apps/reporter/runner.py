"""
Reporter Runner - Command-Line Statistics Request

Builds filter criteria from the command line, runs the statistics service
against the SQLite sources and prints the result.

Usage:
    # Explicit IDs
    python -m homeowner_stats.apps.reporter --ids 1 2 3 --ratio portal_adoption

    # One ID per line
    python -m homeowner_stats.apps.reporter --ids-file allowed.txt --tenant acme

    # Stored allow-list, publish the result to Redis
    python -m homeowner_stats.apps.reporter --filter-list board --publish

Exit codes:
    0 success, 1 data source, integrity or publishing failure (the result
    is still printed when only publishing fails), 2 invalid filter criteria
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

import orjson

from homeowner_stats.apps.reporter.publisher import publish_statistics_event
from homeowner_stats.services.statistics.service import PortalUserStatisticsService
from homeowner_stats.services.statistics.sqlite_sources import (
    SqliteFilterListSource,
    SqliteHomeownerSource,
    SqlitePortalUserSource,
)
from homeowner_stats.utils.config import settings
from homeowner_stats.utils.errors import DataIntegrityError, DataSourceError, InvalidFilterError
from homeowner_stats.utils.logging import setup_logging
from homeowner_stats.utils.schemas import RatioMetric, StatisticsResult

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INVALID_FILTER = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="homeowner_stats.apps.reporter",
        description="Compute portal user overview statistics for a set of homeowners.",
    )
    ids_group = parser.add_mutually_exclusive_group(required=True)
    ids_group.add_argument("--ids", nargs="*", metavar="ID", help="Homeowner IDs to include")
    ids_group.add_argument("--ids-file", type=Path, help="File with one homeowner ID per line")
    ids_group.add_argument("--filter-list", metavar="NAME", help="Stored allow-list name")

    parser.add_argument("--tenant", help="Tenant context passed to the data sources")
    parser.add_argument("--sort-by", choices=["id", "first_name", "last_name"], help="Sort eligible homeowners")
    parser.add_argument(
        "--ratio",
        action="append",
        default=[],
        choices=[metric.value for metric in RatioMetric],
        help="Ratio metric to derive (repeatable)",
    )
    parser.add_argument("--db", default=None, help=f"SQLite database path (default: {settings.SQLITE_PATH})")
    parser.add_argument("--publish", action="store_true", help="Publish the result to Redis Pub/Sub")
    parser.add_argument("--pretty", action="store_true", help="Indent the JSON output")
    return parser


def read_ids_file(path: Path) -> list[str]:
    """Read one ID per line, skipping blank lines and '#' comments.

    Raises:
        InvalidFilterError: If the file cannot be read
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return [line.strip() for line in f if line.strip() and not line.strip().startswith("#")]
    except OSError as e:
        raise InvalidFilterError(f"Cannot read IDs file {path}: {e}") from e


async def resolve_homeowner_ids(args: argparse.Namespace) -> list[Any]:
    if args.ids is not None:
        return list(args.ids)
    if args.ids_file is not None:
        return read_ids_file(args.ids_file)

    entries = await SqliteFilterListSource(path=args.db).fetch_filter_entries(args.filter_list)
    logger.info("Loaded allow-list: name=%s, entries=%d", args.filter_list, len(entries))
    return [entry.homeowner_id for entry in entries]


def render_result(result: StatisticsResult, pretty: bool = False) -> str:
    option = orjson.OPT_INDENT_2 if pretty else 0
    return orjson.dumps(result.model_dump(mode="json"), option=option).decode("utf-8")


async def run(args: argparse.Namespace) -> StatisticsResult:
    """Execute one statistics request described by parsed arguments."""
    criteria = {
        "homeowner_ids": await resolve_homeowner_ids(args),
        "tenant_id": args.tenant,
        "sort_by": args.sort_by,
        "ratios": args.ratio,
    }

    service = PortalUserStatisticsService(
        SqliteHomeownerSource(path=args.db),
        SqlitePortalUserSource(path=args.db),
    )
    return await service.get_portal_user_overview_statistics(criteria)


async def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the reporter. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT, settings.LOG_OUTPUT, settings.LOG_FILE)

    try:
        result = await run(args)
    except InvalidFilterError as e:
        logger.error("Invalid filter criteria: %s", str(e))
        return EXIT_INVALID_FILTER
    except (DataSourceError, DataIntegrityError) as e:
        logger.error("Statistics request failed: %s", str(e), exc_info=True)
        return EXIT_FAILURE
    except Exception as e:
        logger.error("Reporter failed", extra={"error": str(e)}, exc_info=True)
        return EXIT_FAILURE

    # Printed first; a publishing failure never discards the result.
    sys.stdout.write(render_result(result, pretty=args.pretty) + "\n")
    sys.stdout.flush()

    if args.publish:
        try:
            await publish_statistics_event(result, tenant_id=args.tenant)
        except Exception as e:
            logger.error("Publishing statistics failed", extra={"error": str(e)})
            return EXIT_FAILURE

    return EXIT_OK
