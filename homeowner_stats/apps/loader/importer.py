"""
JSONL Importer - Database Persistence for Source Records

Reads a JSONL file of homeowners, portal users or allow-list entries,
validates every line and saves the valid records in one transaction.

Usage:
    python -m homeowner_stats.apps.loader homeowners data/homeowners.jsonl --tenant acme
    python -m homeowner_stats.apps.loader portal_users data/portal_users.jsonl --tenant acme
    python -m homeowner_stats.apps.loader filters data/board.jsonl --list-name board
"""

import argparse
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import orjson
from pydantic import BaseModel, ValidationError

from homeowner_stats.utils.config import settings
from homeowner_stats.utils.db import (
    get_conn,
    init_schema,
    insert_filter_entries,
    insert_homeowners,
    insert_portal_users,
)
from homeowner_stats.utils.logging import setup_logging
from homeowner_stats.utils.schemas import FilteredHomeownerEntry, Homeowner, PortalUser

logger = logging.getLogger(__name__)

RECORD_MODELS: dict[str, type[BaseModel]] = {
    "homeowners": Homeowner,
    "portal_users": PortalUser,
    "filters": FilteredHomeownerEntry,
}


@dataclass
class LoadSummary:
    kind: str
    path: str
    total_lines: int = 0
    inserted: int = 0
    invalid: int = 0


def parse_records(
    path: Path, kind: str, list_name: Optional[str] = None
) -> tuple[list[BaseModel], LoadSummary]:
    """
    Parse and validate a JSONL file.

    Blank lines are skipped; malformed JSON and records failing validation
    are counted as invalid and logged.

    Args:
        path: JSONL file path
        kind: One of RECORD_MODELS
        list_name: Allow-list name applied to filter entries lacking one

    Returns:
        Tuple of (valid records, summary without the inserted count)

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If kind is unknown
    """
    if kind not in RECORD_MODELS:
        raise ValueError(f"Unknown record kind: {kind}")
    if not path.is_file():
        raise FileNotFoundError(f"Input file not found: {path}")

    model = RECORD_MODELS[kind]
    summary = LoadSummary(kind=kind, path=str(path))
    records: list[BaseModel] = []

    with open(path, "r", encoding="utf-8") as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue

            summary.total_lines += 1

            try:
                raw = orjson.loads(line)
                if kind == "filters" and list_name and isinstance(raw, dict):
                    raw.setdefault("list_name", list_name)
                records.append(model.model_validate(raw))
            except orjson.JSONDecodeError as e:
                summary.invalid += 1
                logger.warning("JSON parse error at line=%d: %s", line_num, str(e))
            except ValidationError as e:
                summary.invalid += 1
                logger.warning("Validation error at line=%d: %s", line_num, str(e).split("\n")[0])

    return records, summary


def load_file(
    path: Path,
    kind: str,
    db_path: Optional[str] = None,
    tenant_id: Optional[str] = None,
    list_name: Optional[str] = None,
) -> LoadSummary:
    """
    Import one JSONL file into SQLite.

    Raises:
        FileNotFoundError: If the file doesn't exist
        sqlite3.Error: If the insert fails (nothing is committed)
    """
    start_time = time.time()
    init_schema(db_path)

    records, summary = parse_records(path, kind, list_name=list_name)

    conn = get_conn(db_path)
    try:
        with conn:
            if kind == "homeowners":
                summary.inserted = insert_homeowners(conn, records, tenant_id=tenant_id)
            elif kind == "portal_users":
                summary.inserted = insert_portal_users(conn, records, tenant_id=tenant_id)
            else:
                summary.inserted = insert_filter_entries(conn, records)
    finally:
        conn.close()

    elapsed_time = time.time() - start_time
    logger.info(
        "Saved %s: file=%s, lines=%d, inserted=%d, invalid=%d, elapsed=%.3fs",
        kind, str(path), summary.total_lines, summary.inserted, summary.invalid, elapsed_time,
    )
    return summary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="homeowner_stats.apps.loader",
        description="Import homeowner, portal user or allow-list JSONL files into SQLite.",
    )
    parser.add_argument("kind", choices=sorted(RECORD_MODELS), help="Record kind")
    parser.add_argument("path", type=Path, help="JSONL file")
    parser.add_argument("--db", default=None, help=f"SQLite database path (default: {settings.SQLITE_PATH})")
    parser.add_argument("--tenant", help="Tenant ID stored with homeowners and portal users")
    parser.add_argument("--list-name", default="default", help="Allow-list name for filter entries")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the loader. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT, settings.LOG_OUTPUT, settings.LOG_FILE)

    try:
        load_file(args.path, args.kind, db_path=args.db, tenant_id=args.tenant, list_name=args.list_name)
    except Exception as e:
        logger.error("Loader failed", extra={"error": str(e)}, exc_info=True)
        return 1
    return 0
