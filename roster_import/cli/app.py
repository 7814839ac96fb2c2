from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from ..logging.init import log_summary, set_debug, setup_logging
from ..models.config_models import ImportConfig
from ..services.orchestrator import ImportSession, ProcessingError, import_all
from ..services.summary import render_summary_line

"""CLI entrypoint: roster-import --class-id ID PATH...

Flow:
- load .env (overrides the process environment) and config/import.yml
- open one PostgreSQL connection (or run in mock mode)
- import every CSV file, print the SUMMARY line, map the result to an exit code
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2


def _resolve_dsn(cfg: ImportConfig) -> str:
    """Build the connection string.

    Priority:
        1. DATABASE_URL / PGDSN (environment, .env loaded with override)
        2. database.dsn from config
        3. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, falling back
           per key to the config database section
    """
    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def _db_connection(cfg: ImportConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """Yield a cursor on a fresh connection.

    autocommit is off; the orchestrator issues BEGIN/COMMIT/ROLLBACK per file.
    """
    conn = psycopg2.connect(_resolve_dsn(cfg))
    try:
        conn.autocommit = False
        with conn.cursor() as cur:
            yield cur
    finally:
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; its values win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="roster-import",
        description="Import a class roster CSV into the students table",
    )
    p.add_argument("paths", nargs="+", type=Path, help="CSV files or directories containing CSV files")
    p.add_argument("--class-id", required=True, help="Owner class id attached to every imported student")
    p.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Config file (default: {DEFAULT_CONFIG_PATH}, optional)",
    )
    p.add_argument("--dry-run", action="store_true", help="Reconcile against the database but insert nothing")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--delimiter", default=None, help="CSV field delimiter (overrides csv.delimiter from config)")
    return p.parse_args(argv)


def _exit_code(failed_files: int) -> int:
    return EXIT_PARTIAL_FAILURE if failed_files > 0 else EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # Only read sys.argv when argv is None: main([]) must not pick up pytest flags.
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    if args.debug:
        set_debug(logger)

    _load_env_file(Path(".env"), override=True)

    try:
        if args.config is not None:
            cfg = load_config(args.config)
        else:
            cfg = load_config(DEFAULT_CONFIG_PATH, required=False)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.delimiter is not None:
        if len(args.delimiter) != 1:
            logger.error(f"config: --delimiter must be a single character, got '{args.delimiter}'")
            return EXIT_FATAL
        cfg = replace(cfg, delimiter=args.delimiter)

    logger.info(f"Importing into class {args.class_id}")

    if os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> mock mode")
        session = ImportSession(class_id=args.class_id, config=cfg, cursor=None, dry_run=args.dry_run)
        try:
            result = import_all(session, args.paths)
        except ProcessingError as e:
            logger.error(f"processing(mock): {e}")
            return EXIT_FATAL
        mode = "mock"
    else:
        try:
            with _db_connection(cfg) as cur:
                session = ImportSession(class_id=args.class_id, config=cfg, cursor=cur, dry_run=args.dry_run)
                result = import_all(session, args.paths)
        except ProcessingError as e:
            logger.error(f"processing: {e}")
            return EXIT_FATAL
        except psycopg2.Error as e:
            logger.error(f"database connection failed: {e}")
            return EXIT_FATAL
        mode = "dry-run" if args.dry_run else "live"

    logger.info(f"mode={mode} imported={result.total_imported}")

    # log_summary adds the "SUMMARY " label itself
    log_summary(render_summary_line(result)[len("SUMMARY "):])

    return _exit_code(result.failed_files)
