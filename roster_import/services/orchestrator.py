from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import psycopg2

from ..db.students import (
    BatchInsertError,
    BatchMetrics,
    StoreError,
    fetch_known_identities,
    insert_candidates,
    list_students,
)
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import ImportConfig
from ..models.error_record import (
    FETCH_ERROR,
    INSERT_ERROR,
    INVALID_NAME,
    READ_ERROR,
    ErrorRecord,
)
from ..models.import_outcome import FileImportResult, ImportOutcome, ImportRunResult
from ..models.student import Identity
from ..tabular.reader import CsvReadError, read_csv_file
from .progress import ProgressTracker
from .reconcile import reconcile
from .summary import format_duplicates

"""Import orchestration: one fetch -> reconcile -> insert unit of work per CSV file.

Each file runs in its own transaction (live mode):
    BEGIN -> fetch known identities -> reconcile -> single batch INSERT -> COMMIT
A read or fetch failure means reconcile never runs; an insert failure rolls the
file back and discards its outcome. Nothing is retried.

Mock mode (no cursor): known identities are empty and nothing is inserted, the
outcome is still computed and reported.
"""

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"


class ProcessingError(Exception):
    """Base exception for processing errors."""
    pass


@dataclass(frozen=True)
class ImportSession:
    """Explicit context of an import run (replaces shared module state).

    class_id: owner class of every imported student
    config: loaded ImportConfig
    cursor: psycopg2 cursor, None for mock mode
    dry_run: fetch and reconcile but never insert
    """
    class_id: Any
    config: ImportConfig
    cursor: Any = None
    dry_run: bool = False

    @property
    def live(self) -> bool:
        return self.cursor is not None


def scan_csv_files(paths: list[Path]) -> list[Path]:
    """Expand CLI paths into the ordered list of CSV files to import.

    Files must carry the .csv suffix; directories contribute their .csv files
    (non-recursive, sorted by name).

    Raises:
        ProcessingError: for a missing path or a non-CSV file
    """
    found: list[Path] = []
    for path in paths:
        if not path.exists():
            raise ProcessingError(f"path not found: {path}")
        if path.is_dir():
            try:
                found.extend(
                    sorted(p for p in path.iterdir() if p.is_file() and p.suffix.lower() == ".csv")
                )
            except OSError as e:
                raise ProcessingError(f"error reading directory {path}: {e}") from e
        elif path.suffix.lower() == ".csv":
            found.append(path)
        else:
            raise ProcessingError(f"not a CSV file: {path}")
    return found


def _execute(cursor: Any, statement: str) -> None:
    if cursor is not None:
        cursor.execute(statement)


def _rollback(cursor: Any) -> None:
    try:
        _execute(cursor, "ROLLBACK")
    except Exception as e:  # pragma: no cover
        logger.debug(f"rollback failed: {e}")


def _record_outcome(file_name: str, outcome: ImportOutcome, error_log: ErrorLogBuffer) -> None:
    for err in outcome.errors:
        error_log.append(ErrorRecord.create(file_name, err.row_number, INVALID_NAME, err.message))
    for warn in outcome.warnings:
        error_log.append(ErrorRecord.create(file_name, warn.row_number, warn.kind, warn.message))


def _failed(file_name: str, start: datetime, error: str) -> FileImportResult:
    return FileImportResult(
        file_name=file_name,
        status=STATUS_FAILED,
        imported=0,
        candidates=0,
        duplicates=[],
        errors=[],
        elapsed_seconds=(datetime.now(UTC) - start).total_seconds(),
        error=error,
    )


def import_file(session: ImportSession, path: Path, error_log: ErrorLogBuffer) -> FileImportResult:
    """Import one CSV file into the session's class.

    Returns:
        FileImportResult; hard failures are reported as status "failed"
    """
    start = datetime.now(UTC)
    cfg = session.config
    cursor = session.cursor

    try:
        rows = read_csv_file(path, encoding=cfg.encoding, delimiter=cfg.delimiter)
    except CsvReadError as e:
        logger.error(f"{path.name}: {e}")
        error_log.append(ErrorRecord.create(path.name, -1, READ_ERROR, str(e)))
        return _failed(path.name, start, str(e))

    if not rows:
        logger.warning(f"{path.name}: no data rows")

    known: set[Identity] = set()
    if session.live:
        try:
            _execute(cursor, "BEGIN")
            known = fetch_known_identities(cursor, session.class_id, table=cfg.table)
        except (StoreError, psycopg2.Error) as e:
            _rollback(cursor)
            logger.error(f"{path.name}: {e}")
            error_log.append(ErrorRecord.create(path.name, -1, FETCH_ERROR, str(e)))
            return _failed(path.name, start, str(e))
    logger.debug(f"{path.name}: rows={len(rows)} known_students={len(known)}")

    outcome = reconcile(rows, known, session.class_id, aliases=cfg.aliases)
    _record_outcome(path.name, outcome, error_log)

    inserted = 0
    roster_size = None
    if session.live and not session.dry_run:
        def _on_batch(metrics: BatchMetrics) -> None:
            logger.debug(f"{path.name}: batch rows={metrics.batch_size} elapsed={metrics.elapsed_seconds:.3f}s")

        try:
            result = insert_candidates(cursor, outcome.imported, table=cfg.table, metrics_callback=_on_batch)
            _execute(cursor, "COMMIT")
        except (BatchInsertError, psycopg2.Error) as e:
            _rollback(cursor)
            logger.error(f"{path.name}: insert failed, nothing imported: {e}")
            error_log.append(ErrorRecord.create(path.name, -1, INSERT_ERROR, str(e)))
            return _failed(path.name, start, f"insert failed: {e}")
        inserted = result.inserted_rows

        try:
            roster_size = len(list_students(cursor, session.class_id, table=cfg.table))
        except StoreError as e:
            # already committed; only the display refresh is lost
            logger.warning(f"{path.name}: {e}")
    elif session.live:
        _rollback(cursor)

    for err in outcome.errors:
        logger.warning(err.message)
    if outcome.duplicates:
        shown = ", ".join(format_duplicates(outcome.duplicates, cfg.duplicate_display_limit))
        logger.info(f"{path.name}: duplicates skipped: {shown}")
    logger.info(
        f"{path.name}: imported={inserted} candidates={len(outcome.imported)} "
        f"duplicates={len(outcome.duplicates)} errors={len(outcome.errors)}"
        + (f" roster={roster_size}" if roster_size is not None else "")
    )

    return FileImportResult(
        file_name=path.name,
        status=STATUS_SUCCESS,
        imported=inserted,
        candidates=len(outcome.imported),
        duplicates=list(outcome.duplicates),
        errors=list(outcome.errors),
        roster_size=roster_size,
        elapsed_seconds=(datetime.now(UTC) - start).total_seconds(),
    )


def import_all(session: ImportSession, paths: list[Path], error_log: ErrorLogBuffer | None = None) -> ImportRunResult:
    """Import every CSV file in order and aggregate the results.

    Raises:
        ProcessingError: when the paths cannot be scanned
    """
    start_time = datetime.now(UTC)
    error_log = error_log if error_log is not None else ErrorLogBuffer()
    files = scan_csv_files(paths)

    results: list[FileImportResult] = []
    with ProgressTracker(len(files)) as progress:
        for file_path in files:
            progress.start_file(file_path)
            results.append(import_file(session, file_path, error_log))
            progress.finish_file(
                imported=sum(r.imported for r in results),
                failed=sum(1 for r in results if r.status == STATUS_FAILED),
            )

    try:
        log_path = error_log.flush()
    except OSError as e:
        # error log is best effort
        logger.warning(f"failed writing error log: {e}")
    else:
        if log_path is not None:
            logger.info(f"row diagnostics written to {log_path}")

    return ImportRunResult(
        success_files=sum(1 for r in results if r.status == STATUS_SUCCESS),
        failed_files=sum(1 for r in results if r.status == STATUS_FAILED),
        total_imported=sum(r.imported for r in results),
        total_duplicates=sum(len(r.duplicates) for r in results),
        total_errors=sum(len(r.errors) for r in results),
        elapsed_seconds=(datetime.now(UTC) - start_time).total_seconds(),
        file_results=results,
    )
