from __future__ import annotations

import re
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from psycopg2.extras import execute_values

from ..models.student import Identity, ImportCandidate, identity_of

"""Access to the students table.

- fetch_known_identities: existing (last, first) pairs of one class, for dedup
- insert_candidates: one execute_values batch for the whole reconciled file
- list_students: authoritative roster re-read after an import

The cursor belongs to the caller, which also owns the transaction boundary.
"""

__all__ = [
    "BatchInsertError",
    "StoreError",
    "InsertResult",
    "BatchMetrics",
    "INSERT_COLUMNS",
    "fetch_known_identities",
    "insert_candidates",
    "list_students",
]

INSERT_COLUMNS = ("class_id", "first_name", "last_name", "birthdate")

_TABLE_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?")


class StoreError(Exception):
    """Raised when reading from the students table fails."""


class BatchInsertError(Exception):
    pass


@dataclass(frozen=True)
class BatchMetrics:
    """Timing of a single execute_values call."""
    batch_size: int
    elapsed_seconds: float
    start_time: float
    end_time: float


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int


def _checked_table(table: str) -> str:
    if not _TABLE_NAME.fullmatch(table):
        raise ValueError(f"invalid table name: {table!r}")
    return table


def fetch_known_identities(cursor: Any, class_id: Any, table: str = "students") -> set[Identity]:
    """Return the identities already stored for ``class_id``."""
    sql = f"SELECT last_name, first_name FROM {_checked_table(table)} WHERE class_id = %s"
    try:
        cursor.execute(sql, (class_id,))
        stored = cursor.fetchall()
    except Exception as e:
        raise StoreError(f"failed fetching students of class {class_id}: {e}") from e
    return {identity_of(last or "", first or "") for last, first in stored}


def list_students(cursor: Any, class_id: Any, table: str = "students") -> list[tuple[Any, ...]]:
    """Return (id, last_name, first_name, birthdate) rows ordered by name."""
    sql = (
        f"SELECT id, last_name, first_name, birthdate FROM {_checked_table(table)} "
        "WHERE class_id = %s ORDER BY last_name, first_name"
    )
    try:
        cursor.execute(sql, (class_id,))
        return list(cursor.fetchall())
    except Exception as e:
        raise StoreError(f"failed listing students of class {class_id}: {e}") from e


def insert_candidates(
    cursor: Any,
    candidates: Iterable[ImportCandidate],
    table: str = "students",
    page_size: int = 1000,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> InsertResult:
    """Insert reconciled candidates with psycopg2.extras.execute_values.

    Parameters
    ----------
    cursor: psycopg2 cursor (transaction owned by the caller)
    candidates: ImportCandidate sequence, inserted in order
    table: target table name
    page_size: execute_values page size
    metrics_callback: receives BatchMetrics; not called for an empty batch
    """
    rows: list[Sequence[Any]] = [
        tuple(c.to_record()[col] for col in INSERT_COLUMNS) for c in candidates
    ]
    if not rows:
        return InsertResult(inserted_rows=0)

    cols_sql = ",".join(f'"{c}"' for c in INSERT_COLUMNS)
    base_sql = f"INSERT INTO {_checked_table(table)} ({cols_sql}) VALUES %s"

    start_time = time.time()
    try:
        execute_values(cursor, base_sql, rows, page_size=page_size)
    except Exception as e:
        raise BatchInsertError(str(e)) from e
    finally:
        end_time = time.time()
        if metrics_callback is not None:
            metrics_callback(
                BatchMetrics(
                    batch_size=len(rows),
                    elapsed_seconds=end_time - start_time,
                    start_time=start_time,
                    end_time=end_time,
                )
            )

    return InsertResult(inserted_rows=len(rows))
