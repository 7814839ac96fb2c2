from __future__ import annotations

import io
import warnings
from pathlib import Path

import pandas as pd

from ..models.row_data import FIRST_DATA_ROW, RowData

"""CSV reader: raw delimited text -> ordered RowData list.

- First line is the header; header cells are stripped of surrounding whitespace
- Every cell is kept as a string (no NA coercion, "NA" stays "NA")
- Blank lines and rows whose cells are all blank are skipped
- Ragged rows are tolerated: missing trailing cells become "", extra ones are dropped
"""

__all__ = [
    "CsvReadError",
    "read_csv_text",
    "read_csv_file",
]


class CsvReadError(Exception):
    """Raised when CSV content cannot be parsed or the file cannot be read."""


def read_csv_text(text: str, delimiter: str = ",") -> list[RowData]:
    """Parse CSV text into RowData (row numbers start at 2, header = row 1)."""
    text = text.lstrip("\ufeff")
    if not text.strip():
        return []

    try:
        header = pd.read_csv(io.StringIO(text), sep=delimiter, nrows=0, dtype=str, engine="python")
    except pd.errors.EmptyDataError:
        return []
    except (pd.errors.ParserError, ValueError) as e:
        raise CsvReadError(f"invalid csv header: {e}") from e
    width = len(header.columns)

    try:
        with warnings.catch_warnings():
            # extra cells on ragged rows are dropped on purpose
            warnings.simplefilter("ignore", pd.errors.ParserWarning)
            df = pd.read_csv(
                io.StringIO(text),
                sep=delimiter,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                index_col=False,
                engine="python",
                on_bad_lines=lambda bad: bad[:width],
            )
    except (pd.errors.ParserError, ValueError) as e:
        raise CsvReadError(f"invalid csv content: {e}") from e

    columns = [str(c).strip() for c in df.columns]
    df = df.fillna("")

    rows: list[RowData] = []
    for raw in df.itertuples(index=False, name=None):
        cells = [str(v) for v in raw]
        if all(not c.strip() for c in cells):
            continue
        values = dict(zip(columns, cells, strict=False))
        rows.append(RowData(row_number=len(rows) + FIRST_DATA_ROW, values=values))
    return rows


def read_csv_file(path: Path, encoding: str = "utf-8-sig", delimiter: str = ",") -> list[RowData]:
    """Read a CSV file from disk (UTF-8 with optional BOM by default)."""
    try:
        text = path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as e:
        raise CsvReadError(f"cannot read {path.name}: {e}") from e
    return read_csv_text(text, delimiter=delimiter)
