from __future__ import annotations

from dataclasses import dataclass

"""RowData model: one parsed CSV data line."""

__all__ = [
    "RowData",
    "FIRST_DATA_ROW",
]

# The header occupies line 1, so the first data row is reported as row 2.
FIRST_DATA_ROW = 2


@dataclass(frozen=True)
class RowData:
    """A single CSV row after header trimming.

    ``row_number`` is the diagnostic line number (first data row = 2).
    ``values`` maps trimmed header -> raw cell string.
    """
    row_number: int
    values: dict[str, str]
