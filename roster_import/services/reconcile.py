from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from datetime import date
from typing import Any

from ..models.config_models import FieldAliases
from ..models.error_record import DUPLICATE, UNRECOGNIZED_DATE
from ..models.import_outcome import ImportOutcome, RowError, RowWarning
from ..models.row_data import RowData
from ..models.student import Identity, ImportCandidate, ParsedName, identity_of

"""Roster reconciliation: parsed CSV rows + known identities -> ImportOutcome.

Pure transformation. Storage is never touched here; the caller fetches the
known identities beforehand and persists ``outcome.imported`` afterwards.

Per row (input order):
1. resolve name / birthdate cells through the alias table
2. split the full name ("NOM EN MAJUSCULES Prénom"); reject if a part is empty
3. skip duplicates, against storage and against earlier rows of the same file
4. parse the birthdate (unrecognised -> None, warning only)
5. emit an ImportCandidate
"""

__all__ = [
    "parse_full_name",
    "parse_birthdate",
    "reconcile",
]

logger = logging.getLogger(__name__)

# MM-DD-YY, e.g. 01-14-11
_MONTH_DAY_SHORT_YEAR = re.compile(r"([0-9]{2})-([0-9]{2})-([0-9]{2})")
# DD/MM/YYYY, e.g. 14/01/2011
_DAY_MONTH_YEAR = re.compile(r"([0-9]{2})/([0-9]{2})/([0-9]{4})")

# Two-digit years below this pivot are 20YY, the rest 19YY.
CENTURY_PIVOT = 50


def parse_full_name(full_name: str | None) -> ParsedName:
    """Split a full name into (last name, first name).

    The first name is the last whitespace-delimited token, the last name is
    everything before it joined by single spaces.

    >>> parse_full_name("DUPONT MARTIN Jean")
    ParsedName(last_name='DUPONT MARTIN', first_name='Jean')
    >>> parse_full_name("Solo")
    ParsedName(last_name='Solo', first_name='')
    """
    parts = (full_name or "").split()
    if not parts:
        return ParsedName(last_name="", first_name="")
    if len(parts) == 1:
        return ParsedName(last_name=parts[0], first_name="")
    return ParsedName(last_name=" ".join(parts[:-1]), first_name=parts[-1])


def _iso(year: int, month: int, day: int) -> str | None:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def parse_birthdate(raw: str | None) -> str | None:
    """Parse a birthdate cell into ISO ``YYYY-MM-DD``.

    Recognised formats, first full match wins:
        MM-DD-YY    -> year < 50 is 20YY, otherwise 19YY
        DD/MM/YYYY

    Anything else (including impossible dates such as 31/02/2011) yields None.
    """
    if not raw:
        return None
    trimmed = raw.strip()
    if not trimmed:
        return None

    m = _MONTH_DAY_SHORT_YEAR.fullmatch(trimmed)
    if m:
        month, day, short_year = (int(g) for g in m.groups())
        century = 2000 if short_year < CENTURY_PIVOT else 1900
        return _iso(century + short_year, month, day)

    m = _DAY_MONTH_YEAR.fullmatch(trimmed)
    if m:
        day, month, year = (int(g) for g in m.groups())
        return _iso(year, month, day)

    return None


def reconcile(
    rows: Iterable[RowData],
    known_identities: set[Identity],
    owner_class_id: Any,
    aliases: FieldAliases | None = None,
) -> ImportOutcome:
    """Partition rows into importable candidates, duplicates and errors.

    Args:
        rows: parsed CSV rows, in file order
        known_identities: identities already stored for the target class
        owner_class_id: class id attached to every candidate
        aliases: header alias table (defaults to the French export headers)

    Returns:
        ImportOutcome; per-row problems never raise
    """
    aliases = aliases or FieldAliases()
    outcome = ImportOutcome()
    seen: set[Identity] = set(known_identities)

    for row in rows:
        full_name = aliases.resolve(row.values, "name")
        raw_birthdate = aliases.resolve(row.values, "birthdate")

        name = parse_full_name(full_name)
        if not name.is_valid:
            outcome.errors.append(
                RowError(row.row_number, f"Row {row.row_number}: invalid name '{full_name}'")
            )
            continue

        identity = identity_of(name.last_name, name.first_name)
        if identity in seen:
            outcome.duplicates.append(name.display)
            outcome.warnings.append(
                RowWarning(row.row_number, DUPLICATE, f"duplicate skipped: {name.display}")
            )
            continue

        birthdate = parse_birthdate(raw_birthdate)
        if birthdate is None and raw_birthdate.strip():
            message = f"unrecognised birthdate '{raw_birthdate.strip()}' for {name.display}"
            logger.warning(f"row {row.row_number}: {message}")
            outcome.warnings.append(RowWarning(row.row_number, UNRECOGNIZED_DATE, message))

        outcome.imported.append(
            ImportCandidate(
                identity=identity,
                first_name=name.first_name,
                last_name=name.last_name,
                birthdate=birthdate,
                owner_class_id=owner_class_id,
            )
        )
        seen.add(identity)

    logger.debug(
        f"reconcile class={owner_class_id} imported={len(outcome.imported)} "
        f"duplicates={len(outcome.duplicates)} errors={len(outcome.errors)}"
    )
    return outcome
