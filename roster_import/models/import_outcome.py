from __future__ import annotations

from dataclasses import dataclass, field

from .student import ImportCandidate

"""Result models for a reconciliation run and for file/run level processing."""

__all__ = [
    "RowError",
    "RowWarning",
    "ImportOutcome",
    "FileImportResult",
    "ImportRunResult",
]


@dataclass(frozen=True)
class RowError:
    row_number: int
    message: str


@dataclass(frozen=True)
class RowWarning:
    """Soft per-row notice (the row itself is not an error)."""
    row_number: int
    kind: str  # DUPLICATE / UNRECOGNIZED_DATE
    message: str


@dataclass(frozen=True)
class ImportOutcome:
    """Partition of the input rows produced by reconcile().

    imported: candidates in input order
    duplicates: display names ("LAST first") of skipped duplicates
    errors: rejected rows with their diagnostic message
    warnings: per-row notices for the error log (duplicate rows, unparsed dates)
    """
    imported: list[ImportCandidate] = field(default_factory=list)
    duplicates: list[str] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)
    warnings: list[RowWarning] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.imported or self.duplicates or self.errors)


@dataclass(frozen=True)
class FileImportResult:
    """Per-file processing result."""
    file_name: str
    status: str  # success/failed
    imported: int  # rows actually committed (0 in mock mode)
    candidates: int  # rows reconcile accepted
    duplicates: list[str] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)
    roster_size: int | None = None  # re-read after insert (live mode only)
    elapsed_seconds: float = 0.0
    error: str | None = None  # failure reason (read/fetch/insert)


@dataclass(frozen=True)
class ImportRunResult:
    """Aggregate over all files of one CLI invocation."""
    success_files: int
    failed_files: int
    total_imported: int
    total_duplicates: int
    total_errors: int
    elapsed_seconds: float
    file_results: list[FileImportResult] = field(default_factory=list)
