from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

Every soft row problem (invalid name, duplicate, unrecognised birthdate) and
every file-level failure is written as one record. ``row=-1`` marks file-level
errors where no single row is to blame.
"""

__all__ = [
    "ErrorRecord",
    "INVALID_NAME",
    "DUPLICATE",
    "UNRECOGNIZED_DATE",
    "READ_ERROR",
    "FETCH_ERROR",
    "INSERT_ERROR",
]

INVALID_NAME = "INVALID_NAME"
DUPLICATE = "DUPLICATE"
UNRECOGNIZED_DATE = "UNRECOGNIZED_DATE"
READ_ERROR = "READ_ERROR"
FETCH_ERROR = "FETCH_ERROR"
INSERT_ERROR = "INSERT_ERROR"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: CSV filename being processed
        row: Row number (header = 1). Use -1 for file-level errors
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable description
    """
    timestamp: str
    file: str
    row: int
    error_type: str
    message: str

    @staticmethod
    def create(file: str, row: int, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # no extra keys: dataclass fields only
        return json.dumps(asdict(self), ensure_ascii=False)
