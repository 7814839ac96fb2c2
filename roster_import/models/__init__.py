"""Domain models for the CSV -> students roster importer."""

from .config_models import DatabaseConfig, FieldAliases, ImportConfig
from .import_outcome import ImportOutcome, RowError, RowWarning
from .row_data import RowData
from .student import Identity, ImportCandidate, ParsedName

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "FieldAliases",
    "ImportConfig",
    # Processing models
    "RowData",
    "Identity",
    "ParsedName",
    "ImportCandidate",
    "ImportOutcome",
    "RowError",
    "RowWarning",
]
