from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the roster importer.

Built by roster_import/config/loader.py from config/import.yml; everything downstream
(reader, reconcile, store, CLI) reads settings from these objects only.
"""

DEFAULT_NAME_ALIASES = ("NOM prénom", "NOM Prénom", "Nom")
DEFAULT_BIRTHDATE_ALIASES = ("Né(e) le", "Date de naissance")


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class FieldAliases:
    """Ordered header aliases per logical field.

    The first alias whose cell is non-empty wins, so order matters.
    """
    name: tuple[str, ...] = DEFAULT_NAME_ALIASES
    birthdate: tuple[str, ...] = DEFAULT_BIRTHDATE_ALIASES

    def resolve(self, values: dict[str, str], field_name: str) -> str:
        """Return the first non-empty cell among the aliases of ``field_name``."""
        for header in getattr(self, field_name):
            cell = values.get(header)
            if cell is not None and str(cell).strip():
                return str(cell)
        return ""


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for an import run."""
    table: str = "students"
    aliases: FieldAliases = field(default_factory=FieldAliases)
    delimiter: str = ","
    encoding: str = "utf-8-sig"
    duplicate_display_limit: int = 10
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
