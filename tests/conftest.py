# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path

import psycopg2
import pytest

from roster_import.models.row_data import RowData


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """table: students
aliases:
  name: ["NOM prénom", "NOM Prénom", "Nom"]
  birthdate: ["Né(e) le", "Date de naissance"]
csv:
  delimiter: ","
  encoding: utf-8-sig
duplicate_display_limit: 2
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def roster_csv_text() -> str:
    # row 2 valid, row 3 short-year date, row 4 single word, row 5 duplicate of row 2,
    # row 6 unrecognised date
    return (
        "NOM prénom,Né(e) le,Classe\n"
        "DUPONT MARTIN Jean,14/01/2011,6A\n"
        "LEROY Camille,01-14-11,6A\n"
        "Solo,02/03/2011,6A\n"
        "dupont martin JEAN,14/01/2011,6A\n"
        "BERNARD Lucie,le 3 mars,6A\n"
    )


@pytest.fixture()
def roster_csv(temp_workdir: Path, roster_csv_text: str) -> Path:
    f = temp_workdir / "data" / "6A.csv"
    f.write_text(roster_csv_text, encoding="utf-8")
    return f


@pytest.fixture()
def no_db(monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
    for var in ("DATABASE_URL", "PGDSN"):
        monkeypatch.delenv(var, raising=False)


def make_rows(*values: dict[str, str]) -> list[RowData]:
    """RowData list numbered like a CSV file (first data row = 2)."""
    return [RowData(row_number=i + 2, values=v) for i, v in enumerate(values)]


class DummyCursor:
    """Minimal psycopg2 cursor stand-in recording executed SQL.

    ``stored`` holds (last_name, first_name) rows already in the table.
    ``fail_on`` makes any statement starting with that prefix raise.
    """

    def __init__(self, stored: list[tuple] | None = None, fail_on: str | None = None) -> None:
        self.stored = list(stored or [])
        self.fail_on = fail_on
        self.executed: list[tuple[str, tuple | None]] = []
        self._result: list[tuple] = []

    def execute(self, sql: str, params: tuple | None = None) -> None:
        self.executed.append((sql, params))
        if self.fail_on and sql.startswith(self.fail_on):
            raise psycopg2.OperationalError(f"boom on {self.fail_on}")
        if sql.startswith("SELECT last_name, first_name"):
            self._result = list(self.stored)
        elif sql.startswith("SELECT id, last_name"):
            self._result = [(i + 1, last, first, None) for i, (last, first) in enumerate(self.stored)]
        else:
            self._result = []

    def fetchall(self) -> list[tuple]:
        return self._result

    @property
    def statements(self) -> list[str]:
        return [sql for sql, _ in self.executed]
