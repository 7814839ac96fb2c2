from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import psycopg2

from conftest import DummyCursor
from roster_import.cli import main as cli_main
from roster_import.logging.init import reset_logging


class DummyCtx:
    def __init__(self, cursor):
        self.cursor = cursor

    def __enter__(self):
        return self.cursor

    def __exit__(self, exc_type, exc, tb):
        return False


def _no_db_env(monkeypatch):
    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)


def test_cli_live_mode_success(roster_csv: Path, monkeypatch, capsys):
    _no_db_env(monkeypatch)
    reset_logging()
    cur = DummyCursor()

    with patch("roster_import.cli.app._db_connection", return_value=DummyCtx(cur)), \
         patch("roster_import.db.students.execute_values") as ev:
        code = cli_main(["--class-id", "12", str(roster_csv)])

    out = capsys.readouterr().out
    assert code == 0
    assert "mode=live" in out
    assert "SUMMARY files=1 success=1 failed=0 imported=3" in out
    ev.assert_called_once()
    assert "COMMIT" in cur.statements


def test_cli_live_mode_insert_failure_exit_2(roster_csv: Path, monkeypatch, capsys):
    _no_db_env(monkeypatch)
    reset_logging()
    cur = DummyCursor()

    with patch("roster_import.cli.app._db_connection", return_value=DummyCtx(cur)), \
         patch("roster_import.db.students.execute_values", side_effect=RuntimeError("boom")):
        code = cli_main(["--class-id", "12", str(roster_csv)])

    out = capsys.readouterr().out
    assert code == 2
    assert "ERROR 6A.csv: insert failed, nothing imported: boom" in out
    assert "SUMMARY files=1 success=0 failed=1 imported=0" in out


def test_cli_dry_run(roster_csv: Path, monkeypatch, capsys):
    _no_db_env(monkeypatch)
    reset_logging()
    cur = DummyCursor()

    with patch("roster_import.cli.app._db_connection", return_value=DummyCtx(cur)), \
         patch("roster_import.db.students.execute_values") as ev:
        code = cli_main(["--class-id", "12", "--dry-run", str(roster_csv)])

    out = capsys.readouterr().out
    assert code == 0
    assert "mode=dry-run" in out
    ev.assert_not_called()


def test_cli_connection_failure_is_fatal(roster_csv: Path, monkeypatch, capsys):
    _no_db_env(monkeypatch)
    reset_logging()

    with patch("roster_import.cli.app.psycopg2.connect", side_effect=psycopg2.OperationalError("refused")):
        code = cli_main(["--class-id", "12", str(roster_csv)])

    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR database connection failed: refused" in out
    assert "SUMMARY" not in out
