from __future__ import annotations
import json
from pathlib import Path
from roster_import.logging.error_log import ErrorRecord, ErrorLogBuffer

KEYS = {"timestamp", "file", "row", "error_type", "message"}


def test_error_log_buffer_flush(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(ErrorRecord.create("6A.csv", 4, "INVALID_NAME", "Row 4: invalid name 'Solo'"))
    buf.append(ErrorRecord.create("6A.csv", 5, "DUPLICATE", "duplicate skipped: DUPONT Jean"))
    path = buf.flush()
    assert path is not None and path.exists()
    assert path.parent == Path("./logs")
    assert path.name.startswith("errors-") and path.suffix == ".log"
    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    for raw in lines:
        assert set(json.loads(raw).keys()) == KEYS
    # flush 後バッファクリア
    assert len(buf) == 0


def test_error_log_buffer_multiple_flushes(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(ErrorRecord.create("a.csv", 2, "DUPLICATE", "dup"))
    path = buf.flush()
    size1 = path.stat().st_size
    buf.append(ErrorRecord.create("a.csv", 3, "DUPLICATE", "dup2"))
    path2 = buf.flush()
    assert path == path2
    assert path2.stat().st_size > size1


def test_error_log_buffer_empty_flush_creates_nothing(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path / "logs")
    assert buf.flush() is None
    assert not (tmp_path / "logs").exists()


def test_error_log_buffer_keeps_accents(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path)
    buf.append(ErrorRecord.create("5B.csv", 2, "UNRECOGNIZED_DATE", "date 'né le 3 mars'"))
    path = buf.flush()
    assert "né le 3 mars" in path.read_text(encoding="utf-8")
