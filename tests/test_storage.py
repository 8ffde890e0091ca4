import json
from datetime import date

import pytest

from defidb import storage
from defidb.storage import archive_previous, load_json, write_json


def test_load_missing_file_returns_default(tmp_path):
    assert load_json(tmp_path / "missing.json", {}) == {}
    assert load_json(tmp_path / "missing.json") is None


def test_write_creates_parents(tmp_path):
    path = tmp_path / "archive" / "vaults" / "1.json"
    write_json(path, {"a": [1, 2]})
    assert load_json(path) == {"a": [1, 2]}
    assert [p.name for p in path.parent.iterdir()] == ["1.json"]


def test_failed_write_keeps_previous_content(tmp_path, monkeypatch):
    path = tmp_path / "data.json"
    path.write_text(json.dumps({"ok": True}))

    def broken_dump(data, handle):
        handle.write('{"trunc')
        raise OSError("disk full")

    monkeypatch.setattr(storage.json, "dump", broken_dump)
    with pytest.raises(OSError):
        write_json(path, {"ok": False})

    assert json.loads(path.read_text()) == {"ok": True}
    assert [p.name for p in tmp_path.iterdir()] == ["data.json"]


def test_archive_moves_to_yesterday(tmp_path):
    current = tmp_path / "gauge-apy-data.json"
    current.write_text("{}")

    target = archive_previous(current, tmp_path / "archive" / "gauge-apy", today=date(2024, 3, 1))

    assert target == tmp_path / "archive" / "gauge-apy" / "2024-02-29.json"
    assert target.read_text() == "{}"
    assert not current.exists()


def test_archive_overwrites_same_day(tmp_path):
    archive_dir = tmp_path / "archive"
    archive_dir.mkdir()
    (archive_dir / "2024-01-01.json").write_text("old")
    current = tmp_path / "current.json"
    current.write_text("new")

    archive_previous(current, archive_dir, today=date(2024, 1, 2))

    assert (archive_dir / "2024-01-01.json").read_text() == "new"


def test_archive_without_snapshot(tmp_path, caplog):
    assert archive_previous(tmp_path / "current.json", tmp_path / "archive") is None
    assert not (tmp_path / "archive").exists()
    assert "nothing to archive" in caplog.text
