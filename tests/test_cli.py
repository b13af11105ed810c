from __future__ import annotations

import json
import logging

from _payloads import envelope, triple_array_result
from districts import cli, sync
from districts.store import FilesystemObjectStore
from districts.upstream import parse_envelope


def _fake_fetch(body):
    return lambda config, identity: parse_envelope(body)


def test_sync_then_status(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("DISTRICTS_MAP_KEY", "k")
    monkeypatch.setattr("districts.sync.fetch_districts", _fake_fetch(envelope(triple_array_result())))
    store_dir = tmp_path / "objects"

    assert cli.main(["--store-dir", str(store_dir), "sync", "--json"]) == cli.EXIT_OK
    printed = json.loads(capsys.readouterr().out)
    assert printed["state"] == "Done"
    assert FilesystemObjectStore(store_dir).head("districts.json") is not None

    assert cli.main(["--store-dir", str(store_dir), "status"]) == cli.EXIT_OK
    assert "last updated" in capsys.readouterr().out


def test_sync_failure_exit_code(tmp_path, monkeypatch):
    monkeypatch.setattr("districts.sync.fetch_districts", _fake_fetch(envelope(None, status=1, message="x")))
    # no key configured at all
    assert cli.main(["--store-dir", str(tmp_path), "sync"]) == cli.EXIT_FAILED

    monkeypatch.setenv("DISTRICTS_MAP_KEY", "k")
    assert cli.main(["--store-dir", str(tmp_path), "sync"]) == cli.EXIT_FAILED
    assert FilesystemObjectStore(tmp_path).head("districts.json") is None


def test_status_when_never_synced(tmp_path, capsys):
    assert cli.main(["--store-dir", str(tmp_path), "status"]) == cli.EXIT_OK
    assert "never updated" in capsys.readouterr().out


def test_sync_while_another_run_holds_the_lock(tmp_path, monkeypatch):
    monkeypatch.setenv("DISTRICTS_MAP_KEY", "k")
    monkeypatch.setattr("districts.sync.fetch_districts", _fake_fetch(envelope(triple_array_result())))
    assert sync._SYNC_LOCK.acquire(blocking=False)
    try:
        assert cli.main(["--store-dir", str(tmp_path), "sync"]) == cli.EXIT_BUSY
    finally:
        sync._SYNC_LOCK.release()
    assert FilesystemObjectStore(tmp_path).head("districts.json") is None


def test_resolved_config_is_logged_without_the_key(tmp_path, monkeypatch, caplog):
    monkeypatch.setenv("DISTRICTS_MAP_KEY", "super-secret")
    with caplog.at_level(logging.DEBUG, logger="districts.cli"):
        assert cli.main(["--log-level", "debug", "--store-dir", str(tmp_path), "status"]) == cli.EXIT_OK
    assert "resolved config" in caplog.text
    assert "'api_key': '***'" in caplog.text
    assert "super-secret" not in caplog.text
