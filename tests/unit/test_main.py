# tests/unit/test_main.py
"""Point d'entrée CLI, branché sur le store mémoire."""

from __future__ import annotations

import json

import pytest

from categsync import main as cli
from categsync.models.exceptions import CategSyncError, ErrCode
from categsync.store.memory_store import MemoryStore
from categsync.utils.config import ConfigError
from conftest import link, make_post


@pytest.fixture
def memory(monkeypatch: pytest.MonkeyPatch) -> MemoryStore:
    store = MemoryStore([make_post(1, link("2022", "22-ci-07")), make_post(2, "no link")])
    monkeypatch.setattr(cli, "MySQLStore", lambda logger=None: store)
    return store


def _exit_code(argv: list[str]) -> int | None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)
    return excinfo.value.code


def test_run_prints_report_and_exits_zero(memory: MemoryStore, capsys: pytest.CaptureFixture[str]) -> None:
    assert _exit_code(["run", "--mode", "full", "--workers", "2"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["status"] == "completed"
    assert report["posts_processed"] == 2


def test_tree_command(memory: MemoryStore, capsys: pytest.CaptureFixture[str]) -> None:
    _exit_code(["run", "--mode", "full"])
    capsys.readouterr()
    assert _exit_code(["tree", "--populated"]) == 0
    nodes = json.loads(capsys.readouterr().out)
    assert [n["slug"] for n in nodes] == ["22-ci-07", "intel-quick-updates"]


def test_check_exit_code_reflects_anomalies(memory: MemoryStore) -> None:
    assert _exit_code(["check"]) == 3
    _exit_code(["run", "--mode", "incremental"])
    assert _exit_code(["check"]) == 0


def test_auto_runs_incremental_then_check(memory: MemoryStore, capsys: pytest.CaptureFixture[str]) -> None:
    assert _exit_code(["auto"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["mode"] == "incremental"
    assert report["anomalies"] == []


def test_failed_run_exits_two(monkeypatch: pytest.MonkeyPatch) -> None:
    class BrokenStore(MemoryStore):
        def set_post_category(self, post_id: int, category_id: int) -> None:
            raise CategSyncError("write failed", code=ErrCode.DB)

    broken = BrokenStore([make_post(1, "x")])
    monkeypatch.setattr(cli, "MySQLStore", lambda logger=None: broken)
    assert _exit_code(["run"]) == 2


def test_config_error_exits_one(monkeypatch: pytest.MonkeyPatch) -> None:
    def missing(logger=None):
        raise ConfigError("[CONFIG ERROR] La variable DB_USER est requise mais absente.")

    monkeypatch.setattr(cli, "MySQLStore", missing)
    assert _exit_code(["tree"]) == 1


def test_unknown_command_is_rejected() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["explode"])
    assert excinfo.value.code == 2
