from __future__ import annotations

import subprocess
import sys
import time
from pathlib import Path

import pytest

from pgfs_report import guard
from pgfs_report.errors import ErrorKind, ReportError


def test_acquire_creates_missing_lock_file(tmp_path: Path) -> None:
    lock_path = tmp_path / "report.lock"
    with guard.acquire(lock_path) as handle:
        assert handle.held
        assert lock_path.exists()
    assert not handle.held


def test_second_acquire_fails_without_waiting(tmp_path: Path) -> None:
    lock_path = tmp_path / "report.lock"
    with guard.acquire(lock_path):
        started = time.monotonic()
        with pytest.raises(ReportError) as excinfo:
            guard.acquire(lock_path)
        elapsed = time.monotonic() - started

    assert excinfo.value.kind is ErrorKind.LOCK_FILE_EXCLUSIVE_LOCK
    assert excinfo.value.path == str(lock_path)
    assert elapsed < 1.0


def test_lock_is_free_again_after_release(tmp_path: Path) -> None:
    lock_path = tmp_path / "report.lock"
    guard.acquire(lock_path).release()
    with guard.acquire(lock_path) as handle:
        assert handle.held


def test_other_process_is_refused_while_lock_held(tmp_path: Path) -> None:
    lock_path = tmp_path / "report.lock"
    script = (
        "import sys\n"
        "from pgfs_report import guard\n"
        "from pgfs_report.errors import ReportError\n"
        "try:\n"
        "    guard.acquire(sys.argv[1])\n"
        "except ReportError as exc:\n"
        "    print(exc.kind.name)\n"
        "    sys.exit(3)\n"
    )
    with guard.acquire(lock_path):
        result = subprocess.run(
            [sys.executable, "-c", script, str(lock_path)],
            capture_output=True,
            text=True,
            timeout=30,
        )
    assert result.returncode == 3
    assert result.stdout.strip() == "LOCK_FILE_EXCLUSIVE_LOCK"


def test_unopenable_path_reports_open_error(tmp_path: Path) -> None:
    lock_path = tmp_path / "missing-dir" / "report.lock"
    with pytest.raises(ReportError) as excinfo:
        guard.acquire(lock_path)
    assert excinfo.value.kind is ErrorKind.LOCK_FILE_OPEN
