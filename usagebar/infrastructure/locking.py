"""Process-wide lock so that mutating commands never interleave."""

from __future__ import annotations

import atexit
import contextlib
import os
import sys
from pathlib import Path
from typing import Optional

from filelock import FileLock as FileLocker, Timeout as FileLockTimeout

from ..constants import LOCK_PATH, console

_lock_acquired: Optional["ProcessLock"] = None


class ProcessLock:
    """File-based exclusive lock recording the holder's PID beside it."""

    def __init__(self, lock_path: Path = LOCK_PATH):
        self.lock_path = lock_path
        self.pid_path = lock_path.with_suffix(".pid")
        self.lock = FileLocker(str(lock_path))
        self.acquired = False

    def acquire(self, timeout: float = 30):
        """Acquire the lock, exiting the process if it stays busy past timeout."""
        self.lock_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

        try:
            self.lock.acquire(timeout=0)
        except FileLockTimeout:
            pid_info = self._read_pid()
            holder = f" (PID: {pid_info})" if pid_info else ""
            console.print(f"[yellow]Waiting for another usagebar operation to complete{holder}...[/yellow]")
            try:
                self.lock.acquire(timeout=timeout)
            except FileLockTimeout:
                console.print(f"[red]Error: Timeout waiting for usagebar operation{holder} to complete[/red]")
                sys.exit(1)
            console.print("[green]✓ Lock acquired[/green]")

        self.acquired = True
        with contextlib.suppress(OSError):
            self.pid_path.write_text(f"{os.getpid()}\n", encoding="utf-8")

    def _read_pid(self) -> Optional[str]:
        with contextlib.suppress(OSError):
            if self.pid_path.exists():
                return self.pid_path.read_text(encoding="utf-8").strip() or None
        return None

    def release(self):
        if self.acquired:
            self.lock.release()
            self.acquired = False
            with contextlib.suppress(OSError):
                self.pid_path.unlink()


def _release_lock():
    global _lock_acquired
    if _lock_acquired is not None:
        _lock_acquired.release()
        _lock_acquired = None


def acquire_lock(lock_path: Path = LOCK_PATH):
    """Acquire an exclusive process-wide lock (idempotent)."""
    global _lock_acquired
    if _lock_acquired is not None:
        return

    lock = ProcessLock(lock_path)
    lock.acquire()
    _lock_acquired = lock
    atexit.register(_release_lock)
