"""Shared utility functions."""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


def mask_cookie(cookie: str, keep: int = 6) -> str:
    """Mask a cookie blob for display, keeping only a short prefix."""
    if not cookie:
        return ""
    if len(cookie) <= keep:
        return "*" * len(cookie)
    return f"{cookie[:keep]}{'*' * 6}"


def format_reset_time(
    reset_at: Optional[datetime],
    show_remaining: bool = False,
    include_date: bool = False,
    now: Optional[datetime] = None,
) -> str:
    """Return 'in 3h 20m' style countdown or 'at 14:05' style clock time."""
    if reset_at is None:
        return "[dim]--[/dim]"

    if show_remaining:
        now = now or datetime.now(timezone.utc)
        remaining = int((reset_at - now).total_seconds())
        if remaining <= 0:
            return "now"
        hours = remaining // 3600
        minutes = (remaining % 3600) // 60
        if hours > 24:
            return f"in {hours // 24}d {hours % 24}h"
        if hours > 0:
            return f"in {hours}h {minutes}m"
        return f"in {minutes}m"

    local = reset_at.astimezone()
    if include_date:
        return f"on {local.day} {local.strftime('%b')} at {local.strftime('%H:%M')}"
    return f"at {local.strftime('%H:%M')}"


def atomic_write_json(path: Path, data: Dict[str, Any], preserve_permissions: bool = True):
    """Atomically write JSON to disk with optional permission preservation."""
    path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    try:
        os.chmod(path.parent, 0o700)
    except OSError:
        pass  # Best effort

    mode = 0o600
    if preserve_permissions and path.exists():
        try:
            mode = path.stat().st_mode & 0o777
        except OSError:
            pass

    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2)
            handle.flush()
            os.fsync(handle.fileno())

        os.replace(tmp_path, path)
        os.chmod(path, mode)
    except Exception:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise
