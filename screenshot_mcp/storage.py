"""Persist captures under a date-organized folder."""

from __future__ import annotations

import os
from datetime import datetime


def screenshot_path(save_dir: str, now: datetime | None = None) -> str:
    """Return ``<save_dir>/<YYYY-MM-DD>/<YYYYMMDD_HHMMSS>.png`` for local time."""
    now = now or datetime.now()
    return os.path.join(
        save_dir,
        now.strftime("%Y-%m-%d"),
        now.strftime("%Y%m%d_%H%M%S") + ".png",
    )


def save_screenshot(data: bytes, save_dir: str, now: datetime | None = None) -> str:
    """Write PNG bytes to the dated folder, creating it, and return the file path.

    Two saves within the same second overwrite each other.
    """
    path = screenshot_path(os.path.expanduser(save_dir), now)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)
    return path
