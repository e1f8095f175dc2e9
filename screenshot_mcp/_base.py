"""Abstract base for platform adapters."""

from __future__ import annotations

import os
import tempfile
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager, suppress
from typing import Iterator

from screenshot_mcp._shell import CommandRunner
from screenshot_mcp.errors import ExternalToolFailure
from screenshot_mcp.models import DisplayInfo, WindowInfo


class PlatformAdapter(ABC):
    """Interface that each OS-specific window/display/capture backend implements.

    Subclasses own no state beyond their command runner: every call is
    resolved against the live OS.  The public operations call only the
    methods defined here.

    Enumeration methods never raise; they degrade to an empty list (windows)
    or the synthetic default display.  Capture methods return raw PNG bytes
    and propagate failures, since no placeholder image is acceptable.
    """

    def __init__(self, runner: CommandRunner | None = None):
        self.runner = runner or CommandRunner()

    # ---- identity --------------------------------------------------------

    @property
    @abstractmethod
    def platform_name(self) -> str:
        """Return the platform identifier: 'macos', 'windows' or 'linux'."""
        ...

    # ---- enumeration -----------------------------------------------------

    @abstractmethod
    def list_windows(self) -> list[WindowInfo]:
        """Return all visible top-level windows in OS enumeration order."""
        ...

    @abstractmethod
    def list_displays(self) -> list[DisplayInfo]:
        """Return attached displays; never empty, exactly one primary."""
        ...

    # ---- capture ---------------------------------------------------------

    @abstractmethod
    def screenshot_window(self, window_id: str) -> bytes:
        """Capture one window by the id from list_windows()."""
        ...

    @abstractmethod
    def screenshot_screen(self, display_id: int | None = None) -> bytes:
        """Capture a display, or the primary one when display_id is None."""
        ...

    @abstractmethod
    def screenshot_region(self, x: int, y: int, width: int, height: int) -> bytes:
        """Capture a rectangle given in OS display coordinates."""
        ...


# ---------------------------------------------------------------------------
# Temp-file capture helpers
# ---------------------------------------------------------------------------

def temp_capture_path(suffix: str = ".png") -> str:
    """Timestamp-unique path in the system temp dir.

    Two captures in the same nanosecond would collide; that is not guarded.
    """
    return os.path.join(tempfile.gettempdir(), f"screenshot-{time.time_ns()}{suffix}")


@contextmanager
def capture_file(suffix: str = ".png") -> Iterator[str]:
    """Yield a temp path and delete whatever is there afterwards."""
    path = temp_capture_path(suffix)
    try:
        yield path
    finally:
        with suppress(FileNotFoundError):
            os.remove(path)


def read_capture(path: str, command: list[str]) -> bytes:
    """Read a tool's output file, treating a missing or empty file as failure."""
    try:
        with open(path, "rb") as f:
            data = f.read()
    except FileNotFoundError as e:
        raise ExternalToolFailure(command, reason="did not write an image") from e
    if not data:
        raise ExternalToolFailure(command, reason="wrote an empty image")
    return data
