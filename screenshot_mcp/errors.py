"""Exception types raised by adapters and the public operations."""

from __future__ import annotations

from typing import Sequence


class ScreenshotError(Exception):
    """Base class for every error this package raises on purpose."""


class UnsupportedPlatform(ScreenshotError, RuntimeError):
    """No adapter exists for the running operating system."""

    def __init__(self, system: str):
        self.system = system
        super().__init__(
            f"Unsupported platform: {system}. "
            f"Currently supported: macos, windows, linux."
        )


class ToolUnavailable(ScreenshotError, RuntimeError):
    """Every step of a fallback chain was missing its native tool."""

    def __init__(self, message: str, families: Sequence[str] = ()):
        self.families = tuple(families)
        super().__init__(message)


class TargetNotFound(ScreenshotError, LookupError):
    """The requested window or display does not exist."""


class MissingIdentifier(ScreenshotError, ValueError):
    """A window capture was requested without window_id or window_title."""


class ExternalToolFailure(ScreenshotError, RuntimeError):
    """A native tool ran but failed or produced unusable output."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int | None = None,
        stderr: str = "",
        reason: str | None = None,
    ):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        tool = self.command[0] if self.command else "<empty>"
        if reason is None:
            reason = f"exited with status {returncode}"
        detail = f": {stderr.strip()}" if stderr and stderr.strip() else ""
        super().__init__(f"{tool} {reason}{detail}")


class InvalidRegion(ScreenshotError, ValueError):
    """A region capture was requested with a non-positive width or height."""
