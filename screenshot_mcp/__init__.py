"""
screenshot-mcp -- window/display enumeration and screenshots for AI agents.

One contract on macOS, Windows and Linux (X11/Wayland).

Quick start::

    import screenshot_mcp

    # What is on screen?
    windows = screenshot_mcp.list_windows()
    displays = screenshot_mcp.list_displays()

    # Capture; result.image is a data:image/png;base64 URL
    result = screenshot_mcp.screenshot_window(window_title="firefox")
    result = screenshot_mcp.screenshot_screen(save_dir="~/Pictures/shots")
    result = screenshot_mcp.screenshot_region(0, 0, 800, 600)

Every function accepts ``adapter=`` to use a specific PlatformAdapter
instead of the one detected for this OS.
"""

from __future__ import annotations

import logging

from screenshot_mcp._base import PlatformAdapter
from screenshot_mcp._router import detect_platform, get_adapter
from screenshot_mcp.errors import (
    ExternalToolFailure,
    InvalidRegion,
    MissingIdentifier,
    ScreenshotError,
    TargetNotFound,
    ToolUnavailable,
    UnsupportedPlatform,
)
from screenshot_mcp.format import build_result, ensure_displays
from screenshot_mcp.models import (
    Bounds,
    DisplayInfo,
    ScreenshotResult,
    WindowInfo,
    default_display,
)
from screenshot_mcp.storage import save_screenshot

__all__ = [
    "list_windows",
    "list_displays",
    "find_window",
    "screenshot_window",
    "screenshot_screen",
    "screenshot_region",
    # Data model
    "Bounds",
    "WindowInfo",
    "DisplayInfo",
    "ScreenshotResult",
    "default_display",
    # Errors
    "ScreenshotError",
    "UnsupportedPlatform",
    "ToolUnavailable",
    "TargetNotFound",
    "MissingIdentifier",
    "InvalidRegion",
    "ExternalToolFailure",
    # Advanced / building blocks
    "PlatformAdapter",
    "get_adapter",
    "detect_platform",
]

logger = logging.getLogger(__name__)


def _resolve(adapter: PlatformAdapter | None) -> PlatformAdapter:
    return adapter if adapter is not None else get_adapter()


def _finish(data: bytes, save_dir: str | None) -> ScreenshotResult:
    """Embed the PNG and optionally persist it."""
    saved_path = save_screenshot(data, save_dir) if save_dir else None
    if saved_path:
        logger.info("Saved screenshot to %s", saved_path)
    return build_result(data, saved_path)


def list_windows(*, adapter: PlatformAdapter | None = None) -> list[WindowInfo]:
    """List visible windows (id, title, app, bounds) in enumeration order."""
    return _resolve(adapter).list_windows()


def list_displays(*, adapter: PlatformAdapter | None = None) -> list[DisplayInfo]:
    """List displays; falls back to the synthetic default, never empty."""
    return ensure_displays(_resolve(adapter).list_displays())


def find_window(title: str, *, adapter: PlatformAdapter | None = None) -> WindowInfo:
    """First window whose title contains ``title``, case-insensitively.

    Raises:
        TargetNotFound: no window title matches.
    """
    needle = title.lower()
    for window in _resolve(adapter).list_windows():
        if needle in window.title.lower():
            return window
    raise TargetNotFound(
        f"No window found matching title: {title}. "
        f"Use list_windows to see available windows."
    )


def screenshot_window(
    window_id: str | None = None,
    window_title: str | None = None,
    save_dir: str | None = None,
    *,
    adapter: PlatformAdapter | None = None,
) -> ScreenshotResult:
    """Capture one window, by id or by (partial, case-insensitive) title.

    ``window_id`` wins when both are given.

    Raises:
        MissingIdentifier: neither window_id nor window_title was given.
        TargetNotFound: window_title matched nothing.
    """
    if not window_id and not window_title:
        raise MissingIdentifier(
            "Either window_id or window_title must be provided. "
            "Use list_windows to see available windows."
        )
    adapter = _resolve(adapter)
    if not window_id:
        window_id = find_window(window_title, adapter=adapter).id
    return _finish(adapter.screenshot_window(str(window_id)), save_dir)


def screenshot_screen(
    display_id: int | None = None,
    save_dir: str | None = None,
    *,
    adapter: PlatformAdapter | None = None,
) -> ScreenshotResult:
    """Capture a display (default: the primary one)."""
    return _finish(_resolve(adapter).screenshot_screen(display_id), save_dir)


def screenshot_region(
    x: int,
    y: int,
    width: int,
    height: int,
    save_dir: str | None = None,
    *,
    adapter: PlatformAdapter | None = None,
) -> ScreenshotResult:
    """Capture the rectangle at (x, y) of size width x height.

    Raises:
        InvalidRegion: width or height is not positive.
    """
    width, height = int(width), int(height)
    if width <= 0 or height <= 0:
        raise InvalidRegion(
            f"width and height must be positive (got {width}x{height})."
        )
    data = _resolve(adapter).screenshot_region(int(x), int(y), width, height)
    return _finish(data, save_dir)
