"""
macOS platform adapter.

Window and display queries go straight to the window server through
pyobjc (Quartz CGWindowList, AppKit NSScreen); captures use the system
``screencapture`` tool.

Requires (macOS only):
  pip install pyobjc-framework-Quartz pyobjc-framework-Cocoa
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from screenshot_mcp._base import PlatformAdapter, capture_file, read_capture
from screenshot_mcp._chain import Step, run_chain
from screenshot_mcp.format import displays_from_raw, to_int, windows_from_raw
from screenshot_mcp.models import DisplayInfo, WindowInfo, default_display

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Native queries
# ---------------------------------------------------------------------------

def _cg_window_list() -> list[Mapping[str, Any]]:
    """Raw CGWindowListCopyWindowInfo dictionaries for on-screen windows."""
    from Quartz import (
        CGWindowListCopyWindowInfo,
        kCGNullWindowID,
        kCGWindowListExcludeDesktopElements,
        kCGWindowListOptionOnScreenOnly,
    )

    windows = CGWindowListCopyWindowInfo(
        kCGWindowListOptionOnScreenOnly | kCGWindowListExcludeDesktopElements,
        kCGNullWindowID,
    )
    return list(windows or [])


def _ns_screens() -> list[tuple[str, tuple[float, float, float, float]]]:
    """(localized name, (x, y, width, height)) per NSScreen, main screen first."""
    from AppKit import NSScreen

    screens = []
    for screen in NSScreen.screens() or []:
        frame = screen.frame()
        try:
            name = str(screen.localizedName())
        except AttributeError:
            # localizedName is macOS 10.15+
            name = ""
        screens.append((
            name,
            (frame.origin.x, frame.origin.y, frame.size.width, frame.size.height),
        ))
    return screens


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------

def parse_cg_windows(entries: Iterable[Mapping[str, Any]]) -> list[WindowInfo]:
    """Keep normal application windows (layer 0) that have an owner and number."""
    raws = []
    for w in entries:
        if w.get("kCGWindowLayer", -1) != 0:
            continue
        owner = w.get("kCGWindowOwnerName")
        number = w.get("kCGWindowNumber")
        if not owner or number is None:
            continue
        bounds = w.get("kCGWindowBounds") or {}
        raws.append({
            "id": str(to_int(number)),
            "title": w.get("kCGWindowName") or "",
            "app": str(owner),
            "x": bounds.get("X", 0),
            "y": bounds.get("Y", 0),
            "width": bounds.get("Width", 0),
            "height": bounds.get("Height", 0),
        })
    return windows_from_raw(raws)


def parse_ns_screens(
    screens: Iterable[tuple[str, tuple[float, float, float, float]]],
) -> list[DisplayInfo]:
    """NSScreen.screens() lists the menu-bar screen first; that one is primary."""
    raws = []
    for index, (name, (x, y, width, height)) in enumerate(screens):
        raws.append({
            "id": index + 1,
            "name": name or f"Display {index + 1}",
            "primary": index == 0,
            "x": x,
            "y": y,
            "width": width,
            "height": height,
        })
    return displays_from_raw(raws)


# ---------------------------------------------------------------------------
# MacosAdapter: PlatformAdapter implementation
# ---------------------------------------------------------------------------


class MacosAdapter(PlatformAdapter):
    """Adapter for macOS via pyobjc and screencapture."""

    @property
    def platform_name(self) -> str:
        return "macos"

    def list_windows(self) -> list[WindowInfo]:
        try:
            return parse_cg_windows(_cg_window_list())
        except Exception as e:
            logger.warning("Could not list windows via Quartz: %s", e)
            return []

    def list_displays(self) -> list[DisplayInfo]:
        try:
            displays = parse_ns_screens(_ns_screens())
        except Exception as e:
            logger.warning("Could not list displays via AppKit: %s", e)
            displays = []
        return displays or [default_display()]

    # ---- capture ---------------------------------------------------------

    def _screencapture(self, flags: list[str], purpose: str) -> bytes:
        """Run ``screencapture -x -o <flags> <tmp>`` and return the PNG.

        -x silences the shutter sound, -o drops the window shadow.
        """
        with capture_file() as path:
            command = ["screencapture", "-x", "-o", *flags, path]
            run_chain(
                [Step("screencapture", ("screencapture",), lambda: self.runner.run(command))],
                self.runner.exists,
                purpose=purpose,
                hint="screencapture ships with macOS; check that /usr/sbin is on PATH.",
            )
            return read_capture(path, command)

    def screenshot_window(self, window_id: str) -> bytes:
        return self._screencapture(["-l", str(window_id)], "window screenshot")

    def screenshot_screen(self, display_id: int | None = None) -> bytes:
        flags = ["-D", str(display_id)] if display_id is not None else []
        return self._screencapture(flags, "screenshot")

    def screenshot_region(self, x: int, y: int, width: int, height: int) -> bytes:
        return self._screencapture(["-R", f"{x},{y},{width},{height}"], "region screenshot")
