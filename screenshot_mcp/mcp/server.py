"""screenshot-mcp MCP server: window listing and screenshot tools for AI agents.

Exposes tools for listing windows and displays and for capturing a
window, a whole display, or a screen region as PNG.
"""

from __future__ import annotations

import json
import logging

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.utilities.types import Image

import screenshot_mcp
from screenshot_mcp._base import PlatformAdapter
from screenshot_mcp._router import get_adapter
from screenshot_mcp.format import to_json
from screenshot_mcp.models import ScreenshotResult

logger = logging.getLogger(__name__)

mcp = FastMCP(
    name="screenshot-mcp",
    instructions=(
        "Use list_windows to see which windows are open (id, title, app, bounds) "
        "and list_displays to see the attached monitors. Window IDs are only "
        "valid while that window exists; list again if a capture fails.\n\n"
        "screenshot_window captures one window by window_id or by a "
        "case-insensitive part of its title. screenshot_screen captures a "
        "whole display (the primary one by default). screenshot_region "
        "captures an exact rectangle in screen coordinates.\n\n"
        "Pass save_dir to also keep the PNG on disk under "
        "<save_dir>/<YYYY-MM-DD>/<YYYYMMDD_HHMMSS>.png."
    ),
)

# ---------------------------------------------------------------------------
# Adapter (one per MCP server process)
# ---------------------------------------------------------------------------

_adapter: PlatformAdapter | None = None


def _get_adapter() -> PlatformAdapter:
    global _adapter
    if _adapter is None:
        _adapter = get_adapter()
    return _adapter


def _failure(error: Exception) -> str:
    logger.warning("%s failed: %s", type(error).__name__, error)
    return json.dumps({
        "success": False,
        "message": "",
        "error": str(error),
    })


def _image_content(result: ScreenshotResult) -> list[Image | str]:
    content: list[Image | str] = [Image(data=result.png, format="png")]
    if result.saved_path:
        content.append(f"Saved to: {result.saved_path}")
    return content


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------

@mcp.tool()
def list_windows() -> str:
    """List all visible windows on the system.

    Returns a JSON array; each window has:

        {"id": str, "title": str, "app": str,
         "bounds": {"x": int, "y": int, "width": int, "height": int}}

    Use the id with screenshot_window. On Wayland only GNOME Shell can be
    queried; elsewhere the list is empty.
    """
    try:
        return to_json(screenshot_mcp.list_windows(adapter=_get_adapter()))
    except Exception as e:
        return _failure(e)


@mcp.tool()
def list_displays() -> str:
    """List all available displays/monitors.

    Returns a JSON array; each display has an id (use with
    screenshot_screen), name, primary flag and bounds.
    """
    try:
        return to_json(screenshot_mcp.list_displays(adapter=_get_adapter()))
    except Exception as e:
        return _failure(e)


@mcp.tool(structured_output=False)
def screenshot_window(
    window_id: str | None = None,
    window_title: str | None = None,
    save_dir: str | None = None,
) -> list[Image | str] | str:
    """Capture a screenshot of a specific window.

    Provide either window_id (from list_windows) or window_title
    (case-insensitive partial match; the first match wins).

    Args:
        window_id: The window ID from list_windows.
        window_title: Window title to search for.
        save_dir: Directory to save the screenshot. Files are organized by date.
    """
    try:
        result = screenshot_mcp.screenshot_window(
            window_id=window_id,
            window_title=window_title,
            save_dir=save_dir,
            adapter=_get_adapter(),
        )
    except Exception as e:
        return _failure(e)
    return _image_content(result)


@mcp.tool(structured_output=False)
def screenshot_screen(
    display_id: int | None = None,
    save_dir: str | None = None,
) -> list[Image | str] | str:
    """Capture a screenshot of an entire display.

    Use list_displays to see available displays.

    Args:
        display_id: Display ID from list_displays. Defaults to the primary display.
        save_dir: Directory to save the screenshot. Files are organized by date.
    """
    try:
        result = screenshot_mcp.screenshot_screen(
            display_id=display_id,
            save_dir=save_dir,
            adapter=_get_adapter(),
        )
    except Exception as e:
        return _failure(e)
    return _image_content(result)


@mcp.tool(structured_output=False)
def screenshot_region(
    x: int,
    y: int,
    width: int,
    height: int,
    save_dir: str | None = None,
) -> list[Image | str] | str:
    """Capture a screenshot of a specific region of the screen.

    Args:
        x: X coordinate of the top-left corner.
        y: Y coordinate of the top-left corner.
        width: Width of the region in pixels.
        height: Height of the region in pixels.
        save_dir: Directory to save the screenshot. Files are organized by date.
    """
    try:
        result = screenshot_mcp.screenshot_region(
            x, y, width, height,
            save_dir=save_dir,
            adapter=_get_adapter(),
        )
    except Exception as e:
        return _failure(e)
    return _image_content(result)
