"""
Linux platform adapter (X11 and Wayland) built on command-line tools.

Key design choices:
  1. The display server is re-detected from the environment on every call
  2. Window listing: xdotool, then wmctrl on X11; GNOME Shell Eval over
     gdbus on Wayland (other compositors do not expose other apps' windows)
  3. Display listing: xrandr on X11; wlr-randr on Wayland with xrandr
     (XWayland) as the fallback
  4. Every capture kind has its own ordered tool chain, see the
     ``*_chain`` methods; whole-screen tools are the last resort
"""

from __future__ import annotations

import json
import logging
import os
import re
from contextlib import suppress
from typing import Any, Mapping

from screenshot_mcp._base import PlatformAdapter, capture_file, read_capture
from screenshot_mcp._chain import Step, run_chain
from screenshot_mcp._shell import CommandRunner
from screenshot_mcp.errors import ExternalToolFailure
from screenshot_mcp.format import (
    displays_from_raw,
    to_int,
    windows_from_raw,
)
from screenshot_mcp.models import DisplayInfo, WindowInfo, default_display

logger = logging.getLogger(__name__)

X11 = "x11"
WAYLAND = "wayland"
UNKNOWN = "unknown"

# ---------------------------------------------------------------------------
# Output patterns
# ---------------------------------------------------------------------------

# xdotool getwindowgeometry:
#   Window 12345
#     Position: 100,200 (screen: 0)
#     Geometry: 800x600
_POSITION_RE = re.compile(r"Position:\s*(-?\d+),(-?\d+)")
_GEOMETRY_RE = re.compile(r"Geometry:\s*(\d+)x(\d+)")

# xrandr --query:
#   DP-1 connected primary 2560x1440+0+0 (normal left ...) 597mm x 336mm
_XRANDR_RE = re.compile(
    r"^(\S+)\s+connected\s*(primary)?\s*(\d+)x(\d+)\+(-?\d+)\+(-?\d+)",
    re.MULTILINE,
)

# wlr-randr:
#   eDP-1 "Sharp Corporation 0x1453 (eDP-1)"
#     Modes:
#       1920x1080 px, 60.000000 Hz (preferred, current)
#     Position: 0,0
_WLR_MODE_RE = re.compile(r"(\d+)x(\d+)\s+px,.*current")
_WLR_AT_RE = re.compile(r"\bat\s+(-?\d+),(-?\d+)")
_WLR_POSITION_RE = re.compile(r"^\s+Position:\s*(-?\d+),(-?\d+)")

# gdbus reply envelope: (true, '[{"id": 1, ...}]')
# GLib switches to double quotes when the string holds an apostrophe and
# backslash-escapes the quote in use and every backslash.
_GDBUS_REPLY_RE = re.compile(r"""\(true,\s*(['"])(.*)\1\)""", re.DOTALL)
_GVARIANT_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)

_GNOME_WINDOWS_JS = (
    "global.get_window_actors().map(a => a.meta_window).map(w => ({"
    "id: w.get_id(), "
    "title: w.get_title() || '', "
    "app: w.get_wm_class() || '', "
    "x: w.get_frame_rect().x, "
    "y: w.get_frame_rect().y, "
    "width: w.get_frame_rect().width, "
    "height: w.get_frame_rect().height"
    "}))"
)


def detect_display_server(env: Mapping[str, str] | None = None) -> str:
    """Classify the session as 'x11', 'wayland' or 'unknown'.

    Precedence: XDG_SESSION_TYPE, then WAYLAND_DISPLAY, then DISPLAY.
    """
    if env is None:
        env = os.environ
    session = env.get("XDG_SESSION_TYPE", "").strip().lower()
    if session == WAYLAND:
        return WAYLAND
    if session == X11:
        return X11
    if env.get("WAYLAND_DISPLAY"):
        return WAYLAND
    if env.get("DISPLAY"):
        return X11
    return UNKNOWN


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------

def parse_xdotool_geometry(text: str) -> dict[str, int]:
    """Pull x/y/width/height out of ``xdotool getwindowgeometry``; misses give 0."""
    pos = _POSITION_RE.search(text)
    size = _GEOMETRY_RE.search(text)
    return {
        "x": int(pos.group(1)) if pos else 0,
        "y": int(pos.group(2)) if pos else 0,
        "width": int(size.group(1)) if size else 0,
        "height": int(size.group(2)) if size else 0,
    }


def parse_wmctrl(text: str) -> list[WindowInfo]:
    """Parse ``wmctrl -l -G``.

    Columns: id, desktop, x, y, width, height, host, title...
    Lines with fewer than 8 whitespace-separated tokens are skipped.
    """
    raws = []
    for line in text.splitlines():
        parts = line.split()
        if len(parts) < 8:
            continue
        raws.append({
            "id": parts[0],
            "title": " ".join(parts[7:]),
            "app": "",
            "x": to_int(parts[2]),
            "y": to_int(parts[3]),
            "width": to_int(parts[4]),
            "height": to_int(parts[5]),
        })
    return windows_from_raw(raws)


def parse_xrandr(text: str) -> list[DisplayInfo]:
    raws = []
    for index, match in enumerate(_XRANDR_RE.finditer(text)):
        name, primary, w, h, x, y = match.groups()
        raws.append({
            "id": index + 1,
            "name": name,
            "primary": primary == "primary",
            "x": int(x),
            "y": int(y),
            "width": int(w),
            "height": int(h),
        })
    return displays_from_raw(raws)


def parse_wlr_randr(text: str) -> list[DisplayInfo]:
    """Parse ``wlr-randr`` output blocks.

    An output with no ``current`` mode (disabled) is skipped.  wlr-randr
    has no notion of a primary output; the first one is elected.
    """
    raws: list[dict[str, Any]] = []
    current: dict[str, Any] | None = None

    def flush() -> None:
        if current is not None and "width" in current:
            raws.append(current)

    for line in text.splitlines():
        if not line.strip():
            continue
        if not line[0].isspace():
            flush()
            current = {"name": line.split()[0]}
            continue
        if current is None:
            continue
        mode = _WLR_MODE_RE.search(line)
        if mode and "width" not in current:
            current["width"] = int(mode.group(1))
            current["height"] = int(mode.group(2))
            at = _WLR_AT_RE.search(line)
            if at:
                current["x"], current["y"] = int(at.group(1)), int(at.group(2))
            continue
        pos = _WLR_POSITION_RE.match(line)
        if pos:
            current["x"], current["y"] = int(pos.group(1)), int(pos.group(2))
    flush()

    for index, raw in enumerate(raws):
        raw["id"] = index + 1
        raw["primary"] = index == 0
    return displays_from_raw(raws)


def parse_gnome_eval(reply: str) -> list[WindowInfo] | None:
    """Extract the JSON window list from a ``gdbus ... Eval`` reply.

    Returns None when the reply is not a successful evaluation (Eval is
    disabled outside unsafe mode on recent GNOME releases).
    """
    match = _GDBUS_REPLY_RE.search(reply)
    if not match:
        return None
    payload = _GVARIANT_ESCAPE_RE.sub(r"\1", match.group(2))
    try:
        parsed = json.loads(payload)
    except ValueError:
        return None
    if not isinstance(parsed, list):
        return None
    return windows_from_raw(parsed)


# ---------------------------------------------------------------------------
# LinuxAdapter
# ---------------------------------------------------------------------------


class LinuxAdapter(PlatformAdapter):
    """Adapter for Linux desktops via X11/Wayland command-line tools."""

    def __init__(
        self,
        runner: CommandRunner | None = None,
        env: Mapping[str, str] | None = None,
    ):
        super().__init__(runner)
        self._env = env

    @property
    def platform_name(self) -> str:
        return "linux"

    @property
    def display_server(self) -> str:
        return detect_display_server(self._env)

    def _exists(self, command: str) -> bool:
        return self.runner.exists(command)

    # ---- windows ---------------------------------------------------------

    def list_windows(self) -> list[WindowInfo]:
        if self.display_server == WAYLAND:
            return self._list_windows_wayland()
        return self._list_windows_x11()

    def _list_windows_x11(self) -> list[WindowInfo]:
        if self._exists("xdotool"):
            try:
                return self._list_windows_xdotool()
            except ExternalToolFailure as e:
                logger.debug("xdotool window search failed: %s", e)

        if self._exists("wmctrl"):
            try:
                return parse_wmctrl(self.runner.run(["wmctrl", "-l", "-G"]))
            except ExternalToolFailure as e:
                logger.debug("wmctrl failed: %s", e)

        logger.warning("No window listing tool available. Install xdotool or wmctrl.")
        return []

    def _list_windows_xdotool(self) -> list[WindowInfo]:
        output = self.runner.run(["xdotool", "search", "--onlyvisible", "--name", ""])
        raws = []
        for window_id in (line.strip() for line in output.splitlines()):
            if not window_id:
                continue
            try:
                title = self.runner.run(["xdotool", "getwindowname", window_id]).strip()
                geometry = self.runner.run(["xdotool", "getwindowgeometry", window_id])
            except ExternalToolFailure:
                # Window vanished between search and query
                continue
            raws.append({
                "id": window_id,
                "title": title,
                "app": self._window_app(window_id),
                **parse_xdotool_geometry(geometry),
            })
        return windows_from_raw(raws)

    def _window_app(self, window_id: str) -> str:
        """Owning process name, or "" when the window has no _NET_WM_PID."""
        try:
            pid = self.runner.run(["xdotool", "getwindowpid", window_id]).strip()
        except ExternalToolFailure:
            return ""
        if not pid or pid == "0":
            return ""
        try:
            return self.runner.run(["ps", "-p", pid, "-o", "comm="]).strip()
        except ExternalToolFailure:
            return ""

    def _list_windows_wayland(self) -> list[WindowInfo]:
        if self._exists("gdbus"):
            try:
                reply = self.runner.run([
                    "gdbus", "call", "--session",
                    "--dest", "org.gnome.Shell",
                    "--object-path", "/org/gnome/Shell",
                    "--method", "org.gnome.Shell.Eval",
                    _GNOME_WINDOWS_JS,
                ])
            except ExternalToolFailure as e:
                logger.debug("GNOME Shell Eval failed: %s", e)
            else:
                windows = parse_gnome_eval(reply)
                if windows is not None:
                    return windows

        logger.warning(
            "Window listing on Wayland is limited. Only GNOME Shell is partially supported."
        )
        return []

    # ---- displays --------------------------------------------------------

    def list_displays(self) -> list[DisplayInfo]:
        if self.display_server == WAYLAND:
            return self._list_displays_wayland()
        return self._list_displays_x11()

    def _list_displays_x11(self) -> list[DisplayInfo]:
        if self._exists("xrandr"):
            try:
                displays = parse_xrandr(self.runner.run(["xrandr", "--query"]))
            except ExternalToolFailure as e:
                logger.debug("xrandr failed: %s", e)
            else:
                if displays:
                    return displays
        logger.info("Could not query displays, using the default display")
        return [default_display()]

    def _list_displays_wayland(self) -> list[DisplayInfo]:
        if self._exists("wlr-randr"):
            try:
                displays = parse_wlr_randr(self.runner.run(["wlr-randr"]))
            except ExternalToolFailure as e:
                logger.debug("wlr-randr failed: %s", e)
            else:
                if displays:
                    return displays
        # XWayland may still answer xrandr
        return self._list_displays_x11()

    # ---- capture chains --------------------------------------------------

    def window_chain(self, window_id: str, path: str) -> list[Step[None]]:
        steps: list[Step[None]] = []
        if self.display_server == X11:
            steps.append(Step(
                "import", ("import",),
                lambda: self._run(["import", "-window", window_id, path]),
            ))
            steps.append(Step(
                "xwd", ("xwd", "convert"),
                lambda: self._xwd_capture(window_id, path),
            ))
        steps.append(Step(
            "gnome-screenshot", ("gnome-screenshot",),
            lambda: self._run(["gnome-screenshot", "-f", path]),
            approximate=True,
        ))
        return steps

    def region_chain(self, x: int, y: int, width: int, height: int, path: str) -> list[Step[None]]:
        crop = f"{width}x{height}+{x}+{y}"
        area = f"{x},{y},{width},{height}"
        return [
            Step(
                "import", ("import",),
                lambda: self._run(["import", "-window", "root", "-crop", crop, "+repage", path]),
            ),
            Step(
                "scrot", ("scrot",),
                lambda: self._run(["scrot", "-a", area, path]),
            ),
            Step(
                "gnome-screenshot", ("gnome-screenshot",),
                lambda: self._run(["gnome-screenshot", "-f", path]),
                approximate=True,
            ),
        ]

    def screen_chain(self, path: str) -> list[Step[None]]:
        steps: list[Step[None]] = [
            Step(
                "gnome-screenshot", ("gnome-screenshot",),
                lambda: self._run(["gnome-screenshot", "-f", path]),
            ),
            Step("scrot", ("scrot",), lambda: self._run(["scrot", path])),
            Step(
                "import", ("import",),
                lambda: self._run(["import", "-window", "root", path]),
            ),
        ]
        if self.display_server == WAYLAND:
            steps.append(Step("grim", ("grim",), lambda: self._run(["grim", path])))
        return steps

    def _run(self, args: list[str]) -> None:
        self.runner.run(args)

    def _xwd_capture(self, window_id: str, path: str) -> None:
        dump = path + ".xwd"
        try:
            self.runner.run(["xwd", "-id", window_id, "-out", dump])
            self.runner.run(["convert", dump, path])
        finally:
            with suppress(FileNotFoundError):
                os.remove(dump)

    # ---- capture ---------------------------------------------------------

    def screenshot_window(self, window_id: str) -> bytes:
        with capture_file() as path:
            name, _ = run_chain(
                self.window_chain(str(window_id), path),
                self._exists,
                purpose="window screenshot",
                hint="Install imagemagick (import) or xwd.",
            )
            return read_capture(path, [name])

    def screenshot_screen(self, display_id: int | None = None) -> bytes:
        if display_id is not None:
            logger.debug("display_id=%s ignored: Linux tools capture the whole screen", display_id)
        with capture_file() as path:
            name, _ = run_chain(
                self.screen_chain(path),
                self._exists,
                purpose="screenshot",
                hint="Install gnome-screenshot, scrot, imagemagick, or grim (Wayland).",
            )
            return read_capture(path, [name])

    def screenshot_region(self, x: int, y: int, width: int, height: int) -> bytes:
        with capture_file() as path:
            name, _ = run_chain(
                self.region_chain(x, y, width, height, path),
                self._exists,
                purpose="region screenshot",
                hint="Install imagemagick, gnome-screenshot, or scrot.",
            )
            return read_capture(path, [name])
