"""
Windows platform adapter.

Key design choices:
  1. Enumeration runs small PowerShell scripts that P/Invoke user32 and
     System.Windows.Forms and print JSON, so the adapter itself stays
     plain subprocess + json
  2. Window capture uses PrintWindow(PW_RENDERFULLCONTENT), which renders
     occluded and off-screen parts regardless of Z-order
  3. Screen and region capture copy pixels from the virtual screen with mss
"""

from __future__ import annotations

import json
import logging

import mss
import mss.tools
from mss.exception import ScreenShotError

from screenshot_mcp._base import PlatformAdapter, capture_file, read_capture
from screenshot_mcp._chain import Step, run_chain
from screenshot_mcp.errors import ExternalToolFailure, TargetNotFound
from screenshot_mcp.format import (
    as_list,
    displays_from_raw,
    primary_display,
    windows_from_raw,
)
from screenshot_mcp.models import Bounds, DisplayInfo, WindowInfo, default_display

logger = logging.getLogger(__name__)

POWERSHELL_EXECUTABLES = ("powershell", "pwsh")

# ---------------------------------------------------------------------------
# PowerShell scripts
# ---------------------------------------------------------------------------

LIST_WINDOWS_SCRIPT = r'''
Add-Type @"
using System;
using System.Runtime.InteropServices;
using System.Text;
using System.Collections.Generic;

public class WindowLister {
    public delegate bool EnumWindowsProc(IntPtr hWnd, IntPtr lParam);

    [DllImport("user32.dll")]
    public static extern bool EnumWindows(EnumWindowsProc lpEnumFunc, IntPtr lParam);
    [DllImport("user32.dll")]
    public static extern bool IsWindowVisible(IntPtr hWnd);
    [DllImport("user32.dll", CharSet = CharSet.Unicode)]
    public static extern int GetWindowText(IntPtr hWnd, StringBuilder lpString, int nMaxCount);
    [DllImport("user32.dll")]
    public static extern int GetWindowTextLength(IntPtr hWnd);
    [DllImport("user32.dll")]
    public static extern bool GetWindowRect(IntPtr hWnd, out RECT lpRect);
    [DllImport("user32.dll")]
    public static extern uint GetWindowThreadProcessId(IntPtr hWnd, out uint lpdwProcessId);
    [DllImport("user32.dll")]
    public static extern IntPtr GetShellWindow();

    [StructLayout(LayoutKind.Sequential)]
    public struct RECT { public int Left, Top, Right, Bottom; }

    public static List<Dictionary<string, object>> GetWindows() {
        var windows = new List<Dictionary<string, object>>();
        IntPtr shell = GetShellWindow();
        EnumWindows((hWnd, lParam) => {
            if (hWnd == shell || !IsWindowVisible(hWnd)) return true;
            int length = GetWindowTextLength(hWnd);
            if (length == 0) return true;
            var sb = new StringBuilder(length + 1);
            GetWindowText(hWnd, sb, sb.Capacity);
            RECT r;
            GetWindowRect(hWnd, out r);
            if (r.Right - r.Left <= 0 || r.Bottom - r.Top <= 0) return true;
            uint pid;
            GetWindowThreadProcessId(hWnd, out pid);
            string app = "";
            try { app = System.Diagnostics.Process.GetProcessById((int)pid).ProcessName; } catch {}
            var bounds = new Dictionary<string, object> {
                {"x", r.Left}, {"y", r.Top},
                {"width", r.Right - r.Left}, {"height", r.Bottom - r.Top}
            };
            windows.Add(new Dictionary<string, object> {
                {"id", hWnd.ToInt64().ToString()}, {"title", sb.ToString()},
                {"app", app}, {"bounds", bounds}
            });
            return true;
        }, IntPtr.Zero);
        return windows;
    }
}
"@
[WindowLister]::GetWindows() | ConvertTo-Json -Depth 4 -Compress
'''

LIST_DISPLAYS_SCRIPT = r'''
Add-Type -AssemblyName System.Windows.Forms
$i = 0
[System.Windows.Forms.Screen]::AllScreens | ForEach-Object {
    $i++
    @{
        id = $i
        name = $_.DeviceName
        primary = $_.Primary
        bounds = @{
            x = $_.Bounds.X
            y = $_.Bounds.Y
            width = $_.Bounds.Width
            height = $_.Bounds.Height
        }
    }
} | ConvertTo-Json -Depth 4 -Compress
'''

CAPTURE_WINDOW_SCRIPT = r'''
Add-Type -AssemblyName System.Drawing
Add-Type -ReferencedAssemblies System.Drawing @"
using System;
using System.Drawing;
using System.Drawing.Imaging;
using System.Runtime.InteropServices;

public class WindowCapture {
    [DllImport("user32.dll")]
    public static extern bool GetWindowRect(IntPtr hWnd, out RECT lpRect);
    [DllImport("user32.dll")]
    public static extern bool PrintWindow(IntPtr hWnd, IntPtr hdcBlt, int nFlags);

    [StructLayout(LayoutKind.Sequential)]
    public struct RECT { public int Left, Top, Right, Bottom; }

    public static void Capture(long handle, string path) {
        IntPtr hWnd = new IntPtr(handle);
        RECT r;
        if (!GetWindowRect(hWnd, out r)) throw new ArgumentException("Invalid window handle");
        int width = r.Right - r.Left, height = r.Bottom - r.Top;
        if (width <= 0 || height <= 0) throw new ArgumentException("Window has no area");
        using (var bmp = new Bitmap(width, height, PixelFormat.Format32bppArgb)) {
            using (var g = Graphics.FromImage(bmp)) {
                IntPtr hdc = g.GetHdc();
                PrintWindow(hWnd, hdc, 2); // PW_RENDERFULLCONTENT
                g.ReleaseHdc(hdc);
            }
            bmp.Save(path, ImageFormat.Png);
        }
    }
}
"@
[WindowCapture]::Capture({handle}, {path})
'''


def ps_quote(value: str) -> str:
    """Single-quoted PowerShell literal (no interpolation)."""
    return "'" + value.replace("'", "''") + "'"


def parse_window_handle(window_id: str) -> int:
    """HWNDs are listed in decimal; ``0x`` hex is accepted too."""
    text = str(window_id).strip()
    try:
        handle = int(text, 16) if text.lower().startswith("0x") else int(text)
    except ValueError:
        raise TargetNotFound(f"Invalid window handle: {window_id!r}") from None
    if handle <= 0:
        raise TargetNotFound(f"Invalid window handle: {window_id!r}")
    return handle


def parse_json_list(output: str) -> list:
    """Parse ConvertTo-Json output; empty and ``null`` mean no items."""
    text = output.strip()
    if not text or text == "null":
        return []
    return as_list(json.loads(text))


def _grab_png(left: int, top: int, width: int, height: int) -> bytes:
    """Copy a rectangle of the virtual screen and encode it as PNG."""
    monitor = {"left": left, "top": top, "width": width, "height": height}
    with mss.mss() as sct:
        shot = sct.grab(monitor)
        return mss.tools.to_png(shot.rgb, shot.size)


def _primary_monitor() -> Bounds:
    """Primary monitor rectangle as mss sees it; index 0 is the whole virtual screen."""
    with mss.mss() as sct:
        monitors = sct.monitors
        m = monitors[1] if len(monitors) > 1 else monitors[0]
        return Bounds(m["left"], m["top"], m["width"], m["height"])


# ---------------------------------------------------------------------------
# WindowsAdapter: PlatformAdapter implementation
# ---------------------------------------------------------------------------


class WindowsAdapter(PlatformAdapter):
    """Adapter for Windows via PowerShell/user32 and mss."""

    @property
    def platform_name(self) -> str:
        return "windows"

    def powershell_chain(self, script: str) -> list[Step[str]]:
        return [
            Step(
                exe, (exe,),
                lambda exe=exe: self.runner.run(
                    [exe, "-NoProfile", "-NonInteractive", "-ExecutionPolicy", "Bypass",
                     "-Command", script]
                ),
            )
            for exe in POWERSHELL_EXECUTABLES
        ]

    def _powershell(self, script: str, purpose: str) -> str:
        _, output = run_chain(
            self.powershell_chain(script),
            self.runner.exists,
            purpose=purpose,
            hint="PowerShell (powershell.exe or pwsh) must be on PATH.",
        )
        return output

    # ---- enumeration -----------------------------------------------------

    def list_windows(self) -> list[WindowInfo]:
        try:
            output = self._powershell(LIST_WINDOWS_SCRIPT, "window listing")
            return windows_from_raw(parse_json_list(output))
        except Exception as e:
            logger.warning("Could not list windows: %s", e)
            return []

    def _query_displays(self) -> list[DisplayInfo]:
        """Displays reported by Windows; empty when enumeration failed."""
        try:
            output = self._powershell(LIST_DISPLAYS_SCRIPT, "display listing")
            return displays_from_raw(parse_json_list(output))
        except Exception as e:
            logger.warning("Could not list displays: %s", e)
            return []

    def list_displays(self) -> list[DisplayInfo]:
        return self._query_displays() or [default_display()]

    # ---- capture ---------------------------------------------------------

    def screenshot_window(self, window_id: str) -> bytes:
        handle = parse_window_handle(window_id)
        with capture_file() as path:
            script = CAPTURE_WINDOW_SCRIPT.replace("{handle}", str(handle)).replace(
                "{path}", ps_quote(path)
            )
            self._powershell(script, "window screenshot")
            return read_capture(path, ["PrintWindow"])

    def display_bounds(self, display_id: int | None = None) -> Bounds:
        displays = self._query_displays()
        if not displays and display_id in (None, default_display().id):
            # The placeholder display is not real geometry
            logger.info("Display enumeration failed, using the primary monitor from mss")
            try:
                return _primary_monitor()
            except ScreenShotError as e:
                raise ExternalToolFailure(["mss"], reason=f"could not query monitors ({e})") from e
        if display_id is None:
            return primary_display(displays).bounds
        for display in displays:
            if display.id == display_id:
                return display.bounds
        raise TargetNotFound(
            f"No display with id {display_id}. Use list_displays to see available displays."
        )

    def _copy_from_screen(self, bounds: Bounds) -> bytes:
        try:
            return _grab_png(bounds.x, bounds.y, bounds.width, bounds.height)
        except ScreenShotError as e:
            raise ExternalToolFailure(["mss"], reason=f"could not copy the screen ({e})") from e

    def screenshot_screen(self, display_id: int | None = None) -> bytes:
        return self._copy_from_screen(self.display_bounds(display_id))

    def screenshot_region(self, x: int, y: int, width: int, height: int) -> bytes:
        return self._copy_from_screen(Bounds(x, y, width, height))
