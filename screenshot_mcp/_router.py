"""Platform auto-detection and adapter dispatch."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from screenshot_mcp.errors import UnsupportedPlatform

if TYPE_CHECKING:
    from screenshot_mcp._base import PlatformAdapter

_adapter_instance: PlatformAdapter | None = None

SUPPORTED_PLATFORMS = ("macos", "windows", "linux")


def detect_platform(system: str | None = None) -> str:
    """Map an OS identifier (default ``sys.platform``) to a platform name.

    Raises:
        UnsupportedPlatform: for anything that is not Windows, macOS or Linux.
    """
    if system is None:
        system = sys.platform
    if system == "win32":
        return "windows"
    elif system == "darwin":
        return "macos"
    elif system.startswith("linux"):
        return "linux"
    else:
        raise UnsupportedPlatform(system)


def get_adapter(platform: str | None = None) -> PlatformAdapter:
    """Return the appropriate platform adapter, creating it if needed.

    Args:
        platform: Force a specific platform ('windows', 'macos', 'linux').
                  If None, auto-detects from sys.platform.

    Raises:
        UnsupportedPlatform: If no adapter exists for the platform.
    """
    global _adapter_instance

    if platform is None:
        platform = detect_platform()

    # Return cached instance if it matches
    if _adapter_instance is not None and _adapter_instance.platform_name == platform:
        return _adapter_instance

    if platform == "windows":
        from screenshot_mcp.platforms.windows import WindowsAdapter
        _adapter_instance = WindowsAdapter()
    elif platform == "macos":
        from screenshot_mcp.platforms.macos import MacosAdapter
        _adapter_instance = MacosAdapter()
    elif platform == "linux":
        from screenshot_mcp.platforms.linux import LinuxAdapter
        _adapter_instance = LinuxAdapter()
    else:
        raise UnsupportedPlatform(platform)

    return _adapter_instance


def reset_adapter() -> None:
    """Forget the cached adapter so the next call re-resolves it."""
    global _adapter_instance
    _adapter_instance = None
