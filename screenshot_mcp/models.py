"""Data model shared by every platform adapter."""

from __future__ import annotations

import base64
from dataclasses import asdict, dataclass, field

DATA_URL_PREFIX = "data:image/png;base64,"


@dataclass(frozen=True)
class Bounds:
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class WindowInfo:
    """An on-screen window.

    ``id`` is opaque and only meaningful to the adapter that produced it
    (CGWindowID on macOS, HWND on Windows, X11 window id on Linux).
    """

    id: str
    title: str = ""
    app: str = ""
    bounds: Bounds = field(default_factory=Bounds)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class DisplayInfo:
    id: int
    name: str
    primary: bool = False
    bounds: Bounds = field(default_factory=Bounds)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ScreenshotResult:
    """A captured PNG embedded as a data URL, plus where it was saved."""

    image: str
    saved_path: str | None = None

    @property
    def png(self) -> bytes:
        """Decode the embedded image back to raw PNG bytes."""
        payload = self.image
        if payload.startswith(DATA_URL_PREFIX):
            payload = payload[len(DATA_URL_PREFIX):]
        return base64.b64decode(payload)

    def to_dict(self) -> dict:
        result: dict = {"image": self.image}
        if self.saved_path is not None:
            result["saved_path"] = self.saved_path
        return result


def default_display() -> DisplayInfo:
    """Placeholder returned when no real display data can be obtained."""
    return DisplayInfo(
        id=1,
        name="Main Display",
        primary=True,
        bounds=Bounds(0, 0, 1920, 1080),
    )
