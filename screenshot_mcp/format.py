"""
Result normalization: raw adapter output -> shared data model.

Adapters hand over whatever their native query produced (parsed JSON,
regex groups, pyobjc dictionaries) and these helpers fill in defaults,
coerce numbers and enforce the display invariants.
"""

from __future__ import annotations

import base64
import json
from typing import Any, Iterable, Mapping, Sequence

from screenshot_mcp.models import (
    DATA_URL_PREFIX,
    Bounds,
    DisplayInfo,
    ScreenshotResult,
    WindowInfo,
    default_display,
)


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------

def to_int(value: Any, default: int = 0) -> int:
    """Coerce ints, floats and numeric strings; anything else -> default."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def as_list(value: Any) -> list:
    """Wrap a lone JSON object into a one-element list.

    PowerShell's ConvertTo-Json emits a bare object instead of an array
    when the pipeline carries exactly one item.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return [value]


# ---------------------------------------------------------------------------
# Model builders
# ---------------------------------------------------------------------------

def bounds_from_raw(raw: Mapping[str, Any] | None) -> Bounds:
    """Accept ``{x, y, width, height}`` or the ``{X, Y, Width, Height}`` spelling."""
    if not raw:
        return Bounds()

    def pick(*keys: str) -> int:
        for key in keys:
            if key in raw:
                return to_int(raw[key])
        return 0

    return Bounds(
        x=pick("x", "X"),
        y=pick("y", "Y"),
        width=max(0, pick("width", "Width", "w")),
        height=max(0, pick("height", "Height", "h")),
    )


def window_from_raw(raw: Mapping[str, Any]) -> WindowInfo:
    bounds = raw.get("bounds")
    if not isinstance(bounds, Mapping):
        bounds = raw
    return WindowInfo(
        id=str(raw.get("id", "")).strip(),
        title=str(raw.get("title") or ""),
        app=str(raw.get("app") or ""),
        bounds=bounds_from_raw(bounds),
    )


def windows_from_raw(raws: Iterable[Mapping[str, Any]]) -> list[WindowInfo]:
    """Normalize a window list, dropping entries without an id."""
    windows = []
    for raw in raws:
        if not isinstance(raw, Mapping):
            continue
        window = window_from_raw(raw)
        if window.id:
            windows.append(window)
    return windows


def displays_from_raw(raws: Iterable[Mapping[str, Any]]) -> list[DisplayInfo]:
    """Normalize a display list.

    Ids default to the 1-based position.  Exactly one display ends up
    primary: the first one the OS flagged, else the first enumerated.
    """
    displays: list[DisplayInfo] = []
    for index, raw in enumerate(r for r in raws if isinstance(r, Mapping)):
        ordinal = index + 1
        bounds = raw.get("bounds")
        if not isinstance(bounds, Mapping):
            bounds = raw
        displays.append(DisplayInfo(
            id=to_int(raw.get("id"), ordinal) or ordinal,
            name=str(raw.get("name") or f"Display {ordinal}"),
            primary=bool(raw.get("primary", False)),
            bounds=bounds_from_raw(bounds),
        ))
    return elect_primary(displays)


def elect_primary(displays: Sequence[DisplayInfo]) -> list[DisplayInfo]:
    if not displays:
        return []
    flagged = next((i for i, d in enumerate(displays) if d.primary), 0)
    return [
        DisplayInfo(id=d.id, name=d.name, primary=(i == flagged), bounds=d.bounds)
        for i, d in enumerate(displays)
    ]


def ensure_displays(displays: Sequence[DisplayInfo]) -> list[DisplayInfo]:
    """Never hand back an empty display list."""
    return list(displays) if displays else [default_display()]


def primary_display(displays: Sequence[DisplayInfo]) -> DisplayInfo:
    displays = ensure_displays(displays)
    return next((d for d in displays if d.primary), displays[0])


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------

def to_data_url(data: bytes) -> str:
    return DATA_URL_PREFIX + base64.b64encode(data).decode("ascii")


def build_result(data: bytes, saved_path: str | None = None) -> ScreenshotResult:
    return ScreenshotResult(image=to_data_url(data), saved_path=saved_path)


def to_json(items: Iterable[WindowInfo | DisplayInfo]) -> str:
    """Serialize model objects the way the MCP tools return them."""
    return json.dumps([item.to_dict() for item in items], indent=2, ensure_ascii=False)
