"""Shared fakes: a scripted command runner and an in-memory adapter."""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

import pytest

from screenshot_mcp import _router
from screenshot_mcp._base import PlatformAdapter
from screenshot_mcp.models import DisplayInfo, WindowInfo

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR-fake-image-body"

_QUOTED_PNG_RE = re.compile(r"'([^'\n]+\.png)'")


class FakeRunner:
    """Stands in for CommandRunner.

    ``tools`` is the set of commands the probe reports as installed.
    ``outputs`` maps an argv prefix (tuple) to stdout text or to an
    exception instance to raise; the longest matching prefix wins.
    Any ``.png``/``.xwd`` path in the arguments gets ``image`` written to it,
    imitating a capture tool.
    """

    def __init__(
        self,
        tools: Iterable[str] = (),
        outputs: Mapping[tuple, Any] | None = None,
        image: bytes = PNG,
    ):
        self.tools = set(tools)
        self.outputs = dict(outputs or {})
        self.image = image
        self.calls: list[list[str]] = []

    def exists(self, command: str) -> bool:
        return command in self.tools

    def run(self, args) -> str:
        args = [str(a) for a in args]
        self.calls.append(args)
        response = self._match(args)
        if isinstance(response, BaseException):
            raise response
        self._write_outputs(args)
        return "" if response is None else response

    @property
    def programs(self) -> list[str]:
        return [call[0] for call in self.calls]

    def _match(self, args: list[str]):
        best, best_len = None, -1
        for key, value in self.outputs.items():
            if tuple(args[:len(key)]) == tuple(key) and len(key) > best_len:
                best, best_len = value, len(key)
        return best

    def _write_outputs(self, args: list[str]) -> None:
        paths = [a for a in args if a.endswith((".png", ".xwd"))]
        for arg in args:
            paths.extend(_QUOTED_PNG_RE.findall(arg))
        for path in paths:
            with open(path, "wb") as f:
                f.write(self.image)


class FakeAdapter(PlatformAdapter):
    """Adapter backed by fixed lists; records every capture request."""

    def __init__(
        self,
        windows: Iterable[WindowInfo] = (),
        displays: Iterable[DisplayInfo] = (),
        image: bytes = PNG,
    ):
        super().__init__(runner=FakeRunner())
        self.windows = list(windows)
        self.displays = list(displays)
        self.image = image
        self.captures: list[tuple] = []

    @property
    def platform_name(self) -> str:
        return "fake"

    def list_windows(self) -> list[WindowInfo]:
        return list(self.windows)

    def list_displays(self) -> list[DisplayInfo]:
        return list(self.displays)

    def screenshot_window(self, window_id: str) -> bytes:
        self.captures.append(("window", window_id))
        return self.image

    def screenshot_screen(self, display_id: int | None = None) -> bytes:
        self.captures.append(("screen", display_id))
        return self.image

    def screenshot_region(self, x: int, y: int, width: int, height: int) -> bytes:
        self.captures.append(("region", x, y, width, height))
        return self.image


@pytest.fixture(autouse=True)
def _fresh_router():
    """Keep the process-wide adapter cache from leaking between tests."""
    _router.reset_adapter()
    yield
    _router.reset_adapter()
