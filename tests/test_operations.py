"""Tests for the public operations against an in-memory adapter."""

from __future__ import annotations

import os

import pytest

import screenshot_mcp
from screenshot_mcp import (
    InvalidRegion,
    MissingIdentifier,
    TargetNotFound,
    find_window,
    list_displays,
    list_windows,
    screenshot_region,
    screenshot_screen,
    screenshot_window,
)
from screenshot_mcp.models import Bounds, DisplayInfo, WindowInfo, default_display
from screenshot_mcp.platforms.linux import LinuxAdapter

from conftest import PNG, FakeAdapter, FakeRunner

WINDOWS = [
    WindowInfo("10", "Inbox - Mail", "Mail", Bounds(0, 0, 800, 600)),
    WindowInfo("20", "Firefox - Docs", "firefox", Bounds(50, 50, 1200, 900)),
    WindowInfo("30", "firefox - Settings", "firefox", Bounds(60, 60, 400, 300)),
]


@pytest.fixture
def adapter():
    return FakeAdapter(windows=WINDOWS, displays=[
        DisplayInfo(1, "Left", True, Bounds(0, 0, 1920, 1080)),
    ])


class TestListing:
    def test_windows_in_adapter_order(self, adapter):
        assert [w.id for w in list_windows(adapter=adapter)] == ["10", "20", "30"]

    def test_displays_passthrough(self, adapter):
        assert [d.name for d in list_displays(adapter=adapter)] == ["Left"]

    def test_displays_never_empty(self):
        assert list_displays(adapter=FakeAdapter()) == [default_display()]


class TestFindWindow:
    def test_case_insensitive_first_match(self, adapter):
        assert find_window("FIREFOX", adapter=adapter).id == "20"

    def test_no_match(self, adapter):
        with pytest.raises(TargetNotFound, match="No window found matching title: Slack"):
            find_window("Slack", adapter=adapter)


class TestScreenshotWindow:
    def test_requires_an_identifier(self, adapter):
        with pytest.raises(MissingIdentifier):
            screenshot_window(adapter=adapter)
        with pytest.raises(MissingIdentifier):
            screenshot_window(window_id="", window_title="", adapter=adapter)
        assert adapter.captures == []

    def test_by_id(self, adapter):
        result = screenshot_window(window_id="10", adapter=adapter)
        assert adapter.captures == [("window", "10")]
        assert result.png == PNG
        assert result.image.startswith("data:image/png;base64,")
        assert result.saved_path is None

    def test_by_title(self, adapter):
        screenshot_window(window_title="settings", adapter=adapter)
        assert adapter.captures == [("window", "30")]

    def test_id_wins_over_title(self, adapter):
        screenshot_window(window_id="10", window_title="firefox", adapter=adapter)
        assert adapter.captures == [("window", "10")]

    def test_unknown_title_captures_nothing(self, adapter):
        with pytest.raises(TargetNotFound):
            screenshot_window(window_title="Slack", adapter=adapter)
        assert adapter.captures == []

    def test_save_dir(self, adapter, tmp_path):
        result = screenshot_window(window_id="20", save_dir=str(tmp_path), adapter=adapter)
        assert result.saved_path.startswith(str(tmp_path))
        assert result.saved_path.endswith(".png")
        with open(result.saved_path, "rb") as f:
            assert f.read() == result.png


class TestScreenAndRegion:
    def test_screen_default_display(self, adapter):
        assert screenshot_screen(adapter=adapter).png == PNG
        assert adapter.captures == [("screen", None)]

    def test_screen_specific_display(self, adapter):
        screenshot_screen(display_id=2, adapter=adapter)
        assert adapter.captures == [("screen", 2)]

    def test_region(self, adapter, tmp_path):
        result = screenshot_region(10, 20, 300, 200, save_dir=str(tmp_path), adapter=adapter)
        assert adapter.captures == [("region", 10, 20, 300, 200)]
        assert os.path.isfile(result.saved_path)

    @pytest.mark.parametrize("width,height", [(0, 0), (0, 10), (10, -1)])
    def test_region_rejects_empty_size(self, adapter, width, height):
        with pytest.raises(InvalidRegion, match="must be positive"):
            screenshot_region(10, 10, width, height, adapter=adapter)
        assert adapter.captures == []

    def test_empty_region_never_reaches_crop_tool(self):
        runner = FakeRunner(tools={"import"})
        linux = LinuxAdapter(runner=runner, env={"DISPLAY": ":0"})
        with pytest.raises(ValueError):
            screenshot_region(10, 10, 0, 0, adapter=linux)
        assert runner.calls == []

    def test_defaults_to_detected_adapter(self, monkeypatch, adapter):
        monkeypatch.setattr(screenshot_mcp, "get_adapter", lambda: adapter)
        screenshot_screen()
        assert adapter.captures == [("screen", None)]
