"""CLI for screenshot-mcp: python -m screenshot_mcp"""

from __future__ import annotations

import argparse
import json
import os
import sys

import screenshot_mcp
from screenshot_mcp._log import configure_logging
from screenshot_mcp._router import SUPPORTED_PLATFORMS, get_adapter
from screenshot_mcp.errors import ScreenshotError
from screenshot_mcp.format import to_json

PLATFORM_ENV = "SCREENSHOT_MCP_PLATFORM"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="screenshot-mcp",
        description="List windows/displays and capture screenshots, or serve them over MCP")
    parser.add_argument("--platform", type=str, default=os.environ.get(PLATFORM_ENV),
                        choices=list(SUPPORTED_PLATFORMS),
                        help=f"Force platform (default: ${PLATFORM_ENV} or auto-detect)")
    parser.add_argument("--log-level", type=str, default=None,
                        help="Logging level on stderr (default: $SCREENSHOT_MCP_LOG_LEVEL or WARNING)")

    sub = parser.add_subparsers(dest="command")
    sub.add_parser("serve", help="Run the MCP server over stdio (default)")
    sub.add_parser("windows", help="Print visible windows as JSON")
    sub.add_parser("displays", help="Print displays as JSON")

    def capture_parser(name: str, help: str) -> argparse.ArgumentParser:
        p = sub.add_parser(name, help=help)
        p.add_argument("--save-dir", type=str, default=".",
                       help="Directory for <YYYY-MM-DD>/<YYYYMMDD_HHMMSS>.png (default: .)")
        return p

    p = capture_parser("window", "Capture one window")
    target = p.add_mutually_exclusive_group(required=True)
    target.add_argument("--id", dest="window_id", type=str, help="Window id from 'windows'")
    target.add_argument("--title", dest="window_title", type=str,
                        help="Case-insensitive part of the window title")

    p = capture_parser("screen", "Capture a display")
    p.add_argument("--display", dest="display_id", type=int, default=None,
                   help="Display id from 'displays' (default: primary)")

    p = capture_parser("region", "Capture a rectangle")
    for coord in ("x", "y", "width", "height"):
        p.add_argument(coord, type=int)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    command = args.command or "serve"

    if command == "serve":
        from screenshot_mcp.mcp import server

        if args.platform:
            server._adapter = get_adapter(args.platform)
        server.mcp.run()
        return 0

    try:
        adapter = get_adapter(args.platform)
        if command == "windows":
            print(to_json(screenshot_mcp.list_windows(adapter=adapter)))
            return 0
        if command == "displays":
            print(to_json(screenshot_mcp.list_displays(adapter=adapter)))
            return 0

        if command == "window":
            result = screenshot_mcp.screenshot_window(
                args.window_id, args.window_title, args.save_dir, adapter=adapter)
        elif command == "screen":
            result = screenshot_mcp.screenshot_screen(
                args.display_id, args.save_dir, adapter=adapter)
        else:
            result = screenshot_mcp.screenshot_region(
                args.x, args.y, args.width, args.height, args.save_dir, adapter=adapter)
    except ScreenshotError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps({"saved_path": result.saved_path, "bytes": len(result.png)}))
    return 0


if __name__ == "__main__":
    sys.exit(main())
