"""MCP server surface; run with ``python -m screenshot_mcp serve``."""
