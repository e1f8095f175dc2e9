"""OS-specific adapters; import through screenshot_mcp._router.get_adapter."""
