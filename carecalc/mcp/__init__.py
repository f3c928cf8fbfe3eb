"""Care Calc MCP server."""
