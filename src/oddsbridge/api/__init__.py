"""HTTP transport: FastAPI app with a streamable-HTTP MCP endpoint per tool server."""
