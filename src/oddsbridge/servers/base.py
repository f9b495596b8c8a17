"""Tool server base: static tool catalog, dispatch, result envelopes, MCP stdio adapter."""

from __future__ import annotations

import json
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

import mcp.types as types
import structlog
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from pydantic import BaseModel, ConfigDict

from oddsbridge.errors import OddsBridgeError, ToolInputError, UnknownToolError
from oddsbridge.ingestion.base import RestConnector

log = structlog.get_logger(__name__)

Handler = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def success_result(data: dict[str, Any]) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=json.dumps(data, indent=2))],
        structuredContent=data,
    )


def error_result(message: str) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=json.dumps({"error": message}))],
        structuredContent={"error": message, "fetchedAt": now_iso()},
        isError=True,
    )


def require(args: dict[str, Any], key: str, message: str | None = None) -> Any:
    """Return args[key] or raise ToolInputError before any upstream call."""
    value = args.get(key)
    if value is None or value == "" or value == []:
        raise ToolInputError(message or f"{key} is required")
    return value


def object_schema(
    properties: dict[str, Any] | None = None, required: list[str] | None = None
) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "object", "properties": properties or {}}
    if required:
        schema["required"] = required
    return schema


class ToolSpec(BaseModel):
    """One entry in a server's static tool catalog."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str
    description: str
    input_schema: dict[str, Any]
    output_schema: dict[str, Any] | None = None
    handler: Handler

    def to_mcp(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.input_schema,
            outputSchema=self.output_schema,
        )


class ToolServer:
    """Base for one upstream's tool server. Subclasses register tools in `register_tools`."""

    name: str = ""
    version: str = "0.1.0"

    def __init__(self, connectors: list[RestConnector] | None = None) -> None:
        self._tools: dict[str, ToolSpec] = {}
        self._connectors = connectors or []
        self.register_tools()

    def register_tools(self) -> None:
        raise NotImplementedError

    def add_tool(
        self,
        name: str,
        description: str,
        input_schema: dict[str, Any],
        handler: Handler,
        output_schema: dict[str, Any] | None = None,
    ) -> None:
        self._tools[name] = ToolSpec(
            name=name,
            description=description,
            input_schema=input_schema,
            output_schema=output_schema,
            handler=handler,
        )

    @property
    def tools(self) -> list[ToolSpec]:
        return list(self._tools.values())

    def list_tools(self) -> list[types.Tool]:
        return [spec.to_mcp() for spec in self._tools.values()]

    async def dispatch(self, name: str, arguments: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a tool's handler and return its structured payload. Raises OddsBridgeError."""
        spec = self._tools.get(name)
        if spec is None:
            raise UnknownToolError(name)
        data = await spec.handler(dict(arguments or {}))
        data.setdefault("fetchedAt", now_iso())
        return data

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> types.CallToolResult:
        started = time.perf_counter()
        try:
            data = await self.dispatch(name, arguments)
        except OddsBridgeError as e:
            log.warning("tool_error", server=self.name, tool=name, error=str(e))
            return error_result(str(e))
        elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
        log.info("tool_call", server=self.name, tool=name, elapsed_ms=elapsed_ms)
        return success_result(data)

    def as_mcp_server(self) -> Server:
        """Wrap this catalog in an MCP low-level server (stdio transport)."""
        server: Server = Server(self.name, version=self.version)

        @server.list_tools()
        async def _list_tools() -> list[types.Tool]:
            return self.list_tools()

        @server.call_tool()
        async def _call_tool(name: str, arguments: dict[str, Any]) -> Any:
            # Raising makes the MCP server reply with an isError result
            data = await self.dispatch(name, arguments)
            return [types.TextContent(type="text", text=json.dumps(data, indent=2))], data

        return server

    async def run_stdio(self) -> None:
        server = self.as_mcp_server()
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())

    async def aclose(self) -> None:
        for connector in self._connectors:
            await connector.aclose()
