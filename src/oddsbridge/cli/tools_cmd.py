"""Tool commands: list a server's tools, call one, or serve one over MCP stdio."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import typer

from oddsbridge.config import Settings
from oddsbridge.servers import SERVER_NAMES, ToolServer, build_server


def _server(ctx: typer.Context, name: str) -> ToolServer:
    if name not in SERVER_NAMES:
        typer.echo(f"Unknown server: {name}. Choose from: {', '.join(SERVER_NAMES)}", err=True)
        raise typer.Exit(2)
    settings: Settings = ctx.obj["settings"]
    return build_server(name, settings)


def list_tools(
    ctx: typer.Context,
    server_name: str = typer.Argument(..., help="Server name, e.g. kalshi"),
) -> None:
    """List a server's tools."""
    server = _server(ctx, server_name)
    for spec in server.tools:
        typer.echo(f"{spec.name}\t{spec.description}")
    asyncio.run(server.aclose())


def call(
    ctx: typer.Context,
    server_name: str = typer.Argument(..., help="Server name, e.g. kalshi"),
    tool: str = typer.Argument(..., help="Tool name"),
    args: str = typer.Option("{}", "--args", "-a", help="Tool arguments as a JSON object"),
) -> None:
    """Call one tool and print its structured result. Exits 1 on an error result."""
    try:
        arguments: Any = json.loads(args)
    except json.JSONDecodeError as e:
        typer.echo(f"--args is not valid JSON: {e}", err=True)
        raise typer.Exit(2) from e
    if not isinstance(arguments, dict):
        typer.echo("--args must be a JSON object", err=True)
        raise typer.Exit(2)
    server = _server(ctx, server_name)

    async def _run():
        try:
            return await server.call_tool(tool, arguments)
        finally:
            await server.aclose()

    result = asyncio.run(_run())
    typer.echo(json.dumps(result.structuredContent, indent=2))
    if result.isError:
        raise typer.Exit(1)


def stdio(
    ctx: typer.Context,
    server_name: str = typer.Argument(..., help="Server name, e.g. kalshi"),
) -> None:
    """Serve one tool server over MCP stdio."""
    server = _server(ctx, server_name)

    async def _run() -> None:
        try:
            await server.run_stdio()
        finally:
            await server.aclose()

    asyncio.run(_run())
