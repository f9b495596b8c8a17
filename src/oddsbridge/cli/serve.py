"""HTTP server command."""

import typer

from oddsbridge.api.main import run_api

app = typer.Typer(help="Serve every tool server over HTTP (streamable-HTTP MCP at /mcp/<server>)")


@app.callback(invoke_without_command=True)
def serve(
    ctx: typer.Context,
    host: str | None = typer.Option(None, "--host", help="Bind host (default from config)"),
    port: int | None = typer.Option(None, "--port", help="Bind port (default from config)"),
) -> None:
    if ctx.invoked_subcommand is not None:
        return
    obj = ctx.obj or {}
    run_api(host=host, port=port, settings=obj.get("settings"), profile=obj.get("profile"))


if __name__ == "__main__":
    app()
