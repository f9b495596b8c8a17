"""Root CLI app - entry point and command registration."""

import sys
from pathlib import Path

import typer

from oddsbridge.config import get_settings
from oddsbridge.config.settings import configure_logging

app = typer.Typer(
    name="oddsbridge",
    help="OddsBridge - Market-data tool servers with cross-platform probability comparison.",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_dir: Path | None = typer.Option(
        None, "--config-dir", "-C", help="Config directory (default: ./config or package config)"
    ),
    profile: str | None = typer.Option(
        None, "--profile", "-p", help="Config profile (e.g. dev) to overlay on default.toml"
    ),
) -> None:
    """Configure logging and store options in context."""
    settings = get_settings(profile, config_dir)
    # stdout carries the MCP protocol (stdio) or the tool result (call)
    configure_logging(settings, stream=sys.stderr if ctx.invoked_subcommand in ("stdio", "call") else None)
    ctx.obj = {"settings": settings, "config_dir": config_dir, "profile": profile}


# Subcommands registered from other modules
from oddsbridge.cli import serve, tools_cmd  # noqa: E402

app.add_typer(serve.app, name="serve")
app.command("tools")(tools_cmd.list_tools)
app.command("call")(tools_cmd.call)
app.command("stdio")(tools_cmd.stdio)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
