"""FastAPI app: health plus one streamable-HTTP MCP endpoint per tool server."""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from oddsbridge import __version__
from oddsbridge.api.schemas import HealthResponse
from oddsbridge.api.sessions import SessionRegistry
from oddsbridge.api.transport import McpTransport
from oddsbridge.config import Settings, get_settings
from oddsbridge.servers import ToolServer, build_servers

log = structlog.get_logger(__name__)

SESSION_HEADER = "Mcp-Session-Id"


def create_app(
    settings: Settings | None = None,
    servers: dict[str, ToolServer] | None = None,
    sessions: SessionRegistry | None = None,
) -> FastAPI:
    """Build the app. Tests pass `servers` backed by mock transports."""
    settings = settings or get_settings()
    servers = servers if servers is not None else build_servers(settings)
    sessions = sessions or SessionRegistry(idle_timeout_sec=settings.session_idle_timeout_sec)
    transport = McpTransport(servers, sessions)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info("api_start", servers=list(servers))
        try:
            async with transport.run():
                yield
        finally:
            for server in servers.values():
                await server.aclose()

    app = FastAPI(title="OddsBridge", version=__version__, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[SESSION_HEADER],
    )
    app.state.servers = servers
    app.state.sessions = sessions

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(
            status="ok",
            servers=list(servers),
            tools={name: len(s.tools) for name, s in servers.items()},
            active_sessions=len(sessions),
        )

    # GET (SSE stream), POST (JSON-RPC) and DELETE (end session) all go to the transport
    app.router.add_route("/mcp/{server_name}", transport, include_in_schema=False)
    return app


def run_api(
    host: str | None = None,
    port: int | None = None,
    settings: Settings | None = None,
    profile: str | None = None,
) -> None:
    import uvicorn

    settings = settings or get_settings(profile)
    uvicorn.run(create_app(settings), host=host or settings.host, port=port or settings.port)
