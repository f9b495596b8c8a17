"""Streamable-HTTP MCP transport: one mcp session manager per tool server, mirrored in a SessionRegistry."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import structlog
from fastapi.responses import JSONResponse
from mcp.server.streamable_http import MCP_SESSION_ID_HEADER
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.types import Message, Receive, Scope, Send

from oddsbridge.api.schemas import ErrorResponse
from oddsbridge.api.sessions import Session, SessionRegistry
from oddsbridge.servers import ToolServer

log = structlog.get_logger(__name__)

_SESSION_HEADER_RAW = MCP_SESSION_ID_HEADER.encode()


def error_json(code: str, message: str, status_code: int = 404) -> JSONResponse:
    """Return consistent error JSON: { detail, code }."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=message, code=code).model_dump(),
    )


def _header(data: Scope | Message, name: bytes) -> str | None:
    for key, value in data.get("headers") or []:
        if key.lower() == name:
            return value.decode("latin-1")
    return None


async def _empty_body() -> Message:
    return {"type": "http.request", "body": b"", "more_body": False}


async def _discard(message: Message) -> None:
    return None


class McpTransport:
    """ASGI endpoint for /mcp/{server_name}.

    JSON-RPC handling, initialize and tool dispatch belong to mcp's
    StreamableHTTPSessionManager. The registry tracks the sessions it hands out:
    a session is registered when an initialize response carries a new
    Mcp-Session-Id, refreshed on every request, and dropped on DELETE. Sessions
    idle past the registry timeout are terminated in the manager too, and their
    ids answer 404 from then on.
    """

    def __init__(
        self, servers: dict[str, ToolServer], sessions: SessionRegistry, json_response: bool = True
    ) -> None:
        self.sessions = sessions
        self.managers = {
            name: StreamableHTTPSessionManager(app=server.as_mcp_server(), json_response=json_response)
            for name, server in servers.items()
        }

    @asynccontextmanager
    async def run(self) -> AsyncIterator[None]:
        """Run every session manager for the lifetime of the app."""
        async with AsyncExitStack() as stack:
            for manager in self.managers.values():
                await stack.enter_async_context(manager.run())
            yield

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        server_name = scope["path_params"]["server_name"]
        manager = self.managers.get(server_name)
        if manager is None:
            await error_json("unknown_server", f"Unknown server: {server_name}")(scope, receive, send)
            return
        await self.close_idle(scope)

        session_id = _header(scope, _SESSION_HEADER_RAW)
        if session_id is not None:
            if self.sessions.lookup(session_id, server_name) is None:
                response = error_json("no_session", "Session not found or expired")
                await response(scope, receive, send)
                return
            self.sessions.touch(session_id)
        await manager.handle_request(scope, receive, self._watch(server_name, session_id, scope["method"], send))

    def _watch(self, server_name: str, session_id: str | None, method: str, send: Send) -> Send:
        """Wrap `send` to mirror session creation and DELETE into the registry."""

        async def watched(message: Message) -> None:
            if message["type"] == "http.response.start" and message["status"] < 400:
                if session_id is None:
                    assigned = _header(message, _SESSION_HEADER_RAW)
                    if assigned and assigned not in self.sessions:
                        self.sessions.create(server_name, session_id=assigned)
                        log.info("session_created", server=server_name, session_id=assigned)
                elif method == "DELETE" and self.sessions.evict(session_id):
                    log.info("session_closed", server=server_name, session_id=session_id)
            await send(message)

        return watched

    async def close_idle(self, scope: Scope) -> None:
        """Evict idle sessions and terminate them in their manager with a DELETE."""
        for session in self.sessions.evict_idle():
            log.info("session_expired", server=session.server, session_id=session.session_id)
            await self._terminate(session, scope)

    async def _terminate(self, session: Session, scope: Scope) -> None:
        manager = self.managers.get(session.server)
        if manager is None:
            return
        delete_scope: dict[str, Any] = {
            **scope,
            "method": "DELETE",
            "path": f"/mcp/{session.server}",
            "query_string": b"",
            "headers": [(_SESSION_HEADER_RAW, session.session_id.encode())],
        }
        await manager.handle_request(delete_scope, _empty_body, _discard)
