"""Tool servers, one per upstream API, plus the cross-platform compare server."""

from oddsbridge.servers.base import ToolServer, ToolSpec
from oddsbridge.servers.registry import SERVER_NAMES, build_server, build_servers

__all__ = ["SERVER_NAMES", "ToolServer", "ToolSpec", "build_server", "build_servers"]
