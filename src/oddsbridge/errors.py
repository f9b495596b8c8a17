"""Error kinds surfaced to tool callers."""

from __future__ import annotations


class OddsBridgeError(Exception):
    """Base class for errors reported back through a tool result."""


class ToolInputError(OddsBridgeError):
    """Caller error: a required argument is missing or invalid. Raised before any upstream call."""


class UnknownToolError(OddsBridgeError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class UpstreamError(OddsBridgeError):
    """Remote API failed: non-2xx status, timeout, transport failure or error envelope."""

    def __init__(self, source: str, message: str, status_code: int | None = None) -> None:
        self.source = source
        self.status_code = status_code
        if status_code is not None:
            text = f"{source} API error ({status_code}): {message[:200]}"
        else:
            text = f"{source} API error: {message[:200]}"
        super().__init__(text)
