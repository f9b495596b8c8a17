"""Base REST connector shared by every upstream source (Kalshi, The Odds API, ...)."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from oddsbridge.errors import UpstreamError

log = structlog.get_logger(__name__)


def _encode_params(params: dict[str, Any] | None) -> dict[str, str | int | float]:
    """Drop None values, join lists with ',' and lowercase booleans."""
    out: dict[str, str | int | float] = {}
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            out[key] = "true" if value else "false"
        elif isinstance(value, (list, tuple)):
            out[key] = ",".join(str(v) for v in value)
        else:
            out[key] = value
    return out


class RestConnector:
    """One upstream REST API: base URL, fixed timeout, JSON in, UpstreamError out.

    No retries. Pass `client` to inject a transport (tests use httpx.MockTransport).
    """

    source: str = ""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, headers=headers or {}
        )
        if client is not None and headers:
            self._client.headers.update(headers)

    async def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET `path` (relative to base_url, or absolute) and decode the JSON body."""
        try:
            resp = await self._client.get(path, params=_encode_params(params))
        except httpx.TimeoutException as e:
            log.warning("upstream_timeout", source=self.source, path=path, timeout=self.timeout)
            raise UpstreamError(self.source, "request timed out") from e
        except httpx.HTTPError as e:
            log.warning("upstream_transport_error", source=self.source, path=path, error=str(e))
            raise UpstreamError(self.source, str(e) or type(e).__name__) from e
        if not resp.is_success:
            log.warning("upstream_status", source=self.source, path=path, status=resp.status_code)
            raise UpstreamError(self.source, resp.text, resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamError(self.source, "invalid JSON response", resp.status_code) from e

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> RestConnector:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()
