"""HTTP transport: streamable-HTTP MCP sessions at /mcp/<server>."""

import httpx
import pytest
from fastapi.testclient import TestClient

from oddsbridge.api.main import SESSION_HEADER, create_app
from oddsbridge.api.sessions import SessionRegistry
from oddsbridge.config import Settings
from oddsbridge.ingestion.kalshi.client import KalshiClient
from oddsbridge.servers.compare import CompareServer
from oddsbridge.servers.kalshi import KalshiServer

HEADERS = {"Accept": "application/json, text/event-stream"}


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def _kalshi_upstream(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/markets/KXFED":
        return httpx.Response(200, json={"market": {"ticker": "KXFED", "title": "Fed cut?", "yes_ask": 40}})
    return httpx.Response(500, text="upstream down")


def _app(sessions):
    http = httpx.AsyncClient(transport=httpx.MockTransport(_kalshi_upstream), base_url="https://test")
    servers = {
        "kalshi": KalshiServer(KalshiClient("https://test", client=http)),
        "compare": CompareServer(),
    }
    return create_app(settings=Settings(), servers=servers, sessions=sessions)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client(clock):
    with TestClient(_app(SessionRegistry(idle_timeout_sec=60, clock=clock))) as c:
        yield c


def _rpc(method, params=None, id=1):
    body = {"jsonrpc": "2.0", "method": method}
    if params is not None:
        body["params"] = params
    if id is not None:
        body["id"] = id
    return body


def _post(client, server, body, session_id=None):
    headers = dict(HEADERS)
    if session_id:
        headers[SESSION_HEADER] = session_id
    return client.post(f"/mcp/{server}", json=body, headers=headers)


def _initialize(client, server="kalshi"):
    params = {
        "protocolVersion": "2025-06-18",
        "capabilities": {},
        "clientInfo": {"name": "pytest", "version": "0"},
    }
    r = _post(client, server, _rpc("initialize", params))
    assert r.status_code == 200
    session_id = r.headers[SESSION_HEADER]
    r = _post(client, server, _rpc("notifications/initialized", id=None), session_id)
    assert r.status_code == 202
    return session_id


def _call_tool(client, session_id, name, arguments):
    r = _post(client, "kalshi", _rpc("tools/call", {"name": name, "arguments": arguments}, id=3), session_id)
    assert r.status_code == 200
    return r.json()["result"]


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["servers"] == ["kalshi", "compare"]
    assert data["tools"]["compare"] == 1
    assert data["active_sessions"] == 0


def test_initialize_registers_session(client):
    params = {"protocolVersion": "2025-06-18", "capabilities": {}, "clientInfo": {"name": "pytest", "version": "0"}}
    r = _post(client, "compare", _rpc("initialize", params))
    assert r.status_code == 200
    body = r.json()
    assert body["result"]["serverInfo"]["name"] == "compare"
    assert "tools" in body["result"]["capabilities"]
    assert r.headers[SESSION_HEADER]
    assert client.get("/health").json()["active_sessions"] == 1


def test_tools_list(client):
    sid = _initialize(client)
    r = _post(client, "kalshi", _rpc("tools/list", id=2), sid)
    tools = r.json()["result"]["tools"]
    assert "get_comparable_markets" in [t["name"] for t in tools]
    assert all("inputSchema" in t for t in tools)


def test_tools_call_success_and_error(client):
    sid = _initialize(client)
    result = _call_tool(client, sid, "get_market", {"ticker": "KXFED"})
    assert result["isError"] is False
    assert result["structuredContent"]["market"]["ticker"] == "KXFED"

    result = _call_tool(client, sid, "get_market", {"ticker": "OTHER"})
    assert result["isError"] is True
    assert "Kalshi API error (500)" in result["content"][0]["text"]


def test_tools_call_missing_argument(client):
    sid = _initialize(client)
    result = _call_tool(client, sid, "get_market", {})
    assert result["isError"] is True
    assert "ticker" in result["content"][0]["text"]


def test_request_without_session_is_rejected(client):
    r = _post(client, "kalshi", _rpc("tools/list"))
    assert r.status_code == 400
    assert client.get("/health").json()["active_sessions"] == 0


def test_unknown_session(client):
    r = _post(client, "kalshi", _rpc("tools/list"), "not-a-session")
    assert r.status_code == 404
    assert r.json() == {"detail": "Session not found or expired", "code": "no_session"}


def test_session_bound_to_server(client):
    sid = _initialize(client, "compare")
    r = _post(client, "kalshi", _rpc("tools/list"), sid)
    assert r.status_code == 404


def test_unknown_server(client):
    r = _post(client, "nope", _rpc("initialize"))
    assert r.status_code == 404
    assert r.json()["code"] == "unknown_server"


def test_delete_session(client):
    sid = _initialize(client)
    r = client.delete("/mcp/kalshi", headers={**HEADERS, SESSION_HEADER: sid})
    assert r.status_code == 200
    assert client.get("/health").json()["active_sessions"] == 0
    r = _post(client, "kalshi", _rpc("tools/list"), sid)
    assert r.status_code == 404
    r = client.delete("/mcp/kalshi", headers={**HEADERS, SESSION_HEADER: sid})
    assert r.status_code == 404


def test_idle_session_expires(client, clock):
    sid = _initialize(client)
    clock.now += 30
    r = _post(client, "kalshi", _rpc("ping", id=4), sid)
    assert r.json()["result"] == {}
    clock.now += 61
    r = _post(client, "kalshi", _rpc("tools/list"), sid)
    assert r.status_code == 404
    assert client.get("/health").json()["active_sessions"] == 0
