from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from api.app.config import settings
from api.app.main import app
from common.norm.orders import normalize_order
from common.orders.lookup import LookupResult, get_resolver
from common.rpc.dispatcher import RpcDispatcher, get_dispatcher


@pytest.fixture
def resolver():
    return SimpleNamespace(resolve=AsyncMock())


@pytest.fixture
def client(resolver):
    app.dependency_overrides[get_resolver] = lambda: resolver
    app.dependency_overrides[get_dispatcher] = lambda: RpcDispatcher(resolver=resolver)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth():
    return {"Authorization": f"Bearer {settings.mcp_secret}"}


def test_mcp_requires_auth_header(client):
    r = client.post("/mcp", json={"jsonrpc": "2.0", "id": 1, "method": "ping"})
    assert r.status_code == 401


def test_mcp_rejects_non_bearer_scheme(client):
    r = client.post(
        "/mcp",
        json={"jsonrpc": "2.0", "id": 1, "method": "ping"},
        headers={"Authorization": f"Basic {settings.mcp_secret}"},
    )
    assert r.status_code == 401


def test_mcp_rejects_wrong_token(client):
    r = client.post(
        "/mcp",
        json={"jsonrpc": "2.0", "id": 1, "method": "ping"},
        headers={"Authorization": "Bearer not-the-secret"},
    )
    assert r.status_code == 403


def test_mcp_accepts_authorization2_header(client):
    r = client.post(
        "/mcp",
        json={"jsonrpc": "2.0", "id": 1, "method": "ping"},
        headers={"Authorization2": f"Bearer {settings.mcp_secret}"},
    )
    assert r.status_code == 200
    assert r.json()["result"] == {"ok": True}


def test_mcp_parse_error(client, auth):
    r = client.post("/mcp", content=b"{not json", headers={**auth, "Content-Type": "application/json"})
    assert r.status_code == 400
    body = r.json()
    assert body["id"] is None
    assert body["error"]["code"] == -32700


def test_mcp_invalid_request_envelope(client, auth):
    r = client.post("/mcp", json={"jsonrpc": "2.0", "method": "ping"}, headers=auth)
    assert r.status_code == 200
    assert r.json()["error"]["code"] == -32600


def test_mcp_request_id_header(client, auth):
    r = client.post("/mcp", json={"jsonrpc": "2.0", "id": 1, "method": "ping"}, headers=auth)
    assert r.headers.get("X-Request-ID")

    r = client.post(
        "/mcp",
        json={"jsonrpc": "2.0", "id": 1, "method": "ping"},
        headers={**auth, "X-Request-ID": "call-42"},
    )
    assert r.headers["X-Request-ID"] == "call-42"


def test_mcp_tools_call(client, auth, resolver, shipped_row):
    resolver.resolve.return_value = LookupResult.found("10000001", normalize_order(shipped_row), attempts=1)
    r = client.post(
        "/mcp",
        json={
            "jsonrpc": "2.0",
            "id": "2",
            "method": "tools/call",
            "params": {"name": "lookup_order", "arguments": {"order_id": "10000001"}},
        },
        headers={**auth, "X-Request-ID": "call-43"},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["id"] == "2"
    assert body["result"]["structured"]["status"] == "SHIPPED"
    resolver.resolve.assert_awaited_once_with("10000001", request_id="call-43")


def test_lookup_order_requires_auth(client):
    r = client.post("/lookup-order", json={"order_id": "10000001"})
    assert r.status_code == 401


@pytest.mark.parametrize("payload", [{}, {"order_id": ""}, {"order_id": "   "}, {"order_id": 5}])
def test_lookup_order_validates_payload(client, auth, resolver, payload):
    r = client.post("/lookup-order", json=payload, headers=auth)
    assert r.status_code == 400
    resolver.resolve.assert_not_awaited()


def test_lookup_order_not_found(client, auth, resolver):
    resolver.resolve.return_value = LookupResult.not_found("404404", attempts=1)
    r = client.post("/lookup-order", json={"order_id": "404404"}, headers=auth)
    assert r.status_code == 404
    assert "404404" in r.json()["detail"]


def test_lookup_order_failure(client, auth, resolver):
    resolver.resolve.return_value = LookupResult.failed("1", "Database query failed", attempts=1)
    r = client.post("/lookup-order", json={"order_id": "1"}, headers=auth)
    assert r.status_code == 500
    assert r.json()["detail"] == "Database query failed"


def test_lookup_order_success(client, auth, resolver, shipped_row):
    resolver.resolve.return_value = LookupResult.found("10000001", normalize_order(shipped_row), attempts=1)
    r = client.post("/lookup-order", json={"order_id": "10000001"}, headers=auth)
    assert r.status_code == 200
    data = r.json()
    assert data["order_id"] == "10000001"
    assert data["status"] == "SHIPPED"
    assert data["issue_flag"] is None
    assert data["formatted_text"].startswith("Order 10000001 is SHIPPED.")


@pytest.mark.parametrize("constant", [b"NaN", b"Infinity", b"-Infinity"])
def test_mcp_non_standard_json_constant_is_parse_error(client, auth, constant):
    body = b'{"jsonrpc": "2.0", "id": ' + constant + b', "method": "ping"}'
    r = client.post("/mcp", content=body, headers={**auth, "Content-Type": "application/json"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == -32700
