"""
Pytest tests for the MoltID HTTP API (FastAPI TestClient + temporary SQLite DB).
"""

from __future__ import annotations

import re


def _register(client, username=None, capabilities=None):
    body = {}
    if username is not None:
        body["moltbook_username"] = username
    if capabilities is not None:
        body["capabilities"] = capabilities
    r = client.post("/v1/agents", json=body)
    assert r.status_code == 201, r.text
    payload = r.json()
    return payload["data"], payload["api_key"]


def _auth(api_key):
    return {"Authorization": f"Bearer {api_key}"}


def _verified(client, provider, username, karma=0):
    agent, key = _register(client, username)
    provider.accounts[username] = karma
    r = client.post(f"/v1/agents/{agent['id']}/verify/moltbook")
    assert r.status_code == 200, r.text
    return agent, key


def _error_code(r):
    body = r.json()
    assert body["success"] is False
    return body["error"]["code"]


def test_root_and_health(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["name"] == "MoltID API"
    h = client.get("/v1/health")
    assert h.status_code == 200
    assert h.json()["status"] == "healthy"


def test_health_unhealthy_when_db_unreachable(client, monkeypatch):
    import backend_moltid.api_server.server as server

    monkeypatch.setattr(server, "ping", lambda: False)
    r = client.get("/v1/health")
    assert r.status_code == 503
    assert r.json()["status"] == "unhealthy"


def test_register_returns_key_once(client):
    r = client.post("/v1/agents", json={"moltbook_username": "alice", "capabilities": ["code_review"]})
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert re.fullmatch(r"moltid_key_[A-Za-z0-9]{32}", body["api_key"])
    assert "api_key_warning" in body
    data = body["data"]
    assert data["id"].startswith("mlt_")
    assert data["verification_code"] == f"moltid-verify:{data['id']}"
    assert data["trust_score"] == 0
    assert data["status"] == "pending"
    assert data["capabilities"] == ["code_review"]

    public = client.get(f"/v1/agents/{data['id']}").json()["data"]
    assert "verification_code" not in public
    assert "api_key" not in public


def test_register_duplicate_username_conflict(client):
    _register(client, "alice")
    r = client.post("/v1/agents", json={"moltbook_username": "alice"})
    assert r.status_code == 409
    assert _error_code(r) == "already_exists"


def test_register_invalid_capabilities(client):
    cases = [
        ["Code-Review"],
        ["ok", "ok"],
        ["x" * 51],
        [f"cap{i}" for i in range(21)],
        [""],
        [123],
    ]
    for caps in cases:
        r = client.post("/v1/agents", json={"capabilities": caps})
        assert r.status_code == 400, caps
        assert _error_code(r) == "validation_error"


def test_get_unknown_agent_and_route(client):
    r = client.get("/v1/agents/mlt_missing")
    assert r.status_code == 404
    assert _error_code(r) == "not_found"
    r = client.get("/v1/nope")
    assert r.status_code == 404
    assert r.json()["error"] == {"code": "not_found", "message": "Route not found"}


def test_lookup_by_moltbook_username(client):
    agent, _ = _register(client, "alice")
    r = client.get("/v1/agents/moltbook/alice")
    assert r.status_code == 200
    assert r.json()["data"]["id"] == agent["id"]
    assert client.get("/v1/agents/moltbook/nobody").status_code == 404


def test_verify_moltbook(client, provider):
    agent, _ = _register(client, "alice")
    r = client.post(f"/v1/agents/{agent['id']}/verify/moltbook")
    assert r.status_code == 400
    assert _error_code(r) == "verification_failed"
    assert agent["verification_code"] in r.json()["error"]["message"]

    provider.accounts["alice"] = 1500
    r = client.post(f"/v1/agents/{agent['id']}/verify/moltbook")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["verified"] is True
    assert data["karma_imported"] == 1500
    assert data["trust_score"] == 35
    assert data["agent"]["status"] == "active"


def test_verify_without_username(client):
    agent, _ = _register(client)
    r = client.post(f"/v1/agents/{agent['id']}/verify/moltbook")
    assert r.status_code == 400
    assert _error_code(r) == "no_moltbook"


def test_vouch_flow_and_status_mapping(client, provider):
    voucher, voucher_key = _verified(client, provider, "voucher")
    target, target_key = _register(client, "target")

    r = client.post(f"/v1/agents/{target['id']}/vouch", json={"from_agent_id": voucher["id"]}, headers=_auth(voucher_key))
    assert r.status_code == 200
    assert r.json()["data"] == {"vouch_added": True, "new_trust_score": 5}

    r = client.post(f"/v1/agents/{target['id']}/vouch", json={"from_agent_id": voucher["id"]}, headers=_auth(voucher_key))
    assert r.status_code == 409
    assert _error_code(r) == "already_vouched"

    r = client.post(f"/v1/agents/{voucher['id']}/vouch", json={"from_agent_id": voucher["id"]}, headers=_auth(voucher_key))
    assert r.status_code == 400
    assert _error_code(r) == "invalid_vouch"

    r = client.post("/v1/agents/mlt_missing/vouch", json={"from_agent_id": voucher["id"]}, headers=_auth(voucher_key))
    assert r.status_code == 404
    assert _error_code(r) == "not_found"

    r = client.post(f"/v1/agents/{voucher['id']}/vouch", json={"from_agent_id": target["id"]}, headers=_auth(target_key))
    assert r.status_code == 403
    assert _error_code(r) == "unauthorized"

    trust = client.get(f"/v1/agents/{target['id']}/trust").json()["data"]
    assert trust["score"] == 5
    assert trust["vouch_count"] == 1
    assert trust["factors"]["vouches"] == 5


def test_vouch_auth(client, provider):
    voucher, voucher_key = _verified(client, provider, "voucher")
    other, other_key = _register(client, "other")
    target, _ = _register(client, "target")
    url = f"/v1/agents/{target['id']}/vouch"

    r = client.post(url, json={"from_agent_id": voucher["id"]})
    assert r.status_code == 401
    assert _error_code(r) == "UNAUTHORIZED"

    r = client.post(url, json={"from_agent_id": voucher["id"]}, headers=_auth("moltid_key_" + "x" * 32))
    assert r.status_code == 401

    r = client.post(url, json={"from_agent_id": voucher["id"]}, headers=_auth(other_key))
    assert r.status_code == 403
    assert _error_code(r) == "forbidden"

    r = client.post(url, json={}, headers=_auth(voucher_key))
    assert r.status_code == 400
    assert _error_code(r) == "validation_error"


def test_patch_own_agent_only(client):
    alice, alice_key = _register(client, "alice")
    bob, _ = _register(client, "bob")

    r = client.patch(f"/v1/agents/{alice['id']}", json={"capabilities": ["search", "summarize"]}, headers=_auth(alice_key))
    assert r.status_code == 200
    assert r.json()["data"]["capabilities"] == ["search", "summarize"]

    r = client.patch(f"/v1/agents/{bob['id']}", json={"capabilities": ["search"]}, headers=_auth(alice_key))
    assert r.status_code == 403
    assert _error_code(r) == "forbidden"

    r = client.patch(f"/v1/agents/{alice['id']}", json={"capabilities": ["BAD!"]}, headers=_auth(alice_key))
    assert r.status_code == 400
    assert _error_code(r) == "validation_error"

    r = client.patch(f"/v1/agents/{alice['id']}", json={"public_key": "ed25519:abc"})
    assert r.status_code == 401


def test_search_active_agents_by_trust(client, provider):
    low, _ = _verified(client, provider, "low", karma=100)
    high, _ = _verified(client, provider, "high", karma=2500)
    _register(client, "pending_agent")

    r = client.get("/v1/agents")
    assert r.status_code == 200
    ids = [a["id"] for a in r.json()["data"]]
    assert ids == [high["id"], low["id"]]

    r = client.get("/v1/agents", params={"min_trust": 30})
    assert [a["id"] for a in r.json()["data"]] == [high["id"]]

    r = client.get("/v1/agents", params={"verified": "true", "limit": 1})
    assert len(r.json()["data"]) == 1

    r = client.get("/v1/agents", params={"min_trust": 101})
    assert r.status_code == 400


def test_search_by_capability(client, provider):
    agent, key = _verified(client, provider, "reviewer")
    _verified(client, provider, "writer")
    client.patch(f"/v1/agents/{agent['id']}", json={"capabilities": ["code_review"]}, headers=_auth(key))

    r = client.get("/v1/agents", params={"capability": "code_review"})
    assert [a["id"] for a in r.json()["data"]] == [agent["id"]]
    r = client.get("/v1/agents", params={"capability": "code"})
    assert r.json()["data"] == []
