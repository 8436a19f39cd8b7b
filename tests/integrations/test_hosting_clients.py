"""
Cloudflare and Render Client Tests
"""

import asyncio
import json

import httpx

from legacy_ops.integrations.cloudflare import CloudflareClient
from legacy_ops.integrations.render import RenderClient


def _envelope(result):
    return httpx.Response(200, json={"success": True, "errors": [], "result": result})


# ============================================================================
# Cloudflare
# ============================================================================


def test_cloudflare_auth_headers_and_envelope():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["headers"] = request.headers
        return _envelope([{"id": "zone-1", "name": "legacywine.com"}])

    zones = asyncio.run(CloudflareClient(transport=httpx.MockTransport(handler)).list_zones())

    assert zones == [{"id": "zone-1", "name": "legacywine.com"}]
    assert seen["headers"]["X-Auth-Email"] == "ops@example.com"
    assert seen["headers"]["X-Auth-Key"] == "cf-test"


def test_cloudflare_purge_everything_by_default():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append((request.url.path, json.loads(request.content)))
        return _envelope({"id": "purge"})

    client = CloudflareClient(transport=httpx.MockTransport(handler))
    asyncio.run(client.purge_cache())
    asyncio.run(client.purge_cache(["https://legacywine.com/menu"]))

    assert bodies == [
        ("/client/v4/zones/zone-1/purge_cache", {"purge_everything": True}),
        ("/client/v4/zones/zone-1/purge_cache", {"files": ["https://legacywine.com/menu"]}),
    ]


def test_cloudflare_firewall_rule_binds_filter():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if request.url.path.endswith("/filters"):
            return _envelope([{"id": "flt-1"}])
        body = json.loads(request.content)
        return _envelope([{"id": "rule-1", "filter": body[0]["filter"]}])

    rule = asyncio.run(
        CloudflareClient(transport=httpx.MockTransport(handler)).create_firewall_rule("ip.src eq 1.2.3.4")
    )

    assert rule == {"id": "rule-1", "filter": {"id": "flt-1"}}
    assert calls[-1] == "/client/v4/zones/zone-1/firewall/rules"


def test_cloudflare_errors_return_sentinels():
    client = CloudflareClient(transport=httpx.MockTransport(lambda request: httpx.Response(403, json={})))

    assert asyncio.run(client.list_zones()) == []
    assert asyncio.run(client.get_analytics()) is None
    assert asyncio.run(client.test_connection()) is False


# ============================================================================
# Render
# ============================================================================


def test_render_list_services_unwraps_items():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json=[{"service": {"id": "srv-1"}, "cursor": "c1"}])

    services = asyncio.run(RenderClient(transport=httpx.MockTransport(handler)).list_services())

    assert services == [{"id": "srv-1"}]
    assert seen["params"]["ownerId"] == "own-1"
    assert seen["auth"] == "Bearer rnd-test"


def test_render_deploy_full_stack_wires_connection_strings():
    created = {}

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/v1/postgres":
            return httpx.Response(201, json={"id": "dpg-1"})
        if path == "/v1/key-value":
            return httpx.Response(201, json={"id": "red-1"})
        if path == "/v1/postgres/dpg-1/connection-info":
            return httpx.Response(200, json={"internalConnectionString": "postgres://internal"})
        if path == "/v1/services":
            created["web"] = json.loads(request.content)
            return httpx.Response(201, json={"service": {"id": "srv-9"}})
        return httpx.Response(404)

    result = asyncio.run(
        RenderClient(transport=httpx.MockTransport(handler)).deploy_full_stack(
            "legacy", "https://github.com/legacywine/site", "uvicorn app:app"
        )
    )

    assert result == {"db": {"id": "dpg-1"}, "cache": {"id": "red-1"}, "web": {"id": "srv-9"}}
    assert created["web"]["name"] == "legacy-web"
    assert created["web"]["envVars"] == [
        {"key": "DATABASE_URL", "value": "postgres://internal"},
        {"key": "KEY_VALUE_ID", "value": "red-1"},
    ]


def test_render_full_stack_continues_without_database():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v1/postgres":
            return httpx.Response(402, json={"message": "payment required"})
        if request.url.path == "/v1/key-value":
            return httpx.Response(201, json={"id": "red-1"})
        return httpx.Response(201, json={"service": {"id": "srv-9"}})

    result = asyncio.run(
        RenderClient(transport=httpx.MockTransport(handler)).deploy_full_stack("legacy", "repo", "start")
    )

    assert result["db"] is None
    assert result["web"] == {"id": "srv-9"}
