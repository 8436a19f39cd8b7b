"""
Instagram Graph API Client Tests

Covers the container publish flow: create container, poll status_code,
then media_publish.
"""

import asyncio
from urllib.parse import parse_qs

import httpx
import pytest

from legacy_ops.integrations.instagram import InstagramClient


class GraphStub:
    """Serves the container endpoints and replays a list of status codes."""

    def __init__(self, statuses):
        self.statuses = list(statuses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.endswith("/1789/media"):
            return httpx.Response(200, json={"id": f"container-{len(self.requests)}"})
        if path.endswith("/1789/media_publish"):
            return httpx.Response(200, json={"id": "media-1"})
        if request.url.params.get("fields") == "status_code":
            return httpx.Response(200, json={"status_code": self.statuses.pop(0)})
        return httpx.Response(404, json={"error": {"message": "unknown path"}})


def _client(stub) -> InstagramClient:
    return InstagramClient(transport=httpx.MockTransport(stub))


def test_create_image_post_publishes_after_processing():
    stub = GraphStub(["IN_PROGRESS", "FINISHED"])

    result = asyncio.run(_client(stub).create_image_post("https://img.test/a.jpg", "Cheers"))

    assert result == {"id": "media-1"}
    create = stub.requests[0]
    form = parse_qs(create.content.decode())
    assert form["image_url"] == ["https://img.test/a.jpg"]
    assert form["caption"] == ["Cheers"]
    assert create.url.params["access_token"] == "ig-test"
    assert stub.requests[-1].url.path.endswith("/media_publish")


def test_processing_error_skips_publish():
    stub = GraphStub(["ERROR"])

    assert asyncio.run(_client(stub).create_image_post("https://img.test/a.jpg", "x")) is None
    assert not any(r.url.path.endswith("/media_publish") for r in stub.requests)


def test_wait_for_media_processing_gives_up_after_checks():
    stub = GraphStub(["IN_PROGRESS"] * 5)

    ready = asyncio.run(_client(stub).wait_for_media_processing("c1", checks=2, sleep=0))

    assert ready is False
    assert len(stub.requests) == 2


def test_carousel_needs_two_to_ten_items():
    client = _client(GraphStub([]))
    with pytest.raises(ValueError):
        asyncio.run(client.create_carousel_post(["https://img.test/a.jpg"], "x"))


def test_account_info_none_on_http_error():
    client = InstagramClient(transport=httpx.MockTransport(lambda r: httpx.Response(400, json={})))
    assert asyncio.run(client.get_account_info()) is None
    assert asyncio.run(client.test_connection()) is False
