"""
Zapier, N8N and Mailgun Client Tests
"""

import asyncio
import json
from urllib.parse import parse_qs

import httpx

from legacy_ops.config import get_settings
from legacy_ops.integrations.mailgun import MailgunClient
from legacy_ops.integrations.n8n import N8NClient
from legacy_ops.integrations.zapier import ZapierClient


# ============================================================================
# Zapier
# ============================================================================


def test_zapier_success_on_2xx():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "abc", "status": "success"})

    result = asyncio.run(
        ZapierClient(transport=httpx.MockTransport(handler)).post_to_instagram("https://img.test/a.jpg", "Hi", "Fall")
    )

    assert result["success"] is True
    assert seen["url"] == "https://hooks.zapier.test/hooks/catch/1/abc"
    assert seen["body"] == {"image_url": "https://img.test/a.jpg", "caption": "Hi", "campaign": "Fall"}


def test_zapier_failure_status():
    transport = httpx.MockTransport(lambda request: httpx.Response(410, text="gone"))

    result = asyncio.run(ZapierClient(transport=transport).post_to_instagram("u", "c"))

    assert result["success"] is False
    assert result["error"] == "HTTP 410"


def test_zapier_not_configured(monkeypatch):
    client = ZapierClient()
    client.webhook_url = ""

    result = asyncio.run(client.post_to_instagram("u", "c"))

    assert result == {"success": False, "error": "Zapier webhook not configured"}


# ============================================================================
# N8N
# ============================================================================


def test_n8n_deploy_workflow_creates_then_activates():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path == "/api/v1/workflows":
            body = json.loads(request.content)
            return httpx.Response(200, json={"id": "wf1", "name": body["name"], "active": False})
        if request.url.path == "/api/v1/workflows/wf1/activate":
            return httpx.Response(200, json={"id": "wf1", "active": True})
        return httpx.Response(404)

    client = N8NClient(transport=httpx.MockTransport(handler))
    definition = client.instagram_post_workflow()
    definition["id"] = "stale"

    workflow = asyncio.run(client.deploy_workflow(definition))

    assert workflow["active"] is True
    created = json.loads(requests[0].content)
    assert "id" not in created
    assert requests[0].headers["X-N8N-API-KEY"] == "n8n-test"
    assert requests[1].method == "POST"


def test_n8n_instagram_workflow_forwards_to_zapier():
    workflow = N8NClient().instagram_post_workflow()

    webhook, zapier = workflow["nodes"]
    assert webhook["parameters"]["path"] == "instagram-post"
    assert zapier["parameters"]["url"] == "https://hooks.zapier.test/hooks/catch/1/abc"
    assert workflow["connections"]["Webhook"]["main"][0][0]["node"] == "Post to Zapier"


def test_n8n_webhook_url():
    assert N8NClient().webhook_url("instagram-post") == "http://n8n.test/webhook/instagram-post"


def test_n8n_trigger_webhook_failure():
    client = N8NClient(transport=httpx.MockTransport(lambda request: httpx.Response(500)))

    result = asyncio.run(client.trigger_webhook("http://n8n.test/webhook/email", {"to": "a@example.com"}))

    assert result["success"] is False


# ============================================================================
# Mailgun
# ============================================================================


def test_mailgun_send_email():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["form"] = parse_qs(request.content.decode())
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json={"id": "<msg@mg>", "message": "Queued. Thank you."})

    client = MailgunClient(transport=httpx.MockTransport(handler))
    result = asyncio.run(client.send_email("ana@example.com", "Hi", "<p>Hi</p>", tags=["weekend"]))

    assert result == {"success": True, "id": "<msg@mg>", "message": "Queued. Thank you."}
    assert seen["path"] == "/v3/mg.example.com/messages"
    assert seen["form"]["o:tag"] == ["weekend"]
    assert seen["form"]["o:tracking"] == ["yes"]
    assert seen["auth"].startswith("Basic ")


def test_mailgun_send_email_failure():
    client = MailgunClient(transport=httpx.MockTransport(lambda request: httpx.Response(401, text="Forbidden")))

    result = asyncio.run(client.send_email("ana@example.com", "Hi", "<p>Hi</p>"))

    assert result["success"] is False
    assert "401" in result["error"]


def test_mailgun_authorize_recipient_conflict_is_success():
    client = MailgunClient(transport=httpx.MockTransport(lambda request: httpx.Response(409, json={})))
    assert asyncio.run(client.authorize_recipient("ana@example.com")) is True


def test_mailgun_send_notification_emails_owner_and_texts_gateway():
    forms = []

    def handler(request: httpx.Request) -> httpx.Response:
        forms.append(parse_qs(request.content.decode(), keep_blank_values=True))
        return httpx.Response(200, json={"id": f"<n{len(forms)}@mg>", "message": "Queued"})

    client = MailgunClient(transport=httpx.MockTransport(handler))
    result = asyncio.run(client.send_notification("Launched", "<p>report</p>", "report", "CAMPAIGN LIVE!"))

    assert result == {"email": True, "sms": True}
    email, sms = forms
    assert email["to"] == ["owner@example.com"]
    assert email["html"] == ["<p>report</p>"]
    assert sms["to"] == ["4075550100@sms.example.com"]
    assert sms["subject"] == [""]
    assert sms["text"] == ["CAMPAIGN LIVE!"]
    assert "html" not in sms


def test_mailgun_send_notification_skips_unset_gateway(monkeypatch):
    monkeypatch.setenv("OWNER_SMS_GATEWAY", "")
    get_settings.cache_clear()
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"id": "<n@mg>"})

    client = MailgunClient(transport=httpx.MockTransport(handler))
    result = asyncio.run(client.send_notification("Launched", "<p>report</p>", "report", "CAMPAIGN LIVE!"))

    assert result == {"email": True, "sms": False}
    assert len(calls) == 1
