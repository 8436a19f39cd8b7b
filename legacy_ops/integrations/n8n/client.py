"""N8N public API client.

Also builds the two workflow definitions the campaigns deploy: the email
campaign webhook (sends through Mailgun) and the Instagram post webhook
(forwards to the Zapier hook).
"""

import logging
from typing import Any

import httpx

from legacy_ops.config import get_settings

logger = logging.getLogger(__name__)

READ_ONLY_FIELDS = ("id", "active", "tags", "createdAt", "updatedAt", "versionId")


def _node(name: str, node_type: str, position: list[int], parameters: dict[str, Any], **extra) -> dict[str, Any]:
    node = {
        "name": name,
        "type": node_type,
        "typeVersion": 1,
        "position": position,
        "parameters": parameters,
    }
    node.update(extra)
    return node


def _chain(*names: str) -> dict[str, Any]:
    return {
        src: {"main": [[{"node": dst, "type": "main", "index": 0}]]}
        for src, dst in zip(names, names[1:])
    }


class N8NClient:
    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._settings = get_settings()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self.base_url = self._settings.n8n_base_url.rstrip("/")

    @property
    def is_configured(self) -> bool:
        return bool(self._settings.n8n_api_key)

    def webhook_url(self, path: str) -> str:
        return f"{self.base_url}/webhook/{path}"

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=f"{self.base_url}/api/v1",
                timeout=30.0,
                transport=self._transport,
                headers={"X-N8N-API-KEY": self._settings.n8n_api_key, "Content-Type": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        client = await self._get_client()
        response = await client.request(method, path, **kwargs)
        response.raise_for_status()
        return response.json() if response.content else None

    async def test_connection(self) -> bool:
        if not self.is_configured:
            return False
        try:
            await self._request("GET", "/workflows", params={"limit": 1})
            return True
        except httpx.HTTPError as e:
            logger.error(f"N8N connection failed: {e}")
            return False

    async def list_workflows(self) -> list[dict[str, Any]]:
        try:
            data = await self._request("GET", "/workflows")
            return data.get("data", [])
        except httpx.HTTPError as e:
            logger.error(f"N8N error listing workflows: {e}")
            return []

    async def get_workflow(self, workflow_id: str) -> dict[str, Any] | None:
        try:
            return await self._request("GET", f"/workflows/{workflow_id}")
        except httpx.HTTPError as e:
            logger.error(f"N8N error fetching workflow {workflow_id}: {e}")
            return None

    async def create_workflow(self, definition: dict[str, Any]) -> dict[str, Any] | None:
        payload = {k: v for k, v in definition.items() if k not in READ_ONLY_FIELDS}
        payload.setdefault("settings", {})
        try:
            workflow = await self._request("POST", "/workflows", json=payload)
            logger.info(f"N8N workflow created: {workflow.get('id')} ({workflow.get('name')})")
            return workflow
        except httpx.HTTPError as e:
            logger.error(f"N8N error creating workflow: {e}")
            return None

    async def activate_workflow(self, workflow_id: str) -> bool:
        try:
            await self._request("POST", f"/workflows/{workflow_id}/activate")
            return True
        except httpx.HTTPError as e:
            logger.error(f"N8N error activating workflow {workflow_id}: {e}")
            return False

    async def execute_workflow(self, workflow_id: str, data: dict[str, Any]) -> dict[str, Any] | None:
        try:
            return await self._request("POST", f"/workflows/{workflow_id}/execute", json=data)
        except httpx.HTTPError as e:
            logger.error(f"N8N error executing workflow {workflow_id}: {e}")
            return None

    async def get_execution(self, execution_id: str) -> dict[str, Any] | None:
        try:
            return await self._request("GET", f"/executions/{execution_id}", params={"includeData": "true"})
        except httpx.HTTPError as e:
            logger.error(f"N8N error fetching execution {execution_id}: {e}")
            return None

    async def trigger_webhook(self, webhook_url: str, data: dict[str, Any]) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as http:
                response = await http.post(webhook_url, json=data)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"N8N webhook {webhook_url} failed: {e}")
            return {"success": False, "error": str(e)}
        body = response.json() if response.content else {}
        return {"success": True, "response": body}

    async def deploy_workflow(self, definition: dict[str, Any]) -> dict[str, Any] | None:
        """Create a workflow and activate it. Returns the created workflow with "active" set."""
        workflow = await self.create_workflow(definition)
        if workflow is None:
            return None
        workflow["active"] = await self.activate_workflow(workflow["id"])
        return workflow

    # ---- Workflow definitions ---------------------------------------------

    def create_email_workflow(self, name: str = "Legacy Wine - Email Campaign") -> dict[str, Any]:
        """Webhook -> Mailgun messages endpoint, one email per call."""
        settings = self._settings
        return {
            "name": name,
            "nodes": [
                _node(
                    "Webhook",
                    "n8n-nodes-base.webhook",
                    [250, 300],
                    {"httpMethod": "POST", "path": "campaign-trigger", "responseMode": "onReceived"},
                    webhookId="campaign-trigger",
                ),
                _node(
                    "Send via Mailgun",
                    "n8n-nodes-base.httpRequest",
                    [500, 300],
                    {
                        "method": "POST",
                        "url": f"{settings.mailgun_api_url}/{settings.mailgun_domain}/messages",
                        "authentication": "genericCredentialType",
                        "genericAuthType": "httpBasicAuth",
                        "sendBody": True,
                        "contentType": "form-urlencoded",
                        "bodyParameters": {
                            "parameters": [
                                {"name": "from", "value": settings.mailgun_from},
                                {"name": "to", "value": "={{$json.body.to}}"},
                                {"name": "subject", "value": "={{$json.body.subject}}"},
                                {"name": "html", "value": "={{$json.body.html}}"},
                                {"name": "o:tracking", "value": "yes"},
                            ]
                        },
                    },
                ),
            ],
            "connections": _chain("Webhook", "Send via Mailgun"),
            "settings": {},
        }

    def instagram_post_workflow(self, name: str = "Legacy Wine - Instagram Auto Post") -> dict[str, Any]:
        """Webhook (instagram-post) -> Zapier catch hook carrying image_url, caption, campaign."""
        return {
            "name": name,
            "nodes": [
                _node(
                    "Webhook",
                    "n8n-nodes-base.webhook",
                    [250, 300],
                    {"httpMethod": "POST", "path": "instagram-post", "responseMode": "onReceived"},
                    webhookId="instagram-post",
                ),
                _node(
                    "Post to Zapier",
                    "n8n-nodes-base.httpRequest",
                    [500, 300],
                    {
                        "method": "POST",
                        "url": self._settings.zapier_instagram_webhook,
                        "sendBody": True,
                        "bodyParameters": {
                            "parameters": [
                                {"name": "image_url", "value": "={{$json.body.image_url}}"},
                                {"name": "caption", "value": "={{$json.body.caption}}"},
                                {"name": "campaign", "value": "={{$json.body.campaign}}"},
                            ]
                        },
                    },
                ),
            ],
            "connections": _chain("Webhook", "Post to Zapier"),
            "settings": {},
        }
