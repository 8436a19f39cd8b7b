"""Zapier catch-hook client used to publish Instagram posts."""

import logging
from typing import Any

import httpx

from legacy_ops.config import get_settings

logger = logging.getLogger(__name__)


class ZapierClient:
    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._settings = get_settings()
        self._transport = transport
        self.webhook_url = self._settings.zapier_instagram_webhook

    @property
    def is_configured(self) -> bool:
        return bool(self.webhook_url)

    async def post_to_instagram(self, image_url: str, caption: str, campaign: str = "") -> dict[str, Any]:
        """
        Hand a post to the Zapier Instagram zap.

        Returns:
            {"success": bool, "response" | "error": ...}. Success means the hook
            answered 2xx, or its JSON body reported status "success".
        """
        if not self.is_configured:
            return {"success": False, "error": "Zapier webhook not configured"}
        payload = {"image_url": image_url, "caption": caption, "campaign": campaign}
        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as http:
                response = await http.post(self.webhook_url, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Zapier webhook failed: {e}")
            return {"success": False, "error": str(e)}

        try:
            body = response.json()
        except ValueError:
            body = {"raw": response.text}

        if response.is_success or (isinstance(body, dict) and body.get("status") == "success"):
            logger.info(f"Zapier accepted Instagram post for campaign '{campaign}'")
            return {"success": True, "response": body}

        logger.error(f"Zapier webhook returned {response.status_code}: {response.text}")
        return {"success": False, "error": f"HTTP {response.status_code}", "response": body}
