"""Mailgun HTTP API client (basic auth with the "api" user)."""

import logging
from typing import Any

import httpx

from legacy_ops.config import get_settings

logger = logging.getLogger(__name__)

SANDBOX_AUTH_URL = "https://api.mailgun.net/v5/sandbox/auth_recipients"


class MailgunClient:
    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._settings = get_settings()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self.domain = self._settings.mailgun_domain

    @property
    def is_configured(self) -> bool:
        return bool(self._settings.mailgun_api_key and self.domain)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._settings.mailgun_api_url,
                timeout=30.0,
                transport=self._transport,
                auth=("api", self._settings.mailgun_api_key),
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def test_connection(self) -> bool:
        if not self.is_configured:
            return False
        return bool(await self.list_domains())

    async def send_email(
        self,
        to: str | list[str],
        subject: str,
        html: str,
        text: str | None = None,
        from_address: str | None = None,
        tags: list[str] | None = None,
    ) -> dict[str, Any]:
        """
        Send one message with open/click tracking on.

        Returns:
            {"success": True, "id": ..., "message": ...} or {"success": False, "error": ...}
        """
        data: dict[str, Any] = {
            "from": from_address or self._settings.mailgun_from,
            "to": to,
            "subject": subject,
            "html": html,
            "o:tracking": "yes",
            "o:tracking-clicks": "yes",
            "o:tracking-opens": "yes",
        }
        if text:
            data["text"] = text
        if tags:
            data["o:tag"] = tags
        return await self._post_message(data)

    async def _post_message(self, data: dict[str, Any]) -> dict[str, Any]:
        try:
            client = await self._get_client()
            response = await client.post(f"/{self.domain}/messages", data=data)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Mailgun send to {data['to']} failed: {e}")
            return {"success": False, "error": str(e)}

        body = response.json()
        logger.info(f"Mailgun queued message {body.get('id')} to {data['to']}")
        return {"success": True, "id": body.get("id"), "message": body.get("message")}

    async def send_notification(self, subject: str, html: str, text: str, sms_text: str) -> dict[str, bool]:
        """
        Alert the store owner: the full report by email and a short text through
        the carrier's email-to-SMS gateway.

        A channel whose address is not set in settings is skipped and reported False.
        """
        results = {"email": False, "sms": False}
        owner = self._settings.owner_notification_email
        gateway = self._settings.owner_sms_gateway

        if owner:
            results["email"] = (await self.send_email(owner, subject, html, text=text))["success"]
        else:
            logger.warning("Owner notification email not configured")

        if gateway:
            # SMS gateways deliver the body only
            sms = {"from": self._settings.mailgun_from, "to": gateway, "subject": "", "text": sms_text}
            results["sms"] = (await self._post_message(sms))["success"]
        else:
            logger.warning("Owner SMS gateway not configured")

        return results

    async def authorize_recipient(self, email: str) -> bool:
        """Add an authorized recipient to a sandbox domain. Already-authorized (409) counts as success."""
        try:
            client = await self._get_client()
            response = await client.post(SANDBOX_AUTH_URL, params={"email": email})
        except httpx.HTTPError as e:
            logger.error(f"Mailgun recipient authorization failed: {e}")
            return False
        if response.status_code == 409:
            logger.info(f"{email} already authorized")
            return True
        if response.is_error:
            logger.error(f"Mailgun recipient authorization failed: {response.status_code} {response.text}")
            return False
        return True

    async def list_domains(self) -> list[dict[str, Any]]:
        try:
            client = await self._get_client()
            response = await client.get("/domains")
            response.raise_for_status()
            return response.json().get("items", [])
        except httpx.HTTPError as e:
            logger.error(f"Mailgun error listing domains: {e}")
            return []
