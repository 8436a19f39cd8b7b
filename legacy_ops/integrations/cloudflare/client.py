"""Cloudflare API v4 client.

Covers the zone operations the store site needs: DNS records, zone settings
(SSL, caching, minification), page rules, cache purge, analytics, firewall
rules and SSL certificate packs.
"""

import logging
from typing import Any

import httpx

from legacy_ops.config import get_settings

logger = logging.getLogger(__name__)


class CloudflareClient:
    """Client for the Cloudflare REST API (global API key auth)."""

    BASE_URL = "https://api.cloudflare.com/client/v4"

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._settings = get_settings()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self.zone_id = self._settings.cloudflare_zone_id

    @property
    def is_configured(self) -> bool:
        return bool(self._settings.cloudflare_email and self._settings.cloudflare_api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.BASE_URL,
                timeout=30.0,
                transport=self._transport,
                headers={
                    "X-Auth-Email": self._settings.cloudflare_email,
                    "X-Auth-Key": self._settings.cloudflare_api_key,
                    "Content-Type": "application/json",
                },
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """Send a request and unwrap the v4 envelope's "result"."""
        client = await self._get_client()
        response = await client.request(method, path, **kwargs)
        response.raise_for_status()
        return response.json().get("result")

    async def test_connection(self) -> bool:
        if not self.is_configured:
            return False
        try:
            await self._request("GET", "/user")
            return True
        except httpx.HTTPError as e:
            logger.error(f"Cloudflare connection failed: {e}")
            return False

    # ---- Zones -----------------------------------------------------------

    async def list_zones(self) -> list[dict[str, Any]]:
        try:
            zones = await self._request(
                "GET",
                "/zones",
                params={"page": 1, "per_page": 50, "order": "name", "direction": "asc", "status": "active"},
            )
            logger.info(f"Found {len(zones or [])} Cloudflare zones")
            return zones or []
        except httpx.HTTPError as e:
            logger.error(f"Cloudflare error listing zones: {e}")
            return []

    async def get_zone_details(self, zone_id: str | None = None) -> dict[str, Any] | None:
        try:
            return await self._request("GET", f"/zones/{zone_id or self.zone_id}")
        except httpx.HTTPError as e:
            logger.error(f"Cloudflare error fetching zone: {e}")
            return None

    # ---- DNS -------------------------------------------------------------

    async def list_dns_records(self, zone_id: str | None = None) -> list[dict[str, Any]]:
        try:
            records = await self._request(
                "GET",
                f"/zones/{zone_id or self.zone_id}/dns_records",
                params={"page": 1, "per_page": 100, "order": "type", "direction": "asc"},
            )
            return records or []
        except httpx.HTTPError as e:
            logger.error(f"Cloudflare error listing DNS records: {e}")
            return []

    async def create_dns_record(
        self,
        record_type: str,
        name: str,
        content: str,
        proxied: bool = False,
        ttl: int = 1,
        priority: int | None = None,
    ) -> dict[str, Any] | None:
        """Create a DNS record. ttl=1 means automatic; priority only applies to MX."""
        payload: dict[str, Any] = {
            "type": record_type,
            "name": name,
            "content": content,
            "proxied": proxied,
            "ttl": ttl,
        }
        if priority is not None or record_type == "MX":
            payload["priority"] = priority if priority is not None else 10
        try:
            record = await self._request("POST", f"/zones/{self.zone_id}/dns_records", json=payload)
            logger.info(f"Created {record_type} record {name} -> {content}")
            return record
        except httpx.HTTPError as e:
            logger.error(f"Cloudflare error creating DNS record: {e}")
            return None

    async def update_dns_record(self, record_id: str, updates: dict[str, Any]) -> dict[str, Any] | None:
        try:
            return await self._request("PATCH", f"/zones/{self.zone_id}/dns_records/{record_id}", json=updates)
        except httpx.HTTPError as e:
            logger.error(f"Cloudflare error updating DNS record {record_id}: {e}")
            return None

    async def delete_dns_record(self, record_id: str) -> bool:
        try:
            await self._request("DELETE", f"/zones/{self.zone_id}/dns_records/{record_id}")
            return True
        except httpx.HTTPError as e:
            logger.error(f"Cloudflare error deleting DNS record {record_id}: {e}")
            return False

    # ---- Settings --------------------------------------------------------

    async def get_zone_settings(self, zone_id: str | None = None) -> list[dict[str, Any]]:
        try:
            return await self._request("GET", f"/zones/{zone_id or self.zone_id}/settings") or []
        except httpx.HTTPError as e:
            logger.error(f"Cloudflare error reading zone settings: {e}")
            return []

    async def update_zone_setting(self, setting_id: str, value: Any) -> dict[str, Any] | None:
        try:
            result = await self._request(
                "PATCH", f"/zones/{self.zone_id}/settings/{setting_id}", json={"value": value}
            )
            logger.info(f"Zone setting {setting_id} updated")
            return result
        except httpx.HTTPError as e:
            logger.error(f"Cloudflare error updating setting {setting_id}: {e}")
            return None

    async def configure_ssl(self, mode: str = "full") -> dict[str, Any] | None:
        return await self.update_zone_setting("ssl", mode)

    async def configure_caching(self, level: str = "aggressive") -> dict[str, Any] | None:
        return await self.update_zone_setting("cache_level", level)

    async def enable_minification(self) -> dict[str, Any] | None:
        return await self.update_zone_setting("minify", {"css": "on", "html": "on", "js": "on"})

    # ---- Page rules ------------------------------------------------------

    async def create_page_rule(
        self, url_pattern: str, actions: list[dict[str, Any]], priority: int = 1
    ) -> dict[str, Any] | None:
        payload = {
            "targets": [
                {"target": "url", "constraint": {"operator": "matches", "value": url_pattern}}
            ],
            "actions": actions,
            "priority": priority,
            "status": "active",
        }
        try:
            return await self._request("POST", f"/zones/{self.zone_id}/pagerules", json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Cloudflare error creating page rule: {e}")
            return None

    async def list_page_rules(self) -> list[dict[str, Any]]:
        try:
            return await self._request("GET", f"/zones/{self.zone_id}/pagerules") or []
        except httpx.HTTPError as e:
            logger.error(f"Cloudflare error listing page rules: {e}")
            return []

    # ---- Cache / analytics -----------------------------------------------

    async def purge_cache(self, files: list[str] | None = None) -> dict[str, Any] | None:
        """Purge specific URLs, or the whole zone when no files are given."""
        payload: dict[str, Any] = {"files": files} if files else {"purge_everything": True}
        try:
            result = await self._request("POST", f"/zones/{self.zone_id}/purge_cache", json=payload)
            logger.info("Cache purge requested")
            return result
        except httpx.HTTPError as e:
            logger.error(f"Cloudflare error purging cache: {e}")
            return None

    async def get_analytics(self, since: str = "-1d", until: str = "now") -> dict[str, Any] | None:
        try:
            return await self._request(
                "GET",
                f"/zones/{self.zone_id}/analytics/dashboard",
                params={"since": since, "until": until, "continuous": "true"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Cloudflare error fetching analytics: {e}")
            return None

    # ---- Firewall / SSL --------------------------------------------------

    async def list_firewall_rules(self) -> list[dict[str, Any]]:
        try:
            return await self._request("GET", f"/zones/{self.zone_id}/firewall/rules") or []
        except httpx.HTTPError as e:
            logger.error(f"Cloudflare error listing firewall rules: {e}")
            return []

    async def create_firewall_rule(
        self, expression: str, action: str = "block", description: str = ""
    ) -> dict[str, Any] | None:
        """Create a filter for the expression, then a firewall rule bound to it."""
        try:
            filters = await self._request(
                "POST",
                f"/zones/{self.zone_id}/filters",
                json=[{"expression": expression, "description": description}],
            )
            filter_id = filters[0]["id"]
            rules = await self._request(
                "POST",
                f"/zones/{self.zone_id}/firewall/rules",
                json=[{"filter": {"id": filter_id}, "action": action, "description": description}],
            )
            logger.info(f"Firewall rule created ({action}: {expression})")
            return rules[0]
        except httpx.HTTPError as e:
            logger.error(f"Cloudflare error creating firewall rule: {e}")
            return None

    async def get_ssl_certificates(self) -> list[dict[str, Any]]:
        try:
            return await self._request("GET", f"/zones/{self.zone_id}/ssl/certificate_packs") or []
        except httpx.HTTPError as e:
            logger.error(f"Cloudflare error listing certificates: {e}")
            return []
