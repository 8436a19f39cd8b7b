"""
Master Control Dashboard

Holds one instance of every vendor wrapper, tracks per-API connection status
and request counters, and runs the cross-system actions (sync, report, AI
Instagram post) behind the CLI and the dashboard API.
"""

import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

from legacy_ops.config import get_settings
from legacy_ops.integrations.airtable import AirtableClient
from legacy_ops.integrations.anthropic import AnthropicClient
from legacy_ops.integrations.cloudflare import CloudflareClient
from legacy_ops.integrations.github import GitHubClient
from legacy_ops.integrations.instagram import InstagramClient
from legacy_ops.integrations.lightspeed import LightspeedClient
from legacy_ops.integrations.notion import NotionClient
from legacy_ops.integrations.openai import OpenAIClient
from legacy_ops.integrations.render import RenderClient
from legacy_ops.integrations.slack import SlackClient
from legacy_ops.integrations.vertex import VertexClient
from legacy_ops.models import ApiStatus, DashboardStats

logger = logging.getLogger(__name__)

# key -> (display name, endpoint host, factory)
API_REGISTRY = {
    "slack": ("Slack", "slack.com", SlackClient),
    "cloudflare": ("Cloudflare", "api.cloudflare.com", CloudflareClient),
    "notion": ("Notion", "api.notion.com", NotionClient),
    "render": ("Render", "api.render.com", RenderClient),
    "openai": ("OpenAI", "api.openai.com", OpenAIClient),
    "instagram": ("Instagram", "graph.facebook.com", InstagramClient),
    "anthropic": ("Anthropic", "api.anthropic.com", AnthropicClient),
    "vertex": ("Vertex AI", "aiplatform.googleapis.com", VertexClient),
    "lightspeed": ("Lightspeed POS", "api.lightspeedapp.com", LightspeedClient),
    "airtable": ("Airtable", "api.airtable.com", AirtableClient),
    "github": ("GitHub", "api.github.com", GitHubClient),
}


class MasterControl:
    def __init__(self, clients: Optional[Dict[str, Any]] = None):
        self.settings = get_settings()
        clients = clients or {}
        self.apis: Dict[str, Any] = {
            key: clients[key] if key in clients else factory() for key, (_, _, factory) in API_REGISTRY.items()
        }
        self.status: Dict[str, ApiStatus] = {key: ApiStatus() for key in API_REGISTRY}
        self.stats = DashboardStats()

    def _track(self, ok: bool) -> bool:
        self.stats.total_requests += 1
        if ok:
            self.stats.successful += 1
        else:
            self.stats.failed += 1
        return ok

    async def _check(self, key: str) -> bool:
        ok = bool(await self.apis[key].test_connection())
        self.status[key] = ApiStatus(connected=ok, last_check=datetime.now(timezone.utc))
        return self._track(ok)

    async def test_connections(self) -> Dict[str, bool]:
        """Check every API concurrently and update the status table."""
        keys = list(self.apis)
        results = await asyncio.gather(*(self._check(key) for key in keys))
        connected = sum(results)
        logger.info(f"{connected}/{len(keys)} APIs connected")
        return dict(zip(keys, results))

    def status_rows(self) -> List[Dict[str, str]]:
        rows = []
        for key, (name, host, _) in API_REGISTRY.items():
            status = self.status[key]
            rows.append(
                {
                    "api": name,
                    "status": "✅ Connected" if status.connected else "❌ Disconnected",
                    "last_check": status.last_check.strftime("%H:%M:%S") if status.last_check else "Never",
                    "endpoint": host,
                }
            )
        return rows

    def connected_count(self) -> int:
        return sum(1 for s in self.status.values() if s.connected)

    async def sync_all_systems(self) -> Dict[str, int]:
        """Record counts pulled from each system. A failed read counts as 0."""
        apis = self.apis
        tasks: Dict[str, Callable[[], Awaitable[Any]]] = {
            "Slack channels": apis["slack"].list_channels,
            "Cloudflare zones": apis["cloudflare"].list_zones,
            "Notion results": lambda: apis["notion"].search(""),
            "Render services": apis["render"].list_services,
            "Lightspeed POS items": lambda: apis["lightspeed"].get_items(limit=5),
            f"Airtable records ({apis['airtable'].default_table})": lambda: apis["airtable"].list_records(
                max_records=5
            ),
            "GitHub repositories": apis["github"].list_repos,
        }
        results = await asyncio.gather(*(fn() for fn in tasks.values()))
        summary = {}
        for label, result in zip(tasks, results):
            summary[label] = len(result or [])
            self._track(bool(result))
        logger.info(f"Sync complete: {summary}")
        return summary

    async def generate_report(self) -> Dict[str, Any]:
        """Write reports/report-<ms timestamp>.json with status, stats and vendor analytics."""
        report: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "status": {key: s.model_dump(mode="json") for key, s in self.status.items()},
            "stats": self.stats.model_dump(mode="json"),
            "apis": {},
        }
        if self.status["instagram"].connected:
            report["apis"]["instagram"] = await self.apis["instagram"].get_account_insights(period="week")
        if self.status["cloudflare"].connected:
            report["apis"]["cloudflare"] = await self.apis["cloudflare"].get_analytics()

        reports_dir = Path(self.settings.reports_dir)
        reports_dir.mkdir(parents=True, exist_ok=True)
        path = reports_dir / f"report-{int(datetime.now().timestamp() * 1000)}.json"
        path.write_text(json.dumps(report, indent=2, default=str), encoding="utf-8")
        logger.info(f"Report saved to {path}")
        return {"path": str(path), "report": report}

    async def post_to_instagram(self, topic: str) -> Dict[str, Any]:
        """AI caption, DALL-E image, then a direct Graph API publish."""
        content = await self.apis["openai"].generate_instagram_post(topic)
        if not content:
            return {"success": False, "error": "Content generation failed"}

        images = await self.apis["openai"].generate_image(content.get("image_description") or topic)
        if not images:
            return {"success": False, "error": "Image generation failed"}

        hashtags = content.get("hashtags") or ""
        if isinstance(hashtags, list):
            hashtags = " ".join(hashtags)
        caption = f"{content.get('caption', '')}\n\n{content.get('cta', '')}\n\n{hashtags}"
        post = await self.apis["instagram"].create_image_post(images[0]["url"], caption)
        if not self._track(post is not None):
            return {"success": False, "error": "Instagram publish failed", "content": content}
        return {"success": True, "post": post, "content": content}
