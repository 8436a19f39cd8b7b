"""
Claude Slack Assistant

Answers Slack messages with Anthropic, keeping per user/channel history and
attaching sales analytics to questions about sales or customers.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

from anthropic import Anthropic, APIError

from legacy_ops.bot.conversation_store import ConversationStore, session_key
from legacy_ops.config import get_settings
from legacy_ops.services.analytics import SalesIntelligence

logger = logging.getLogger(__name__)

ANALYTICS_TRIGGERS = [
    "sales",
    "customers",
    "repeat",
    "vip",
    "at risk",
    "revenue",
    "today",
    "analytics",
    "dashboard",
    "profit",
    "transactions",
    "report",
]

ANALYTICS_UNAVAILABLE = (
    "📊 Analytics integration is not configured. I can still help with general questions and conversations."
)

SYSTEM_PROMPT = """You are Claude, deployed as a 24/7 Slack bot for {store_name}.

You can be given sales analytics from the store's point of sale:
- Today's sales data
- Repeat customer analysis
- At-risk customer identification
- VIP customer data
- Customer segmentation
- Re-engagement lists

When analytics data is attached to a message, use it to answer.

Be helpful, concise, and use emojis to make responses engaging. Keep responses under 2000 characters for Slack."""


def needs_analytics(message: str) -> bool:
    text = (message or "").lower()
    return any(trigger in text for trigger in ANALYTICS_TRIGGERS)


async def get_analytics_data(message: str, analyzer: Optional[SalesIntelligence]) -> Dict[str, Any]:
    """Route a question to the matching analytics query; the dashboard is the default."""
    if analyzer is None:
        return {"success": False, "message": ANALYTICS_UNAVAILABLE}

    text = message.lower()
    try:
        if "today" in text:
            return await analyzer.get_today_sales()
        if "repeat" in text:
            return await analyzer.get_repeat_customers()
        if "at risk" in text or "churning" in text:
            return await analyzer.get_at_risk_customers()
        if "vip" in text or "best customer" in text:
            return await analyzer.get_vip_customers()
        return await analyzer.get_dashboard_data()
    finally:
        # Each question runs in its own event loop, so the HTTP client is not reused
        await analyzer.lightspeed.close()


class ClaudeAssistant:
    def __init__(
        self,
        store: Optional[ConversationStore] = None,
        client: Optional[Anthropic] = None,
        analyzer: Optional[SalesIntelligence] = None,
    ):
        self.settings = get_settings()
        self.store = store if store is not None else ConversationStore()
        self._client = client
        if analyzer is None:
            candidate = SalesIntelligence()
            analyzer = candidate if candidate.lightspeed.is_configured else None
        self.analyzer = analyzer

    @property
    def client(self) -> Anthropic:
        if self._client is None:
            self._client = Anthropic(api_key=self.settings.anthropic_api_key)
        return self._client

    def analytics_context(self, message: str) -> str:
        """Analytics block appended to the user turn, or "" when none applies."""
        if not needs_analytics(message):
            return ""
        analytics = asyncio.run(get_analytics_data(message, self.analyzer))
        if not analytics.get("success"):
            logger.info(f"No analytics attached: {analytics.get('message') or analytics.get('error')}")
            return ""
        return f"\n\n[Analytics Data: {json.dumps(analytics.get('data'), indent=2, default=str)}]"

    def respond(self, user: str, channel: str, text: str) -> str:
        key = session_key(user, channel)
        history = self.store.append(key, "user", text + self.analytics_context(text))
        # Trimming can leave an assistant turn first, which the Messages API rejects
        while history and history[0]["role"] != "user":
            history.pop(0)

        try:
            message = self.client.messages.create(
                model=self.settings.anthropic_model,
                max_tokens=self.settings.bot_max_tokens,
                system=SYSTEM_PROMPT.format(store_name=self.settings.store_name),
                messages=history,
            )
        except APIError as e:
            logger.error(f"Claude API error: {e}")
            return f"Sorry, I encountered an error: {e}"

        reply = "".join(block.text for block in message.content if block.type == "text")
        self.store.append(key, "assistant", reply)
        return reply
