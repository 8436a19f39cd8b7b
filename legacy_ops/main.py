import logging
import time
from datetime import datetime, timezone
from functools import lru_cache

from fastapi import FastAPI, Request

from legacy_ops.api.routes import dashboard
from legacy_ops.bot.assistant import ClaudeAssistant
from legacy_ops.bot.conversation_store import ConversationStore
from legacy_ops.config import get_settings

settings = get_settings()

# Configure application logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger("legacy_ops")
logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)

STARTED_AT = time.monotonic()
conversations = ConversationStore()

app = FastAPI(
    title=settings.app_name,
    description="Slack assistant and operations dashboard for Legacy Wine & Liquor",
    version="0.1.0",
)

app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])


def build_assistant() -> ClaudeAssistant:
    return ClaudeAssistant(store=conversations)


@lru_cache
def get_slack_handler():
    """Build the Bolt app on first use so the API starts without Slack credentials."""
    from legacy_ops.bot.slack_app import create_request_handler

    return create_request_handler(build_assistant())


@app.post("/slack/events")
async def slack_events(request: Request):
    return await get_slack_handler().handle(request)


@app.get("/")
async def root():
    return {
        "status": "online",
        "bot": settings.bot_name,
        "uptime": round(time.monotonic() - STARTED_AT, 1),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/health")
async def health_check():
    return {"healthy": True, "conversation_count": len(conversations)}
