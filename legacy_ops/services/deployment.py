"""Deploy the Slack bot to Render and the Instagram post workflow to N8N."""

import logging
from typing import Any, Dict, List, Optional

from legacy_ops.config import get_settings
from legacy_ops.integrations.n8n import N8NClient
from legacy_ops.integrations.render import RenderClient

logger = logging.getLogger(__name__)

BOT_SERVICE_NAME = "claude-slack-bot"
BOT_BUILD_COMMAND = "pip install ."
BOT_START_COMMAND = "uvicorn legacy_ops.main:app --host 0.0.0.0 --port $PORT"


def bot_env_vars() -> List[Dict[str, str]]:
    """Environment for the bot service, leaving out settings that are empty."""
    settings = get_settings()
    candidates = {
        "SLACK_BOT_TOKEN": settings.slack_bot_token,
        "SLACK_SIGNING_SECRET": settings.slack_signing_secret,
        "ANTHROPIC_API_KEY": settings.anthropic_api_key,
        "ANTHROPIC_MODEL": settings.anthropic_model,
        "LIGHTSPEED_ACCOUNT_ID": settings.lightspeed_account_id,
        "LIGHTSPEED_ACCESS_TOKEN": settings.lightspeed_access_token,
        "PORT": "10000",
    }
    return [{"key": key, "value": value} for key, value in candidates.items() if value]


async def deploy_bot_to_render(
    repo: str, branch: str = "main", plan: str = "starter", render: Optional[RenderClient] = None
) -> Optional[Dict[str, Any]]:
    """Create the bot web service. repo may be given with or without the https:// scheme."""
    if not repo.startswith("https://"):
        repo = f"https://{repo}"
    render = render or RenderClient()
    service = await render.create_web_service(
        BOT_SERVICE_NAME,
        repo,
        start_command=BOT_START_COMMAND,
        build_command=BOT_BUILD_COMMAND,
        branch=branch,
        plan=plan,
        env_vars=bot_env_vars(),
    )
    if service:
        logger.info(f"Render service {BOT_SERVICE_NAME} created ({service.get('id')})")
    return service


async def deploy_instagram_workflow(n8n: Optional[N8NClient] = None) -> Optional[Dict[str, Any]]:
    n8n = n8n or N8NClient()
    workflow = await n8n.deploy_workflow(n8n.instagram_post_workflow())
    if workflow:
        logger.info(f"Instagram workflow deployed; webhook at {n8n.webhook_url('instagram-post')}")
    return workflow
