"""
Deployment Tests
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

from legacy_ops.services.deployment import (
    BOT_SERVICE_NAME,
    BOT_START_COMMAND,
    bot_env_vars,
    deploy_bot_to_render,
    deploy_instagram_workflow,
)


def test_bot_env_vars_skip_empty_settings(monkeypatch):
    from legacy_ops.config import get_settings

    monkeypatch.setenv("LIGHTSPEED_ACCESS_TOKEN", "")
    get_settings.cache_clear()

    env = {item["key"]: item["value"] for item in bot_env_vars()}

    assert env["SLACK_BOT_TOKEN"] == "xoxb-test"
    assert env["PORT"] == "10000"
    assert "LIGHTSPEED_ACCESS_TOKEN" not in env


def test_deploy_bot_adds_scheme():
    render = MagicMock()
    render.create_web_service = AsyncMock(return_value={"id": "srv-1"})

    service = asyncio.run(deploy_bot_to_render("github.com/legacywine/bot", render=render))

    assert service == {"id": "srv-1"}
    args, kwargs = render.create_web_service.call_args
    assert args == (BOT_SERVICE_NAME, "https://github.com/legacywine/bot")
    assert kwargs["start_command"] == BOT_START_COMMAND
    assert kwargs["branch"] == "main"
    assert kwargs["plan"] == "starter"


def test_deploy_instagram_workflow():
    n8n = MagicMock()
    n8n.instagram_post_workflow.return_value = {"name": "Legacy Wine - Instagram Auto Post"}
    n8n.deploy_workflow = AsyncMock(return_value={"id": "wf1", "active": True})
    n8n.webhook_url.return_value = "http://n8n.test/webhook/instagram-post"

    workflow = asyncio.run(deploy_instagram_workflow(n8n))

    assert workflow == {"id": "wf1", "active": True}
    n8n.deploy_workflow.assert_awaited_once_with({"name": "Legacy Wine - Instagram Auto Post"})
