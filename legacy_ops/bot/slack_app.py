"""
Slack Bolt app for the 24/7 assistant.

Events arrive over HTTP (POST /slack/events) through the FastAPI adapter.
Listeners run after the ack on Bolt's worker threads.
"""

import logging

import httpx
from anthropic import APIError
from slack_bolt import App
from slack_bolt.adapter.fastapi import SlackRequestHandler
from slack_sdk.errors import SlackApiError

from legacy_ops.bot.assistant import ClaudeAssistant
from legacy_ops.config import get_settings
from legacy_ops.utils.helpers import strip_mentions

logger = logging.getLogger(__name__)

PLACEHOLDER = "..."
BOT_ERRORS = (SlackApiError, httpx.HTTPError, APIError)


def register_handlers(app: App, assistant: ClaudeAssistant) -> None:
    @app.event("app_mention")
    def handle_mention(event, client):
        thread_ts = event.get("thread_ts") or event["ts"]
        message = strip_mentions(event.get("text", ""))
        logger.info(f"Mention from {event.get('user')}: {message}")
        try:
            client.chat_postMessage(channel=event["channel"], text=PLACEHOLDER, thread_ts=thread_ts)
            answer = assistant.respond(event.get("user", ""), event["channel"], message)
            client.chat_postMessage(channel=event["channel"], text=answer, thread_ts=thread_ts)
        except BOT_ERRORS as e:
            logger.error(f"Error handling mention: {e}")
            client.chat_postMessage(
                channel=event["channel"],
                text=f"❌ Sorry, I encountered an error: {e}",
                thread_ts=thread_ts,
            )

    @app.event("message")
    def handle_message(event, client):
        if event.get("bot_id") or event.get("thread_ts") or event.get("subtype"):
            return
        logger.info(f"Message from {event.get('user')}: {event.get('text')}")
        try:
            placeholder = client.chat_postMessage(channel=event["channel"], text=PLACEHOLDER)
            answer = assistant.respond(event.get("user", ""), event["channel"], event.get("text", ""))
            client.chat_update(channel=event["channel"], ts=placeholder["ts"], text=answer)
        except BOT_ERRORS as e:
            logger.error(f"Error handling message: {e}")

    @app.command("/claude")
    def handle_claude_command(ack, command, respond):
        ack()
        try:
            answer = assistant.respond(command["user_id"], command["channel_id"], command.get("text", ""))
            respond(response_type="in_channel", text=answer)
        except BOT_ERRORS as e:
            logger.error(f"Error handling /claude: {e}")
            respond(response_type="ephemeral", text=f"❌ Error: {e}")


def create_slack_app(assistant: ClaudeAssistant) -> App:
    settings = get_settings()
    app = App(
        token=settings.slack_bot_token,
        signing_secret=settings.slack_signing_secret,
        token_verification_enabled=False,
    )
    register_handlers(app, assistant)
    return app


def create_request_handler(assistant: ClaudeAssistant) -> SlackRequestHandler:
    return SlackRequestHandler(create_slack_app(assistant))
