"""
Slack Bolt Listener Tests

Listeners are captured from a minimal app object and called directly with
mocked Slack clients.
"""

from unittest.mock import MagicMock

import pytest
from slack_sdk.errors import SlackApiError

from legacy_ops.bot.slack_app import PLACEHOLDER, register_handlers


class ListenerRegistry:
    def __init__(self):
        self.listeners = {}

    def event(self, name):
        def decorator(fn):
            self.listeners[name] = fn
            return fn

        return decorator

    command = event


@pytest.fixture
def assistant():
    mock = MagicMock()
    mock.respond.return_value = "Here you go"
    return mock


@pytest.fixture
def listeners(assistant):
    registry = ListenerRegistry()
    register_handlers(registry, assistant)
    return registry.listeners


def test_mention_replies_in_thread(listeners, assistant):
    client = MagicMock()
    event = {"user": "U1", "channel": "C1", "ts": "10.1", "text": "<@UBOT> best bourbon?"}

    listeners["app_mention"](event=event, client=client)

    assistant.respond.assert_called_once_with("U1", "C1", "best bourbon?")
    texts = [c.kwargs["text"] for c in client.chat_postMessage.call_args_list]
    assert texts == [PLACEHOLDER, "Here you go"]
    assert all(c.kwargs["thread_ts"] == "10.1" for c in client.chat_postMessage.call_args_list)


def test_mention_error_is_reported(listeners, assistant):
    client = MagicMock()
    client.chat_postMessage.side_effect = [SlackApiError("boom", {"ok": False}), None]
    event = {"user": "U1", "channel": "C1", "ts": "10.1", "text": "hi"}

    listeners["app_mention"](event=event, client=client)

    assert client.chat_postMessage.call_args.kwargs["text"].startswith("❌ Sorry, I encountered an error:")
    assistant.respond.assert_not_called()


def test_message_updates_placeholder(listeners, assistant):
    client = MagicMock()
    client.chat_postMessage.return_value = {"ok": True, "ts": "20.2"}

    listeners["message"](event={"user": "U1", "channel": "D1", "text": "hello"}, client=client)

    client.chat_update.assert_called_once_with(channel="D1", ts="20.2", text="Here you go")


@pytest.mark.parametrize("extra", [{"bot_id": "B1"}, {"thread_ts": "1.0"}, {"subtype": "message_changed"}])
def test_message_ignores_bots_threads_and_subtypes(listeners, assistant, extra):
    client = MagicMock()
    event = {"user": "U1", "channel": "D1", "text": "hello", **extra}

    listeners["message"](event=event, client=client)

    client.chat_postMessage.assert_not_called()
    assistant.respond.assert_not_called()


def test_claude_command_acks_and_responds(listeners, assistant):
    ack, respond = MagicMock(), MagicMock()
    command = {"user_id": "U1", "channel_id": "C1", "text": "top sellers"}

    listeners["/claude"](ack=ack, command=command, respond=respond)

    ack.assert_called_once()
    respond.assert_called_once_with(response_type="in_channel", text="Here you go")
