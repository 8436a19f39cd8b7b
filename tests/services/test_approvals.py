"""
Instagram Approval Flow Tests

Covers the approval request message, recovering the post from an approved
message (metadata first, text as fallback) and the channel watcher.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from legacy_ops.services.approvals import (
    APPROVAL_EVENT_TYPE,
    ApprovalWatcher,
    extract_post_data,
    generate_caption,
    is_approved,
    request_approval,
)
from legacy_ops.services.content import get_template

APPROVED = [{"name": "white_check_mark", "count": 1}]


def _approval_message(ts="100.1", reactions=APPROVED, metadata=True):
    message = {
        "ts": ts,
        "text": "📸 Instagram Post Approval Request: Weekend Wine Spectacular",
        "reactions": reactions,
    }
    if metadata:
        message["metadata"] = {
            "event_type": APPROVAL_EVENT_TYPE,
            "event_payload": {
                "template": "weekendSpecial",
                "imageUrl": "https://img.test/weekend.jpg",
                "caption": "Weekend caption",
                "campaignName": "Weekend Wine Spectacular",
            },
        }
    return message


@pytest.fixture
def slack():
    client = MagicMock()
    client.send_message = AsyncMock(return_value={"ok": True, "ts": "200.1"})
    client.update_message = AsyncMock(return_value={"ok": True})
    client.read_channel_history = AsyncMock(return_value=[])
    return client


@pytest.fixture
def zapier():
    client = MagicMock()
    client.post_to_instagram = AsyncMock(return_value={"success": True, "response": {}})
    return client


def test_generate_caption_from_template():
    caption = generate_caption(get_template("weekendSpecial"))

    assert caption.startswith("🍷 Weekend Wine Spectacular\n\n")
    assert "📍 Legacy Wine & Liquor" in caption
    assert caption.endswith("#WineWeekend #LegacyWine #SanfordFL")


def test_generate_caption_custom_text_wins():
    assert generate_caption(get_template("dailyDeal"), "Just this") == "Just this"


def test_unknown_template():
    with pytest.raises(ValueError):
        get_template("nope")


def test_request_approval_attaches_metadata(slack):
    result = asyncio.run(request_approval("newArrival", slack=slack))

    assert result["ts"] == "200.1"
    args, kwargs = slack.send_message.call_args
    assert args[0] == "C_APPROVAL"
    assert "Instagram Post Approval" in args[1]
    assert kwargs["blocks"][0]["type"] == "header"
    payload = kwargs["metadata"]["event_payload"]
    assert payload["template"] == "newArrival"
    assert payload["campaignName"] == "New Arrival Alert"


def test_extract_post_data_prefers_metadata():
    assert extract_post_data(_approval_message()) == {
        "campaign": "Weekend Wine Spectacular",
        "caption": "Weekend caption",
        "image_url": "https://img.test/weekend.jpg",
    }


def test_extract_post_data_parses_text():
    message = {
        "text": (
            "*Campaign:* Daily Deal\n"
            "*Caption:*\n```Today's special offer!```\n"
            "**Image:** <https://img.test/deal.jpg>"
        )
    }

    assert extract_post_data(message) == {
        "campaign": "Daily Deal",
        "caption": "Today's special offer!",
        "image_url": "https://img.test/deal.jpg",
    }


def test_extract_post_data_malformed_metadata_falls_back():
    message = _approval_message()
    message["metadata"]["event_payload"] = {"template": "weekendSpecial"}

    assert extract_post_data(message) is None


def test_is_approved():
    assert is_approved(_approval_message()) is True
    assert is_approved(_approval_message(reactions=[{"name": "x", "count": 1}])) is False
    assert is_approved({"text": "hello", "reactions": APPROVED}) is False


def test_watcher_publishes_each_message_once(slack, zapier):
    slack.read_channel_history.return_value = [
        _approval_message("1.0"),
        _approval_message("2.0", reactions=[]),
    ]
    watcher = ApprovalWatcher(slack=slack, zapier=zapier, interval=0)

    first = asyncio.run(watcher.check_once())
    second = asyncio.run(watcher.check_once())

    assert len(first) == 1
    assert second == []
    zapier.post_to_instagram.assert_awaited_once_with(
        "https://img.test/weekend.jpg", "Weekend caption", "Weekend Wine Spectacular"
    )
    assert slack.send_message.call_args.args[0] == "C_SOCIAL"
    channel, ts, text = slack.update_message.call_args.args
    assert (channel, ts) == ("C_APPROVAL", "1.0")
    assert text.startswith("✅ *APPROVED & POSTED*")


def test_watcher_failed_publish_is_not_retried(slack, zapier):
    zapier.post_to_instagram.return_value = {"success": False, "error": "HTTP 500"}
    slack.read_channel_history.return_value = [_approval_message("1.0")]
    watcher = ApprovalWatcher(slack=slack, zapier=zapier, interval=0)

    asyncio.run(watcher.check_once())
    asyncio.run(watcher.check_once())

    assert zapier.post_to_instagram.await_count == 1
    slack.update_message.assert_not_called()


def test_watcher_skips_approved_message_without_post(slack, zapier):
    slack.read_channel_history.return_value = [_approval_message("1.0", metadata=False)]
    watcher = ApprovalWatcher(slack=slack, zapier=zapier, interval=0)

    assert asyncio.run(watcher.check_once()) == []
    assert "1.0" not in watcher.processed


def test_watcher_run_stops_after_max_polls(slack, zapier):
    watcher = ApprovalWatcher(slack=slack, zapier=zapier, interval=0)

    asyncio.run(watcher.run(max_polls=3))

    assert slack.read_channel_history.await_count == 3
