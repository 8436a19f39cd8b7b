"""
Manual Post Tests
"""

import asyncio
import random
from unittest.mock import AsyncMock, MagicMock

import pytest

from legacy_ops.services.content import category_images
from legacy_ops.services.manual_post import ManualPostService, build_hashtags


@pytest.fixture
def service():
    slack = MagicMock()
    slack.send_message = AsyncMock(return_value={"ok": True, "ts": "1.0"})
    zapier = MagicMock()
    zapier.post_to_instagram = AsyncMock(return_value={"success": True, "response": {}})
    return ManualPostService(slack=slack, zapier=zapier, rng=random.Random(1))


def test_build_hashtags():
    assert build_hashtags("New craft beer weekend deal", "beer") == [
        "#LegacyWine",
        "#SanfordFL",
        "#CraftBeer",
        "#Weekend",
        "#SpecialOffer",
        "#NewArrival",
    ]
    assert build_hashtags("Visit the shop", "store") == ["#LegacyWine", "#SanfordFL"]


def test_create_post(service):
    post = service.create_post("  Weekend special on Pinot Noir  ")

    assert post.category == "wine"
    assert post.caption.startswith("🍷 Weekend special on Pinot Noir\n\n📍 Legacy Wine & Liquor")
    assert post.caption.endswith("#LegacyWine #SanfordFL #WineLovers #Weekend #SpecialOffer")
    assert post.image_url in category_images("wine")


def test_create_post_store_uses_default_emoji(service):
    assert service.create_post("Visit our store today").caption.startswith("🛍️ ")


def test_create_post_rejects_blank(service):
    with pytest.raises(ValueError):
        service.create_post("   ")


def test_send_preview_goes_to_approval_channel(service):
    post = service.create_post("New IPA on tap")

    assert asyncio.run(service.send_preview(post)) is True
    assert service.slack.send_message.call_args.args[0] == "C_APPROVAL"


def test_publish_notifies_social(service):
    post = service.create_post("Bourbon tasting " + "x" * 60)

    result = asyncio.run(service.publish(post))

    assert result["success"] is True
    campaign = service.zapier.post_to_instagram.call_args.args[2]
    assert campaign == post.description[:50]
    assert service.slack.send_message.call_args.args[0] == "C_SOCIAL"


def test_publish_failure_skips_notification(service):
    service.zapier.post_to_instagram.return_value = {"success": False, "error": "HTTP 500"}

    result = asyncio.run(service.publish(service.create_post("Rosé all day")))

    assert result["success"] is False
    service.slack.send_message.assert_not_called()
