"""
Smart Post Generator Tests

Calendar-driven selection uses fixed dates: 2025-10-15 is a Wednesday,
2025-10-16 a Thursday, 2025-10-18 a Saturday and 2025-10-20 a Monday.
"""

import asyncio
import random
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from legacy_ops.models import PostDraft
from legacy_ops.services.knowledge_base import KnowledgeBase
from legacy_ops.services.post_generator import PostGenerator, holiday_month, season_for_month

WEDNESDAY = datetime(2025, 10, 15, 10, 0)
THURSDAY = datetime(2025, 10, 16, 10, 0)
SATURDAY = datetime(2025, 10, 18, 10, 0)
MONDAY = datetime(2025, 10, 20, 10, 0)


@pytest.fixture
def kb(tmp_path):
    knowledge_base = KnowledgeBase(tmp_path / "business_knowledge.json")
    knowledge_base.initialize()
    return knowledge_base


@pytest.fixture
def slack():
    client = MagicMock()
    client.send_message = AsyncMock(return_value={"ok": True, "ts": "1.0"})
    return client


@pytest.fixture
def zapier():
    client = MagicMock()
    client.post_to_instagram = AsyncMock(return_value={"success": True, "response": {}})
    return client


@pytest.fixture
def generator(kb, slack, zapier, tmp_path):
    return PostGenerator(
        knowledge_base=kb,
        slack=slack,
        zapier=zapier,
        rng=random.Random(7),
        pending_path=tmp_path / "pending-post.json",
    )


@pytest.mark.parametrize(
    "month,season",
    [(1, "winter"), (3, "spring"), (5, "spring"), (7, "summer"), (10, "fall"), (12, "winter")],
)
def test_season_for_month(month, season):
    assert season_for_month(month) == season


def test_holiday_month():
    assert holiday_month("December 25") == 12
    assert holiday_month("Fourth Thursday of November") == 11
    assert holiday_month("sometime soon") is None


def test_upcoming_holidays_wrap_around_year(kb):
    knowledge = kb.load()

    october = [h.name for h in PostGenerator.upcoming_holidays(knowledge, datetime(2025, 10, 1))]
    january = [h.name for h in PostGenerator.upcoming_holidays(knowledge, datetime(2026, 1, 10))]

    assert october == ["Halloween", "Thanksgiving"]
    assert january == ["Valentine's Day", "Christmas", "New Year's Eve"]


def test_generate_hashtags_dedupes_and_caps(kb):
    hashtags = PostGenerator.generate_hashtags(["wine", "winewednesday"], kb.load())

    assert hashtags.split() == [
        "#LegacyWine",
        "#LegacyWineAndLiquor",
        "#WineLovers",
        "#WineTime",
        "#WineOClock",
        "#SanfordFL",
        "#DowntownSanford",
    ]


def test_build_full_caption_appends_store_block(kb):
    caption = PostGenerator.build_full_caption("Hello", kb.load())
    assert caption.startswith("Hello\n\n📍 Legacy Wine & Liquor\n200 S French Ave, Sanford, FL 32771")
    assert caption.endswith("⏰ Open Daily")


@pytest.mark.parametrize(
    "now,theme,category",
    [
        (WEDNESDAY, "Wine Wednesday", "wine"),
        (THURSDAY, "Thirsty Thursday", "cocktail"),
        (SATURDAY, "Weekend", "wine"),
        (MONDAY, "fall", "wine"),
    ],
)
def test_default_post_follows_calendar(generator, now, theme, category):
    post = generator.generate("default", now=now)

    assert post.theme == theme
    assert post.category == category


def test_holiday_post(generator):
    post = generator.generate("holiday", now=MONDAY)

    assert post.theme == "Halloween"
    assert post.category == "liquor"
    assert "Spiced rum" in post.caption
    assert post.hashtags == "#LegacyWine #LegacyWineAndLiquor #SanfordFL #DowntownSanford"


def test_holiday_post_falls_through_without_holidays(generator, kb):
    knowledge = kb.load()
    knowledge.holidays_and_events.annual_holidays = []
    kb.save(knowledge)

    assert generator.generate("holiday", now=MONDAY).theme == "fall"


def test_new_product_post_requires_text(generator):
    with pytest.raises(ValueError):
        generator.generate("new-product")


def test_new_product_post(generator):
    post = generator.generate("new-product", "Caymus Cabernet", now=MONDAY)

    assert post.theme == "New Arrival"
    assert "Caymus Cabernet" in post.caption


def test_sale_post_uses_text_as_items(generator):
    post = generator.generate("sale", "all Malbec", now=MONDAY)

    assert post.theme == "Sale"
    assert "30% OFF all Malbec" in post.caption


def test_unknown_post_type(generator):
    with pytest.raises(ValueError):
        generator.generate("raffle")


def test_suggest_posts(generator):
    suggestions = generator.suggest_posts(now=WEDNESDAY)

    assert [s["name"] for s in suggestions] == ["Wine Wednesday", "Halloween", "Fall Feature"]
    assert suggestions[-1]["priority"] == "MEDIUM"


def test_send_for_approval_saves_pending(generator, slack):
    draft = PostDraft(caption="Caption", category="beer", theme="Weekend", hashtags="#CraftBeer")

    pending = asyncio.run(generator.send_for_approval(draft, now=SATURDAY))

    assert pending.caption == "Caption\n\n#CraftBeer"
    assert pending.image_url.startswith("https://")
    channel, message = slack.send_message.call_args.args
    assert channel == "C_APPROVAL"
    assert "Saturday, fall season, upcoming Halloween" in message
    assert generator.load_pending() == pending


def test_send_for_approval_failure_writes_nothing(generator, slack):
    slack.send_message.return_value = None
    draft = PostDraft(caption="Caption", theme="Weekend")

    assert asyncio.run(generator.send_for_approval(draft)) is None
    assert not generator.pending_path.exists()


def test_publish_pending_records_success(generator, zapier, kb):
    draft = PostDraft(caption="Caption", theme="Weekend", image_url="https://img.test/w.jpg")
    asyncio.run(generator.send_for_approval(draft, now=SATURDAY))

    assert asyncio.run(generator.publish_pending()) is True

    zapier.post_to_instagram.assert_awaited_once_with("https://img.test/w.jpg", "Caption", "Weekend")
    assert not generator.pending_path.exists()
    assert [p.theme for p in kb.load().learning.successful_posts] == ["Weekend"]


def test_publish_pending_keeps_file_on_failure(generator, zapier):
    zapier.post_to_instagram.return_value = {"success": False, "error": "HTTP 500"}
    asyncio.run(generator.send_for_approval(PostDraft(caption="C", theme="Sale")))

    assert asyncio.run(generator.publish_pending()) is False
    assert generator.pending_path.exists()


def test_publish_pending_without_file(generator):
    assert asyncio.run(generator.publish_pending()) is False
