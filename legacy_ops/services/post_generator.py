"""
Smart Instagram Post Generator

Picks a post theme from the calendar (holidays, day of week, season) and the
business knowledge file, writes the caption and hashtags, sends it to the
approval channel and publishes the approved post through Zapier.
"""

import calendar
import json
import logging
import random
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from legacy_ops.config import get_settings
from legacy_ops.integrations.slack import SlackClient
from legacy_ops.integrations.zapier import ZapierClient
from legacy_ops.models import BusinessKnowledge, Holiday, PendingPost, PostDraft, Product
from legacy_ops.services.content import image_for_category
from legacy_ops.services.knowledge_base import KnowledgeBase

logger = logging.getLogger(__name__)

PENDING_POST_FILENAME = "pending-post.json"
MAX_HASHTAGS = 12
THIRSTY_THURSDAY_COCKTAILS = ["Margarita", "Old Fashioned", "Mojito", "Manhattan", "Martini"]
MONTHS = {name.lower(): number for number, name in enumerate(calendar.month_name) if name}


def season_for_month(month: int) -> str:
    if 6 <= month <= 8:
        return "summer"
    if 9 <= month <= 11:
        return "fall"
    if month == 12 or month <= 2:
        return "winter"
    return "spring"


def holiday_month(date_text: str) -> Optional[int]:
    """Month named in a free-text holiday date ("December 25", "Fourth Thursday of November")."""
    for word in re.findall(r"[A-Za-z]+", date_text):
        month = MONTHS.get(word.lower())
        if month:
            return month
    return None


def _month_distance(a: int, b: int) -> int:
    diff = abs(a - b) % 12
    return min(diff, 12 - diff)


def _compact_theme(text: str) -> str:
    return re.sub(r"\s+", "", text.lower())


class PostGenerator:
    def __init__(
        self,
        knowledge_base: Optional[KnowledgeBase] = None,
        slack: Optional[SlackClient] = None,
        zapier: Optional[ZapierClient] = None,
        rng: Optional[random.Random] = None,
        pending_path: Optional[Union[str, Path]] = None,
    ):
        self.settings = get_settings()
        self.knowledge_base = knowledge_base or KnowledgeBase()
        self.slack = slack or SlackClient()
        self.zapier = zapier or ZapierClient()
        self.rng = rng or random.Random()
        self.pending_path = Path(pending_path or Path(self.settings.data_dir) / PENDING_POST_FILENAME)

    # ---- Calendar ----------------------------------------------------------

    @staticmethod
    def date_context(now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.now()
        day_of_week = now.strftime("%A")
        return {
            "date": now,
            "month": now.month,
            "day": now.day,
            "day_of_week": day_of_week,
            "season": season_for_month(now.month),
            "is_weekend": day_of_week in ("Saturday", "Sunday"),
            "formatted_date": now.strftime("%B %d, %Y"),
        }

    @staticmethod
    def upcoming_holidays(knowledge: BusinessKnowledge, now: Optional[datetime] = None) -> List[Holiday]:
        """Holidays whose month is this month, last month or next month."""
        month = (now or datetime.now()).month
        upcoming = []
        for holiday in knowledge.holidays_and_events.annual_holidays:
            h_month = holiday_month(holiday.date)
            if h_month and _month_distance(h_month, month) <= 1:
                upcoming.append(holiday)
        return upcoming

    # ---- Caption building --------------------------------------------------

    @staticmethod
    def build_full_caption(main_text: str, knowledge: BusinessKnowledge) -> str:
        store = knowledge.business
        loc = store.location
        return (
            f"{main_text}\n\n"
            f"📍 {store.name}\n"
            f"{loc.address}, {loc.city}, {loc.state} {loc.zip}\n"
            f"📞 {loc.phone}\n"
            f"⏰ {store.hours}"
        )

    @staticmethod
    def generate_hashtags(themes: List[Optional[str]], knowledge: BusinessKnowledge) -> str:
        strategy = knowledge.content_strategies.hashtag_strategy
        hashtags = list(strategy.always_use)
        for theme in themes:
            theme = (theme or "").lower()
            if "wine" in theme:
                hashtags.extend(strategy.wine_specific[:3])
            elif "beer" in theme:
                hashtags.extend(strategy.beer_specific[:3])
            elif "cocktail" in theme or "spirit" in theme:
                hashtags.extend(strategy.spirits_specific[:3])
        hashtags.extend(strategy.local[:2])
        return " ".join(list(dict.fromkeys(hashtags))[:MAX_HASHTAGS])

    def image_for_category(self, category: str) -> str:
        return image_for_category(category, self.rng)

    # ---- Themed generators -------------------------------------------------

    def generate_holiday_post(self, holiday: Holiday, knowledge: BusinessKnowledge) -> PostDraft:
        products = ", ".join(holiday.products)
        caption = self.rng.choice(
            [
                f"🎉 {holiday.name} is coming! Stock up on {products} for your celebration.",
                f"Get ready for {holiday.name}! We have everything you need: {products}",
                f"{holiday.name} celebration starts here! Featured: {products}",
            ]
        )
        first = holiday.products[0].lower() if holiday.products else ""
        category = "wine" if "wine" in first else "beer" if "beer" in first else "liquor"
        return PostDraft(
            caption=self.build_full_caption(caption, knowledge),
            category=category,
            theme=holiday.name,
            hashtags=self.generate_hashtags(["holiday", _compact_theme(holiday.name)], knowledge),
        )

    def generate_new_product_post(self, product: Product, knowledge: BusinessKnowledge) -> PostDraft:
        caption = self.rng.choice(
            [
                f"🆕 NEW ARRIVAL: {product.name}! {product.description or 'Limited quantities available.'}",
                f"Just in! {product.name} - {product.description or 'Get it before it is gone!'}",
                f"Fresh arrival alert: {product.name}! {product.description or 'Available now.'}",
            ]
        )
        if product.price:
            caption += f"\n\n💰 Special intro price: ${product.price}"
        return PostDraft(
            caption=self.build_full_caption(caption, knowledge),
            category=product.category or "wine",
            theme="New Arrival",
            image_url=product.image_url,
            hashtags=self.generate_hashtags(["newarrival", product.category], knowledge),
        )

    def generate_sale_post(self, details: Dict[str, Any], knowledge: BusinessKnowledge) -> PostDraft:
        title = details.get("title", "Flash Sale")
        discount = details.get("discount", "30%")
        items = details.get("items", "Select Items")
        duration = details.get("duration", "This weekend only!")
        caption = self.rng.choice(
            [
                f"🔥 {title}! {discount} OFF {items}!",
                f"💥 SALE ALERT: {discount} OFF {items}! {duration}",
                f"🎯 Don't miss this! {discount} OFF {items}. {duration}",
            ]
        )
        category = details.get("category") or "wine"
        return PostDraft(
            caption=self.build_full_caption(caption, knowledge),
            category=category,
            theme="Sale",
            hashtags=self.generate_hashtags(["sale", "deal", category], knowledge),
        )

    def generate_wine_wednesday_post(self, knowledge: BusinessKnowledge) -> PostDraft:
        wine = self.rng.choice(knowledge.wine_types() or ["red wine"])
        caption = self.rng.choice(
            [
                f"🍷 Wine Wednesday! Featured today: {wine}. Stop by for expert recommendations!",
                f"It's Wine Wednesday! Discover our {wine} collection. Our staff can help you find the perfect bottle.",
                f"🍷 Wine Wednesday Special: {wine} lovers, this one's for you!",
            ]
        )
        return PostDraft(
            caption=self.build_full_caption(caption, knowledge),
            category="wine",
            theme="Wine Wednesday",
            hashtags=self.generate_hashtags(["wine", "winewednesday"], knowledge),
        )

    def generate_thirsty_thursday_post(self, knowledge: BusinessKnowledge) -> PostDraft:
        cocktail = self.rng.choice(THIRSTY_THURSDAY_COCKTAILS)
        caption = self.rng.choice(
            [
                f"🍸 Thirsty Thursday! Perfect {cocktail} weather. Get your ingredients here!",
                f"🍹 It's Thirsty Thursday! Try our {cocktail} recipe. We have everything you need!",
                f"Thirsty Thursday cocktail: {cocktail}! Stop by for premium spirits and mixers.",
            ]
        )
        return PostDraft(
            caption=self.build_full_caption(caption, knowledge),
            category="cocktail",
            theme="Thirsty Thursday",
            hashtags=self.generate_hashtags(["cocktails", "thirstythursday"], knowledge),
        )

    def generate_weekend_post(self, knowledge: BusinessKnowledge) -> PostDraft:
        caption = self.rng.choice(
            [
                "🎉 Weekend plans? We've got you covered! Premium wines, craft beers, and spirits for every occasion.",
                "🍷 It's the weekend! Stock up on your favorites. Special deals on select items!",
                "Weekend vibes! 🍾 Visit us for the perfect drinks to celebrate.",
            ]
        )
        return PostDraft(
            caption=self.build_full_caption(caption, knowledge),
            category="wine",
            theme="Weekend",
            hashtags=self.generate_hashtags(["weekend", "wine"], knowledge),
        )

    def generate_seasonal_post(self, season: str, knowledge: BusinessKnowledge) -> PostDraft:
        themes = knowledge.holidays_and_events.seasonal_themes.get(season) or ["our seasonal picks"]
        theme = self.rng.choice(themes)
        captions = {
            "spring": f"🌸 Spring is here! Perfect time for {theme}. Visit us today!",
            "summer": f"☀️ Summer essentials: {theme}! Beat the heat with our selection.",
            "fall": f"🍂 Fall favorites: {theme}! Cozy up with something special.",
            "winter": f"❄️ Winter warmth: {theme}! Perfect for the season.",
        }
        return PostDraft(
            caption=self.build_full_caption(captions[season], knowledge),
            category="wine",
            theme=season,
            hashtags=self.generate_hashtags([season, _compact_theme(theme)], knowledge),
        )

    # ---- Selection ---------------------------------------------------------

    def generate_contextual_post(
        self, context: Dict[str, Any], knowledge: BusinessKnowledge, now: Optional[datetime] = None
    ) -> PostDraft:
        """
        Pick the post for a context, first match wins.

        Order: holiday (when one is upcoming), new product, sale, Wine
        Wednesday, Thirsty Thursday, weekend, then the seasonal default.
        """
        date_context = self.date_context(now)
        post_type = context.get("type", "default")

        if post_type == "holiday":
            holidays = self.upcoming_holidays(knowledge, now)
            if holidays:
                return self.generate_holiday_post(holidays[0], knowledge)
        if post_type == "new_product" and context.get("product"):
            product = context["product"]
            if not isinstance(product, Product):
                product = Product(**product)
            return self.generate_new_product_post(product, knowledge)
        if post_type == "sale" and context.get("details"):
            return self.generate_sale_post(context["details"], knowledge)
        if date_context["day_of_week"] == "Wednesday":
            return self.generate_wine_wednesday_post(knowledge)
        if date_context["day_of_week"] == "Thursday":
            return self.generate_thirsty_thursday_post(knowledge)
        if date_context["is_weekend"]:
            return self.generate_weekend_post(knowledge)
        return self.generate_seasonal_post(date_context["season"], knowledge)

    def generate(self, post_type: str = "default", text: str = "", now: Optional[datetime] = None) -> PostDraft:
        """Build a post for one of: default, holiday, new-product, sale."""
        knowledge = self.knowledge_base.load()
        if post_type == "new-product":
            if not text:
                raise ValueError("A product name is required for a new-product post")
            context = {
                "type": "new_product",
                "product": Product(name=text, description="Limited quantities available."),
            }
        elif post_type == "sale":
            context = {
                "type": "sale",
                "details": {
                    "title": "Flash Sale",
                    "discount": "30%",
                    "items": text or "Select Items",
                    "duration": "This weekend only!",
                    "category": "wine",
                },
            }
        elif post_type == "holiday":
            context = {"type": "holiday"}
        elif post_type == "default":
            context = {"type": "default"}
        else:
            raise ValueError(f"Unknown post type: {post_type}")
        return self.generate_contextual_post(context, knowledge, now)

    def suggest_posts(self, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        knowledge = self.knowledge_base.load()
        date_context = self.date_context(now)
        holidays = self.upcoming_holidays(knowledge, now)

        suggestions: List[Dict[str, Any]] = []
        if date_context["day_of_week"] == "Wednesday":
            suggestions.append({"type": "default", "name": "Wine Wednesday", "priority": "HIGH"})
        elif date_context["day_of_week"] == "Thursday":
            suggestions.append({"type": "default", "name": "Thirsty Thursday", "priority": "HIGH"})
        elif date_context["is_weekend"]:
            suggestions.append({"type": "default", "name": "Weekend Special", "priority": "HIGH"})

        if holidays:
            suggestions.append(
                {"type": "holiday", "name": holidays[0].name, "priority": "HIGH", "products": holidays[0].products}
            )

        suggestions.append(
            {"type": "seasonal", "name": f"{date_context['season'].capitalize()} Feature", "priority": "MEDIUM"}
        )
        return suggestions

    # ---- Approval & publishing ---------------------------------------------

    def _context_line(self, knowledge: BusinessKnowledge, now: Optional[datetime] = None) -> str:
        date_context = self.date_context(now)
        line = f"{date_context['day_of_week']}, {date_context['season']} season"
        holidays = self.upcoming_holidays(knowledge, now)
        if holidays:
            line += f", upcoming {holidays[0].name}"
        return line

    async def send_for_approval(self, post: PostDraft, now: Optional[datetime] = None) -> Optional[PendingPost]:
        """Post the suggestion to the approval channel and save it as the pending post."""
        knowledge = self.knowledge_base.load()
        full_caption = post.full_caption()
        image_url = post.image_url or self.image_for_category(post.category)

        message = (
            "📸 *Smart Instagram Post Suggestion*\n\n"
            f"*Theme:* {post.theme}\n"
            f"*Category:* {post.category}\n\n"
            f"*Full Caption:*\n```\n{full_caption}\n```\n\n"
            f"*Image:* {image_url}\n\n"
            f"*Context:* Generated based on {self._context_line(knowledge, now)}\n\n"
            "✅ Reply \"post it\" to publish\n"
            "📝 Reply with edits to modify\n"
            "❌ Reply \"skip\" to cancel"
        )
        result = await self.slack.send_message(self.settings.slack_approval_channel_id, message)
        if result is None:
            logger.error("Failed to send post suggestion to Slack")
            return None

        pending = PendingPost(caption=full_caption, image_url=image_url, theme=post.theme)
        self.pending_path.parent.mkdir(parents=True, exist_ok=True)
        self.pending_path.write_text(
            json.dumps(pending.model_dump(by_alias=True), indent=2, ensure_ascii=False), encoding="utf-8"
        )
        logger.info(f"Pending post saved to {self.pending_path}")
        return pending

    def load_pending(self) -> Optional[PendingPost]:
        if not self.pending_path.exists():
            return None
        return PendingPost.model_validate_json(self.pending_path.read_text(encoding="utf-8"))

    async def publish_pending(self) -> bool:
        """Publish the pending post via Zapier, log it as a success and remove the pending file."""
        pending = self.load_pending()
        if pending is None:
            logger.warning(f"No pending post at {self.pending_path}")
            return False

        result = await self.zapier.post_to_instagram(pending.image_url, pending.caption, pending.theme)
        if not result["success"]:
            logger.error(f"Failed to publish pending post: {result.get('error')}")
            return False

        self.knowledge_base.record_success(
            pending.theme,
            caption=pending.caption,
            imageUrl=pending.image_url,
            timestamp=pending.timestamp,
            posted_at=datetime.now(timezone.utc).isoformat(),
        )
        self.pending_path.unlink()
        logger.info(f"Published pending post '{pending.theme}'")
        return True
