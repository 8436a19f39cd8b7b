"""
Manual Instagram Post

Turns a one-line description into a captioned post: detects the category,
picks an image, builds hashtags and the store footer, previews it in Slack
and publishes through Zapier.
"""

import logging
import random
from typing import Any, Dict, List, Optional

from legacy_ops.config import get_settings
from legacy_ops.integrations.slack import SlackClient
from legacy_ops.integrations.zapier import ZapierClient
from legacy_ops.models import ManualPost
from legacy_ops.services.content import image_for_category, store_block
from legacy_ops.utils.helpers import detect_category

logger = logging.getLogger(__name__)

CATEGORY_EMOJI = {"wine": "🍷", "beer": "🍺", "cocktail": "🍸"}
CATEGORY_HASHTAG = {"wine": "#WineLovers", "beer": "#CraftBeer", "cocktail": "#Cocktails"}


def build_hashtags(description: str, category: str) -> List[str]:
    text = description.lower()
    hashtags = ["#LegacyWine", "#SanfordFL"]
    if category in CATEGORY_HASHTAG:
        hashtags.append(CATEGORY_HASHTAG[category])
    if "weekend" in text:
        hashtags.append("#Weekend")
    if "special" in text or "deal" in text:
        hashtags.append("#SpecialOffer")
    if "new" in text:
        hashtags.append("#NewArrival")
    return hashtags


class ManualPostService:
    def __init__(
        self,
        slack: Optional[SlackClient] = None,
        zapier: Optional[ZapierClient] = None,
        rng: Optional[random.Random] = None,
    ):
        self.settings = get_settings()
        self.slack = slack or SlackClient()
        self.zapier = zapier or ZapierClient()
        self.rng = rng

    def create_post(self, description: str) -> ManualPost:
        description = description.strip()
        if not description:
            raise ValueError("Post description is empty")
        category = detect_category(description)
        hashtags = build_hashtags(description, category)
        emoji = CATEGORY_EMOJI.get(category, "🛍️")
        caption = f"{emoji} {description}\n\n{store_block()}\n\n{' '.join(hashtags)}"
        return ManualPost(
            description=description,
            category=category,
            caption=caption,
            hashtags=hashtags,
            image_url=image_for_category(category, self.rng),
        )

    async def send_preview(self, post: ManualPost) -> bool:
        message = (
            "📸 *Instagram Post Preview*\n\n"
            f"*Description:* {post.description}\n"
            f"*Category:* {post.category}\n\n"
            f"*Caption:*\n```\n{post.caption}\n```\n\n"
            f"*Image:* {post.image_url}\n\n"
            "✅ Run the publish command when ready"
        )
        result = await self.slack.send_message(self.settings.slack_approval_channel_id, message)
        return result is not None

    async def publish(self, post: ManualPost) -> Dict[str, Any]:
        """Publish through Zapier, then tell #social. A failed notification does not fail the publish."""
        result = await self.zapier.post_to_instagram(post.image_url, post.caption, post.description[:50])
        if not result["success"]:
            return result

        notified = await self.slack.send_message(
            self.settings.slack_social_channel_id,
            f"✅ *Posted to Instagram!*\n\n{post.description}\n\n🔗 Check: {self.settings.store_instagram_url}",
        )
        if notified is None:
            logger.warning("Instagram post published but the #social notification failed")
        return result
