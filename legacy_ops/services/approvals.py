"""
Instagram Post Approvals

Sends template-based posts to the approval channel as Block Kit messages
carrying the post as message metadata, and watches that channel for
:white_check_mark: reactions to publish approved posts through Zapier.
"""

import asyncio
import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

from pydantic import ValidationError

from legacy_ops.config import get_settings
from legacy_ops.integrations.slack import SlackClient
from legacy_ops.integrations.zapier import ZapierClient
from legacy_ops.models import ApprovalPayload, PostTemplate
from legacy_ops.services.content import get_template, store_block
from legacy_ops.utils.helpers import truncate

logger = logging.getLogger(__name__)

APPROVAL_EVENT_TYPE = "instagram_approval_request"
APPROVAL_MARKER = "Instagram Post Approval"
APPROVE_REACTION = "white_check_mark"
CAPTION_PREVIEW_LIMIT = 500
HISTORY_LIMIT = 20

# Accepts Slack mrkdwn (*Campaign:*) and Markdown (**Campaign:**) labels
_CAMPAIGN_RE = re.compile(r"\*{1,2}Campaign:\*{1,2}\s*(.+)")
_IMAGE_RE = re.compile(r"\*{1,2}Image:\*{1,2}\s*<?([^\s>|]+)")
_CAPTION_RE = re.compile(r"```([\s\S]+?)```")


def generate_caption(template: PostTemplate, custom_text: Optional[str] = None) -> str:
    if custom_text:
        return custom_text
    return f"🍷 {template.title}\n\n{template.description}\n\n{store_block()}\n\n{template.hashtags}"


def build_approval_blocks(template_name: str, template: PostTemplate, caption: str) -> List[Dict[str, Any]]:
    return [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": "📸 Instagram Post Approval Request", "emoji": True},
        },
        {
            "type": "section",
            "fields": [
                {"type": "mrkdwn", "text": f"*Campaign:*\n{template.title}"},
                {"type": "mrkdwn", "text": f"*Template:*\n{template_name}"},
            ],
        },
        {"type": "divider"},
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": f"*Caption Preview:*\n```{truncate(caption, CAPTION_PREVIEW_LIMIT)}```",
            },
        },
        {"type": "image", "image_url": template.image_url, "alt_text": template.title},
        {"type": "divider"},
        {
            "type": "context",
            "elements": [
                {
                    "type": "mrkdwn",
                    "text": "✅ React with :white_check_mark: to approve and post\n❌ React with :x: to reject",
                }
            ],
        },
    ]


def build_approval_metadata(template_name: str, template: PostTemplate, caption: str) -> Dict[str, Any]:
    payload = ApprovalPayload(
        template=template_name,
        image_url=template.image_url,
        caption=caption,
        campaign_name=template.title,
        hashtags=template.hashtags,
    )
    return {"event_type": APPROVAL_EVENT_TYPE, "event_payload": payload.model_dump(by_alias=True)}


async def request_approval(
    template_name: str, custom_caption: Optional[str] = None, slack: Optional[SlackClient] = None
) -> Optional[Dict[str, Any]]:
    """
    Post an approval request for a template to the approval channel.

    Raises:
        ValueError: Unknown template name
    """
    template = get_template(template_name)
    caption = generate_caption(template, custom_caption)
    slack = slack or SlackClient()
    result = await slack.send_message(
        get_settings().slack_approval_channel_id,
        f"📸 {APPROVAL_MARKER} Request: {template.title}",
        blocks=build_approval_blocks(template_name, template, caption),
        metadata=build_approval_metadata(template_name, template, caption),
    )
    if result:
        logger.info(f"Approval requested for '{template_name}' (ts={result.get('ts')})")
    return result


def extract_post_data(message: Dict[str, Any]) -> Optional[Dict[str, str]]:
    """
    Recover campaign, caption and image URL from an approval message.

    Message metadata is used when present; otherwise the message text is
    parsed for the Campaign / Image labels and the fenced caption.
    """
    metadata = message.get("metadata") or {}
    if metadata.get("event_type") == APPROVAL_EVENT_TYPE:
        try:
            payload = ApprovalPayload.model_validate(metadata.get("event_payload") or {})
            return {"campaign": payload.campaign_name, "caption": payload.caption, "image_url": payload.image_url}
        except ValidationError as e:
            logger.warning(f"Approval metadata is malformed, falling back to text: {e}")

    text = message.get("text") or ""
    caption_match = _CAPTION_RE.search(text)
    image_match = _IMAGE_RE.search(text)
    if not caption_match or not image_match:
        return None
    campaign_match = _CAMPAIGN_RE.search(text)
    return {
        "campaign": campaign_match.group(1).strip() if campaign_match else "Unknown Campaign",
        "caption": caption_match.group(1).strip(),
        "image_url": image_match.group(1).strip(),
    }


def is_approved(message: Dict[str, Any]) -> bool:
    if APPROVAL_MARKER not in (message.get("text") or ""):
        return False
    return any(
        r.get("name") == APPROVE_REACTION and r.get("count", 0) > 0 for r in message.get("reactions") or []
    )


class ApprovalWatcher:
    """Polls the approval channel and publishes each approved post exactly once."""

    def __init__(
        self,
        slack: Optional[SlackClient] = None,
        zapier: Optional[ZapierClient] = None,
        channel: Optional[str] = None,
        interval: Optional[float] = None,
    ):
        settings = get_settings()
        self.settings = settings
        self.slack = slack or SlackClient()
        self.zapier = zapier or ZapierClient()
        self.channel = channel or settings.slack_approval_channel_id
        self.interval = interval if interval is not None else settings.approval_poll_interval
        self.processed: Set[str] = set()

    async def check_once(self) -> List[Dict[str, Any]]:
        """One poll. Returns the Zapier results of the posts handled in this pass."""
        messages = await self.slack.read_channel_history(self.channel, limit=HISTORY_LIMIT, include_metadata=True)
        results = []
        for message in messages:
            ts = message.get("ts")
            if not ts or ts in self.processed or not is_approved(message):
                continue
            post = extract_post_data(message)
            if post is None:
                logger.warning(f"Approved message {ts} has no caption or image, skipping")
                continue
            self.processed.add(ts)
            results.append(await self.publish(post, ts))
        return results

    async def publish(self, post: Dict[str, str], message_ts: str) -> Dict[str, Any]:
        logger.info(f"Publishing approved post '{post['campaign']}'")
        result = await self.zapier.post_to_instagram(post["image_url"], post["caption"], post["campaign"])
        if result["success"]:
            await self._notify_success(post, message_ts)
        else:
            logger.error(f"Instagram publish failed for '{post['campaign']}': {result.get('error')}")
        return result

    async def _notify_success(self, post: Dict[str, str], message_ts: str) -> None:
        await self.slack.send_message(
            self.settings.slack_social_channel_id,
            f"✅ *Instagram Post Published!*\n\nCampaign: {post['campaign']}\n"
            f"Auto-posted from approval in #social-media-approvals\n\n"
            f"🔗 Check: {self.settings.store_instagram_url}",
        )
        await self.slack.update_message(
            self.channel,
            message_ts,
            "✅ *APPROVED & POSTED*\n\nThis post has been automatically published to Instagram.\n"
            f"Posted at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        )

    async def run(self, stop: Optional[asyncio.Event] = None, max_polls: Optional[int] = None) -> None:
        """Poll until stop is set or max_polls passes have run."""
        logger.info(f"Watching {self.channel} for approvals every {self.interval}s")
        polls = 0
        while not (stop and stop.is_set()):
            await self.check_once()
            polls += 1
            if max_polls is not None and polls >= max_polls:
                break
            await asyncio.sleep(self.interval)
