"""
Slack API Client

Responsibilities:
- auth.test: Connection check for the dashboard
- chat.*: Post, reply, update and delete messages (plain text or blocks)
- conversations.*: List channels and read channel history
- reactions.*: Add and read reactions (used by the approval watcher)
- files, users: Upload reports, look up users, set the bot status
"""

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError
from legacy_ops.config import get_settings
from typing import List, Optional, Dict, Any
import asyncio
import logging

logger = logging.getLogger(__name__)


class SlackClient:
    """Slack Web API wrapper. Every method performs one API call."""

    def __init__(self):
        settings = get_settings()
        self.client = WebClient(token=settings.slack_bot_token)
        self.settings = settings

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.slack_bot_token)

    async def _call(self, method: str, **kwargs) -> Dict[str, Any]:
        """Run a blocking WebClient method in a worker thread and return its payload."""
        result = await asyncio.to_thread(getattr(self.client, method), **kwargs)
        return result.data if hasattr(result, "data") else result

    async def test_connection(self) -> bool:
        if not self.is_configured:
            logger.warning("Slack bot token not configured")
            return False
        try:
            result = await self._call("auth_test")
            logger.info(f"Connected to Slack workspace {result.get('team')} as {result.get('user')}")
            return True
        except SlackApiError as e:
            logger.error(f"Slack connection failed: {e.response['error']}")
            return False

    async def send_message(
        self,
        channel: str,
        text: str,
        blocks: Optional[List[Dict[str, Any]]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Post a message to a channel.

        Args:
            channel: Channel ID or name
            text: Plain text (fallback text when blocks are given)
            blocks: Optional Block Kit blocks
            metadata: Optional message metadata ({event_type, event_payload})

        Returns:
            Slack response payload (includes "ts"), or None on failure
        """
        try:
            params: Dict[str, Any] = {
                "channel": channel,
                "text": text,
                "link_names": True,
                "unfurl_links": True,
                "unfurl_media": True,
            }
            if blocks:
                params["blocks"] = blocks
            if metadata:
                params["metadata"] = metadata

            result = await self._call("chat_postMessage", **params)
            logger.info(f"Message sent to {channel} (ts={result.get('ts')})")
            return result
        except SlackApiError as e:
            logger.error(f"Slack API error sending message: {e.response['error']}")
            return None

    async def list_channels(self, limit: int = 100) -> List[Dict[str, Any]]:
        try:
            result = await self._call(
                "conversations_list",
                types="public_channel,private_channel",
                exclude_archived=True,
                limit=limit,
            )
            channels = result.get("channels", [])
            logger.info(f"Found {len(channels)} channels")
            return channels
        except SlackApiError as e:
            logger.error(f"Slack API error listing channels: {e.response['error']}")
            return []

    async def read_channel_history(
        self, channel_id: Optional[str] = None, limit: int = 10, include_metadata: bool = False
    ) -> List[Dict[str, Any]]:
        """Fetch the most recent messages of a channel (newest first)."""
        channel_id = channel_id or self.settings.slack_channel_id
        if not channel_id:
            raise ValueError("No channel_id provided and SLACK_CHANNEL_ID not configured")

        try:
            params: Dict[str, Any] = {"channel": channel_id, "limit": limit, "inclusive": True}
            if include_metadata:
                params["include_all_metadata"] = True
            result = await self._call("conversations_history", **params)
            messages = result.get("messages", [])
            logger.debug(f"Fetched {len(messages)} messages from {channel_id}")
            return messages
        except SlackApiError as e:
            logger.error(f"Slack API error reading history: {e.response['error']}")
            return []

    async def add_reaction(self, channel: str, timestamp: str, emoji: str) -> bool:
        try:
            await self._call("reactions_add", channel=channel, timestamp=timestamp, name=emoji)
            return True
        except SlackApiError as e:
            logger.error(f"Slack API error adding reaction: {e.response['error']}")
            return False

    async def get_reactions(self, channel: str, timestamp: str) -> List[Dict[str, Any]]:
        try:
            result = await self._call("reactions_get", channel=channel, timestamp=timestamp, full=True)
            return result.get("message", {}).get("reactions", [])
        except SlackApiError as e:
            logger.error(f"Slack API error reading reactions: {e.response['error']}")
            return []

    async def upload_file(
        self, channel: str, file_path: str, comment: str = "", title: str = "Report"
    ) -> Optional[Dict[str, Any]]:
        try:
            return await self._call(
                "files_upload_v2",
                channel=channel,
                file=file_path,
                initial_comment=comment,
                title=title,
            )
        except SlackApiError as e:
            logger.error(f"Slack API error uploading {file_path}: {e.response['error']}")
            return None

    async def reply_in_thread(self, channel: str, thread_ts: str, text: str) -> Optional[Dict[str, Any]]:
        try:
            return await self._call(
                "chat_postMessage",
                channel=channel,
                thread_ts=thread_ts,
                text=text,
                reply_broadcast=False,
            )
        except SlackApiError as e:
            logger.error(f"Slack API error replying in thread {thread_ts}: {e.response['error']}")
            return None

    async def update_message(
        self, channel: str, timestamp: str, text: str, blocks: Optional[List[Dict[str, Any]]] = None
    ) -> Optional[Dict[str, Any]]:
        try:
            params: Dict[str, Any] = {"channel": channel, "ts": timestamp, "text": text}
            if blocks is not None:
                params["blocks"] = blocks
            return await self._call("chat_update", **params)
        except SlackApiError as e:
            logger.error(f"Slack API error updating message {timestamp}: {e.response['error']}")
            return None

    async def delete_message(self, channel: str, timestamp: str) -> Optional[Dict[str, Any]]:
        try:
            return await self._call("chat_delete", channel=channel, ts=timestamp)
        except SlackApiError as e:
            logger.error(f"Slack API error deleting message {timestamp}: {e.response['error']}")
            return None

    async def get_user_info(self, user_id: str) -> Optional[Dict[str, Any]]:
        try:
            result = await self._call("users_info", user=user_id)
            return result.get("user")
        except SlackApiError as e:
            logger.error(f"Slack API error fetching user {user_id}: {e.response['error']}")
            return None

    async def set_status(self, status_text: str, status_emoji: str) -> Optional[Dict[str, Any]]:
        try:
            return await self._call(
                "users_profile_set",
                profile={
                    "status_text": status_text,
                    "status_emoji": status_emoji,
                    "status_expiration": 0,
                },
            )
        except SlackApiError as e:
            logger.error(f"Slack API error setting status: {e.response['error']}")
            return None

    async def send_rich_message(
        self, channel: str, text: str, blocks: List[Dict[str, Any]]
    ) -> Optional[Dict[str, Any]]:
        return await self.send_message(channel, text, blocks=blocks)

    async def send_daily_report(self, channel: str, stats: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Post the store's daily report as a blocks message (one field per stat)."""
        blocks = build_report_blocks(f"*{self.settings.store_name}* - Daily Report", stats)
        return await self.send_rich_message(channel, "Daily Report", blocks)


def build_report_blocks(title: str, stats: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Build a section header plus a fields section with one entry per stat."""
    fields = [{"type": "mrkdwn", "text": f"*{label}:*\n{value}"} for label, value in stats.items()]
    blocks: List[Dict[str, Any]] = [{"type": "section", "text": {"type": "mrkdwn", "text": title}}]
    # Slack allows at most 10 fields per section
    for start in range(0, len(fields), 10):
        blocks.append({"type": "section", "fields": fields[start:start + 10]})
    return blocks
