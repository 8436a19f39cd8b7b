"""Instagram Graph API client.

Publishing follows the two-step container flow: create a media container,
wait until Instagram finishes processing it, then call media_publish.
"""

import asyncio
import logging
from typing import Any

import httpx

from legacy_ops.config import get_settings

logger = logging.getLogger(__name__)

MEDIA_FIELDS = "id,caption,media_type,media_url,permalink,thumbnail_url,timestamp,like_count,comments_count"


class InstagramClient:
    """Client for the Instagram Graph API (business account, long-lived token)."""

    BASE_URL = "https://graph.facebook.com/v18.0"

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._settings = get_settings()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self.account_id = self._settings.instagram_business_account_id

    @property
    def is_configured(self) -> bool:
        return bool(self._settings.instagram_access_token and self.account_id)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.BASE_URL,
                timeout=30.0,
                transport=self._transport,
                params={"access_token": self._settings.instagram_access_token},
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _get(self, path: str, **params) -> Any:
        client = await self._get_client()
        response = await client.get(path, params=params)
        response.raise_for_status()
        return response.json()

    async def _post(self, path: str, **data) -> Any:
        client = await self._get_client()
        response = await client.post(path, data=data)
        response.raise_for_status()
        return response.json()

    async def test_connection(self) -> bool:
        if not self.is_configured:
            return False
        return await self.get_account_info() is not None

    # ---- Account ---------------------------------------------------------

    async def get_account_info(self) -> dict[str, Any] | None:
        try:
            return await self._get(
                f"/{self.account_id}",
                fields="id,username,name,biography,followers_count,follows_count,media_count,profile_picture_url,website",
            )
        except httpx.HTTPError as e:
            logger.error(f"Instagram error fetching account: {e}")
            return None

    async def get_account_insights(self, metrics: str = "impressions,reach,profile_views", period: str = "day") -> list[dict[str, Any]]:
        try:
            data = await self._get(f"/{self.account_id}/insights", metric=metrics, period=period)
            return data.get("data", [])
        except httpx.HTTPError as e:
            logger.error(f"Instagram error fetching account insights: {e}")
            return []

    # ---- Publishing ------------------------------------------------------

    async def wait_for_media_processing(
        self, container_id: str, checks: int | None = None, sleep: float | None = None
    ) -> bool:
        """
        Poll a container until it is FINISHED.

        Returns:
            True on FINISHED; False on ERROR, on a request failure, or when the
            checks run out.
        """
        checks = checks if checks is not None else self._settings.instagram_processing_checks
        sleep = sleep if sleep is not None else self._settings.instagram_processing_sleep
        for attempt in range(checks):
            try:
                data = await self._get(f"/{container_id}", fields="status_code")
            except httpx.HTTPError as e:
                logger.error(f"Instagram error checking container {container_id}: {e}")
                return False
            status = data.get("status_code")
            if status == "FINISHED":
                return True
            if status == "ERROR":
                logger.error(f"Instagram container {container_id} failed processing")
                return False
            logger.debug(f"Container {container_id} status {status} (check {attempt + 1}/{checks})")
            await asyncio.sleep(sleep)
        logger.warning(f"Instagram container {container_id} not ready after {checks} checks")
        return False

    async def _publish(self, container_id: str) -> dict[str, Any] | None:
        if not await self.wait_for_media_processing(container_id):
            return None
        result = await self._post(f"/{self.account_id}/media_publish", creation_id=container_id)
        logger.info(f"Published Instagram media {result.get('id')}")
        return result

    async def create_image_post(self, image_url: str, caption: str) -> dict[str, Any] | None:
        try:
            container = await self._post(f"/{self.account_id}/media", image_url=image_url, caption=caption)
            return await self._publish(container["id"])
        except httpx.HTTPError as e:
            logger.error(f"Instagram error publishing image: {e}")
            return None

    async def create_video_post(self, video_url: str, caption: str, thumb_offset: int = 0) -> dict[str, Any] | None:
        try:
            container = await self._post(
                f"/{self.account_id}/media",
                media_type="VIDEO",
                video_url=video_url,
                caption=caption,
                thumb_offset=thumb_offset,
            )
            return await self._publish(container["id"])
        except httpx.HTTPError as e:
            logger.error(f"Instagram error publishing video: {e}")
            return None

    async def create_carousel_post(self, media_urls: list[str], caption: str) -> dict[str, Any] | None:
        """Publish 2-10 images as one carousel."""
        if not 2 <= len(media_urls) <= 10:
            raise ValueError("A carousel needs between 2 and 10 items")
        try:
            children = []
            for url in media_urls:
                child = await self._post(f"/{self.account_id}/media", image_url=url, is_carousel_item="true")
                children.append(child["id"])
            container = await self._post(
                f"/{self.account_id}/media",
                media_type="CAROUSEL",
                children=",".join(children),
                caption=caption,
            )
            return await self._publish(container["id"])
        except httpx.HTTPError as e:
            logger.error(f"Instagram error publishing carousel: {e}")
            return None

    async def create_reel(
        self, video_url: str, caption: str, cover_url: str | None = None, share_to_feed: bool = True
    ) -> dict[str, Any] | None:
        data = {
            "media_type": "REELS",
            "video_url": video_url,
            "caption": caption,
            "share_to_feed": str(share_to_feed).lower(),
        }
        if cover_url:
            data["cover_url"] = cover_url
        try:
            container = await self._post(f"/{self.account_id}/media", **data)
            return await self._publish(container["id"])
        except httpx.HTTPError as e:
            logger.error(f"Instagram error publishing reel: {e}")
            return None

    # ---- Media & comments ------------------------------------------------

    async def get_recent_media(self, limit: int = 25) -> list[dict[str, Any]]:
        try:
            data = await self._get(f"/{self.account_id}/media", fields=MEDIA_FIELDS, limit=limit)
            return data.get("data", [])
        except httpx.HTTPError as e:
            logger.error(f"Instagram error listing media: {e}")
            return []

    async def get_media_insights(self, media_id: str, metrics: str = "engagement,impressions,reach,saved") -> list[dict[str, Any]]:
        try:
            data = await self._get(f"/{media_id}/insights", metric=metrics)
            return data.get("data", [])
        except httpx.HTTPError as e:
            logger.error(f"Instagram error fetching media insights: {e}")
            return []

    async def get_comments(self, media_id: str) -> list[dict[str, Any]]:
        try:
            data = await self._get(f"/{media_id}/comments", fields="id,text,username,timestamp,like_count,replies")
            return data.get("data", [])
        except httpx.HTTPError as e:
            logger.error(f"Instagram error listing comments: {e}")
            return []

    async def reply_to_comment(self, comment_id: str, message: str) -> dict[str, Any] | None:
        try:
            return await self._post(f"/{comment_id}/replies", message=message)
        except httpx.HTTPError as e:
            logger.error(f"Instagram error replying to comment: {e}")
            return None

    async def delete_comment(self, comment_id: str) -> bool:
        try:
            client = await self._get_client()
            response = await client.delete(f"/{comment_id}")
            response.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.error(f"Instagram error deleting comment: {e}")
            return False

    # ---- Hashtags --------------------------------------------------------

    async def search_hashtag(self, hashtag: str) -> str | None:
        """Resolve a hashtag name (without #) to its id."""
        try:
            data = await self._get("/ig_hashtag_search", user_id=self.account_id, q=hashtag.lstrip("#"))
            results = data.get("data", [])
            return results[0]["id"] if results else None
        except httpx.HTTPError as e:
            logger.error(f"Instagram error searching hashtag: {e}")
            return None

    async def get_hashtag_info(self, hashtag_id: str) -> dict[str, Any] | None:
        try:
            return await self._get(f"/{hashtag_id}", fields="id,name")
        except httpx.HTTPError as e:
            logger.error(f"Instagram error fetching hashtag: {e}")
            return None

    async def get_hashtag_top_media(self, hashtag_id: str, limit: int = 25) -> list[dict[str, Any]]:
        try:
            data = await self._get(
                f"/{hashtag_id}/top_media",
                user_id=self.account_id,
                fields="id,caption,media_type,permalink,like_count,comments_count",
                limit=limit,
            )
            return data.get("data", [])
        except httpx.HTTPError as e:
            logger.error(f"Instagram error fetching hashtag media: {e}")
            return []
