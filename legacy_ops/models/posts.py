"""
Instagram Post Models

Generated drafts, the pending post waiting for approval, approval templates
and the metadata payload attached to approval requests in Slack.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PostDraft(BaseModel):
    """A generated post before it goes out for approval."""

    caption: str = Field(..., description="Caption including the store block")
    category: str = Field("wine", description="wine, beer, liquor, cocktail or store")
    theme: str
    hashtags: str = Field("", description="Space-separated hashtags")
    image_url: Optional[str] = None

    def full_caption(self) -> str:
        return f"{self.caption}\n\n{self.hashtags}" if self.hashtags else self.caption


class PendingPost(BaseModel):
    """Post saved to disk after it was sent to Slack for approval."""

    model_config = ConfigDict(populate_by_name=True)

    caption: str
    image_url: str = Field(..., alias="imageUrl")
    theme: str
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class PostTemplate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: str
    image_url: str = Field(..., alias="imageUrl")
    hashtags: str


class ApprovalPayload(BaseModel):
    """Slack message metadata attached to an approval request."""

    model_config = ConfigDict(populate_by_name=True)

    template: str
    image_url: str = Field(..., alias="imageUrl")
    caption: str
    campaign_name: str = Field(..., alias="campaignName")
    hashtags: str = ""


class ManualPost(BaseModel):
    description: str
    category: str
    caption: str
    hashtags: List[str]
    image_url: str
