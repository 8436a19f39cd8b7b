"""
Business Knowledge Models

Typed view of the business knowledge JSON file that drives post generation:
store details, holidays and seasonal themes, hashtag strategy, new arrivals
and the log of posts that performed well.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class KnowledgeModel(BaseModel):
    """Base for knowledge sections; keys we don't model are kept on save."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class StoreLocation(KnowledgeModel):
    address: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    phone: str = ""


class BusinessInfo(KnowledgeModel):
    name: str
    location: StoreLocation = Field(default_factory=StoreLocation)
    hours: str = ""


class Holiday(KnowledgeModel):
    name: str
    date: str = Field(..., description="Free-text date, e.g. 'December 25' or 'Fourth Thursday of November'")
    products: List[str] = Field(default_factory=list)
    themes: List[str] = Field(default_factory=list)


class StoreEvent(KnowledgeModel):
    name: str
    date: str
    added: str = Field(default_factory=_now_iso)


class HolidaysAndEvents(KnowledgeModel):
    annual_holidays: List[Holiday] = Field(default_factory=list)
    seasonal_themes: Dict[str, List[str]] = Field(default_factory=dict)
    store_events: List[StoreEvent] = Field(default_factory=list)


class HashtagStrategy(KnowledgeModel):
    always_use: List[str] = Field(default_factory=list)
    wine_specific: List[str] = Field(default_factory=list)
    beer_specific: List[str] = Field(default_factory=list)
    spirits_specific: List[str] = Field(default_factory=list)
    local: List[str] = Field(default_factory=list)


class ContentStrategies(KnowledgeModel):
    hashtag_strategy: HashtagStrategy = Field(default_factory=HashtagStrategy)


class Product(KnowledgeModel):
    name: str
    category: str = "wine"
    description: str = "New arrival - limited quantities available."
    price: Optional[Union[float, str]] = None
    image_url: Optional[str] = Field(None, alias="imageUrl")
    added: str = Field(default_factory=_now_iso)


class InventoryTracking(KnowledgeModel):
    new_arrivals: List[Product] = Field(default_factory=list)


class SuccessfulPost(KnowledgeModel):
    """A post that did well. Published posts also carry caption, imageUrl and posted_at."""

    theme: str
    engagement: str = "high"
    timestamp: str = Field(default_factory=_now_iso)


class Learning(KnowledgeModel):
    successful_posts: List[SuccessfulPost] = Field(default_factory=list)


class BusinessKnowledge(KnowledgeModel):
    business: BusinessInfo
    holidays_and_events: HolidaysAndEvents = Field(default_factory=HolidaysAndEvents)
    product_categories: Dict[str, Any] = Field(default_factory=dict)
    content_strategies: ContentStrategies = Field(default_factory=ContentStrategies)
    inventory_tracking: InventoryTracking = Field(default_factory=InventoryTracking)
    learning: Learning = Field(default_factory=Learning)

    def wine_types(self) -> List[str]:
        return (self.product_categories.get("wine") or {}).get("types") or []
