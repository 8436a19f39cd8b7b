"""
Business Knowledge Base

Reads and rewrites the business knowledge JSON file. Every update loads the
whole file, applies one change and writes the whole file back.
"""

import json
import logging
import shutil
from collections import Counter
from pathlib import Path
from typing import Any, Dict, Optional, Union

from legacy_ops.config import get_settings
from legacy_ops.models import BusinessKnowledge, Product, StoreEvent, SuccessfulPost
from legacy_ops.services.content import DEFAULT_KNOWLEDGE_FILE

logger = logging.getLogger(__name__)

KNOWLEDGE_FILENAME = "business_knowledge.json"


class KnowledgeBase:
    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else Path(get_settings().data_dir) / KNOWLEDGE_FILENAME

    def initialize(self, overwrite: bool = False) -> Path:
        """Copy the packaged default knowledge file into place."""
        if self.path.exists() and not overwrite:
            logger.info(f"Knowledge base already exists at {self.path}")
            return self.path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(DEFAULT_KNOWLEDGE_FILE, self.path)
        logger.info(f"Knowledge base initialized at {self.path}")
        return self.path

    def load(self) -> BusinessKnowledge:
        if not self.path.exists():
            raise FileNotFoundError(
                f"Knowledge base not found at {self.path}. Run 'legacy-ops knowledge init' first."
            )
        with open(self.path, "r", encoding="utf-8") as f:
            return BusinessKnowledge.model_validate(json.load(f))

    def save(self, knowledge: BusinessKnowledge) -> None:
        data = knowledge.model_dump(mode="json", by_alias=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def add_product(
        self,
        name: str,
        category: str = "wine",
        description: Optional[str] = None,
        price: Optional[Union[float, str]] = None,
        image_url: Optional[str] = None,
    ) -> Product:
        knowledge = self.load()
        fields: Dict[str, Any] = {"name": name, "category": category, "price": price, "image_url": image_url}
        if description:
            fields["description"] = description
        product = Product(**fields)
        knowledge.inventory_tracking.new_arrivals.append(product)
        self.save(knowledge)
        logger.info(f"Added new arrival: {name}")
        return product

    def add_event(self, name: str, date: str) -> StoreEvent:
        knowledge = self.load()
        event = StoreEvent(name=name, date=date)
        knowledge.holidays_and_events.store_events.append(event)
        self.save(knowledge)
        logger.info(f"Added store event: {name} on {date}")
        return event

    def record_success(self, theme: str, engagement: str = "high", **details: Any) -> SuccessfulPost:
        """Log a post that performed well. Extra details (caption, imageUrl, posted_at) are kept as-is."""
        knowledge = self.load()
        record = SuccessfulPost(theme=theme, engagement=engagement, **details)
        knowledge.learning.successful_posts.append(record)
        self.save(knowledge)
        logger.info(f"Recorded successful post: {theme}")
        return record

    def inventory_summary(self) -> Dict[str, Any]:
        arrivals = self.load().inventory_tracking.new_arrivals
        return {
            "count": len(arrivals),
            "by_category": dict(Counter(p.category for p in arrivals)),
            "new_arrivals": [p.model_dump(by_alias=True) for p in arrivals],
        }

    def learning_summary(self, recent: int = 5) -> Dict[str, Any]:
        posts = self.load().learning.successful_posts
        return {
            "total": len(posts),
            "by_theme": dict(Counter(p.theme for p in posts).most_common()),
            "recent": [p.model_dump(by_alias=True) for p in posts[-recent:]],
        }
