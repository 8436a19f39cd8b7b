"""
Packaged post content: store details, approval templates and the image library.
"""

import logging
import random
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from legacy_ops.models import PostTemplate

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent.parent / "data"
POST_CONTENT_FILE = DATA_DIR / "post_templates.yaml"
DEFAULT_KNOWLEDGE_FILE = DATA_DIR / "business_knowledge.json"


@lru_cache()
def load_post_content() -> Dict[str, Any]:
    with open(POST_CONTENT_FILE, "r", encoding="utf-8") as f:
        content = yaml.safe_load(f)
    logger.debug(f"Loaded {len(content.get('templates', {}))} post templates")
    return content


def store_info() -> Dict[str, str]:
    return load_post_content()["store"]


def store_block() -> str:
    """Store footer used by captions: name, address, phone, hours."""
    store = store_info()
    return f"📍 {store['name']}\n{store['address']}\n📞 {store['phone']}\n⏰ {store['hours']}"


def post_templates() -> Dict[str, PostTemplate]:
    return {name: PostTemplate(**data) for name, data in load_post_content()["templates"].items()}


def get_template(name: str) -> PostTemplate:
    templates = post_templates()
    if name not in templates:
        raise ValueError(f"Unknown template '{name}'. Available: {', '.join(templates)}")
    return templates[name]


def category_images(category: str) -> List[str]:
    images = load_post_content()["images"]
    return images.get(category) or images["wine"]


def image_for_category(category: str, rng: Optional[random.Random] = None) -> str:
    return (rng or random).choice(category_images(category))
