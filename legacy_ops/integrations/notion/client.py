"""
Notion API Client

Responsibilities:
- Search, page retrieval (page + child blocks) and database queries
- Page creation/update and block append/delete
- Database schema lookup and creation
- Block builders for rich page content
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
from notion_client import AsyncClient
from notion_client.errors import HTTPResponseError, RequestTimeoutError

from legacy_ops.config import get_settings

logger = logging.getLogger(__name__)

NOTION_VERSION = "2022-06-28"
NOTION_ERRORS = (HTTPResponseError, RequestTimeoutError, httpx.HTTPError)


def _rich_text(content: str, **annotations) -> Dict[str, Any]:
    item: Dict[str, Any] = {"type": "text", "text": {"content": content}}
    if annotations:
        item["annotations"] = annotations
    return item


class NotionClient:
    """Notion workspace wrapper bound to the store's main database."""

    def __init__(self):
        settings = get_settings()
        self.client = AsyncClient(auth=settings.notion_token, notion_version=NOTION_VERSION)
        self.database_id = settings.notion_database_id
        self.settings = settings

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.notion_token)

    async def test_connection(self) -> bool:
        if not self.is_configured:
            return False
        try:
            await self.client.users.me()
            return True
        except NOTION_ERRORS as e:
            logger.error(f"Notion connection failed: {e}")
            return False

    async def search(self, query: str, object_type: Optional[str] = None, page_size: int = 10) -> List[Dict[str, Any]]:
        """Search pages/databases by title, most recently edited first."""
        params: Dict[str, Any] = {
            "query": query,
            "page_size": page_size,
            "sort": {"direction": "descending", "timestamp": "last_edited_time"},
        }
        if object_type:
            params["filter"] = {"property": "object", "value": object_type}
        try:
            response = await self.client.search(**params)
            results = response.get("results", [])
            logger.info(f"Notion search '{query}' returned {len(results)} results")
            return results
        except NOTION_ERRORS as e:
            logger.error(f"Notion search failed: {e}")
            return []

    async def get_page(self, page_id: str) -> Optional[Dict[str, Any]]:
        try:
            page = await self.client.pages.retrieve(page_id=page_id)
            blocks = await self.client.blocks.children.list(block_id=page_id, page_size=100)
            return {"page": page, "blocks": blocks.get("results", [])}
        except NOTION_ERRORS as e:
            logger.error(f"Notion error fetching page {page_id}: {e}")
            return None

    async def query_database(
        self,
        database_id: Optional[str] = None,
        filter: Optional[Dict[str, Any]] = None,
        sorts: Optional[List[Dict[str, Any]]] = None,
        page_size: int = 25,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"database_id": database_id or self.database_id, "page_size": page_size}
        if filter:
            params["filter"] = filter
        if sorts:
            params["sorts"] = sorts
        try:
            response = await self.client.databases.query(**params)
            return response.get("results", [])
        except NOTION_ERRORS as e:
            logger.error(f"Notion database query failed: {e}")
            return []

    async def create_page(
        self,
        title: str,
        children: Optional[List[Dict[str, Any]]] = None,
        properties: Optional[Dict[str, Any]] = None,
        database_id: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        page_properties = {"title": {"title": [_rich_text(title)]}}
        page_properties.update(properties or {})
        try:
            page = await self.client.pages.create(
                parent={"database_id": database_id or self.database_id},
                properties=page_properties,
                children=children or [],
            )
            logger.info(f"Created Notion page '{title}'")
            return page
        except NOTION_ERRORS as e:
            logger.error(f"Notion error creating page '{title}': {e}")
            return None

    async def update_page(self, page_id: str, properties: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            return await self.client.pages.update(page_id=page_id, properties=properties)
        except NOTION_ERRORS as e:
            logger.error(f"Notion error updating page {page_id}: {e}")
            return None

    async def append_blocks(self, page_id: str, blocks: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        try:
            response = await self.client.blocks.children.append(block_id=page_id, children=blocks)
            return response.get("results", [])
        except NOTION_ERRORS as e:
            logger.error(f"Notion error appending blocks to {page_id}: {e}")
            return []

    async def delete_block(self, block_id: str) -> Optional[Dict[str, Any]]:
        try:
            return await self.client.blocks.delete(block_id=block_id)
        except NOTION_ERRORS as e:
            logger.error(f"Notion error deleting block {block_id}: {e}")
            return None

    async def get_database_schema(self, database_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        try:
            database = await self.client.databases.retrieve(database_id=database_id or self.database_id)
            return database.get("properties")
        except NOTION_ERRORS as e:
            logger.error(f"Notion error reading database schema: {e}")
            return None

    async def create_database(
        self, parent_page_id: str, title: str, properties: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        try:
            return await self.client.databases.create(
                parent={"type": "page_id", "page_id": parent_page_id},
                title=[_rich_text(title)],
                properties=properties,
            )
        except NOTION_ERRORS as e:
            logger.error(f"Notion error creating database '{title}': {e}")
            return None

    async def list_users(self) -> List[Dict[str, Any]]:
        try:
            response = await self.client.users.list(page_size=100)
            return response.get("results", [])
        except NOTION_ERRORS as e:
            logger.error(f"Notion error listing users: {e}")
            return []

    async def query_with_filters(
        self,
        status: str = "In Progress",
        priority: str = "High",
        due_before: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        """Open high-priority tasks due on or before a date, highest priority first."""
        due_before = due_before or datetime.now(timezone.utc)
        filter = {
            "and": [
                {"property": "Status", "select": {"equals": status}},
                {"property": "Priority", "select": {"equals": priority}},
                {"property": "Due Date", "date": {"on_or_before": due_before.isoformat()}},
            ]
        }
        sorts = [
            {"property": "Priority", "direction": "descending"},
            {"property": "Due Date", "direction": "ascending"},
        ]
        return await self.query_database(self.database_id, filter, sorts)

    @staticmethod
    def create_rich_content(
        heading: str,
        paragraph: str,
        bullets: Optional[List[str]] = None,
        todos: Optional[List[str]] = None,
    ) -> List[Dict[str, Any]]:
        """Build a heading, a paragraph, bullet items, unchecked to-dos and a closing divider."""
        blocks: List[Dict[str, Any]] = [
            {"object": "block", "type": "heading_1", "heading_1": {"rich_text": [_rich_text(heading)]}},
            {"object": "block", "type": "paragraph", "paragraph": {"rich_text": [_rich_text(paragraph)]}},
        ]
        for bullet in bullets or []:
            blocks.append(
                {
                    "object": "block",
                    "type": "bulleted_list_item",
                    "bulleted_list_item": {"rich_text": [_rich_text(bullet)]},
                }
            )
        for todo in todos or []:
            blocks.append(
                {
                    "object": "block",
                    "type": "to_do",
                    "to_do": {"rich_text": [_rich_text(todo)], "checked": False},
                }
            )
        blocks.append({"object": "block", "type": "divider", "divider": {}})
        return blocks

    @staticmethod
    def extract_title(page: Dict[str, Any]) -> str:
        """Plain-text title of a page or database object, "Untitled" when absent."""
        if page.get("object") == "database":
            parts = page.get("title") or []
            return "".join(p.get("plain_text", "") for p in parts) or "Untitled"

        for prop in (page.get("properties") or {}).values():
            if prop.get("type") == "title":
                parts = prop.get("title") or []
                return "".join(p.get("plain_text", "") for p in parts) or "Untitled"
        return "Untitled"
