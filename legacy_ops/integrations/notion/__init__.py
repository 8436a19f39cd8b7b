# Notion integration module
from legacy_ops.integrations.notion.client import NotionClient

__all__ = ["NotionClient"]
