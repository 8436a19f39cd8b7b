# N8N integration module
from legacy_ops.integrations.n8n.client import N8NClient

__all__ = ["N8NClient"]
