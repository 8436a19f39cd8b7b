# Vertex AI integration module
from legacy_ops.integrations.vertex.client import VertexClient

__all__ = ["VertexClient"]
