# Render integration module
from legacy_ops.integrations.render.client import RenderClient

__all__ = ["RenderClient"]
