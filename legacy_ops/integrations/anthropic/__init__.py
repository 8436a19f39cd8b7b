# Anthropic integration module
from legacy_ops.integrations.anthropic.client import AnthropicClient

__all__ = ["AnthropicClient"]
