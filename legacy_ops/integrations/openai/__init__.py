# OpenAI integration module
from legacy_ops.integrations.openai.client import OpenAIClient

__all__ = ["OpenAIClient"]
