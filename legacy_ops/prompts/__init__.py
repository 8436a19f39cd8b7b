"""Prompts package."""

from typing import Optional, Tuple

from langchain_core.prompts import ChatPromptTemplate

from legacy_ops.prompts.marketing import (
    EMAIL_CAMPAIGN_PROMPT,
    INSTAGRAM_POST_PROMPT,
    PRODUCT_DESCRIPTION_PROMPT,
    REVIEW_SENTIMENT_PROMPT,
)
from legacy_ops.prompts.analysis import (
    ANALYSIS_INSTRUCTIONS,
    CODE_GENERATION_PROMPT,
    STRUCTURED_OUTPUT_SYSTEM_PROMPT,
    SUMMARY_STYLES,
    TEXT_ANALYSIS_PROMPT,
    TRANSLATION_PROMPT,
    WRITING_STYLES,
)


def render_prompt(prompt: ChatPromptTemplate, **variables) -> Tuple[Optional[str], str]:
    """
    Format a chat prompt and split it into (system, user) text.

    The vendor SDKs take the system prompt separately (Anthropic, Vertex) or
    as the first message (OpenAI), so callers get both parts as plain strings.
    """
    messages = prompt.format_messages(**variables)
    system = "\n\n".join(m.content for m in messages if m.type == "system")
    user = "\n\n".join(m.content for m in messages if m.type == "human")
    return (system or None), user


__all__ = [
    "render_prompt",
    "EMAIL_CAMPAIGN_PROMPT",
    "INSTAGRAM_POST_PROMPT",
    "PRODUCT_DESCRIPTION_PROMPT",
    "REVIEW_SENTIMENT_PROMPT",
    "ANALYSIS_INSTRUCTIONS",
    "CODE_GENERATION_PROMPT",
    "STRUCTURED_OUTPUT_SYSTEM_PROMPT",
    "SUMMARY_STYLES",
    "TEXT_ANALYSIS_PROMPT",
    "TRANSLATION_PROMPT",
    "WRITING_STYLES",
]
