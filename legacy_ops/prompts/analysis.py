"""
Analysis prompts

Text analysis, summarization, translation and code generation instructions
used by the Anthropic and Vertex wrappers.
"""

from langchain_core.prompts import ChatPromptTemplate

ANALYSIS_INSTRUCTIONS = {
    "sentiment": (
        "Analyze the sentiment of this text. Return JSON with keys sentiment "
        "(positive, negative or neutral), confidence (0-1) and summary."
    ),
    "summary": "Summarize this text in 3-5 bullet points.",
    "entities": "Extract all named entities (people, places, organizations) from this text.",
    "keywords": "Extract the top 10 keywords from this text.",
    "topics": "Identify the main topics discussed in this text.",
}

SUMMARY_STYLES = {
    "bullets": "Summarize in 3-5 bullet points",
    "paragraph": "Summarize in one paragraph",
    "tldr": "Provide a TL;DR in one sentence",
    "executive": "Provide an executive summary",
}

WRITING_STYLES = {
    "professional": "Write in a professional, business-appropriate tone.",
    "casual": "Write in a friendly, conversational tone.",
    "humorous": "Write with humor and wit.",
    "poetic": "Write in a poetic, artistic style.",
    "technical": "Write in a precise, technical manner.",
}

TEXT_ANALYSIS_PROMPT = ChatPromptTemplate.from_messages(
    [("human", "{instruction}\n\nText: {text}")]
)

STRUCTURED_OUTPUT_SYSTEM_PROMPT = """You must respond with valid JSON that matches this schema:
{schema}

Only output the JSON, no other text."""

CODE_GENERATION_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "human",
            """Generate {language} code for: {description}

Requirements:
1. Include comments where the logic is not obvious
2. Handle errors appropriately
3. Make it production-ready

Output only the code, no explanations.""",
        )
    ]
)

TRANSLATION_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "human",
            """Translate the following text from {source_language} to {target_language}.
Only provide the translation, no explanations.

Text: {text}""",
        )
    ]
)
