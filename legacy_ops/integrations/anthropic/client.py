"""
Anthropic API Client

Responsibilities:
- Messages API (single prompt, multi-turn, streaming)
- Vision (image URL or local file, mixed text/image content)
- Tool use
- Structured JSON generation and text utilities built on top of complete()
- Side-by-side model comparison
"""

import base64
import json
import logging
import mimetypes
import time
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx
from anthropic import APIError, AsyncAnthropic

from legacy_ops.config import get_settings
from legacy_ops.prompts import (
    ANALYSIS_INSTRUCTIONS,
    CODE_GENERATION_PROMPT,
    INSTAGRAM_POST_PROMPT,
    STRUCTURED_OUTPUT_SYSTEM_PROMPT,
    TEXT_ANALYSIS_PROMPT,
    TRANSLATION_PROMPT,
    WRITING_STYLES,
    render_prompt,
)
from legacy_ops.utils.helpers import extract_json

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant."

INSTAGRAM_POST_SCHEMA = {
    "caption": "string",
    "cta": "string",
    "hashtags": "string",
    "image_description": "string",
    "best_time_to_post": "string",
}


def _text_of(message) -> str:
    return "".join(block.text for block in message.content if block.type == "text")


class AnthropicClient:
    """Wrapper around AsyncAnthropic; every method returns plain Python values."""

    def __init__(self):
        settings = get_settings()
        self.settings = settings
        self._client: Optional[AsyncAnthropic] = None
        self.models = {
            "opus": "claude-3-opus-20240229",
            "sonnet": settings.anthropic_model,
            "haiku": "claude-3-haiku-20240307",
        }
        self.default_model = self.models["sonnet"]

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.anthropic_api_key)

    @property
    def client(self) -> AsyncAnthropic:
        if self._client is None:
            self._client = AsyncAnthropic(api_key=self.settings.anthropic_api_key)
        return self._client

    async def test_connection(self) -> bool:
        if not self.is_configured:
            return False
        reply = await self.complete("ping", max_tokens=5, model=self.models["haiku"])
        return reply is not None

    async def complete(
        self,
        prompt: str,
        model: Optional[str] = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        system: Optional[str] = None,
    ) -> Optional[str]:
        try:
            message = await self.client.messages.create(
                model=model or self.default_model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system or DEFAULT_SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
            logger.debug(
                f"Anthropic usage: {message.usage.input_tokens} in / {message.usage.output_tokens} out"
            )
            return _text_of(message)
        except APIError as e:
            logger.error(f"Anthropic completion failed: {e}")
            return None

    async def conversation(
        self,
        messages: List[Dict[str, Any]],
        system: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: int = 4096,
    ) -> Optional[str]:
        """Send a full message history ({"role", "content"} dicts) and return the reply text."""
        try:
            message = await self.client.messages.create(
                model=model or self.default_model,
                max_tokens=max_tokens,
                system=system or DEFAULT_SYSTEM_PROMPT,
                messages=messages,
            )
            return _text_of(message)
        except APIError as e:
            logger.error(f"Anthropic conversation failed: {e}")
            return None

    async def stream(self, prompt: str, model: Optional[str] = None) -> AsyncIterator[str]:
        try:
            async with self.client.messages.stream(
                model=model or self.default_model,
                max_tokens=4096,
                messages=[{"role": "user", "content": prompt}],
            ) as stream:
                async for text in stream.text_stream:
                    yield text
        except APIError as e:
            logger.error(f"Anthropic streaming failed: {e}")

    # ---- Vision -------------------------------------------------------------

    async def _image_block(self, source: str) -> Dict[str, Any]:
        if source.startswith(("http://", "https://")):
            async with httpx.AsyncClient(timeout=30.0) as http:
                response = await http.get(source)
                response.raise_for_status()
            data = response.content
            media_type = response.headers.get("content-type", "image/jpeg").split(";")[0]
        else:
            path = Path(source)
            data = path.read_bytes()
            media_type = mimetypes.guess_type(path.name)[0] or "image/jpeg"
        return {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": media_type,
                "data": base64.b64encode(data).decode("ascii"),
            },
        }

    async def analyze_image(self, image: str, prompt: str = "Describe this image in detail.") -> Optional[str]:
        """Analyze an image given as a URL or a local file path."""
        try:
            block = await self._image_block(image)
        except (httpx.HTTPError, OSError) as e:
            logger.error(f"Could not load image {image}: {e}")
            return None
        return await self._send_content([block, {"type": "text", "text": prompt}])

    async def process_multimodal(self, items: List[Dict[str, str]]) -> Optional[str]:
        """
        Send mixed content in order.

        Args:
            items: [{"type": "text", "text": ...} | {"type": "image", "source": url_or_path}]
        """
        content = []
        try:
            for item in items:
                if item["type"] == "image":
                    content.append(await self._image_block(item["source"]))
                else:
                    content.append({"type": "text", "text": item["text"]})
        except (httpx.HTTPError, OSError) as e:
            logger.error(f"Could not load multimodal content: {e}")
            return None
        return await self._send_content(content)

    async def _send_content(self, content: List[Dict[str, Any]]) -> Optional[str]:
        try:
            message = await self.client.messages.create(
                model=self.default_model,
                max_tokens=4096,
                messages=[{"role": "user", "content": content}],
            )
            return _text_of(message)
        except APIError as e:
            logger.error(f"Anthropic vision request failed: {e}")
            return None

    # ---- Tools --------------------------------------------------------------

    async def use_tools(self, prompt: str, tools: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """
        Let the model choose a tool.

        Returns:
            {"tool_name", "tool_input", "tool_id"} when a tool is called,
            {"text": ...} otherwise, None on error.
        """
        try:
            message = await self.client.messages.create(
                model=self.default_model,
                max_tokens=4096,
                tools=tools,
                messages=[{"role": "user", "content": prompt}],
            )
        except APIError as e:
            logger.error(f"Anthropic tool use failed: {e}")
            return None

        for block in message.content:
            if block.type == "tool_use":
                return {"tool_name": block.name, "tool_input": block.input, "tool_id": block.id}
        return {"text": _text_of(message)}

    @staticmethod
    def create_tool(name: str, description: str, properties: Dict[str, Any], required: List[str]) -> Dict[str, Any]:
        return {
            "name": name,
            "description": description,
            "input_schema": {"type": "object", "properties": properties, "required": required},
        }

    # ---- Generation helpers ---------------------------------------------------

    async def generate_structured(self, prompt: str, schema: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        system = STRUCTURED_OUTPUT_SYSTEM_PROMPT.format(schema=json.dumps(schema, indent=2))
        response = await self.complete(prompt, system=system, temperature=0.3)
        if response is None:
            return None
        parsed = extract_json(response)
        if parsed is None:
            logger.warning("Anthropic structured output was not valid JSON")
        return parsed

    async def generate_code(self, description: str, language: str = "python") -> Optional[str]:
        _, user = render_prompt(CODE_GENERATION_PROMPT, language=language, description=description)
        return await self.complete(user, temperature=0.3)

    async def analyze_text(self, text: str, analysis_type: str = "sentiment") -> Optional[str]:
        instruction = ANALYSIS_INSTRUCTIONS.get(analysis_type, analysis_type)
        _, user = render_prompt(TEXT_ANALYSIS_PROMPT, instruction=instruction, text=text)
        return await self.complete(user, temperature=0.3)

    async def generate_instagram_post(self, topic: str, brand: Optional[str] = None) -> Optional[Dict[str, Any]]:
        _, user = render_prompt(
            INSTAGRAM_POST_PROMPT, brand=brand or self.settings.store_name, topic=topic
        )
        return await self.generate_structured(user, INSTAGRAM_POST_SCHEMA)

    async def creative_write(self, prompt: str, style: str = "professional") -> Optional[str]:
        if style not in WRITING_STYLES:
            raise ValueError(f"Unknown writing style: {style}")
        return await self.complete(prompt, system=WRITING_STYLES[style], temperature=0.8)

    async def translate(self, text: str, target_language: str, source_language: str = "auto-detected") -> Optional[str]:
        _, user = render_prompt(
            TRANSLATION_PROMPT, source_language=source_language, target_language=target_language, text=text
        )
        return await self.complete(user, temperature=0.3)

    async def question_answer(self, context: str, question: str) -> Optional[str]:
        prompt = f"Context:\n{context}\n\nQuestion: {question}\n\nAnswer based only on the context above."
        return await self.complete(prompt, temperature=0.3)

    async def compare_models(self, prompt: str) -> List[Dict[str, Any]]:
        """Run the same prompt on every model; responses are cut to 200 characters."""
        results = []
        for name, model in self.models.items():
            started = time.perf_counter()
            response = await self.complete(prompt, model=model, max_tokens=500)
            elapsed_ms = int((time.perf_counter() - started) * 1000)
            results.append(
                {
                    "model": name,
                    "success": response is not None,
                    "duration_ms": elapsed_ms,
                    "response": (response or "")[:200],
                }
            )
        return results
