"""
Vertex AI (Gemini) Client

Responsibilities:
- Text generation, chat sessions, streaming and token counting
- Multimodal requests (image by URL, video by GCS URI)
- Embeddings
- Marketing and text helpers (Instagram post, sentiment, translation, summaries)
"""

import logging
import time
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx
import vertexai
from google.api_core.exceptions import GoogleAPIError
from vertexai.generative_models import (
    ChatSession,
    GenerationConfig,
    GenerativeModel,
    HarmBlockThreshold,
    HarmCategory,
    Part,
    SafetySetting,
)
from vertexai.language_models import TextEmbeddingModel

from legacy_ops.config import get_settings
from legacy_ops.prompts import (
    ANALYSIS_INSTRUCTIONS,
    CODE_GENERATION_PROMPT,
    INSTAGRAM_POST_PROMPT,
    SUMMARY_STYLES,
    TEXT_ANALYSIS_PROMPT,
    TRANSLATION_PROMPT,
    render_prompt,
)
from legacy_ops.utils.helpers import extract_json

logger = logging.getLogger(__name__)

SAFETY_SETTINGS = [
    SafetySetting(
        category=HarmCategory.HARM_CATEGORY_HATE_SPEECH,
        threshold=HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    ),
    SafetySetting(
        category=HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
        threshold=HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    ),
]


class VertexClient:
    def __init__(self):
        settings = get_settings()
        self.settings = settings
        self.models = {
            "pro": settings.vertex_model,
            "flash": "gemini-1.5-flash",
            "embedding": "text-embedding-004",
        }
        self._initialized = False

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.vertex_project_id)

    def _ensure_init(self):
        if not self._initialized:
            vertexai.init(project=self.settings.vertex_project_id, location=self.settings.vertex_location)
            self._initialized = True

    def get_generative_model(
        self,
        model: Optional[str] = None,
        temperature: float = 0.9,
        max_output_tokens: int = 8192,
        system_instruction: Optional[str] = None,
    ) -> GenerativeModel:
        self._ensure_init()
        return GenerativeModel(
            model or self.models["pro"],
            generation_config=GenerationConfig(
                max_output_tokens=max_output_tokens,
                temperature=temperature,
                top_p=1.0,
                top_k=32,
            ),
            safety_settings=SAFETY_SETTINGS,
            system_instruction=system_instruction,
        )

    async def test_connection(self) -> bool:
        if not self.is_configured:
            return False
        return await self.count_tokens("ping") is not None

    async def generate_text(
        self,
        prompt: str,
        temperature: float = 0.9,
        max_tokens: int = 4096,
        model: Optional[str] = None,
    ) -> Optional[str]:
        try:
            generative = self.get_generative_model(model, temperature=temperature, max_output_tokens=max_tokens)
            response = await generative.generate_content_async(prompt)
            return response.text
        except (GoogleAPIError, ValueError) as e:
            # ValueError: response blocked by safety filters, no text part
            logger.error(f"Vertex generation failed: {e}")
            return None

    def start_chat(self, history: Optional[List[Any]] = None, model: Optional[str] = None) -> ChatSession:
        return self.get_generative_model(model).start_chat(history=history or [])

    async def send_chat_message(self, chat: ChatSession, message: str) -> Optional[str]:
        try:
            response = await chat.send_message_async(message)
            return response.text
        except (GoogleAPIError, ValueError) as e:
            logger.error(f"Vertex chat message failed: {e}")
            return None

    async def stream_generate(self, prompt: str) -> AsyncIterator[str]:
        try:
            responses = await self.get_generative_model().generate_content_async(prompt, stream=True)
            async for chunk in responses:
                if chunk.candidates and chunk.candidates[0].content.parts:
                    yield chunk.text
        except GoogleAPIError as e:
            logger.error(f"Vertex streaming failed: {e}")

    async def count_tokens(self, text: str) -> Optional[int]:
        try:
            response = await self.get_generative_model().count_tokens_async(text)
            return response.total_tokens
        except GoogleAPIError as e:
            logger.error(f"Vertex token count failed: {e}")
            return None

    # ---- Multimodal ----------------------------------------------------------

    async def analyze_image(self, image_url: str, prompt: str = "Describe this image in detail.") -> Optional[str]:
        try:
            async with httpx.AsyncClient(timeout=30.0) as http:
                response = await http.get(image_url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Could not fetch image {image_url}: {e}")
            return None
        mime_type = response.headers.get("content-type", "image/jpeg").split(";")[0]
        image = Part.from_data(data=response.content, mime_type=mime_type)
        return await self._generate_parts([image, prompt])

    async def analyze_video(self, gcs_uri: str, prompt: str = "Describe what happens in this video.") -> Optional[str]:
        video = Part.from_uri(uri=gcs_uri, mime_type="video/mp4")
        return await self._generate_parts([video, prompt])

    async def process_multimodal(self, items: List[Dict[str, str]]) -> Optional[str]:
        """
        Args:
            items: [{"type": "text", "text": ...} | {"type": "uri", "uri": ..., "mime_type": ...}]
        """
        parts: List[Any] = []
        for item in items:
            if item["type"] == "uri":
                parts.append(Part.from_uri(uri=item["uri"], mime_type=item.get("mime_type", "image/jpeg")))
            else:
                parts.append(item["text"])
        return await self._generate_parts(parts)

    async def _generate_parts(self, parts: List[Any]) -> Optional[str]:
        try:
            response = await self.get_generative_model().generate_content_async(parts)
            return response.text
        except (GoogleAPIError, ValueError) as e:
            logger.error(f"Vertex multimodal request failed: {e}")
            return None

    async def generate_embedding(self, text: str) -> Optional[List[float]]:
        self._ensure_init()
        try:
            model = TextEmbeddingModel.from_pretrained(self.models["embedding"])
            embeddings = await model.get_embeddings_async([text])
            return list(embeddings[0].values)
        except GoogleAPIError as e:
            logger.error(f"Vertex embedding failed: {e}")
            return None

    # ---- Helpers -------------------------------------------------------------

    async def generate_code(self, description: str, language: str = "python") -> Optional[str]:
        _, user = render_prompt(CODE_GENERATION_PROMPT, language=language, description=description)
        return await self.generate_text(user, temperature=0.3)

    async def generate_instagram_post(self, topic: str, brand: Optional[str] = None) -> Optional[Dict[str, Any]]:
        system, user = render_prompt(
            INSTAGRAM_POST_PROMPT, brand=brand or self.settings.store_name, topic=topic
        )
        response = await self.generate_text(f"{system}\n\n{user}", temperature=0.8)
        return extract_json(response) if response else None

    async def analyze_sentiment(self, text: str) -> Optional[Dict[str, Any]]:
        _, user = render_prompt(TEXT_ANALYSIS_PROMPT, instruction=ANALYSIS_INSTRUCTIONS["sentiment"], text=text)
        response = await self.generate_text(user, temperature=0.3)
        return extract_json(response) if response else None

    async def translate(self, text: str, target_language: str, source_language: str = "auto-detected") -> Optional[str]:
        _, user = render_prompt(
            TRANSLATION_PROMPT, source_language=source_language, target_language=target_language, text=text
        )
        return await self.generate_text(user, temperature=0.3)

    async def summarize(self, text: str, style: str = "bullets") -> Optional[str]:
        if style not in SUMMARY_STYLES:
            raise ValueError(f"Unknown summary style: {style}")
        return await self.generate_text(f"{SUMMARY_STYLES[style]}:\n\n{text}", temperature=0.5)

    async def compare_with_others(self, prompt: str) -> List[Dict[str, Any]]:
        results = []
        for name in ("pro", "flash"):
            started = time.perf_counter()
            response = await self.generate_text(prompt, max_tokens=500, model=self.models[name])
            results.append(
                {
                    "model": name,
                    "success": response is not None,
                    "duration_ms": int((time.perf_counter() - started) * 1000),
                    "response": (response or "")[:200],
                }
            )
        return results
