"""
OpenAI API Client

Responsibilities:
- Chat completions (single prompt, streaming, multi-turn, function calling, vision)
- Images (generate, variation, edit)
- Audio (transcribe, translate, text to speech)
- Embeddings, moderation, model listing, fine-tuning jobs
- Marketing helpers built on chat (Instagram post, product copy, review sentiment)
"""

import logging
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from legacy_ops.config import get_settings
from legacy_ops.prompts import (
    INSTAGRAM_POST_PROMPT,
    PRODUCT_DESCRIPTION_PROMPT,
    REVIEW_SENTIMENT_PROMPT,
    render_prompt,
)
from legacy_ops.utils.helpers import extract_json

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."


class OpenAIClient:
    """Thin wrapper around the async OpenAI SDK."""

    def __init__(self):
        settings = get_settings()
        self.settings = settings
        self._client: Optional[AsyncOpenAI] = None
        self.models = {
            "chat": settings.openai_model,
            "vision": "gpt-4o",
            "legacy": "gpt-3.5-turbo",
            "image": "dall-e-3",
            "variation": "dall-e-2",
            "whisper": "whisper-1",
            "tts": "tts-1-hd",
            "embedding": "text-embedding-3-large",
        }

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.openai_api_key)

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.settings.openai_api_key)
        return self._client

    async def test_connection(self) -> bool:
        if not self.is_configured:
            return False
        try:
            await self.client.models.list()
            return True
        except OpenAIError as e:
            logger.error(f"OpenAI connection failed: {e}")
            return False

    # ---- Chat --------------------------------------------------------------

    async def chat_completion(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        response_format: Optional[Dict[str, str]] = None,
    ) -> Optional[str]:
        params: Dict[str, Any] = {
            "model": model or self.models["chat"],
            "messages": [
                {"role": "system", "content": system_prompt or DEFAULT_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if response_format:
            params["response_format"] = response_format
        try:
            completion = await self.client.chat.completions.create(**params)
            if completion.usage:
                logger.debug(f"OpenAI usage: {completion.usage.total_tokens} tokens")
            return completion.choices[0].message.content
        except OpenAIError as e:
            logger.error(f"OpenAI chat completion failed: {e}")
            return None

    async def stream_chat(self, prompt: str) -> AsyncIterator[str]:
        """Yield text deltas as they arrive. Stops early on a vendor error."""
        try:
            stream = await self.client.chat.completions.create(
                model=self.models["chat"],
                messages=[{"role": "user", "content": prompt}],
                stream=True,
            )
            async for chunk in stream:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content
        except OpenAIError as e:
            logger.error(f"OpenAI streaming failed: {e}")

    async def conversation(self, messages: List[Dict[str, str]]) -> Optional[Dict[str, Any]]:
        try:
            completion = await self.client.chat.completions.create(
                model=self.models["chat"], messages=messages, temperature=0.7
            )
            return completion.choices[0].message.model_dump()
        except OpenAIError as e:
            logger.error(f"OpenAI conversation failed: {e}")
            return None

    async def function_call(self, prompt: str, functions: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """
        Let the model pick one of the given function definitions.

        Returns:
            The assistant message as a dict; "tool_calls" holds the chosen
            function name and JSON arguments when the model calls one.
        """
        try:
            completion = await self.client.chat.completions.create(
                model=self.models["chat"],
                messages=[{"role": "user", "content": prompt}],
                tools=[{"type": "function", "function": f} for f in functions],
                tool_choice="auto",
            )
            message = completion.choices[0].message
            if message.tool_calls:
                logger.info(f"Model called function {message.tool_calls[0].function.name}")
            return message.model_dump()
        except OpenAIError as e:
            logger.error(f"OpenAI function call failed: {e}")
            return None

    async def analyze_image(self, image_url: str, prompt: str) -> Optional[str]:
        try:
            completion = await self.client.chat.completions.create(
                model=self.models["vision"],
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": prompt},
                            {"type": "image_url", "image_url": {"url": image_url, "detail": "high"}},
                        ],
                    }
                ],
                max_tokens=1000,
            )
            return completion.choices[0].message.content
        except OpenAIError as e:
            logger.error(f"OpenAI image analysis failed: {e}")
            return None

    # ---- Images ------------------------------------------------------------

    async def generate_image(
        self,
        prompt: str,
        size: str = "1024x1024",
        quality: str = "standard",
        style: str = "vivid",
        n: int = 1,
    ) -> List[Dict[str, Any]]:
        """Generate images; each result carries "url" and "revised_prompt"."""
        try:
            response = await self.client.images.generate(
                model=self.models["image"],
                prompt=prompt,
                n=n,
                size=size,
                quality=quality,
                style=style,
                response_format="url",
            )
            return [image.model_dump() for image in response.data]
        except OpenAIError as e:
            logger.error(f"OpenAI image generation failed: {e}")
            return []

    async def create_image_variation(self, image_path: str, n: int = 1) -> List[Dict[str, Any]]:
        try:
            with open(image_path, "rb") as image:
                response = await self.client.images.create_variation(
                    model=self.models["variation"], image=image, n=n, size="1024x1024"
                )
            return [item.model_dump() for item in response.data]
        except (OpenAIError, OSError) as e:
            logger.error(f"OpenAI image variation failed: {e}")
            return []

    async def edit_image(self, image_path: str, mask_path: str, prompt: str) -> List[Dict[str, Any]]:
        try:
            with open(image_path, "rb") as image, open(mask_path, "rb") as mask:
                response = await self.client.images.edit(
                    model=self.models["variation"],
                    image=image,
                    mask=mask,
                    prompt=prompt,
                    n=1,
                    size="1024x1024",
                )
            return [item.model_dump() for item in response.data]
        except (OpenAIError, OSError) as e:
            logger.error(f"OpenAI image edit failed: {e}")
            return []

    # ---- Audio -------------------------------------------------------------

    async def transcribe_audio(self, audio_path: str, language: Optional[str] = None) -> Optional[str]:
        try:
            params: Dict[str, Any] = {"model": self.models["whisper"], "temperature": 0}
            if language:
                params["language"] = language
            with open(audio_path, "rb") as audio:
                transcription = await self.client.audio.transcriptions.create(file=audio, **params)
            return transcription.text
        except (OpenAIError, OSError) as e:
            logger.error(f"OpenAI transcription failed: {e}")
            return None

    async def translate_audio(self, audio_path: str) -> Optional[str]:
        try:
            with open(audio_path, "rb") as audio:
                translation = await self.client.audio.translations.create(
                    file=audio, model=self.models["whisper"]
                )
            return translation.text
        except (OpenAIError, OSError) as e:
            logger.error(f"OpenAI audio translation failed: {e}")
            return None

    async def text_to_speech(
        self, text: str, output_path: str = "output.mp3", voice: str = "nova", speed: float = 1.0
    ) -> Optional[str]:
        try:
            response = await self.client.audio.speech.create(
                model=self.models["tts"], voice=voice, input=text, speed=speed
            )
            Path(output_path).write_bytes(response.content)
            logger.info(f"Speech saved to {output_path}")
            return output_path
        except (OpenAIError, OSError) as e:
            logger.error(f"OpenAI text to speech failed: {e}")
            return None

    # ---- Embeddings / moderation / models ------------------------------------

    async def create_embedding(self, text: str) -> Optional[List[float]]:
        try:
            response = await self.client.embeddings.create(
                model=self.models["embedding"], input=text, encoding_format="float"
            )
            return response.data[0].embedding
        except OpenAIError as e:
            logger.error(f"OpenAI embedding failed: {e}")
            return None

    async def moderate(self, text: str) -> Optional[Dict[str, Any]]:
        try:
            response = await self.client.moderations.create(input=text)
            result = response.results[0]
            if result.flagged:
                logger.warning("Content flagged by moderation")
            return result.model_dump()
        except OpenAIError as e:
            logger.error(f"OpenAI moderation failed: {e}")
            return None

    async def list_models(self) -> List[str]:
        try:
            response = await self.client.models.list()
            return [model.id for model in response.data]
        except OpenAIError as e:
            logger.error(f"OpenAI model listing failed: {e}")
            return []

    async def create_fine_tune(
        self,
        training_file: str,
        model: str = "gpt-3.5-turbo",
        epochs: int = 3,
        suffix: Optional[str] = None,
        validation_file: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        params: Dict[str, Any] = {
            "training_file": training_file,
            "model": model,
            "hyperparameters": {"n_epochs": epochs},
        }
        if suffix:
            params["suffix"] = suffix
        if validation_file:
            params["validation_file"] = validation_file
        try:
            job = await self.client.fine_tuning.jobs.create(**params)
            logger.info(f"Fine-tune job {job.id} created")
            return job.model_dump()
        except OpenAIError as e:
            logger.error(f"OpenAI fine-tune creation failed: {e}")
            return None

    # ---- Marketing helpers ---------------------------------------------------

    async def generate_instagram_post(self, topic: str, brand: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """
        Draft an Instagram post.

        Returns:
            {"caption", "cta", "hashtags", "image_description"} or None
        """
        system, user = render_prompt(
            INSTAGRAM_POST_PROMPT, brand=brand or self.settings.store_name, topic=topic
        )
        response = await self.chat_completion(
            user,
            system_prompt=system,
            temperature=0.8,
            response_format={"type": "json_object"},
        )
        return extract_json(response) if response else None

    async def generate_product_description(self, product: str, features: str) -> Optional[str]:
        system, user = render_prompt(
            PRODUCT_DESCRIPTION_PROMPT, brand=self.settings.store_name, product=product, features=features
        )
        return await self.chat_completion(user, system_prompt=system, max_tokens=300)

    async def analyze_reviews(self, reviews: List[str]) -> Optional[str]:
        _, user = render_prompt(REVIEW_SENTIMENT_PROMPT, reviews="\n\n".join(reviews))
        return await self.chat_completion(user, temperature=0.3)
