"""Text and image generation provider interfaces and implementations."""

from __future__ import annotations

import base64
import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

import httpx

logger = logging.getLogger(__name__)

# Replicate FLUX models only accept these output_format values.
REPLICATE_FORMATS: dict[str, str] = {
    "jpeg": "jpg",
    "jpg": "jpg",
    "png": "png",
    "webp": "webp",
}


def resolve_api_key(
    explicit: str | None,
    *env_names: str,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Return the explicit key if given, else the first non-empty env var."""
    if explicit and explicit.strip():
        return explicit.strip()
    env = os.environ if environ is None else environ
    for name in env_names:
        value = (env.get(name) or "").strip()
        if value:
            return value
    return ""


class TextProvider(ABC):
    """Base interface for text generation collaborators."""

    provider_name: str = "base"

    @abstractmethod
    def generate_json(self, prompt: str, schema: dict[str, Any] | None = None) -> str:
        """Send ``prompt`` and return the raw reply text, expected to be JSON."""
        ...


class GeminiTextProvider(TextProvider):
    """Google Gemini provider for structured clue generation."""

    provider_name = "gemini"

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gemini-2.5-flash",
        base_url: str | None = None,
        temperature: float = 0.7,
    ) -> None:
        self.api_key = resolve_api_key(api_key, "GEMINI_API_KEY", "GOOGLE_API_KEY")
        self.model = model
        self.base_url = base_url
        self.temperature = temperature
        self._client = None
        if not self.api_key:
            raise ValueError(
                "Gemini API key is required. Set GEMINI_API_KEY or pass api_key."
            )

    def _get_client(self):
        if self._client is None:
            self._client = _gemini_client(self.api_key, self.base_url)
        return self._client

    def generate_json(self, prompt: str, schema: dict[str, Any] | None = None) -> str:
        client = self._get_client()
        logger.info("Requesting clue via Gemini model=%s", self.model)

        config: dict[str, Any] = {
            "response_mime_type": "application/json",
            "temperature": self.temperature,
        }
        if schema is not None:
            config["response_schema"] = schema

        response = client.models.generate_content(
            model=self.model,
            contents=prompt,
            config=config,
        )
        return response.text or ""


class ImageProvider(ABC):
    """Base interface for image generation collaborators.

    Implementations return the raw bytes of the first generated image.
    """

    provider_name: str = "base"

    @abstractmethod
    def generate(self, prompt: str, aspect_ratio: str = "1:1", mime_type: str = "image/jpeg") -> bytes:
        ...


class GeminiImageProvider(ImageProvider):
    """Google Gemini Imagen provider for image generation."""

    provider_name = "gemini"

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "imagen-3.0-generate-002",
        base_url: str | None = None,
    ) -> None:
        self.api_key = resolve_api_key(api_key, "GEMINI_API_KEY", "GOOGLE_API_KEY")
        self.model = model
        self.base_url = base_url
        self._client = None
        if not self.api_key:
            raise ValueError(
                "Gemini API key is required. Set GEMINI_API_KEY or pass api_key."
            )

    def _get_client(self):
        if self._client is None:
            self._client = _gemini_client(self.api_key, self.base_url)
        return self._client

    def generate(self, prompt: str, aspect_ratio: str = "1:1", mime_type: str = "image/jpeg") -> bytes:
        from google.genai import types

        client = self._get_client()
        logger.info("Generating image via Gemini Imagen model=%s", self.model)

        response = client.models.generate_images(
            model=self.model,
            prompt=prompt,
            config=types.GenerateImagesConfig(
                number_of_images=1,
                output_mime_type=mime_type,
                aspect_ratio=aspect_ratio,
            ),
        )

        if not response.generated_images:
            raise NoImageError("Gemini returned no images; prompt may have been filtered.")

        image = response.generated_images[0].image
        if image is None or not image.image_bytes:
            raise NoImageError("Gemini returned an image without data.")
        return image.image_bytes


class OpenAIImageProvider(ImageProvider):
    """OpenAI DALL-E provider."""

    provider_name = "openai"

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "dall-e-3",
        base_url: str | None = None,
    ) -> None:
        self.api_key = resolve_api_key(api_key, "OPENAI_API_KEY")
        self.model = model
        self.base_url = base_url
        if not self.api_key:
            raise ValueError("OpenAI API key is required. Set OPENAI_API_KEY or pass api_key.")

    def generate(self, prompt: str, aspect_ratio: str = "1:1", mime_type: str = "image/jpeg") -> bytes:
        from openai import OpenAI

        client = OpenAI(api_key=self.api_key, base_url=self.base_url)
        logger.info("Generating image via OpenAI model=%s", self.model)

        # gpt-image models always return b64_json and reject response_format.
        extra: dict[str, Any] = {}
        if not self._is_gpt_image():
            extra["response_format"] = "b64_json"

        response = client.images.generate(
            model=self.model,
            prompt=prompt,
            n=1,
            size=self._map_size(aspect_ratio, gpt_image=self._is_gpt_image()),
            **extra,
        )

        if not response.data or not response.data[0].b64_json:
            raise NoImageError("OpenAI returned no image data.")
        return base64.b64decode(response.data[0].b64_json)

    def _is_gpt_image(self) -> bool:
        return self.model.startswith("gpt-image")

    @staticmethod
    def _map_size(aspect_ratio: str, gpt_image: bool = False) -> str:
        wide, tall = ("1536x1024", "1024x1536") if gpt_image else ("1792x1024", "1024x1792")
        width, _, height = aspect_ratio.partition(":")
        try:
            ratio = float(width) / float(height)
        except (ValueError, ZeroDivisionError):
            return "1024x1024"
        if abs(ratio - 1.0) < 0.15:
            return "1024x1024"
        elif ratio > 1.0:
            return wide
        else:
            return tall


class ReplicateImageProvider(ImageProvider):
    """Replicate API provider using FLUX models."""

    provider_name = "replicate"

    def __init__(
        self,
        api_token: str | None = None,
        model: str = "black-forest-labs/flux-schnell",
        base_url: str | None = None,
    ) -> None:
        self.api_token = resolve_api_key(api_token, "REPLICATE_API_TOKEN")
        self.model = model
        self.base_url = base_url
        if not self.api_token:
            raise ValueError(
                "Replicate API token is required. Set REPLICATE_API_TOKEN or pass api_token."
            )

    def generate(self, prompt: str, aspect_ratio: str = "1:1", mime_type: str = "image/jpeg") -> bytes:
        import replicate

        kwargs: dict[str, Any] = {"api_token": self.api_token}
        if self.base_url:
            kwargs["base_url"] = self.base_url
        client = replicate.Client(**kwargs)
        logger.info("Generating image via Replicate model=%s", self.model)

        output = client.run(
            self.model,
            input={
                "prompt": prompt,
                "aspect_ratio": aspect_ratio,
                "output_format": self._map_format(mime_type),
                "num_outputs": 1,
            },
        )

        if not output:
            raise NoImageError("Replicate returned no images.")
        image_url = output[0] if isinstance(output, list) else output
        image_url = str(image_url)

        with httpx.Client(timeout=120) as http:
            resp = http.get(image_url)
            resp.raise_for_status()

        return resp.content

    @staticmethod
    def _map_format(mime_type: str) -> str:
        subtype = mime_type.rpartition("/")[2].lower()
        return REPLICATE_FORMATS.get(subtype, "jpg")


class NoImageError(RuntimeError):
    """The image collaborator answered without any image payload."""


def _gemini_client(api_key: str, base_url: str | None):
    from google import genai
    from google.genai import types

    if base_url:
        return genai.Client(api_key=api_key, http_options=types.HttpOptions(base_url=base_url))
    return genai.Client(api_key=api_key)


def get_text_provider(name: str, **kwargs) -> TextProvider:
    """Factory function to get a text provider by name."""
    providers: dict[str, type[TextProvider]] = {
        "gemini": GeminiTextProvider,
    }
    if name not in providers:
        raise ValueError(f"Unknown text provider: {name}. Available: {list(providers.keys())}")
    return providers[name](**kwargs)


def get_image_provider(name: str, **kwargs) -> ImageProvider:
    """Factory function to get an image provider by name."""
    providers: dict[str, type[ImageProvider]] = {
        "gemini": GeminiImageProvider,
        "openai": OpenAIImageProvider,
        "replicate": ReplicateImageProvider,
    }
    if name not in providers:
        raise ValueError(f"Unknown image provider: {name}. Available: {list(providers.keys())}")
    return providers[name](**kwargs)
