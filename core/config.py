"""Process-wide configuration, read once from the environment."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from core.errors import ConfigurationError
from core.models import ImageFailurePolicy, ImagePromptSource, ImageProviderName
from core.providers import resolve_api_key

logger = logging.getLogger(__name__)

DEFAULT_TEXT_MODEL = "gemini-2.5-flash"
DEFAULT_PLACEHOLDER_URL = "https://placehold.co/{size}/png?text={word}"

DEFAULT_IMAGE_MODELS: dict[str, str] = {
    "gemini": "imagen-3.0-generate-002",
    "openai": "dall-e-3",
    "replicate": "black-forest-labs/flux-schnell",
}

# Environment variables holding each image provider's credential, in priority order.
IMAGE_KEY_ENV_VARS: dict[str, tuple[str, ...]] = {
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "openai": ("OPENAI_API_KEY",),
    "replicate": ("REPLICATE_API_TOKEN",),
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class ProxyConfig:
    gemini_api_key: str
    text_model: str = DEFAULT_TEXT_MODEL
    text_base_url: str | None = None
    text_temperature: float = 0.7
    generate_images: bool = True
    image_provider: ImageProviderName = ImageProviderName.GEMINI
    image_api_key: str = ""
    image_model: str = DEFAULT_IMAGE_MODELS["gemini"]
    image_base_url: str | None = None
    image_prompt_source: ImagePromptSource = ImagePromptSource.WORD
    image_failure_policy: ImageFailurePolicy = ImageFailurePolicy.PLACEHOLDER
    image_mime_type: str = "image/jpeg"
    image_aspect_ratio: str = "1:1"
    placeholder_image_url: str = DEFAULT_PLACEHOLDER_URL
    log_level: str = "INFO"

    def __repr__(self) -> str:
        return (
            f"ProxyConfig(text_model={self.text_model!r}, "
            f"generate_images={self.generate_images!r}, "
            f"image_provider={self.image_provider.value!r}, "
            f"image_model={self.image_model!r})"
        )


def parse_bool(value: str | None, default: bool) -> bool | None:
    """Parse a boolean flag; ``None`` means the value was not recognised."""
    if value is None or not value.strip():
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    return None


def _choice(env: Mapping[str, str], name: str, enum_cls, default):
    raw = (env.get(name) or "").strip().lower()
    if not raw:
        return default
    try:
        return enum_cls(raw)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(f"{name} must be one of: {allowed} (got {raw!r})") from None


def _optional(env: Mapping[str, str], name: str) -> str | None:
    value = (env.get(name) or "").strip()
    return value or None


def load_config(environ: Mapping[str, str] | None = None) -> ProxyConfig:
    """Build a ``ProxyConfig`` from environment variables.

    Raises ``ConfigurationError`` when a required credential is missing or a
    setting has an unsupported value, so the entrypoint fails at import time
    instead of serving broken requests.
    """
    env = os.environ if environ is None else environ

    gemini_key = resolve_api_key(None, "GEMINI_API_KEY", "GOOGLE_API_KEY", environ=env)
    if not gemini_key:
        raise ConfigurationError(
            "Gemini API key is required. Set GEMINI_API_KEY or GOOGLE_API_KEY."
        )

    generate_images = parse_bool(env.get("GENERATE_IMAGES"), True)
    if generate_images is None:
        raise ConfigurationError(f"GENERATE_IMAGES is not a boolean: {env.get('GENERATE_IMAGES')!r}")

    provider = _choice(env, "IMAGE_PROVIDER", ImageProviderName, ImageProviderName.GEMINI)
    image_key = resolve_api_key(None, *IMAGE_KEY_ENV_VARS[provider.value], environ=env)
    if generate_images and not image_key:
        names = " or ".join(IMAGE_KEY_ENV_VARS[provider.value])
        raise ConfigurationError(f"Image provider {provider.value!r} requires {names}.")

    temperature_raw = _optional(env, "GEMINI_TEMPERATURE")
    try:
        temperature = float(temperature_raw) if temperature_raw else 0.7
    except ValueError:
        raise ConfigurationError(f"GEMINI_TEMPERATURE is not a number: {temperature_raw!r}") from None

    placeholder = _optional(env, "PLACEHOLDER_IMAGE_URL") or DEFAULT_PLACEHOLDER_URL
    if "{word}" not in placeholder:
        logger.warning("PLACEHOLDER_IMAGE_URL has no {word} field; every placeholder will be identical")

    config = ProxyConfig(
        gemini_api_key=gemini_key,
        text_model=_optional(env, "GEMINI_TEXT_MODEL") or DEFAULT_TEXT_MODEL,
        text_base_url=_optional(env, "GEMINI_BASE_URL"),
        text_temperature=temperature,
        generate_images=generate_images,
        image_provider=provider,
        image_api_key=image_key,
        image_model=_optional(env, "IMAGE_MODEL") or DEFAULT_IMAGE_MODELS[provider.value],
        image_base_url=_optional(env, "IMAGE_BASE_URL"),
        image_prompt_source=_choice(env, "IMAGE_PROMPT_SOURCE", ImagePromptSource, ImagePromptSource.WORD),
        image_failure_policy=_choice(
            env, "IMAGE_FAILURE_POLICY", ImageFailurePolicy, ImageFailurePolicy.PLACEHOLDER
        ),
        image_mime_type=_optional(env, "IMAGE_MIME_TYPE") or "image/jpeg",
        image_aspect_ratio=_optional(env, "IMAGE_ASPECT_RATIO") or "1:1",
        placeholder_image_url=placeholder,
        log_level=(_optional(env, "LOG_LEVEL") or "INFO").upper(),
    )
    logger.debug("Loaded %r", config)
    return config

