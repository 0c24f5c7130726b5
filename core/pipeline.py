"""Clue generation pipeline: validate, prompt, parse, illustrate, respond."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping

from core.config import ProxyConfig, parse_bool
from core.errors import (
    ImageFormatError,
    MissingFieldsError,
    UpstreamCallError,
    UpstreamFormatError,
    ValidationError,
)
from core.imaging import placeholder_url, to_data_url
from core.models import (
    ClueRequest,
    ClueResponse,
    ClueResult,
    Err,
    ImageFailurePolicy,
    ImagePromptSource,
    ImageProviderName,
    Ok,
    ProxyResponse,
    Result,
)
from core.prompt_builder import (
    build_clue_prompt,
    build_clue_schema,
    build_image_prompt,
    required_fields,
)
from core.providers import ImageProvider, TextProvider, get_image_provider, get_text_provider

logger = logging.getLogger(__name__)


def parse_request(query: Mapping[str, list[str] | str]) -> Result[ClueRequest]:
    """Turn parsed query parameters into a ``ClueRequest``.

    Accepts both ``parse_qs``-style lists and plain strings; the first value
    of a repeated parameter wins.
    """
    word = _first(query.get("word"))
    if word is None or not word.strip():
        return Err(ValidationError())

    include_image = None
    image_flag = _first(query.get("image"))
    if image_flag is not None:
        include_image = parse_bool(image_flag, True)
        if include_image is None:
            logger.warning("Ignoring unrecognised image flag %r", image_flag)

    return Ok(ClueRequest(word=word, include_image=include_image))


def parse_clue(raw: str, fields: tuple[str, ...]) -> Result[ClueResult]:
    """Parse the text collaborator's reply into a ``ClueResult``."""
    try:
        data = json.loads(raw.strip())
    except (json.JSONDecodeError, TypeError) as exc:
        return Err(UpstreamFormatError(f"Invalid JSON from text model: {exc}", raw=raw))

    if not isinstance(data, dict):
        return Err(UpstreamFormatError("Text model reply is not a JSON object.", raw=raw))

    missing = [name for name in fields if not isinstance(data.get(name), str) or not data[name].strip()]
    if missing:
        return Err(MissingFieldsError(missing, raw=raw))

    image_prompt = data.get("imagePrompt")
    return Ok(ClueResult(
        definition=data["definition"].strip(),
        sentence_clue=data["sentenceClue"].strip(),
        image_prompt=image_prompt.strip() if isinstance(image_prompt, str) else None,
    ))


class ClueProxy:
    """Handles one ``/generate`` request against the configured collaborators.

    Holds no per-request state; the same instance serves every invocation in
    the process.
    """

    def __init__(
        self,
        config: ProxyConfig,
        text_provider: TextProvider,
        image_provider: ImageProvider | None = None,
    ) -> None:
        self.config = config
        self.text_provider = text_provider
        self.image_provider = image_provider

    @classmethod
    def from_config(cls, config: ProxyConfig) -> ClueProxy:
        text_provider = get_text_provider(
            "gemini",
            api_key=config.gemini_api_key,
            model=config.text_model,
            base_url=config.text_base_url,
            temperature=config.text_temperature,
        )

        image_provider = None
        if config.image_api_key:
            key_arg = "api_token" if config.image_provider is ImageProviderName.REPLICATE else "api_key"
            image_provider = get_image_provider(
                config.image_provider.value,
                model=config.image_model,
                base_url=config.image_base_url,
                **{key_arg: config.image_api_key},
            )
        return cls(config, text_provider, image_provider)

    def handle(self, query: Mapping[str, list[str] | str]) -> ProxyResponse:
        """Validate, generate and respond. Never raises for per-request failures."""
        request = parse_request(query)
        if isinstance(request, Err):
            logger.info("Rejected request: %s", request.error.message)
            return ProxyResponse.from_error(request.error)

        result = self.generate(request.value)
        if isinstance(result, Err):
            return ProxyResponse.from_error(result.error)
        return ProxyResponse(status_code=200, body=result.value.to_body())

    def generate(self, request: ClueRequest) -> Result[ClueResponse]:
        word = request.original_word
        include_image = self._wants_image(request)
        use_clue_prompt = include_image and self.config.image_prompt_source is ImagePromptSource.CLUE
        logger.info("Generating clue for word=%s (image=%s)", word, include_image)

        try:
            clue = self._fetch_clue(word, use_clue_prompt)
            if isinstance(clue, Err):
                return clue

            image_url = None
            if include_image:
                image = self._illustrate(word, clue.value)
                if isinstance(image, Err):
                    return image
                image_url = image.value
        except Exception as exc:
            logger.exception("Unexpected failure generating word=%s", word)
            return Err(UpstreamCallError(str(exc)))

        logger.info("Generated clue for word=%s", word)
        return Ok(ClueResponse(
            original_word=word,
            definition=clue.value.definition,
            sentence_clue=clue.value.sentence_clue,
            image_url=image_url,
        ))

    def _wants_image(self, request: ClueRequest) -> bool:
        wanted = self.config.generate_images if request.include_image is None else request.include_image
        if wanted and self.image_provider is None:
            logger.warning("Illustration requested but no image provider is configured")
            return False
        return wanted

    def _fetch_clue(self, word: str, with_image_prompt: bool) -> Result[ClueResult]:
        prompt = build_clue_prompt(word, with_image_prompt=with_image_prompt)
        schema = build_clue_schema(with_image_prompt=with_image_prompt)
        try:
            raw = self.text_provider.generate_json(prompt, schema=schema)
        except Exception as exc:
            logger.error("Text generation failed for word=%s: %s", word, exc)
            return Err(UpstreamCallError(str(exc)))

        parsed = parse_clue(raw, required_fields(with_image_prompt))
        if isinstance(parsed, Err):
            logger.error("Unparseable clue for word=%s: %s", word, parsed.error.details)
        return parsed

    def _illustrate(self, word: str, clue: ClueResult) -> Result[str]:
        image = self._fetch_image(word, clue)
        if isinstance(image, Ok):
            return image

        if self.config.image_failure_policy is ImageFailurePolicy.FAIL:
            return image

        logger.warning(
            "Image generation failed for word=%s, using placeholder: %s",
            word, image.error.details,
        )
        return Ok(placeholder_url(
            self.config.placeholder_image_url, word, aspect_ratio=self.config.image_aspect_ratio,
        ))

    def _fetch_image(self, word: str, clue: ClueResult) -> Result[str]:
        prompt = build_image_prompt(word, clue, source=self.config.image_prompt_source)
        mime_subtype = self.config.image_mime_type.rpartition("/")[2] or "jpeg"
        try:
            image_bytes = self.image_provider.generate(
                prompt,
                aspect_ratio=self.config.image_aspect_ratio,
                mime_type=self.config.image_mime_type,
            )
        except Exception as exc:
            return Err(UpstreamCallError(str(exc)))

        try:
            return Ok(to_data_url(image_bytes, fallback_subtype=mime_subtype))
        except ValueError as exc:
            return Err(ImageFormatError(str(exc)))


def _first(value: list[str] | str | None) -> str | None:
    if isinstance(value, list):
        return value[0] if value else None
    return value

