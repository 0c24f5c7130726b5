"""Prompt builder that turns a normalized word into collaborator prompts."""

from __future__ import annotations

import logging
from typing import Any

from core.models import ClueResult, ImagePromptSource
from prompts.templates import (
    CLUE_FIELDS,
    CLUE_PROMPT,
    CLUE_WITH_IMAGE_FIELDS,
    CLUE_WITH_IMAGE_PROMPT,
    ILLUSTRATION_PROMPT,
    clue_schema,
)

logger = logging.getLogger(__name__)


def required_fields(with_image_prompt: bool = False) -> tuple[str, ...]:
    return CLUE_WITH_IMAGE_FIELDS if with_image_prompt else CLUE_FIELDS


def build_clue_prompt(word: str, with_image_prompt: bool = False) -> str:
    """Build the clue prompt for an already uppercased word."""
    template = CLUE_WITH_IMAGE_PROMPT if with_image_prompt else CLUE_PROMPT
    prompt = template.safe_substitute(word=word)
    logger.debug("Built clue prompt for word=%s: %s", word, prompt)
    return prompt


def build_clue_schema(with_image_prompt: bool = False) -> dict[str, Any]:
    return clue_schema(required_fields(with_image_prompt))


def build_image_prompt(
    word: str,
    clue: ClueResult | None = None,
    source: ImagePromptSource = ImagePromptSource.WORD,
) -> str:
    """Build the illustration prompt.

    With ``source=CLUE`` the model-written ``imagePrompt`` is used; when it is
    empty the fixed word template is used instead.
    """
    if source is ImagePromptSource.CLUE and clue is not None and clue.image_prompt:
        return clue.image_prompt.strip()
    return ILLUSTRATION_PROMPT.safe_substitute(word=word)
