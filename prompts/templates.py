"""Prompt templates for word clue and illustration generation."""

from __future__ import annotations

from string import Template
from typing import Any

# --- Clue prompts ---

CLUE_PROMPT = Template(
    'For the word "$word", provide a concise definition and a sample sentence clue. '
    "Format the response as a single, valid JSON object with the keys "
    '"definition" and "sentenceClue". '
    "Do not include any text, headers, or markdown outside of the JSON object."
)

CLUE_WITH_IMAGE_PROMPT = Template(
    'For the word "$word", provide a concise definition, a sample sentence clue, '
    "and a short prompt for a simple illustration that depicts the word without "
    "showing it as text. "
    "Format the response as a single, valid JSON object with the keys "
    '"definition", "sentenceClue" and "imagePrompt". '
    "Do not include any text, headers, or markdown outside of the JSON object."
)

# --- Illustration prompt ---

ILLUSTRATION_PROMPT = Template(
    "A simple, colorful, educational illustration of the word: $word"
)

# --- Structured output schemas ---

CLUE_FIELDS: tuple[str, ...] = ("definition", "sentenceClue")
CLUE_WITH_IMAGE_FIELDS: tuple[str, ...] = CLUE_FIELDS + ("imagePrompt",)

FIELD_DESCRIPTIONS: dict[str, str] = {
    "definition": "A concise, easy-to-understand definition of the word.",
    "sentenceClue": "A simple sentence using the word as a clue.",
    "imagePrompt": "A short description of an illustration of the word.",
}


def clue_schema(fields: tuple[str, ...]) -> dict[str, Any]:
    """JSON schema requiring every field in ``fields`` as a string."""
    return {
        "type": "object",
        "properties": {
            name: {"type": "string", "description": FIELD_DESCRIPTIONS[name]}
            for name in fields
        },
        "required": list(fields),
    }
