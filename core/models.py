"""Data models for the word clue proxy."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar, Union

from core.errors import ProxyError

T = TypeVar("T")


class ImageProviderName(str, Enum):
    GEMINI = "gemini"
    OPENAI = "openai"
    REPLICATE = "replicate"


class ImagePromptSource(str, Enum):
    WORD = "word"
    CLUE = "clue"


class ImageFailurePolicy(str, Enum):
    PLACEHOLDER = "placeholder"
    FAIL = "fail"


DEFAULT_HEADERS: dict[str, str] = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: ProxyError


Result = Union[Ok[T], Err]


@dataclass(frozen=True)
class ClueRequest:
    word: str
    include_image: bool | None = None

    @property
    def original_word(self) -> str:
        return self.word.strip().upper()


@dataclass(frozen=True)
class ClueResult:
    definition: str
    sentence_clue: str
    image_prompt: str | None = None


@dataclass(frozen=True)
class ClueResponse:
    original_word: str
    definition: str
    sentence_clue: str
    image_url: str | None = None

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "originalWord": self.original_word,
            "definition": self.definition,
            "sentenceClue": self.sentence_clue,
        }
        if self.image_url is not None:
            body["imageUrl"] = self.image_url
        return body


@dataclass(frozen=True)
class ProxyResponse:
    status_code: int
    body: dict[str, Any] | None = None
    headers: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HEADERS))

    @classmethod
    def from_error(cls, error: ProxyError) -> ProxyResponse:
        return cls(status_code=error.status_code, body=error.to_body())

    def encoded_body(self) -> bytes:
        if self.body is None:
            return b""
        return json.dumps(self.body).encode("utf-8")

    def to_dict(self) -> dict[str, Any]:
        """Render in the serverless ``{statusCode, headers, body}`` shape."""
        return {
            "statusCode": self.status_code,
            "headers": dict(self.headers),
            "body": self.encoded_body().decode("utf-8"),
        }
