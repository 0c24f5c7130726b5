from pathlib import Path
import io
import json
import sys

import pytest
from PIL import Image

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from core.config import ProxyConfig
from core.providers import ImageProvider, TextProvider


class StubTextProvider(TextProvider):
    provider_name = "stub"

    def __init__(self, reply: str = "", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[dict] = []

    def generate_json(self, prompt, schema=None):
        self.calls.append({"prompt": prompt, "schema": schema})
        if self.error is not None:
            raise self.error
        return self.reply


class StubImageProvider(ImageProvider):
    provider_name = "stub"

    def __init__(self, payload: bytes = b"", error: Exception | None = None) -> None:
        self.payload = payload
        self.error = error
        self.calls: list[dict] = []

    def generate(self, prompt, aspect_ratio="1:1", mime_type="image/jpeg"):
        self.calls.append({"prompt": prompt, "aspect_ratio": aspect_ratio, "mime_type": mime_type})
        if self.error is not None:
            raise self.error
        return self.payload


def make_image_bytes(fmt: str = "JPEG") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color=(200, 40, 40)).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def clue_reply():
    return json.dumps({
        "definition": "A small domesticated feline.",
        "sentenceClue": "The ___ curled up on the warm windowsill.",
    })


@pytest.fixture
def jpeg_bytes():
    return make_image_bytes("JPEG")


@pytest.fixture
def config():
    return ProxyConfig(gemini_api_key="test-key")


@pytest.fixture
def text_stub(clue_reply):
    return StubTextProvider(reply=clue_reply)


@pytest.fixture
def image_stub(jpeg_bytes):
    return StubImageProvider(payload=jpeg_bytes)
