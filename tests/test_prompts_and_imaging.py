import base64

import pytest

from conftest import make_image_bytes

from core.imaging import detect_format, placeholder_size, placeholder_url, to_data_url
from core.models import ClueResult, ImagePromptSource
from core.prompt_builder import (
    build_clue_prompt,
    build_clue_schema,
    build_image_prompt,
    required_fields,
)


def test_clue_prompt_asks_for_json_keys():
    prompt = build_clue_prompt("LIGHT")
    assert '"LIGHT"' in prompt
    assert '"definition"' in prompt and '"sentenceClue"' in prompt
    assert "imagePrompt" not in prompt


def test_clue_prompt_with_image_prompt():
    prompt = build_clue_prompt("LIGHT", with_image_prompt=True)
    assert '"imagePrompt"' in prompt
    assert required_fields(True) == ("definition", "sentenceClue", "imagePrompt")


def test_clue_schema_requires_string_fields():
    schema = build_clue_schema()
    assert schema["required"] == ["definition", "sentenceClue"]
    assert schema["properties"]["definition"]["type"] == "string"


def test_image_prompt_sources():
    clue = ClueResult("def", "clue", image_prompt="  A lamp glowing at night ")
    assert build_image_prompt("LIGHT", clue) == (
        "A simple, colorful, educational illustration of the word: LIGHT"
    )
    assert build_image_prompt("LIGHT", clue, source=ImagePromptSource.CLUE) == "A lamp glowing at night"
    empty = ClueResult("def", "clue", image_prompt="")
    assert build_image_prompt("LIGHT", empty, source=ImagePromptSource.CLUE).endswith("word: LIGHT")


@pytest.mark.parametrize("fmt,subtype", [("JPEG", "jpeg"), ("PNG", "png")])
def test_data_url_uses_detected_format(fmt, subtype):
    payload = make_image_bytes(fmt)
    url = to_data_url(payload)
    assert url.startswith(f"data:image/{subtype};base64,")
    assert base64.b64decode(url.split(",", 1)[1]) == payload


def test_unrecognised_payload_uses_fallback():
    assert to_data_url(b"not-an-image", fallback_subtype="jpeg").startswith("data:image/jpeg;base64,")
    with pytest.raises(ValueError):
        to_data_url(b"not-an-image")


def test_empty_payload_is_rejected():
    with pytest.raises(ValueError):
        detect_format(b"")
    with pytest.raises(ValueError):
        to_data_url(b"", fallback_subtype="jpeg")


def test_placeholder_url_quotes_word():
    assert placeholder_url("https://placehold.co/512x512/png?text={word}", "ICE CREAM") == (
        "https://placehold.co/512x512/png?text=ICE%20CREAM"
    )
    assert placeholder_url("https://cdn.example.com/blank.png", "CAT") == "https://cdn.example.com/blank.png"


@pytest.mark.parametrize("aspect_ratio,size", [
    ("1:1", "512x512"),
    ("16:9", "910x512"),
    ("9:16", "512x910"),
    ("4:3", "683x512"),
    ("bogus", "512x512"),
    ("1:0", "512x512"),
])
def test_placeholder_size_follows_aspect_ratio(aspect_ratio, size):
    assert placeholder_size(aspect_ratio) == size


def test_placeholder_url_fills_size():
    assert placeholder_url("https://placehold.co/{size}/png?text={word}", "CAT", aspect_ratio="16:9") == (
        "https://placehold.co/910x512/png?text=CAT"
    )
