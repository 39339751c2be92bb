from __future__ import annotations

import asyncio
import base64

import pytest

from src.common.errors import EmptyGenerationError, ImageGenerationExhaustedError
from src.features.summarising.assets import AssetStore
from src.features.summarising.image_pipeline import ImagePipeline

from tests.fakes import FakeGeminiClient, image_response, text_only_response

SUMMARY = "alice hosted a movie night and everyone joined."


def _pipeline(client: FakeGeminiClient, store: AssetStore = None, max_attempts: int = 3) -> ImagePipeline:
    return ImagePipeline(
        client,
        text_model="text-model",
        image_model="image-model",
        asset_store=store or AssetStore(None, None),
        max_attempts=max_attempts,
        retry_delay=0,
    )


def test_generates_image_without_reference_assets() -> None:
    client = FakeGeminiClient(texts=["a cosy movie night scene"], image_responses=[image_response(b"IMG")])

    image = asyncio.run(_pipeline(client).generate(SUMMARY))

    assert image == b"IMG"
    assert len(client.text_calls) == 1
    model, prompt_request = client.text_calls[0]
    assert model == "text-model"
    assert SUMMARY in prompt_request
    assert "reference image" not in prompt_request

    model, contents, config = client.content_calls[0]
    assert model == "image-model"
    assert [p.text for p in contents][1] == "a cosy movie night scene"
    assert len(contents) == 2
    assert set(config.response_modalities) == {"TEXT", "IMAGE"}
    assert config.temperature == pytest.approx(0.4)


def test_style_comes_before_characters_in_request(tmp_path) -> None:
    style = tmp_path / "style.png"
    style.write_bytes(b"STYLE")
    characters = tmp_path / "characters"
    characters.mkdir()
    (characters / "alice.jpg").write_bytes(b"ALICE")
    (characters / "zed.png").write_bytes(b"ZED")

    client = FakeGeminiClient(texts=["prompt"], image_responses=[image_response()])
    asyncio.run(_pipeline(client, AssetStore(style, characters)).generate(SUMMARY))

    prompt_request = client.text_calls[0][1]
    assert "art style of reference image 1" in prompt_request
    assert "alice corresponds to reference image 2" in prompt_request
    assert "zed" not in prompt_request

    contents = client.content_calls[0][1]
    assert len(contents) == 4
    assert contents[2].inline_data.data == b"STYLE"
    assert contents[2].inline_data.mime_type == "image/png"
    assert contents[3].inline_data.data == b"ALICE"
    assert contents[3].inline_data.mime_type == "image/jpeg"


def test_character_numbering_starts_at_one_without_style(tmp_path) -> None:
    (tmp_path / "alice.png").write_bytes(b"ALICE")
    client = FakeGeminiClient(texts=["prompt"], image_responses=[image_response()])

    asyncio.run(_pipeline(client, AssetStore(None, tmp_path)).generate(SUMMARY))

    assert "alice corresponds to reference image 1" in client.text_calls[0][1]


def test_always_missing_image_exhausts_after_three_attempts() -> None:
    client = FakeGeminiClient(texts=["prompt"], image_responses=[text_only_response()])

    with pytest.raises(ImageGenerationExhaustedError) as excinfo:
        asyncio.run(_pipeline(client).generate(SUMMARY))

    assert excinfo.value.attempts == 3
    assert isinstance(excinfo.value.last_error, EmptyGenerationError)
    assert len(client.content_calls) == 3
    # Each retry derives a fresh prompt
    assert len(client.text_calls) == 3


def test_recovers_after_api_error_and_empty_prompt() -> None:
    client = FakeGeminiClient(
        texts=[None, "second prompt", "third prompt"],
        image_responses=[RuntimeError("503 overloaded"), image_response(b"OK")],
    )

    image = asyncio.run(_pipeline(client).generate(SUMMARY))

    assert image == b"OK"
    assert len(client.text_calls) == 3
    assert [c[1][1].text for c in client.content_calls] == ["second prompt", "third prompt"]


def test_non_stop_finish_reason_still_extracts_image() -> None:
    client = FakeGeminiClient(texts=["prompt"], image_responses=[image_response(b"IMG", finish_reason="MAX_TOKENS")])

    assert asyncio.run(_pipeline(client).generate(SUMMARY)) == b"IMG"


def test_base64_string_payload_is_decoded() -> None:
    encoded = base64.b64encode(b"raw-image").decode()
    client = FakeGeminiClient(texts=["prompt"], image_responses=[image_response(encoded)])

    assert asyncio.run(_pipeline(client).generate(SUMMARY)) == b"raw-image"


def test_response_without_candidates_counts_as_failed_attempt() -> None:
    from types import SimpleNamespace

    client = FakeGeminiClient(texts=["prompt"], image_responses=[SimpleNamespace(candidates=[])])

    with pytest.raises(ImageGenerationExhaustedError):
        asyncio.run(_pipeline(client, max_attempts=2).generate(SUMMARY))

    assert len(client.content_calls) == 2
