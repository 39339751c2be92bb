from __future__ import annotations

import asyncio

import pytest

from src.common.errors import EmptyGenerationError
from src.features.summarising.summary_generator import SummaryGenerator

from tests.fakes import FakeGeminiClient


def test_embeds_corpus_and_returns_summary() -> None:
    client = FakeGeminiClient(texts=["**Great week!**"])
    generator = SummaryGenerator(client, "text-model", language="Japanese", max_chars=1500)

    summary = asyncio.run(generator.summarize("[2024/01/02 09:00:00] Alice: hi {braces}"))

    assert summary == "**Great week!**"
    model, prompt = client.text_calls[0]
    assert model == "text-model"
    assert "Alice: hi {braces}" in prompt
    assert "1500 characters" in prompt
    assert "in Japanese" in prompt


def test_empty_response_is_fatal_without_retry_by_default() -> None:
    client = FakeGeminiClient(texts=[None])

    with pytest.raises(EmptyGenerationError):
        asyncio.run(SummaryGenerator(client, "text-model").summarize("corpus"))

    assert len(client.text_calls) == 1


def test_api_error_propagates_unchanged() -> None:
    client = FakeGeminiClient(texts=[ConnectionError("network down")])

    with pytest.raises(ConnectionError):
        asyncio.run(SummaryGenerator(client, "text-model").summarize("corpus"))


def test_configured_retries_recover_from_empty_response() -> None:
    client = FakeGeminiClient(texts=[None, "second time lucky"])
    generator = SummaryGenerator(client, "text-model", max_attempts=2, retry_delay=0)

    assert asyncio.run(generator.summarize("corpus")) == "second time lucky"
    assert len(client.text_calls) == 2
