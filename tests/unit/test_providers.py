"""Unit tests for the HTTP LLM providers."""
import json

import httpx
import pytest

from contentflow.config import SummarizationSettings
from contentflow.summarization.providers import (
    GenerationParams,
    HTTPProvider,
    HuggingFaceProvider,
    build_provider_chain,
)


def recording_transport(handler):
    requests = []

    def _handle(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    return httpx.MockTransport(_handle), requests


@pytest.mark.asyncio
async def test_http_provider_sends_chat_completion():
    transport, requests = recording_transport(
        lambda request: httpx.Response(
            200, json={"choices": [{"message": {"content": '{"ok": true}'}}]}
        )
    )
    provider = HTTPProvider(
        name="openai",
        base_url="https://llm.example.com/",
        api_key="key-1",
        model="gpt-4o-mini",
        params=GenerationParams(temperature=0.2, max_tokens=500),
        transport=transport,
    )

    result = await provider.generate("Summarize", system="Be brief")

    assert result == '{"ok": true}'
    request = requests[0]
    assert request.url == "https://llm.example.com/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer key-1"
    body = json.loads(request.content)
    assert body["temperature"] == 0.2
    assert body["max_tokens"] == 500
    assert body["messages"][0] == {"role": "system", "content": "Be brief"}
    assert body["messages"][1] == {"role": "user", "content": "Summarize"}


@pytest.mark.asyncio
async def test_http_provider_returns_none_on_error():
    transport, _ = recording_transport(lambda request: httpx.Response(500, json={"error": "down"}))
    provider = HTTPProvider(name="openai", base_url="https://llm.example.com", transport=transport)

    assert await provider.generate("Summarize") is None


@pytest.mark.asyncio
async def test_http_provider_returns_none_on_unexpected_shape():
    transport, _ = recording_transport(lambda request: httpx.Response(200, json={"choices": []}))
    provider = HTTPProvider(name="openai", base_url="https://llm.example.com", transport=transport)

    assert await provider.generate("Summarize") is None


@pytest.mark.asyncio
async def test_huggingface_provider():
    transport, requests = recording_transport(
        lambda request: httpx.Response(200, json={"generated_text": "{}"})
    )
    provider = HuggingFaceProvider(
        base_url="http://tgi:8080",
        params=GenerationParams(temperature=0.0, max_tokens=300),
        transport=transport,
    )

    assert await provider.generate("Summarize", system="Rules") == "{}"
    body = json.loads(requests[0].content)
    assert body["inputs"].startswith("Rules\n\nSummarize")
    assert body["parameters"]["max_new_tokens"] == 300
    assert body["parameters"]["temperature"] > 0


def test_build_provider_chain_skips_unconfigured_huggingface():
    settings = SummarizationSettings(providers=["groq", "huggingface"], api_base="https://api.groq.com/openai")
    chain = build_provider_chain(settings)

    assert [p.name for p in chain.providers] == ["groq"]
    assert chain.providers[0].params.temperature == 0.3


def test_build_provider_chain_with_huggingface():
    settings = SummarizationSettings(
        providers=["huggingface", "openai"], huggingface_api_base="http://tgi:8080"
    )
    chain = build_provider_chain(settings)
    assert [p.name for p in chain.providers] == ["huggingface", "openai"]
