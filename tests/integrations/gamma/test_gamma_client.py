import json

import httpx
import pytest

from app.core.logic_config import CardSettings
from integrations.gamma.client import CardGenerationError, GammaClient


def _client(handler, api_key="gamma-key"):
    return GammaClient(
        api_base="https://gamma.test/v2/",
        api_key=api_key,
        timeout_s=5,
        card_settings=CardSettings(style="snowy", num_cards=1, image_model="img-1"),
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_generate_returns_card_url():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"gammaUrl": "https://gamma.app/docs/abc"})

    card_url = await _client(handler).generate("Alice", "Soft and warm")

    assert card_url == "https://gamma.app/docs/abc"
    assert seen["url"] == "https://gamma.test/v2/generations"
    assert seen["auth"] == "Bearer gamma-key"
    assert seen["body"]["style"] == "snowy"
    assert seen["body"]["numCards"] == 1
    assert seen["body"]["imageGeneration"]["model"] == "img-1"
    assert "Soft and warm" in seen["body"]["topic"]


@pytest.mark.asyncio
async def test_api_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    with pytest.raises(CardGenerationError, match="500"):
        await _client(handler).generate("Alice", "Soft and warm")


@pytest.mark.asyncio
async def test_missing_card_url_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"id": "gen_1"})

    with pytest.raises(CardGenerationError, match="gammaUrl"):
        await _client(handler).generate("Alice", "Soft and warm")


@pytest.mark.asyncio
async def test_missing_api_key_raises():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    client = _client(handler, api_key="")
    client.api_key = ""

    with pytest.raises(CardGenerationError, match="GAMMA_API_KEY"):
        await client.generate("Alice", "Soft and warm")
    assert calls == []
