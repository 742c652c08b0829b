"""Tests for the Deepgram provider client and its response schema."""

import httpx
import pytest

from transcribe_server.config import ServerConfig
from transcribe_server.core.errors import ProviderError
from transcribe_server.core.provider import DeepgramProvider, create_provider

AUDIO = b"fake-audio"


def _listen_payload(transcript: str = "hello world") -> dict:
    return {
        "metadata": {"request_id": "abc", "channels": 1},
        "results": {
            "channels": [
                {
                    "alternatives": [
                        {"transcript": transcript, "confidence": 0.98, "words": []},
                        {"transcript": "yellow world", "confidence": 0.41},
                    ]
                }
            ]
        },
    }


def _provider(handler, api_key="test-key") -> DeepgramProvider:
    return DeepgramProvider(
        api_key=api_key,
        base_url="https://api.deepgram.test",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_transcribe_posts_audio_and_returns_first_alternative() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_listen_payload())

    provider = _provider(handler)
    try:
        text = await provider.transcribe(AUDIO)
    finally:
        await provider.aclose()

    assert text == "hello world"
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/v1/listen"
    assert request.headers["Authorization"] == "Token test-key"
    assert request.headers["Content-Type"] == "audio/webm"
    assert request.content == AUDIO


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"results": {}},
        {"results": {"channels": []}},
        {"results": {"channels": [{}]}},
        {"results": {"channels": [{"alternatives": []}]}},
        {"results": {"channels": [{"alternatives": [{"confidence": 0.5}]}]}},
    ],
)
async def test_unexpected_shape_raises_provider_error(payload: dict) -> None:
    provider = _provider(lambda request: httpx.Response(200, json=payload))

    with pytest.raises(ProviderError):
        await provider.transcribe(AUDIO)
    await provider.aclose()


@pytest.mark.asyncio
async def test_non_json_body_raises_provider_error() -> None:
    provider = _provider(lambda request: httpx.Response(200, text="<html>oops</html>"))

    with pytest.raises(ProviderError):
        await provider.transcribe(AUDIO)
    await provider.aclose()


@pytest.mark.asyncio
async def test_upstream_error_status_is_kept() -> None:
    provider = _provider(
        lambda request: httpx.Response(401, json={"err_msg": "Invalid credentials."})
    )

    with pytest.raises(ProviderError) as exc:
        await provider.transcribe(AUDIO)
    await provider.aclose()

    assert exc.value.status_code == 401


@pytest.mark.asyncio
async def test_transport_error_raises_provider_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    provider = _provider(handler)

    with pytest.raises(ProviderError, match="Cannot reach"):
        await provider.transcribe(AUDIO)
    await provider.aclose()


@pytest.mark.asyncio
async def test_missing_api_key_fails_without_calling_upstream() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=_listen_payload())

    provider = _provider(handler, api_key=None)

    assert not provider.configured
    with pytest.raises(ProviderError, match="not configured"):
        await provider.transcribe(AUDIO)
    await provider.aclose()
    assert calls == []


def test_create_provider_reads_config(server_config: ServerConfig) -> None:
    provider = create_provider(server_config)

    assert isinstance(provider, DeepgramProvider)
    assert provider.configured


def test_create_provider_rejects_unknown_name(server_config: ServerConfig) -> None:
    server_config.config["provider"]["name"] = "whisper"

    with pytest.raises(ValueError, match="Unsupported speech provider"):
        create_provider(server_config)
