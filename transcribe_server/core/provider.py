"""
Speech-to-text provider clients.

SpeechProvider is the abstract interface the gateway talks to.
DeepgramProvider posts raw audio to Deepgram's pre-recorded ``/v1/listen``
endpoint and validates the JSON answer against a strict schema.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

from transcribe_server.config import (
    DEFAULT_CONTENT_TYPE,
    DEFAULT_PROVIDER_BASE_URL,
    DEFAULT_PROVIDER_TIMEOUT,
    ServerConfig,
    resolve_provider_api_key,
)
from transcribe_server.core.errors import ProviderError

logger = logging.getLogger(__name__)

LISTEN_PATH = "/v1/listen"


# --- Response schema ---


class ProviderAlternative(BaseModel):
    transcript: str


class ProviderChannel(BaseModel):
    alternatives: List[ProviderAlternative] = Field(min_length=1)


class ProviderResults(BaseModel):
    channels: List[ProviderChannel] = Field(min_length=1)


class ListenResponse(BaseModel):
    """Subset of the Deepgram listen response the server relies on."""

    results: ProviderResults

    @property
    def transcript(self) -> str:
        """First alternative of the first channel."""
        return self.results.channels[0].alternatives[0].transcript


# --- Providers ---


class SpeechProvider(ABC):
    @abstractmethod
    async def transcribe(self, audio: bytes) -> str:
        """Convert raw audio bytes to text. Raises ProviderError on failure."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""


class DeepgramProvider(SpeechProvider):

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_PROVIDER_BASE_URL,
        content_type: str = DEFAULT_CONTENT_TYPE,
        timeout: float = DEFAULT_PROVIDER_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._content_type = content_type
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def transcribe(self, audio: bytes) -> str:
        if not self._api_key:
            raise ProviderError("Speech provider API key is not configured")

        headers = {
            "Authorization": f"Token {self._api_key}",
            "Content-Type": self._content_type,
        }

        try:
            response = await self._client.post(LISTEN_PATH, content=audio, headers=headers)
        except httpx.TimeoutException as e:
            raise ProviderError("Speech provider request timed out") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"Cannot reach speech provider: {e}") from e

        if not response.is_success:
            logger.error(
                f"Provider API error: {response.status_code} - {response.text[:200]}"
            )
            raise ProviderError(
                f"Speech provider returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = ListenResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise ProviderError(
                f"Unexpected speech provider response: {e.error_count()} schema error(s)",
                status_code=response.status_code,
            ) from e

        return payload.transcript

    async def aclose(self) -> None:
        await self._client.aclose()


def create_provider(config: ServerConfig) -> SpeechProvider:
    """Build the provider named in ``provider.name``."""
    name = str(config.get("provider", "name", default="deepgram")).lower()
    if name != "deepgram":
        raise ValueError(f"Unsupported speech provider: {name}")

    return DeepgramProvider(
        api_key=resolve_provider_api_key(config),
        base_url=config.get("provider", "base_url", default=DEFAULT_PROVIDER_BASE_URL),
        content_type=config.get("provider", "content_type", default=DEFAULT_CONTENT_TYPE),
        timeout=float(
            config.get("provider", "timeout_seconds", default=DEFAULT_PROVIDER_TIMEOUT)
        ),
    )
