"""
Base classes for AI providers.

Defines the abstract interface that all vendor providers must implement,
plus the provider-level error taxonomy.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from meal_analyzer.core.cancellation import CancellationToken
from meal_analyzer.core.config import ProviderConfig
from meal_analyzer.models.nutrition import Capability, CapabilitySet, MediaKind

logger = logging.getLogger(__name__)


class AIProviderError(Exception):
    """Error raised by a provider while talking to its vendor."""

    def __init__(
        self,
        message: str,
        error_code: str = "PROVIDER_ERROR",
        provider: str = "unknown",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.provider = provider
        self.details = details or {}


class UnsupportedCapabilityError(AIProviderError):
    """The provider was asked for an input modality it does not accept."""

    def __init__(self, provider: str, capability: Capability):
        super().__init__(
            message=f"{provider} does not support {capability.value} analysis",
            error_code="UNSUPPORTED_CAPABILITY",
            provider=provider,
            details={"capability": capability.value},
        )


class InvalidMediaKindError(AIProviderError):
    """Media of an unknown kind was passed to a provider."""

    def __init__(self, provider: str, media_kind: Any):
        super().__init__(
            message=f"Unsupported media kind: {media_kind}",
            error_code="INVALID_MEDIA_KIND",
            provider=provider,
            details={"media_kind": str(media_kind)},
        )


class MissingMediaError(AIProviderError):
    """An image or audio call arrived without a media payload."""

    def __init__(self, provider: str, media_kind: MediaKind):
        super().__init__(
            message=f"No {media_kind.value} data was provided to {provider}",
            error_code="MISSING_MEDIA",
            provider=provider,
            details={"media_kind": media_kind.value},
        )


class TransportError(AIProviderError):
    """Network or HTTP failure talking to a vendor."""

    def __init__(self, message: str, provider: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code="TRANSPORT_ERROR",
            provider=provider,
            details=details,
        )


class InvalidResponseShapeError(AIProviderError):
    """The vendor answered with success but the body has no extractable text."""

    def __init__(self, message: str, provider: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code="INVALID_RESPONSE",
            provider=provider,
            details=details,
        )


class AIProvider(ABC):
    """
    Abstract base class for AI providers.

    All vendors (Gemini, DeepSeek, OpenAI, ...) must implement this interface.
    The public analyze_* methods enforce the capability set before any
    network call is made; vendors implement ``_generate`` only.
    """

    #: Modalities the vendor protocol can carry at all
    native_capabilities = CapabilitySet()

    #: Human-readable vendor name
    display_name = "unknown"

    def __init__(self, config: ProviderConfig, client: httpx.AsyncClient | None = None):
        """
        Initialize provider.

        Args:
            config: Provider connection parameters
            client: Optional preconfigured HTTP client (mainly for tests)
        """
        self.config = config
        self.api_key = config.api_key
        self.timeout = config.timeout
        self._client = client

        if config.capabilities is not None:
            override = CapabilitySet(**config.capabilities.model_dump())
            self._capabilities = self.native_capabilities.intersect(override)
        else:
            self._capabilities = self.native_capabilities

    @property
    def provider_name(self) -> str:
        return self.display_name

    def get_capabilities(self) -> CapabilitySet:
        return self._capabilities

    def supports(self, capability: Capability) -> bool:
        return self._capabilities.supports(capability)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _require(self, capability: Capability) -> None:
        if not self.supports(capability):
            raise UnsupportedCapabilityError(self.provider_name, capability)

    def _require_media(self, media_base64: str | None, media_kind: MediaKind) -> None:
        if not media_base64 or not media_base64.strip():
            raise MissingMediaError(self.provider_name, media_kind)

    async def analyze_text(
        self,
        prompt: str,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        """
        Send a text-only prompt.

        Returns:
            Raw generated text

        Raises:
            UnsupportedCapabilityError: If text is not enabled for this provider
            AIProviderError: If the vendor call fails
        """
        self._require(Capability.TEXT)
        return await self._generate(prompt, None, None, None, cancel_token)

    async def analyze_image(
        self,
        prompt: str,
        image_base64: str,
        cancel_token: CancellationToken | None = None,
        *,
        mime_type: str | None = None,
    ) -> str:
        """Send a prompt with an inline image."""
        self._require(Capability.IMAGES)
        self._require_media(image_base64, MediaKind.IMAGE)
        return await self._generate(prompt, image_base64, MediaKind.IMAGE, mime_type, cancel_token)

    async def analyze_audio(
        self,
        prompt: str,
        audio_base64: str,
        cancel_token: CancellationToken | None = None,
        *,
        mime_type: str | None = None,
    ) -> str:
        """Send a prompt with an inline audio recording."""
        self._require(Capability.AUDIO)
        self._require_media(audio_base64, MediaKind.AUDIO)
        return await self._generate(prompt, audio_base64, MediaKind.AUDIO, mime_type, cancel_token)

    @abstractmethod
    async def _generate(
        self,
        prompt: str,
        media_base64: str | None,
        media_kind: MediaKind | None,
        mime_type: str | None,
        cancel_token: CancellationToken | None,
    ) -> str:
        """
        Perform the vendor call.

        Args:
            prompt: Instruction text
            media_base64: Optional inline media payload
            media_kind: Kind of the media payload, None for text-only calls
            mime_type: MIME type override for the media payload
            cancel_token: Checked between vendor calls

        Returns:
            Generated text extracted from the vendor response
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the provider is available and healthy.

        Returns:
            True if the provider answered a minimal probe. Never raises.
        """
        ...

    def __repr__(self) -> str:
        caps = self._capabilities
        return (
            f"{type(self).__name__}(text={caps.text}, images={caps.images}, audio={caps.audio})"
        )


def vendor_error_message(response: httpx.Response) -> str:
    """Pull the vendor's error message out of a failed response body."""
    try:
        data = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"

    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return f"HTTP {response.status_code}"
