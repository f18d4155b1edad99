"""
OpenAI-compatible chat-completions providers.

The same wire protocol serves OpenAI and DeepSeek; vendors differ in
endpoint, default model and which modalities they accept.
"""

import logging
from typing import Any

import httpx

from meal_analyzer.core.cancellation import CancellationToken
from meal_analyzer.core.config import ProviderConfig
from meal_analyzer.models.nutrition import CapabilitySet, MediaKind
from meal_analyzer.services.media import create_data_url

from .base import (
    AIProvider,
    InvalidMediaKindError,
    InvalidResponseShapeError,
    TransportError,
    vendor_error_message,
)

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = (
    "You are a nutrition expert. Your task is to analyze meals and return "
    "accurate nutrition values as a JSON object."
)


class ChatCompletionsProvider(AIProvider):
    """
    Base for vendors speaking the OpenAI chat-completions protocol.
    """

    default_endpoint = ""
    default_model = ""
    default_temperature = 0.7
    default_max_tokens = 1024

    def __init__(self, config: ProviderConfig, client: httpx.AsyncClient | None = None):
        super().__init__(config, client)
        self.model = config.model or self.default_model
        self.endpoint = config.endpoint or self.default_endpoint
        self.temperature = (
            config.temperature if config.temperature is not None else self.default_temperature
        )
        self.max_tokens = config.max_tokens or self.default_max_tokens

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def _user_content(
        self,
        prompt: str,
        media_base64: str | None,
        media_kind: MediaKind | None,
        mime_type: str | None,
    ) -> str | list[dict[str, Any]]:
        """Build the user message content; plain string for text-only calls."""
        if not media_base64:
            return prompt

        if media_kind is not MediaKind.IMAGE:
            raise InvalidMediaKindError(self.provider_name, media_kind)

        data_url = create_data_url(media_base64, mime_type or media_kind.default_mime_type)
        return [
            {"type": "text", "text": prompt},
            {"type": "image_url", "image_url": {"url": data_url}},
        ]

    def _build_request_body(
        self,
        prompt: str,
        media_base64: str | None,
        media_kind: MediaKind | None,
        mime_type: str | None,
    ) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": self._user_content(prompt, media_base64, media_kind, mime_type),
                },
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "response_format": {"type": "json_object"},
        }

    async def _generate(
        self,
        prompt: str,
        media_base64: str | None,
        media_kind: MediaKind | None,
        mime_type: str | None,
        cancel_token: CancellationToken | None,
    ) -> str:
        if not self.api_key:
            raise TransportError("API key is not available", provider=self.provider_name)

        request_body = self._build_request_body(prompt, media_base64, media_kind, mime_type)
        client = await self._get_client()

        logger.info(f"{self.provider_name}: calling {self.model}")

        try:
            response = await client.post(
                self.endpoint,
                headers=self._headers(),
                json=request_body,
            )
        except httpx.RequestError as e:
            raise TransportError(
                f"Failed to connect to {self.provider_name}: {e}",
                provider=self.provider_name,
            ) from e

        if not response.is_success:
            error_message = vendor_error_message(response)
            logger.error(f"{self.provider_name} API error: {response.status_code} - {error_message}")
            raise TransportError(
                f"{self.provider_name} API failed: {error_message}",
                provider=self.provider_name,
                details={"status_code": response.status_code},
            )

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise InvalidResponseShapeError(
                f"Invalid response from {self.provider_name} API",
                provider=self.provider_name,
            ) from e

        if not isinstance(content, str):
            raise InvalidResponseShapeError(
                f"Invalid response from {self.provider_name} API",
                provider=self.provider_name,
            )

        usage = data.get("usage") or {}
        logger.info(
            f"{self.provider_name}: success with {self.model} "
            f"(tokens: {usage.get('total_tokens', 'N/A')}, "
            f"cached: {usage.get('prompt_cache_hit_tokens', 0)})"
        )
        return content

    async def health_check(self) -> bool:
        """Send a ten-token probe to the configured model."""
        if not self.api_key:
            return False

        try:
            client = await self._get_client()
            response = await client.post(
                self.endpoint,
                headers=self._headers(),
                json={
                    "model": self.model,
                    "messages": [{"role": "user", "content": "test"}],
                    "max_tokens": 10,
                },
            )
            return response.is_success
        except Exception as e:
            logger.error(f"{self.provider_name} health check failed: {e}")
            return False


class OpenAIProvider(ChatCompletionsProvider):
    """OpenAI chat completions. Accepts text and images."""

    native_capabilities = CapabilitySet(text=True, images=True, audio=False)
    display_name = "OpenAI"
    default_endpoint = "https://api.openai.com/v1/chat/completions"
    default_model = "gpt-4o-mini"
    default_temperature = 0.2
