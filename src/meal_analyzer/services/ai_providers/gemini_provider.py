"""
Google Gemini provider.

Multimodal: accepts text, images and audio. Tries several model / API
version combinations against the same endpoint until one answers.
"""

import logging
from typing import Any

import httpx

from meal_analyzer.core.cancellation import CancellationToken, raise_if_cancelled
from meal_analyzer.core.config import ProviderConfig
from meal_analyzer.models.nutrition import CapabilitySet, MediaKind

from .base import (
    AIProvider,
    InvalidMediaKindError,
    TransportError,
    vendor_error_message,
)

logger = logging.getLogger(__name__)


DEFAULT_MODELS = ["gemini-2.5-flash", "gemini-2.5-flash-lite"]
DEFAULT_API_VERSIONS = ["v1beta", "v1"]
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"


class GeminiProvider(AIProvider):
    """
    AI provider using the Google Generative Language API.
    """

    native_capabilities = CapabilitySet(text=True, images=True, audio=True)
    display_name = "Gemini"

    def __init__(self, config: ProviderConfig, client: httpx.AsyncClient | None = None):
        super().__init__(config, client)
        self.models = config.models or list(DEFAULT_MODELS)
        self.api_versions = config.api_versions or list(DEFAULT_API_VERSIONS)
        self.base_url = (config.base_url or DEFAULT_BASE_URL).rstrip("/")

    def _url(self, api_version: str, model: str) -> str:
        return f"{self.base_url}/{api_version}/models/{model}:generateContent"

    def _headers(self) -> dict[str, str]:
        return {"x-goog-api-key": self.api_key}

    def _health_check_version(self) -> str:
        """Prefer the stable v1 API for the probe when it is configured."""
        return "v1" if "v1" in self.api_versions else self.api_versions[0]

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
        last_error: str | None = None
        attempts: list[str] = []

        for model in self.models:
            for api_version in self.api_versions:
                raise_if_cancelled(cancel_token)

                combo = f"{api_version}/models/{model}"
                attempts.append(combo)
                suffix = f" ({media_kind.value})" if media_kind else ""
                logger.info(f"Gemini: trying {combo}{suffix}")

                try:
                    response = await client.post(
                        self._url(api_version, model),
                        headers=self._headers(),
                        json=request_body,
                    )
                except httpx.RequestError as e:
                    last_error = str(e) or type(e).__name__
                    logger.warning(f"Gemini {combo} error: {last_error}")
                    continue

                if not response.is_success:
                    last_error = vendor_error_message(response)
                    logger.warning(f"Gemini {combo} failed: {last_error}")
                    continue

                text = self._extract_text(response)
                if text is None:
                    last_error = "Invalid response structure"
                    logger.warning(f"Gemini {combo}: invalid response structure")
                    continue

                logger.info(f"Gemini: success with {combo}")
                return text

        logger.error(f"Gemini: all models failed. Last error: {last_error}")
        raise TransportError(
            f"Gemini API failed: {last_error}",
            provider=self.provider_name,
            details={"attempts": attempts, "last_error": last_error},
        )

    def _build_request_body(
        self,
        prompt: str,
        media_base64: str | None,
        media_kind: MediaKind | None,
        mime_type: str | None,
    ) -> dict[str, Any]:
        """Build the generateContent body, media as an inline part after the prompt."""
        parts: list[dict[str, Any]] = [{"text": prompt}]

        if media_base64:
            if not isinstance(media_kind, MediaKind):
                raise InvalidMediaKindError(self.provider_name, media_kind)

            parts.append(
                {
                    "inline_data": {
                        "mime_type": mime_type or media_kind.default_mime_type,
                        "data": media_base64,
                    }
                }
            )

        return {"contents": [{"parts": parts}]}

    @staticmethod
    def _extract_text(response: httpx.Response) -> str | None:
        """Return the first text part of the first candidate, if any."""
        try:
            data = response.json()
        except ValueError:
            return None

        candidates = data.get("candidates") if isinstance(data, dict) else None
        if not candidates or not isinstance(candidates[0], dict):
            return None

        content = candidates[0].get("content")
        if not isinstance(content, dict):
            return None

        for part in content.get("parts") or []:
            text = part.get("text") if isinstance(part, dict) else None
            if isinstance(text, str):
                return text
        return None

    async def health_check(self) -> bool:
        """Send a minimal prompt to the first configured model."""
        if not self.api_key:
            return False

        try:
            client = await self._get_client()
            response = await client.post(
                self._url(self._health_check_version(), self.models[0]),
                headers=self._headers(),
                json={"contents": [{"parts": [{"text": "test"}]}]},
            )
            return response.is_success
        except Exception as e:
            logger.error(f"Gemini health check failed: {e}")
            return False
