"""
Input analyzers - type-specific front doors to the analysis service.

Each analyzer validates the raw user input (shape, type, size) before any
provider is contacted, then delegates to AnalysisService.
"""

import asyncio
import logging

from meal_analyzer.core.cancellation import CancellationToken
from meal_analyzer.core.exceptions import InputValidationError
from meal_analyzer.models.nutrition import AnalysisResult
from meal_analyzer.services.analysis import AnalysisService
from meal_analyzer.services.media import (
    MediaEncoder,
    MediaEncodingError,
    is_audio_mime,
    is_image_mime,
)

logger = logging.getLogger(__name__)


MAX_IMAGE_SIZE = 10 * 1024 * 1024  # 10 MB
MAX_AUDIO_SIZE = 10 * 1024 * 1024  # 10 MB


class TextAnalyzer:
    """Analyzes a free-form text meal description."""

    def __init__(self, service: AnalysisService):
        self.service = service

    @staticmethod
    def is_valid_input(text_input: object) -> bool:
        """Quick validation without running an analysis."""
        return isinstance(text_input, str) and bool(text_input.strip())

    async def analyze(
        self,
        text_input: str,
        cancel_token: CancellationToken | None = None,
        preferred_provider: str | None = None,
    ) -> AnalysisResult:
        """
        Analyze a meal description.

        Raises:
            InputValidationError: If the text is missing or blank
        """
        if not isinstance(text_input, str):
            raise InputValidationError("Invalid input: text is required")

        trimmed = text_input.strip()
        if not trimmed:
            raise InputValidationError("Please enter a description of the meal")

        logger.info(f"TextAnalyzer: analyzing '{trimmed[:80]}'")
        return await self.service.analyze_text(
            trimmed,
            preferred_provider=preferred_provider,
            cancel_token=cancel_token,
        )


class PhotoAnalyzer:
    """Analyzes a meal photo."""

    def __init__(self, service: AnalysisService, encoder: MediaEncoder | None = None):
        self.service = service
        self.encoder = encoder or MediaEncoder()

    def _validate(self, image_data: bytes, content_type: str | None) -> None:
        if not image_data:
            raise InputValidationError("No image was selected")

        if not is_image_mime(content_type):
            raise InputValidationError(
                "The selected file is not an image",
                details={"content_type": content_type},
            )

        if len(image_data) > MAX_IMAGE_SIZE:
            raise InputValidationError(
                f"Image is too large (max {MAX_IMAGE_SIZE // (1024 * 1024)} MB)",
                details={"size": len(image_data), "max_size": MAX_IMAGE_SIZE},
            )

    async def analyze(
        self,
        image_data: bytes,
        content_type: str | None,
        additional_context: str = "",
        cancel_token: CancellationToken | None = None,
        preferred_provider: str | None = None,
    ) -> AnalysisResult:
        """
        Validate, encode and analyze a photo.

        Raises:
            InputValidationError: If the file is empty, not an image, too
                large or cannot be decoded
        """
        self._validate(image_data, content_type)

        # Pillow decoding and re-encoding is blocking
        loop = asyncio.get_running_loop()
        try:
            encoded = await loop.run_in_executor(
                None, self.encoder.encode_image, image_data, content_type
            )
        except MediaEncodingError as e:
            logger.warning(f"PhotoAnalyzer: could not process image: {e}")
            raise InputValidationError("The image could not be processed") from e

        logger.info(
            f"PhotoAnalyzer: sending {encoded.size_bytes // 1024} KB {encoded.mime_type} "
            f"to analysis (original {encoded.original_size_bytes // 1024} KB)"
        )
        return await self.service.analyze_image(
            encoded.data_base64,
            additional_context=additional_context,
            preferred_provider=preferred_provider,
            cancel_token=cancel_token,
            mime_type=encoded.mime_type,
        )


class VoiceAnalyzer:
    """Analyzes a voice recording describing a meal."""

    def __init__(self, service: AnalysisService, encoder: MediaEncoder | None = None):
        self.service = service
        self.encoder = encoder or MediaEncoder()

    def _validate(self, audio_data: bytes, content_type: str | None) -> None:
        if not audio_data:
            raise InputValidationError("The audio recording is empty")

        if not is_audio_mime(content_type):
            raise InputValidationError(
                "Invalid audio format",
                details={"content_type": content_type},
            )

        if len(audio_data) > MAX_AUDIO_SIZE:
            raise InputValidationError(
                f"Audio recording is too large (max {MAX_AUDIO_SIZE // (1024 * 1024)} MB)",
                details={"size": len(audio_data), "max_size": MAX_AUDIO_SIZE},
            )

    async def analyze(
        self,
        audio_data: bytes,
        content_type: str | None,
        cancel_token: CancellationToken | None = None,
        preferred_provider: str | None = None,
    ) -> AnalysisResult:
        """
        Validate, encode and analyze a recording.

        Raises:
            InputValidationError: If the recording is empty, not audio or too large
        """
        self._validate(audio_data, content_type)

        encoded = self.encoder.encode_audio(audio_data, content_type)
        logger.info(f"VoiceAnalyzer: sending {encoded.size_bytes // 1024} KB {encoded.mime_type}")

        return await self.service.analyze_audio(
            encoded.data_base64,
            preferred_provider=preferred_provider,
            cancel_token=cancel_token,
            mime_type=encoded.mime_type,
        )
