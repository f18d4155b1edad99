"""FastAPI dependency injection factories."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Annotated, AsyncIterator

from fastapi import Depends, Request

from meal_analyzer.core.cancellation import CancellationToken
from meal_analyzer.core.config import Settings, get_settings
from meal_analyzer.core.exceptions import ConfigurationError
from meal_analyzer.services.analysis import AnalysisService
from meal_analyzer.services.analyzers import PhotoAnalyzer, TextAnalyzer, VoiceAnalyzer
from meal_analyzer.services.media import MediaEncoder

logger = logging.getLogger(__name__)

DISCONNECT_POLL_INTERVAL = 0.5


# Type aliases for cleaner route signatures
SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_analysis_service(request: Request) -> AnalysisService:
    """
    Get the analysis service created at application startup.

    Raises:
        ConfigurationError: If startup did not create the service
    """
    service = getattr(request.app.state, "analysis_service", None)
    if service is None:
        raise ConfigurationError("Analysis service is not initialized")
    return service


AnalysisServiceDep = Annotated[AnalysisService, Depends(get_analysis_service)]


def get_media_encoder() -> MediaEncoder:
    return MediaEncoder()


def get_text_analyzer(service: AnalysisServiceDep) -> TextAnalyzer:
    return TextAnalyzer(service)


def get_photo_analyzer(
    service: AnalysisServiceDep,
    encoder: MediaEncoder = Depends(get_media_encoder),
) -> PhotoAnalyzer:
    return PhotoAnalyzer(service, encoder)


def get_voice_analyzer(
    service: AnalysisServiceDep,
    encoder: MediaEncoder = Depends(get_media_encoder),
) -> VoiceAnalyzer:
    return VoiceAnalyzer(service, encoder)


# Type aliases for analyzer dependencies
TextAnalyzerDep = Annotated[TextAnalyzer, Depends(get_text_analyzer)]
PhotoAnalyzerDep = Annotated[PhotoAnalyzer, Depends(get_photo_analyzer)]
VoiceAnalyzerDep = Annotated[VoiceAnalyzer, Depends(get_voice_analyzer)]


@asynccontextmanager
async def cancel_on_disconnect(request: Request) -> AsyncIterator[CancellationToken]:
    """
    Yield a cancellation token that is cancelled if the client goes away.

    Usage:
        async with cancel_on_disconnect(request) as token:
            result = await analyzer.analyze(text, cancel_token=token)
    """
    token = CancellationToken()

    async def watch() -> None:
        while not token.is_cancelled:
            if await request.is_disconnected():
                logger.info("Client disconnected, cancelling analysis")
                token.cancel()
                return
            await asyncio.sleep(DISCONNECT_POLL_INTERVAL)

    watcher = asyncio.create_task(watch())
    try:
        yield token
    finally:
        watcher.cancel()
