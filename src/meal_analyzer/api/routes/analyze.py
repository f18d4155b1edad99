"""Meal analysis API routes.

One endpoint per input kind. Each request gets its own cancellation token,
cancelled when the client disconnects.
"""

import logging

from fastapi import APIRouter, File, Form, Request, UploadFile

from meal_analyzer.api.dependencies import (
    PhotoAnalyzerDep,
    TextAnalyzerDep,
    VoiceAnalyzerDep,
    cancel_on_disconnect,
)
from meal_analyzer.models.nutrition import (
    AnalysisResponse,
    AnalysisResult,
    TextAnalysisRequest,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _to_response(result: AnalysisResult) -> AnalysisResponse:
    return AnalysisResponse(
        nutrition=result.nutrition,
        provider=result.provider,
        attempted=result.attempted,
    )


@router.post("/text", response_model=AnalysisResponse)
async def analyze_text(
    body: TextAnalysisRequest,
    request: Request,
    analyzer: TextAnalyzerDep,
) -> AnalysisResponse:
    """Analyze a free-form text meal description."""
    async with cancel_on_disconnect(request) as token:
        result = await analyzer.analyze(
            body.text,
            cancel_token=token,
            preferred_provider=body.provider,
        )
    return _to_response(result)


@router.post("/image", response_model=AnalysisResponse)
async def analyze_image(
    request: Request,
    analyzer: PhotoAnalyzerDep,
    file: UploadFile = File(..., description="Meal photo (JPEG, PNG, WebP)"),
    context: str = Form("", description="Optional hint, e.g. 'half portion'"),
    provider: str | None = Form(None, description="Preferred provider name"),
) -> AnalysisResponse:
    """Analyze a meal photo."""
    content = await file.read()
    logger.info(f"Received image upload: {file.filename} ({len(content)} bytes)")

    async with cancel_on_disconnect(request) as token:
        result = await analyzer.analyze(
            content,
            file.content_type,
            additional_context=context,
            cancel_token=token,
            preferred_provider=provider,
        )
    return _to_response(result)


@router.post("/audio", response_model=AnalysisResponse)
async def analyze_audio(
    request: Request,
    analyzer: VoiceAnalyzerDep,
    file: UploadFile = File(..., description="Voice recording (webm, ogg, mp4, wav)"),
    provider: str | None = Form(None, description="Preferred provider name"),
) -> AnalysisResponse:
    """Analyze a voice recording describing a meal."""
    content = await file.read()
    logger.info(f"Received audio upload: {file.filename} ({len(content)} bytes)")

    async with cancel_on_disconnect(request) as token:
        result = await analyzer.analyze(
            content,
            file.content_type,
            cancel_token=token,
            preferred_provider=provider,
        )
    return _to_response(result)
