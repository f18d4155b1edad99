"""Pydantic models for API schemas."""

from .nutrition import (
    AnalysisKind,
    AnalysisRequest,
    AnalysisResponse,
    AnalysisResult,
    Capability,
    CapabilitySet,
    MediaKind,
    NutritionRecord,
    ProviderInfo,
    SetDefaultProviderRequest,
    TextAnalysisRequest,
)

__all__ = [
    # Domain
    "AnalysisKind",
    "AnalysisRequest",
    "AnalysisResult",
    "Capability",
    "CapabilitySet",
    "MediaKind",
    "NutritionRecord",
    # API contract
    "AnalysisResponse",
    "ProviderInfo",
    "SetDefaultProviderRequest",
    "TextAnalysisRequest",
]
