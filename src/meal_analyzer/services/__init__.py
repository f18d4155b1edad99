"""Business logic services."""

from .media import EncodedMedia, MediaEncoder, MediaEncodingError
from .nutrition_parser import parse_nutrition_response
from .analysis import AnalysisService
from .analyzers import PhotoAnalyzer, TextAnalyzer, VoiceAnalyzer

__all__ = [
    "AnalysisService",
    "EncodedMedia",
    "MediaEncoder",
    "MediaEncodingError",
    "PhotoAnalyzer",
    "TextAnalyzer",
    "VoiceAnalyzer",
    "parse_nutrition_response",
]
