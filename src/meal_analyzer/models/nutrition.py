"""Pydantic models for nutrition analysis.

Defines the validated nutrition record returned by every analysis, the
request value consumed by the analysis service and the API contract.
"""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field

from meal_analyzer.core.cancellation import CancellationToken

# =============================================================================
# Enums
# =============================================================================


class Capability(str, Enum):
    """Input modality a provider can accept."""

    TEXT = "text"
    IMAGES = "images"
    AUDIO = "audio"


class AnalysisKind(str, Enum):
    """Kind of meal description submitted by the user."""

    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"

    @property
    def required_capability(self) -> Capability:
        return _REQUIRED_CAPABILITY[self]


_REQUIRED_CAPABILITY = {
    AnalysisKind.TEXT: Capability.TEXT,
    AnalysisKind.IMAGE: Capability.IMAGES,
    AnalysisKind.AUDIO: Capability.AUDIO,
}


class MediaKind(str, Enum):
    """Kind of inline media attached to a provider call."""

    IMAGE = "image"
    AUDIO = "audio"

    @property
    def default_mime_type(self) -> str:
        return "image/jpeg" if self is MediaKind.IMAGE else "audio/webm"


# =============================================================================
# Capabilities
# =============================================================================


class CapabilitySet(BaseModel, frozen=True):
    """Immutable set of input modalities a provider accepts."""

    text: bool = True
    images: bool = False
    audio: bool = False

    def supports(self, capability: Capability) -> bool:
        return getattr(self, capability.value)

    def intersect(self, other: "CapabilitySet") -> "CapabilitySet":
        """Capabilities present in both sets."""
        return CapabilitySet(
            text=self.text and other.text,
            images=self.images and other.images,
            audio=self.audio and other.audio,
        )


# =============================================================================
# Records
# =============================================================================

# Bounds applied by the parser before a record is ever returned
MIN_CALORIES = 5
MAX_CALORIES = 10000
MAX_PROTEIN = 500
MAX_CARBS = 1000
MAX_FAT = 500

DEFAULT_MEAL_NAME = "Analyzed meal"


class NutritionRecord(BaseModel, frozen=True):
    """Validated nutrition facts for one analyzed meal."""

    name: str = Field(..., min_length=1, description="Meal name")
    calories: int = Field(..., ge=0, le=MAX_CALORIES, description="Energy in kcal")
    protein: int = Field(..., ge=0, le=MAX_PROTEIN, description="Protein in grams")
    carbs: int = Field(..., ge=0, le=MAX_CARBS, description="Carbohydrates in grams")
    fat: int = Field(..., ge=0, le=MAX_FAT, description="Fat in grams")


class AnalysisResult(BaseModel):
    """Outcome of a successful analysis."""

    nutrition: NutritionRecord
    provider: str = Field(..., description="Provider that produced the record")
    attempted: list[str] = Field(
        default_factory=list,
        description="Providers tried, in order, including the successful one",
    )


@dataclass(frozen=True)
class AnalysisRequest:
    """One user analysis, consumed within a single orchestration call."""

    kind: AnalysisKind
    prompt: str
    media_base64: str | None = None
    mime_type: str | None = None
    preferred_provider: str | None = None
    cancel_token: CancellationToken | None = None


# =============================================================================
# API Contract
# =============================================================================


class ProviderInfo(BaseModel):
    """Registered provider as shown to clients."""

    name: str
    display_name: str
    capabilities: CapabilitySet
    is_default: bool = False
    healthy: bool | None = Field(
        None, description="Startup health probe result; None if not yet checked"
    )


class TextAnalysisRequest(BaseModel):
    """Request body for text analysis."""

    text: str = Field(..., description="Free-form meal description")
    provider: str | None = Field(None, description="Preferred provider name")


class SetDefaultProviderRequest(BaseModel):
    """Request body for switching the default provider."""

    name: str


class AnalysisResponse(BaseModel):
    """Response for every analysis endpoint."""

    nutrition: NutritionRecord
    provider: str
    attempted: list[str] = Field(default_factory=list)
