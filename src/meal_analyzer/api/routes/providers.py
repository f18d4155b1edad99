"""AI provider management API routes."""

from fastapi import APIRouter

from meal_analyzer.api.dependencies import AnalysisServiceDep
from meal_analyzer.models.nutrition import ProviderInfo, SetDefaultProviderRequest

router = APIRouter()


@router.get("", response_model=list[ProviderInfo])
async def list_providers(service: AnalysisServiceDep) -> list[ProviderInfo]:
    """List registered providers with capabilities and startup health."""
    return service.get_available_providers()


@router.put("/default", response_model=list[ProviderInfo])
async def set_default_provider(
    body: SetDefaultProviderRequest,
    service: AnalysisServiceDep,
) -> list[ProviderInfo]:
    """Switch the default provider for subsequent analyses."""
    service.set_default_provider(body.name)
    return service.get_available_providers()
