"""Pytest configuration and fixtures."""

from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from meal_analyzer.core.config import AIConfig, ProviderConfig
from meal_analyzer.main import create_app
from meal_analyzer.models.nutrition import CapabilitySet
from meal_analyzer.services.ai_providers import AIProvider
from meal_analyzer.services.analysis import AnalysisService

# Well-formed provider answer
CHICKEN_JSON = (
    '{"name": "Chicken breast with rice", "calories": 520, '
    '"protein": 45, "carbs": 60, "fat": 9}'
)

TEXT_ONLY = CapabilitySet(text=True, images=False, audio=False)
MULTIMODAL = CapabilitySet(text=True, images=True, audio=True)
TEXT_AND_IMAGES = CapabilitySet(text=True, images=True, audio=False)


class StubProvider(AIProvider):
    """In-memory provider that records calls instead of talking to a vendor."""

    def __init__(
        self,
        name: str = "stub",
        capabilities: CapabilitySet = TEXT_ONLY,
        responses: list[str] | None = None,
        error: Exception | None = None,
        healthy: bool | Exception = True,
    ):
        super().__init__(ProviderConfig(api_key="test-key"))
        self.display_name = name
        self._capabilities = capabilities
        self.responses = list(responses) if responses is not None else [CHICKEN_JSON]
        self.error = error
        self.healthy = healthy
        self.calls: list[dict] = []
        self.closed = False

    async def _generate(self, prompt, media_base64, media_kind, mime_type, cancel_token):
        self.calls.append(
            {
                "prompt": prompt,
                "media_base64": media_base64,
                "media_kind": media_kind,
                "mime_type": mime_type,
            }
        )
        if self.error is not None:
            raise self.error
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    async def health_check(self) -> bool:
        if isinstance(self.healthy, Exception):
            raise self.healthy
        return self.healthy

    async def close(self) -> None:
        self.closed = True


def make_service(
    providers: dict[str, AIProvider],
    default: str | None = None,
    fallback_order: list[str] | None = None,
) -> AnalysisService:
    """Build an AnalysisService over a hand-made registry."""
    config = AIConfig(
        default_provider=default,
        providers={name: ProviderConfig(api_key="test-key") for name in providers},
        fallback_order=fallback_order or [],
    )
    return AnalysisService(config, providers)


@pytest.fixture
def stub_provider_cls() -> type[StubProvider]:
    return StubProvider


@pytest.fixture
def ai_config() -> AIConfig:
    """Bundle with two usable providers, one disabled and one without a key."""
    return AIConfig(
        default_provider="gemini",
        fallback_order=["gemini", "deepseek"],
        providers={
            "gemini": ProviderConfig(api_key="gemini-key"),
            "deepseek": ProviderConfig(api_key="deepseek-key"),
            "openai": ProviderConfig(api_key="openai-key", enabled=False),
            "backup": ProviderConfig(type="deepseek", api_key=""),
        },
    )


@pytest.fixture
def analysis_service() -> AnalysisService:
    """Service with a text-only default and a multimodal backup."""
    return make_service(
        {
            "deepseek": StubProvider("DeepSeek", TEXT_ONLY),
            "gemini": StubProvider("Gemini", MULTIMODAL),
        },
        default="deepseek",
    )


@pytest.fixture
async def client(analysis_service: AnalysisService) -> AsyncGenerator[AsyncClient, None]:
    """
    Create async test client.

    Usage:
        async def test_endpoint(client: AsyncClient):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    app = create_app(analysis_service)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
