"""
Analysis service - orchestrates AI providers for nutrition analysis.

Selects a provider capable of the requested analysis, calls it, parses the
answer and falls back to every other capable provider before giving up.
"""

import asyncio
import logging

from meal_analyzer.core.cancellation import CancellationToken, raise_if_cancelled
from meal_analyzer.core.config import AIConfig
from meal_analyzer.core.exceptions import (
    AllProvidersFailedError,
    AnalysisCancelledError,
    ConfigurationError,
    NoCapableProviderError,
    ProviderNotFoundError,
    ResponseValidationError,
)
from meal_analyzer.models.nutrition import (
    AnalysisKind,
    AnalysisRequest,
    AnalysisResult,
    NutritionRecord,
    ProviderInfo,
)
from meal_analyzer.services.ai_providers import (
    AIProvider,
    ProviderRegistry,
    create_all_providers,
    get_default_provider,
    log_providers_info,
    resolve_by_capability,
)
from meal_analyzer.services.nutrition_parser import (
    build_audio_prompt,
    build_image_prompt,
    build_text_prompt,
    parse_nutrition_response,
)

logger = logging.getLogger(__name__)


class AnalysisService:
    """
    Nutrition analysis across a registry of AI providers.

    Each request moves through selecting -> invoking -> parsing and then
    either succeeds or retries the next capable provider. Every capable
    provider is tried at most once per request, strictly one at a time.

    Usage:
        service = AnalysisService.from_config(settings.build_ai_config())
        await service.initialize()

        result = await service.analyze_text("200g chicken breast with rice")
        print(result.nutrition.calories, result.provider)
    """

    def __init__(self, config: AIConfig, providers: ProviderRegistry):
        """
        Initialize the analysis service.

        Args:
            config: Provider configuration bundle
            providers: Registry of provider instances, in priority order
        """
        self.config = config
        self.providers = providers
        self.default_provider: AIProvider | None = get_default_provider(config, providers)
        self.health_status: dict[str, bool] = {}

    @classmethod
    def from_config(cls, config: AIConfig) -> "AnalysisService":
        """Build the provider registry from configuration."""
        return cls(config, create_all_providers(config))

    async def initialize(self) -> None:
        """
        Validate the registry and probe every provider.

        Raises:
            ConfigurationError: If no provider could be registered
        """
        if not self.providers:
            raise ConfigurationError(
                "No AI provider is available. Check the provider configuration."
            )

        log_providers_info(self.providers)
        await self._perform_health_checks()
        logger.info("AnalysisService: initialization complete")

    async def _perform_health_checks(self) -> None:
        logger.info("AnalysisService: running health checks...")

        names = list(self.providers)
        results = await asyncio.gather(
            *(self.providers[name].health_check() for name in names),
            return_exceptions=True,
        )

        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                logger.error(f"{name}: health check failed: {result}")
                healthy = False
            else:
                healthy = bool(result)
                if healthy:
                    logger.info(f"{name}: healthy")
                else:
                    logger.warning(f"{name}: unhealthy")
            self.health_status[name] = healthy

    # =========================================================================
    # Analysis entry points
    # =========================================================================

    async def analyze_text(
        self,
        food_description: str,
        preferred_provider: str | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> AnalysisResult:
        """Analyze a text meal description."""
        return await self.analyze(
            AnalysisRequest(
                kind=AnalysisKind.TEXT,
                prompt=build_text_prompt(food_description),
                preferred_provider=preferred_provider,
                cancel_token=cancel_token,
            )
        )

    async def analyze_image(
        self,
        image_base64: str,
        additional_context: str = "",
        preferred_provider: str | None = None,
        cancel_token: CancellationToken | None = None,
        mime_type: str | None = None,
    ) -> AnalysisResult:
        """Analyze a base64-encoded meal photo."""
        return await self.analyze(
            AnalysisRequest(
                kind=AnalysisKind.IMAGE,
                prompt=build_image_prompt(additional_context),
                media_base64=image_base64,
                mime_type=mime_type,
                preferred_provider=preferred_provider,
                cancel_token=cancel_token,
            )
        )

    async def analyze_audio(
        self,
        audio_base64: str,
        preferred_provider: str | None = None,
        cancel_token: CancellationToken | None = None,
        mime_type: str | None = None,
    ) -> AnalysisResult:
        """Analyze a base64-encoded voice recording."""
        return await self.analyze(
            AnalysisRequest(
                kind=AnalysisKind.AUDIO,
                prompt=build_audio_prompt(),
                media_base64=audio_base64,
                mime_type=mime_type,
                preferred_provider=preferred_provider,
                cancel_token=cancel_token,
            )
        )

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """
        Run one analysis with automatic provider fallback.

        Returns:
            AnalysisResult holding a fully validated record

        Raises:
            NoCapableProviderError: If no provider supports the analysis kind
            AllProvidersFailedError: If every capable provider failed
            AnalysisCancelledError: If the request's token was cancelled
        """
        kind = request.kind
        capability = kind.required_capability
        token = request.cancel_token

        first_name = self._select_provider(request)
        if first_name is None:
            raise NoCapableProviderError(kind.value, capability.value)

        candidates = [first_name] + [
            name
            for name, provider in self.providers.items()
            if name != first_name and provider.supports(capability)
        ]

        attempted: list[str] = []
        last_error: str | None = None

        for index, name in enumerate(candidates):
            raise_if_cancelled(token, kind.value)

            if index == 0:
                logger.info(f"AnalysisService: analyzing {kind.value} with {name}")
            else:
                logger.info(f"AnalysisService: falling back to {name} for {kind.value}")

            attempted.append(name)
            try:
                record = await self._attempt(self.providers[name], request)
            except AnalysisCancelledError:
                raise
            except Exception as e:
                last_error = str(e)
                logger.warning(f"AnalysisService: {kind.value} analysis with {name} failed: {e}")
                continue

            if index > 0:
                logger.info(f"AnalysisService: fallback succeeded with {name}")
            else:
                logger.info(f"AnalysisService: analysis succeeded with {name}")
            return AnalysisResult(nutrition=record, provider=name, attempted=attempted)

        logger.error(
            f"AnalysisService: {kind.value} analysis failed with all providers: {attempted}"
        )
        raise AllProvidersFailedError(kind.value, attempted, last_error)

    def _select_provider(self, request: AnalysisRequest) -> str | None:
        """Pick the first provider to try: preferred, default, then any capable."""
        capability = request.kind.required_capability

        if request.preferred_provider:
            provider = self.providers.get(request.preferred_provider)
            if provider is not None and provider.supports(capability):
                logger.info(f"AnalysisService: using preferred provider {request.preferred_provider}")
                return request.preferred_provider
            logger.warning(
                f"AnalysisService: preferred provider {request.preferred_provider} "
                f"does not support {request.kind.value}"
            )

        # Read once; set_default_provider may swap it concurrently
        default = self.default_provider
        if default is not None and default.supports(capability):
            name = self._name_of(default)
            if name is not None:
                logger.info(f"AnalysisService: using default provider {name}")
                return name

        provider = resolve_by_capability(self.providers, capability)
        return self._name_of(provider) if provider is not None else None

    async def _attempt(self, provider: AIProvider, request: AnalysisRequest) -> NutritionRecord:
        """Invoke one provider and parse its answer."""
        token = request.cancel_token
        kind = request.kind.value

        raise_if_cancelled(token, kind)

        if request.kind is AnalysisKind.TEXT:
            raw = await provider.analyze_text(request.prompt, token)
        elif request.kind is AnalysisKind.IMAGE:
            raw = await provider.analyze_image(
                request.prompt, request.media_base64, token, mime_type=request.mime_type
            )
        else:
            raw = await provider.analyze_audio(
                request.prompt, request.media_base64, token, mime_type=request.mime_type
            )

        # The answer is discarded if the caller gave up while it was in flight
        raise_if_cancelled(token, kind)

        record = parse_nutrition_response(raw)
        if record is None:
            raise ResponseValidationError(provider.provider_name)
        return record

    def _name_of(self, provider: AIProvider) -> str | None:
        for name, candidate in self.providers.items():
            if candidate is provider:
                return name
        return None

    # =========================================================================
    # Registry management
    # =========================================================================

    def get_available_providers(self) -> list[ProviderInfo]:
        """Describe every registered provider."""
        return [
            ProviderInfo(
                name=name,
                display_name=provider.provider_name,
                capabilities=provider.get_capabilities(),
                is_default=provider is self.default_provider,
                healthy=self.health_status.get(name),
            )
            for name, provider in self.providers.items()
        ]

    def set_default_provider(self, provider_name: str) -> None:
        """
        Replace the default provider for subsequent requests.

        Raises:
            ProviderNotFoundError: If the provider is not registered
        """
        provider = self.providers.get(provider_name)
        if provider is None:
            raise ProviderNotFoundError(provider_name)

        self.default_provider = provider
        logger.info(f"AnalysisService: default provider changed to {provider_name}")

    def get_config(self) -> AIConfig:
        return self.config

    async def close(self) -> None:
        """Close every provider's HTTP client."""
        for provider in self.providers.values():
            await provider.close()
