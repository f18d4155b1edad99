"""
Factory for creating AI provider instances.

Builds the provider registry from the configuration bundle and resolves
providers by name, default, fallback order or capability.
"""

import logging

from meal_analyzer.core.config import AIConfig, ProviderConfig
from meal_analyzer.core.exceptions import (
    MissingConfigError,
    NoProviderAvailableError,
    UnknownProviderTypeError,
)
from meal_analyzer.models.nutrition import Capability

from .base import AIProvider
from .deepseek_provider import DeepSeekProvider
from .gemini_provider import GeminiProvider
from .openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)


# Supported providers
PROVIDERS: dict[str, type[AIProvider]] = {
    "gemini": GeminiProvider,
    "deepseek": DeepSeekProvider,
    "openai": OpenAIProvider,
}

ProviderRegistry = dict[str, AIProvider]


def create_provider(provider_type: str, config: ProviderConfig | None) -> AIProvider:
    """
    Create a provider instance by type name.

    Args:
        provider_type: Vendor type name ("gemini", "deepseek", "openai"), case-insensitive
        config: Provider connection parameters

    Returns:
        Configured AIProvider

    Raises:
        MissingConfigError: If the type name or config is missing
        UnknownProviderTypeError: If the type name is not supported
    """
    if not provider_type:
        raise MissingConfigError("Provider type is required")

    if config is None:
        raise MissingConfigError(
            f"Config is required for provider {provider_type}",
            details={"provider_type": provider_type},
        )

    provider_cls = PROVIDERS.get(provider_type.lower())
    if provider_cls is None:
        raise UnknownProviderTypeError(provider_type, list(PROVIDERS.keys()))

    return provider_cls(config)


def create_all_providers(config: AIConfig | None) -> ProviderRegistry:
    """
    Create every enabled, credentialed provider in the bundle.

    Entries that are disabled, lack an API key or fail to construct are
    skipped; the rest of the registry is still built. The result may be empty.

    Returns:
        Registry mapping provider name to instance, in configuration order
    """
    providers: ProviderRegistry = {}

    if config is None or not config.providers:
        logger.warning("No AI provider configuration")
        return providers

    for name, provider_config in config.providers.items():
        if not provider_config.enabled:
            logger.info(f"Provider {name} is disabled, skipping")
            continue

        if not provider_config.api_key:
            logger.warning(f"Provider {name} has no API key, skipping")
            continue

        try:
            providers[name] = create_provider(provider_config.type or name, provider_config)
            logger.info(f"Provider {name} created")
        except Exception as e:
            logger.error(f"Failed to create provider {name}: {e}")

    return providers


def get_default_provider(config: AIConfig | None, providers: ProviderRegistry) -> AIProvider | None:
    """Look up the configured default provider; None if unset or not registered."""
    if config is None or not config.default_provider:
        logger.warning("No default provider is configured")
        return None

    provider = providers.get(config.default_provider)
    if provider is None:
        logger.warning(f"Default provider '{config.default_provider}' is not available")
    return provider


def resolve_with_fallback(
    config: AIConfig | None,
    providers: ProviderRegistry,
    preferred_name: str | None = None,
) -> AIProvider:
    """
    Resolve a provider: preferred, then default, then fallback order, then any.

    Raises:
        NoProviderAvailableError: If the registry is empty
    """
    if preferred_name:
        provider = providers.get(preferred_name)
        if provider is not None:
            logger.info(f"Using preferred provider: {preferred_name}")
            return provider
        logger.warning(f"Preferred provider '{preferred_name}' is not available, trying fallback")

    default = get_default_provider(config, providers)
    if default is not None:
        logger.info(f"Using default provider: {config.default_provider}")
        return default

    for name in config.fallback_order if config else []:
        provider = providers.get(name)
        if provider is not None:
            logger.info(f"Using fallback provider: {name}")
            return provider

    if providers:
        name, provider = next(iter(providers.items()))
        logger.info(f"Using first available provider: {name}")
        return provider

    raise NoProviderAvailableError()


def resolve_by_capability(providers: ProviderRegistry, capability: Capability) -> AIProvider | None:
    """Return the first registered provider supporting the capability."""
    for name, provider in providers.items():
        if provider.supports(capability):
            logger.info(f"Found provider with {capability.value}: {name}")
            return provider

    logger.warning(f"No provider supports {capability.value}")
    return None


def log_providers_info(providers: ProviderRegistry) -> None:
    """Log the registered providers and their capabilities."""
    logger.info("Available AI providers:")
    for name, provider in providers.items():
        caps = provider.get_capabilities()
        logger.info(f"  - {name}: text={caps.text}, images={caps.images}, audio={caps.audio}")
