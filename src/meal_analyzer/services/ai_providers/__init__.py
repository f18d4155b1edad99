"""
AI Providers - Strategy pattern over generative AI vendors.

Each provider wraps one vendor's wire protocol behind the AIProvider
interface; the factory builds the registry from configuration.
"""

from .base import (
    AIProvider,
    AIProviderError,
    InvalidMediaKindError,
    InvalidResponseShapeError,
    MissingMediaError,
    TransportError,
    UnsupportedCapabilityError,
)
from .deepseek_provider import DeepSeekProvider
from .factory import (
    PROVIDERS,
    ProviderRegistry,
    create_all_providers,
    create_provider,
    get_default_provider,
    log_providers_info,
    resolve_by_capability,
    resolve_with_fallback,
)
from .gemini_provider import GeminiProvider
from .openai_provider import ChatCompletionsProvider, OpenAIProvider

__all__ = [
    "AIProvider",
    "AIProviderError",
    "InvalidMediaKindError",
    "InvalidResponseShapeError",
    "MissingMediaError",
    "TransportError",
    "UnsupportedCapabilityError",
    "ChatCompletionsProvider",
    "DeepSeekProvider",
    "GeminiProvider",
    "OpenAIProvider",
    "PROVIDERS",
    "ProviderRegistry",
    "create_all_providers",
    "create_provider",
    "get_default_provider",
    "log_providers_info",
    "resolve_by_capability",
    "resolve_with_fallback",
]
