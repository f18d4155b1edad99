"""Tests for the provider factory and registry resolution."""

import pytest

from meal_analyzer.core.config import AIConfig, ProviderConfig
from meal_analyzer.core.exceptions import (
    MissingConfigError,
    NoProviderAvailableError,
    UnknownProviderTypeError,
)
from meal_analyzer.models.nutrition import Capability
from meal_analyzer.services.ai_providers import (
    PROVIDERS,
    DeepSeekProvider,
    GeminiProvider,
    OpenAIProvider,
    create_all_providers,
    create_provider,
    get_default_provider,
    resolve_by_capability,
    resolve_with_fallback,
)

from conftest import MULTIMODAL, TEXT_AND_IMAGES, TEXT_ONLY, StubProvider


class TestCreateProvider:
    """Tests for create_provider."""

    @pytest.mark.parametrize(
        "provider_type,expected",
        [
            ("gemini", GeminiProvider),
            ("deepseek", DeepSeekProvider),
            ("openai", OpenAIProvider),
            ("Gemini", GeminiProvider),
            ("DEEPSEEK", DeepSeekProvider),
        ],
    )
    def test_known_types(self, provider_type, expected):
        provider = create_provider(provider_type, ProviderConfig(api_key="k"))

        assert isinstance(provider, expected)

    def test_unknown_type(self):
        """Test the error lists the supported types."""
        with pytest.raises(UnknownProviderTypeError) as exc_info:
            create_provider("claude", ProviderConfig(api_key="k"))

        assert exc_info.value.details["supported"] == list(PROVIDERS)
        assert "claude" in exc_info.value.message

    def test_missing_type(self):
        with pytest.raises(MissingConfigError):
            create_provider("", ProviderConfig(api_key="k"))

    def test_missing_config(self):
        with pytest.raises(MissingConfigError):
            create_provider("gemini", None)


class TestCreateAllProviders:
    """Tests for create_all_providers."""

    def test_skips_disabled_and_keyless_entries(self, ai_config):
        """Test only enabled, credentialed providers are registered."""
        providers = create_all_providers(ai_config)

        assert list(providers) == ["gemini", "deepseek"]
        assert isinstance(providers["gemini"], GeminiProvider)
        assert isinstance(providers["deepseek"], DeepSeekProvider)

    def test_type_field_overrides_name(self):
        config = AIConfig(
            providers={"backup": ProviderConfig(type="deepseek", api_key="k")},
        )

        providers = create_all_providers(config)

        assert isinstance(providers["backup"], DeepSeekProvider)

    def test_bad_entry_does_not_stop_the_rest(self):
        """Test an unknown type is skipped and later entries still register."""
        config = AIConfig(
            providers={
                "mystery": ProviderConfig(api_key="k"),
                "gemini": ProviderConfig(api_key="k"),
            },
        )

        providers = create_all_providers(config)

        assert list(providers) == ["gemini"]

    @pytest.mark.parametrize("config", [None, AIConfig()])
    def test_empty_config(self, config):
        assert create_all_providers(config) == {}


class TestResolution:
    """Tests for default, fallback and capability resolution."""

    @pytest.fixture
    def registry(self):
        return {
            "text": StubProvider("Text", TEXT_ONLY),
            "vision": StubProvider("Vision", TEXT_AND_IMAGES),
            "multi": StubProvider("Multi", MULTIMODAL),
        }

    def test_get_default_provider(self, registry):
        config = AIConfig(default_provider="vision")

        assert get_default_provider(config, registry) is registry["vision"]

    def test_get_default_provider_not_registered(self, registry):
        assert get_default_provider(AIConfig(default_provider="gone"), registry) is None
        assert get_default_provider(AIConfig(), registry) is None

    def test_resolve_prefers_named_provider(self, registry):
        config = AIConfig(default_provider="text")

        assert resolve_with_fallback(config, registry, "multi") is registry["multi"]

    def test_resolve_unknown_preferred_uses_default(self, registry):
        config = AIConfig(default_provider="text")

        assert resolve_with_fallback(config, registry, "gone") is registry["text"]

    def test_resolve_walks_fallback_order(self):
        """Test unregistered names in the fallback order are skipped."""
        b = StubProvider("B")
        config = AIConfig(default_provider="x", fallback_order=["a", "b"])

        assert resolve_with_fallback(config, {"b": b}) is b

    def test_resolve_uses_first_registered(self, registry):
        assert resolve_with_fallback(AIConfig(), registry) is registry["text"]

    def test_resolve_empty_registry(self):
        with pytest.raises(NoProviderAvailableError):
            resolve_with_fallback(AIConfig(default_provider="gemini"), {})

    @pytest.mark.parametrize(
        "capability,expected",
        [
            (Capability.TEXT, "text"),
            (Capability.IMAGES, "vision"),
            (Capability.AUDIO, "multi"),
        ],
    )
    def test_resolve_by_capability(self, registry, capability, expected):
        assert resolve_by_capability(registry, capability) is registry[expected]

    def test_resolve_by_capability_none(self):
        registry = {"text": StubProvider("Text", TEXT_ONLY)}

        assert resolve_by_capability(registry, Capability.AUDIO) is None
