"""Tests for the analysis orchestrator."""

import pytest

from meal_analyzer.core.cancellation import CancellationToken
from meal_analyzer.core.exceptions import (
    AllProvidersFailedError,
    AnalysisCancelledError,
    ConfigurationError,
    NoCapableProviderError,
    ProviderNotFoundError,
)
from meal_analyzer.models.nutrition import MediaKind
from meal_analyzer.services.ai_providers import TransportError
from meal_analyzer.services.analysis import AnalysisService

from conftest import MULTIMODAL, TEXT_AND_IMAGES, TEXT_ONLY, StubProvider, make_service


def failing(name: str, capabilities=TEXT_ONLY) -> StubProvider:
    return StubProvider(
        name,
        capabilities,
        error=TransportError("connection refused", provider=name),
    )


class CancellingProvider(StubProvider):
    """Cancels the request's token while its own call is in flight."""

    def __init__(self, token: CancellationToken, **kwargs):
        super().__init__(**kwargs)
        self.token = token

    async def _generate(self, prompt, media_base64, media_kind, mime_type, cancel_token):
        result = await super()._generate(prompt, media_base64, media_kind, mime_type, cancel_token)
        self.token.cancel()
        return result


class TestSuccessPath:
    """Tests for analyses that succeed on the first provider."""

    @pytest.mark.asyncio
    async def test_text_uses_default_provider(self):
        """Test a text analysis goes to the configured default."""
        primary = StubProvider("A", TEXT_ONLY)
        secondary = StubProvider("B", MULTIMODAL)
        service = make_service({"a": primary, "b": secondary}, default="a")

        result = await service.analyze_text("200g chicken breast with rice")

        assert result.provider == "a"
        assert result.attempted == ["a"]
        assert result.nutrition.name == "Chicken breast with rice"
        assert result.nutrition.calories == 520
        assert len(primary.calls) == 1
        assert "200g chicken breast with rice" in primary.calls[0]["prompt"]
        assert secondary.calls == []

    @pytest.mark.asyncio
    async def test_image_skips_text_only_default(self):
        """Test an image analysis goes to the first image-capable provider."""
        text_only = StubProvider("A", TEXT_ONLY)
        vision = StubProvider("B", TEXT_AND_IMAGES)
        service = make_service({"a": text_only, "b": vision}, default="a")

        result = await service.analyze_image("aW1hZ2U=", "half portion", mime_type="image/png")

        assert result.provider == "b"
        assert text_only.calls == []
        call = vision.calls[0]
        assert call["media_base64"] == "aW1hZ2U="
        assert call["media_kind"] is MediaKind.IMAGE
        assert call["mime_type"] == "image/png"
        assert "half portion" in call["prompt"]

    @pytest.mark.asyncio
    async def test_audio_routes_to_audio_capable_provider(self):
        vision = StubProvider("A", TEXT_AND_IMAGES)
        multimodal = StubProvider("B", MULTIMODAL)
        service = make_service({"a": vision, "b": multimodal}, default="a")

        result = await service.analyze_audio("YXVkaW8=")

        assert result.provider == "b"
        assert multimodal.calls[0]["media_kind"] is MediaKind.AUDIO

    @pytest.mark.asyncio
    async def test_preferred_provider_wins(self):
        """Test a capable preferred provider is tried before the default."""
        first = StubProvider("A", TEXT_ONLY)
        second = StubProvider("B", TEXT_ONLY)
        service = make_service({"a": first, "b": second}, default="a")

        result = await service.analyze_text("soup", preferred_provider="b")

        assert result.provider == "b"
        assert first.calls == []

    @pytest.mark.asyncio
    async def test_incapable_preferred_provider_is_ignored(self):
        text_only = StubProvider("A", TEXT_ONLY)
        vision = StubProvider("B", TEXT_AND_IMAGES)
        service = make_service({"a": text_only, "b": vision}, default="b")

        result = await service.analyze_image("aW1hZ2U=", preferred_provider="a")

        assert result.provider == "b"
        assert text_only.calls == []

    @pytest.mark.asyncio
    async def test_unregistered_default_falls_back_to_capability_search(self):
        provider = StubProvider("A", TEXT_ONLY)
        service = make_service({"a": provider}, default="missing")

        result = await service.analyze_text("soup")

        assert result.provider == "a"


class TestFallback:
    """Tests for provider fallback."""

    @pytest.mark.asyncio
    async def test_transport_failure_falls_back(self):
        """Test a failing default is followed by the next capable provider."""
        broken = failing("A")
        working = StubProvider("B", TEXT_ONLY)
        service = make_service({"a": broken, "b": working}, default="a")

        result = await service.analyze_text("200g chicken breast with rice")

        assert result.provider == "b"
        assert result.attempted == ["a", "b"]
        assert result.nutrition.calories == 520
        assert len(broken.calls) == 1
        assert len(working.calls) == 1

    @pytest.mark.asyncio
    async def test_unparseable_answer_falls_back(self):
        """Test an answer without a valid record counts as a failure."""
        vague = StubProvider("A", TEXT_ONLY, responses=["I am not sure what this is."])
        working = StubProvider("B", TEXT_ONLY)
        service = make_service({"a": vague, "b": working}, default="a")

        result = await service.analyze_text("something")

        assert result.provider == "b"

    @pytest.mark.asyncio
    async def test_fallback_skips_incapable_providers(self):
        broken = failing("A", TEXT_AND_IMAGES)
        text_only = StubProvider("B", TEXT_ONLY)
        vision = StubProvider("C", TEXT_AND_IMAGES)
        service = make_service({"a": broken, "b": text_only, "c": vision}, default="a")

        result = await service.analyze_image("aW1hZ2U=")

        assert result.attempted == ["a", "c"]
        assert text_only.calls == []

    @pytest.mark.asyncio
    async def test_all_providers_fail(self):
        """Test each capable provider is tried exactly once before giving up."""
        first = failing("A")
        second = StubProvider("B", TEXT_ONLY, responses=["no numbers here"])
        service = make_service({"a": first, "b": second}, default="a")

        with pytest.raises(AllProvidersFailedError) as exc_info:
            await service.analyze_text("soup")

        assert exc_info.value.details["attempted"] == ["a", "b"]
        assert exc_info.value.details["analysis_kind"] == "text"
        assert "Could not extract" in exc_info.value.details["last_error"]
        assert len(first.calls) == 1
        assert len(second.calls) == 1

    @pytest.mark.asyncio
    async def test_empty_image_is_never_sent(self):
        """Test an image analysis without image data fails instead of guessing from text."""
        vision = StubProvider("A", TEXT_AND_IMAGES)
        multimodal = StubProvider("B", MULTIMODAL)
        service = make_service({"a": vision, "b": multimodal}, default="a")

        with pytest.raises(AllProvidersFailedError) as exc_info:
            await service.analyze_image("")

        assert exc_info.value.details["attempted"] == ["a", "b"]
        assert "No image data" in exc_info.value.details["last_error"]
        assert vision.calls == []
        assert multimodal.calls == []

    @pytest.mark.asyncio
    async def test_single_provider_failure(self):
        provider = failing("A")
        service = make_service({"a": provider}, default="a")

        with pytest.raises(AllProvidersFailedError):
            await service.analyze_text("soup")

        assert len(provider.calls) == 1


class TestNoCapableProvider:
    """Tests for requests no provider can serve."""

    @pytest.mark.asyncio
    async def test_image_with_text_only_registry(self):
        """Test no provider is invoked when none supports the kind."""
        provider = StubProvider("A", TEXT_ONLY)
        service = make_service({"a": provider}, default="a")

        with pytest.raises(NoCapableProviderError) as exc_info:
            await service.analyze_image("aW1hZ2U=")

        assert exc_info.value.details == {"analysis_kind": "image", "capability": "images"}
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_audio_with_vision_registry(self):
        provider = StubProvider("A", TEXT_AND_IMAGES)
        service = make_service({"a": provider}, default="a")

        with pytest.raises(NoCapableProviderError):
            await service.analyze_audio("YXVkaW8=")

        assert provider.calls == []


class TestCancellation:
    """Tests for cooperative cancellation."""

    @pytest.mark.asyncio
    async def test_cancelled_before_invocation(self):
        """Test a pre-cancelled token stops the request before any call."""
        provider = StubProvider("A", TEXT_ONLY)
        service = make_service({"a": provider}, default="a")
        token = CancellationToken()
        token.cancel()

        with pytest.raises(AnalysisCancelledError):
            await service.analyze_text("soup", cancel_token=token)

        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_cancelled_during_call_discards_answer(self):
        """Test an answer arriving after cancellation is not returned."""
        token = CancellationToken()
        first = CancellingProvider(token, name="A", capabilities=TEXT_ONLY)
        second = StubProvider("B", TEXT_ONLY)
        service = make_service({"a": first, "b": second}, default="a")

        with pytest.raises(AnalysisCancelledError):
            await service.analyze_text("soup", cancel_token=token)

        assert len(first.calls) == 1
        assert second.calls == []

    @pytest.mark.asyncio
    async def test_cancellation_is_not_treated_as_failure(self):
        """Test a provider raising cancellation stops the fallback chain."""
        first = StubProvider("A", TEXT_ONLY, error=AnalysisCancelledError("text"))
        second = StubProvider("B", TEXT_ONLY)
        service = make_service({"a": first, "b": second}, default="a")

        with pytest.raises(AnalysisCancelledError):
            await service.analyze_text("soup")

        assert second.calls == []


class TestInitialization:
    """Tests for startup and health checks."""

    @pytest.mark.asyncio
    async def test_initialize_records_health(self):
        """Test every provider is probed and one failure does not stop the rest."""
        service = make_service(
            {
                "a": StubProvider("A", healthy=True),
                "b": StubProvider("B", healthy=False),
                "c": StubProvider("C", healthy=RuntimeError("boom")),
            },
            default="a",
        )

        await service.initialize()

        assert service.health_status == {"a": True, "b": False, "c": False}

    @pytest.mark.asyncio
    async def test_initialize_empty_registry(self):
        service = make_service({})

        with pytest.raises(ConfigurationError):
            await service.initialize()

    def test_from_config_builds_registry(self, ai_config):
        service = AnalysisService.from_config(ai_config)

        assert list(service.providers) == ["gemini", "deepseek"]
        assert service.default_provider is service.providers["gemini"]

    @pytest.mark.asyncio
    async def test_close_closes_providers(self):
        provider = StubProvider("A")
        service = make_service({"a": provider})

        await service.close()

        assert provider.closed is True


class TestRegistryManagement:
    """Tests for listing providers and switching the default."""

    def test_get_available_providers(self, analysis_service):
        analysis_service.health_status["gemini"] = True

        infos = {info.name: info for info in analysis_service.get_available_providers()}

        assert set(infos) == {"deepseek", "gemini"}
        assert infos["deepseek"].is_default is True
        assert infos["deepseek"].display_name == "DeepSeek"
        assert infos["deepseek"].capabilities.images is False
        assert infos["deepseek"].healthy is None
        assert infos["gemini"].is_default is False
        assert infos["gemini"].healthy is True

    @pytest.mark.asyncio
    async def test_set_default_provider(self, analysis_service):
        """Test later requests use the new default."""
        analysis_service.set_default_provider("gemini")

        result = await analysis_service.analyze_text("soup")

        assert result.provider == "gemini"

    def test_set_unknown_default_provider(self, analysis_service):
        with pytest.raises(ProviderNotFoundError):
            analysis_service.set_default_provider("nope")

        assert analysis_service.default_provider is analysis_service.providers["deepseek"]

    def test_get_config(self, analysis_service):
        assert analysis_service.get_config().default_provider == "deepseek"

