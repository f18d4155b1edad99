"""
DeepSeek provider.

OpenAI-compatible API. Text only: image and audio requests are rejected
before any network call.
"""

from meal_analyzer.models.nutrition import CapabilitySet

from .openai_provider import ChatCompletionsProvider


class DeepSeekProvider(ChatCompletionsProvider):
    """DeepSeek chat completions."""

    native_capabilities = CapabilitySet(text=True, images=False, audio=False)
    display_name = "DeepSeek"
    default_endpoint = "https://api.deepseek.com/chat/completions"
    default_model = "deepseek-chat"
    default_temperature = 0.7
    default_max_tokens = 1024
