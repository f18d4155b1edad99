"""Custom exception classes for the API."""

from typing import Any


class APIError(Exception):
    """Base exception for API errors."""

    error_code = "API_ERROR"

    def __init__(self, message: str, status_code: int = 400, details: Any = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class InputValidationError(APIError):
    """Raw analyzer input was rejected before reaching any provider."""

    error_code = "INVALID_INPUT"

    def __init__(self, message: str, details: Any = None):
        super().__init__(message=message, status_code=422, details=details)


class ConfigurationError(APIError):
    """Missing or invalid provider configuration. Fatal at startup."""

    error_code = "CONFIGURATION_ERROR"

    def __init__(self, message: str, details: Any = None):
        super().__init__(message=message, status_code=500, details=details)


class UnknownProviderTypeError(ConfigurationError):
    """Provider type name is not recognized by the factory."""

    error_code = "UNKNOWN_PROVIDER_TYPE"

    def __init__(self, provider_type: str, supported: list[str]):
        super().__init__(
            message=(
                f"Unsupported provider: {provider_type}. "
                f"Supported: {', '.join(supported)}"
            ),
            details={"provider_type": provider_type, "supported": supported},
        )


class MissingConfigError(ConfigurationError):
    """Provider type or provider config was not supplied."""

    error_code = "MISSING_CONFIG"


class NoProviderAvailableError(ConfigurationError):
    """The provider registry is empty."""

    error_code = "NO_PROVIDER_AVAILABLE"

    def __init__(self, message: str = "No AI provider is available. Check the configuration."):
        super().__init__(message=message)


class ProviderNotFoundError(APIError):
    """A provider name was requested that is not registered."""

    error_code = "PROVIDER_NOT_FOUND"

    def __init__(self, provider_name: str):
        super().__init__(
            message=f"Provider '{provider_name}' is not available",
            status_code=404,
            details={"provider": provider_name},
        )


class AnalysisError(APIError):
    """Terminal failure of a nutrition analysis."""

    error_code = "ANALYSIS_ERROR"


class NoCapableProviderError(AnalysisError):
    """No registered provider supports the requested analysis kind."""

    error_code = "NO_CAPABLE_PROVIDER"

    def __init__(self, analysis_kind: str, capability: str):
        super().__init__(
            message=f"No provider supports {analysis_kind} analysis (requires '{capability}')",
            status_code=503,
            details={"analysis_kind": analysis_kind, "capability": capability},
        )


class AllProvidersFailedError(AnalysisError):
    """Every capable provider was tried without producing a valid record."""

    error_code = "ALL_PROVIDERS_FAILED"

    def __init__(
        self,
        analysis_kind: str,
        attempted: list[str],
        last_error: str | None = None,
    ):
        super().__init__(
            message=f"{analysis_kind} analysis failed with all available providers",
            status_code=502,
            details={
                "analysis_kind": analysis_kind,
                "attempted": attempted,
                "last_error": last_error,
            },
        )


class AnalysisCancelledError(AnalysisError):
    """The caller cancelled the analysis. Not an error condition for users."""

    error_code = "CANCELLED"

    def __init__(self, analysis_kind: str | None = None):
        super().__init__(
            message="Analysis was cancelled",
            status_code=499,
            details={"analysis_kind": analysis_kind},
        )


class ResponseValidationError(Exception):
    """A provider answered, but no valid nutrition record could be extracted."""

    def __init__(self, provider: str):
        super().__init__(f"Could not extract a valid nutrition record from {provider} response")
        self.provider = provider
