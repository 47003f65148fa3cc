"""
Errors
======

Error taxonomy for the bridge.

Malformed tool-call arguments and unrecognized tool-call types are never
raised; the converters recover from them locally. What does surface here is
fatal configuration problems, unsupported capabilities, and transport
failures mapped from the ``openai`` SDK.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorSeverity(Enum):
    """How a caller should treat an error."""

    RECOVERABLE = "recoverable"
    PERMANENT = "permanent"
    RATE_LIMITED = "rate_limited"


class LLMError(Exception):
    """Base error for everything raised by genai_bridge."""

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.PERMANENT,
        provider: str | None = None,
        model: str | None = None,
        **metadata: Any,
    ):
        super().__init__(message)
        self.severity = severity
        self.provider = provider
        self.model = model
        self.metadata = metadata


class ConfigurationError(LLMError):
    """Invalid or incomplete configuration."""


class MissingModelConfigurationError(ConfigurationError):
    """No target model identifier could be resolved for a request."""


class UnsupportedCapabilityError(LLMError):
    """The backend cannot provide the requested capability."""

    def __init__(self, message: str, capability: str, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.capability = capability


class APIError(LLMError):
    """The backend answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None, **kwargs: Any):
        kwargs.setdefault("severity", ErrorSeverity.RECOVERABLE)
        super().__init__(message, **kwargs)
        self.status_code = status_code


class RateLimitError(LLMError):
    def __init__(self, message: str, retry_after: float | None = None, **kwargs: Any):
        super().__init__(message, severity=ErrorSeverity.RATE_LIMITED, **kwargs)
        self.retry_after = retry_after


class ModelNotFoundError(LLMError):
    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, severity=ErrorSeverity.PERMANENT, **kwargs)


class ProviderErrorMapper:
    """Maps transport exceptions onto the error taxonomy."""

    @staticmethod
    def map_openai_error(
        error: Exception, provider: str | None, model: str | None
    ) -> LLMError:
        """
        Map an ``openai`` SDK exception (or anything shaped like one).

        Only ``status_code`` and ``retry_after`` attributes are consulted, so
        the mapping does not depend on SDK class identity.
        """
        status_code = getattr(error, "status_code", None)
        message = str(error)

        if status_code == 429:
            return RateLimitError(
                message,
                retry_after=getattr(error, "retry_after", None),
                provider=provider,
                model=model,
            )
        if status_code == 404:
            return ModelNotFoundError(message, provider=provider, model=model)
        if status_code is not None:
            return APIError(
                message, status_code=status_code, provider=provider, model=model
            )
        return LLMError(message, provider=provider, model=model)
