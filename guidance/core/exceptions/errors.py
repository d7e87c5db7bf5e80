"""
Concrete error types raised by the pipeline and the API layer.
"""
from __future__ import annotations

from guidance.core.exceptions.base import ProjectError


class ConfigurationError(ProjectError):
    """Invalid or missing configuration."""

    default_code = "CONFIGURATION_ERROR"
    default_http_status = 500


class ValidationError(ProjectError):
    """Request input failed validation; no classification is attempted."""

    default_code = "VALIDATION_ERROR"
    default_http_status = 400


class UnauthorizedError(ProjectError):
    """Admin endpoint called without a valid API key."""

    default_code = "UNAUTHORIZED"
    default_http_status = 401


class ExternalServiceError(ProjectError):
    """An external collaborator (retrieval, email, log store) failed."""

    default_code = "EXTERNAL_SERVICE_ERROR"
    default_http_status = 502


class GenerationError(ExternalServiceError):
    """The text-generation provider failed or timed out.

    Fatal to the request: surfaced as a generic 500 with no provider detail.
    """

    default_code = "GENERATION_FAILED"
    default_http_status = 500

    def __init__(self, message: str = "Failed to generate response", **kwargs) -> None:
        super().__init__(message, **kwargs)
