"""
Guidance exception system.

Usage:
    from guidance.core.exceptions import GenerationError, ValidationError

    raise ValidationError("Question is required", details={"field": "question"})
    raise GenerationError(cause=exc)
"""
from guidance.core.exceptions.base import ProjectError
from guidance.core.exceptions.errors import (
    ConfigurationError,
    ExternalServiceError,
    GenerationError,
    UnauthorizedError,
    ValidationError,
)

__all__ = [
    "ProjectError",
    "ConfigurationError",
    "ValidationError",
    "UnauthorizedError",
    "ExternalServiceError",
    "GenerationError",
]
