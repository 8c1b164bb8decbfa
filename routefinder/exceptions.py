"""Custom exception hierarchy for the route finder.

Every service raises one of these so the API layer can turn failures into
consistent error responses.

Exception Hierarchy:
    RouteFinderError (base)
    ├── ConfigurationError
    │   └── SynthesisError
    ├── ValidationError
    │   └── CatalogValidationError
    ├── RouteNotFoundError
    └── ExternalServiceError
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional


class RouteFinderError(Exception):
    """Base exception for all route finder errors.

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Configuration Errors
class ConfigurationError(RouteFinderError):
    """Raised when configuration or catalog template data is unusable.

    Examples:
        - Synthesis template file is missing or not valid YAML
        - Seed route directory does not exist
    """
    pass


class SynthesisError(ConfigurationError):
    """Raised when a synthesis pass cannot build a route.

    A missing qualification lookup entry or jurisdiction template is a
    data-authoring bug, so the whole pass fails instead of skipping the
    combination.
    """

    def __init__(
        self,
        message: str,
        pass_name: Optional[str] = None,
        specialty: Optional[str] = None,
        origin: Optional[str] = None,
        destination: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.pass_name = pass_name
        details = details or {}
        for key, value in (
            ("pass", pass_name),
            ("specialty", specialty),
            ("origin", origin),
            ("destination", destination),
        ):
            if value is not None:
                details[key] = value
        super().__init__(message, code, details)


# Validation Errors
class ValidationError(RouteFinderError):
    """Raised when input validation fails.

    Examples:
        - Missing required query field
        - Value out of range
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.field = field
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, code, details)


class CatalogValidationError(ValidationError):
    """Raised when a route payload fails structural validation.

    Attributes:
        errors: One entry per offending record or field
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.errors = errors or []
        details = details or {}
        if self.errors:
            details["errors"] = self.errors
        super().__init__(message, code=code, details=details)


class RouteNotFoundError(RouteFinderError):
    """Raised when a route id is not in the catalog."""

    def __init__(self, route_id: int):
        self.route_id = route_id
        super().__init__(f"Route {route_id} not found", details={"id": route_id})


# External Service Errors
class ExternalServiceError(RouteFinderError):
    """Raised when the route update source fails.

    Attributes:
        service: Name of the external service
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.service = service
        details = details or {}
        if service:
            details["service"] = service
        super().__init__(message, code, details)


def get_error_response(error: Exception) -> Dict[str, Any]:
    """Convert any exception to an API error response.

    Args:
        error: The exception to convert

    Returns:
        Dictionary suitable for API error response
    """
    if isinstance(error, RouteFinderError):
        return error.to_dict()

    return {
        "error": "InternalError",
        "message": str(error),
        "details": {},
    }
