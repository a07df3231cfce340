"""Error taxonomy shared by the HTTP layer and the Discord integration."""
from __future__ import annotations

from typing import Any, Optional


class PortalError(Exception):
    """Base error carrying the HTTP status and the text pack key to render."""

    status_code = 500
    text_key = "error_generic"

    def __init__(self, detail: str = "", *, text_key: Optional[str] = None, errors: Any = None) -> None:
        super().__init__(detail or self.__class__.__name__)
        self.detail = detail
        if text_key:
            self.text_key = text_key
        self.errors = errors


class ValidationError(PortalError):
    status_code = 400
    text_key = "api_invalid_data"


class AuthenticationRequiredError(PortalError):
    status_code = 401
    text_key = "api_admin_required"


class NotFoundError(PortalError):
    status_code = 404
    text_key = "api_not_found"


class MemberNotFoundError(NotFoundError):
    text_key = "api_member_not_found"


class ApplicationNotFoundError(NotFoundError):
    text_key = "api_application_not_found"


class PermissionDeniedError(PortalError):
    status_code = 403
    text_key = "api_forbidden"


class ApplicationClosedError(PermissionDeniedError):
    text_key = "api_application_closed"


class ReviewerRoleRequiredError(PermissionDeniedError):
    text_key = "discord_reviewer_only"


class ConflictError(PortalError):
    status_code = 409
    text_key = "api_conflict"


class ApplicationAlreadyReviewedError(ConflictError):
    text_key = "api_application_already_reviewed"

    def __init__(self, application_id: str, status: str) -> None:
        super().__init__(f"Application {application_id} is already {status}.")
        self.application_id = application_id
        self.status = status


class ConfigurationError(PortalError):
    text_key = "api_configuration_error"


class UpstreamError(PortalError):
    text_key = "api_upstream_error"


class GatewayUnavailableError(UpstreamError):
    """Raised when the Discord gateway has not completed its handshake."""


__all__ = [
    "ApplicationAlreadyReviewedError",
    "ApplicationClosedError",
    "ApplicationNotFoundError",
    "AuthenticationRequiredError",
    "ConfigurationError",
    "ConflictError",
    "GatewayUnavailableError",
    "MemberNotFoundError",
    "NotFoundError",
    "PermissionDeniedError",
    "PortalError",
    "ReviewerRoleRequiredError",
    "UpstreamError",
    "ValidationError",
]
