from __future__ import annotations

from enum import Enum
from typing import Any


class ClubSiteError(Exception):
    """
    Base for every error the backend maps to an HTTP response.

    `public_message` is the only text that reaches an end user; everything
    else (provider status, bodies, keys) is for server-side logs.
    """

    code = "internal_error"
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, *, public_message: str | None = None):
        super().__init__(message or self.default_message)
        self.public_message = public_message or self.default_message

    def to_response_body(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.public_message}


class ValidationError(ClubSiteError):
    code = "validation_error"
    status_code = 400
    default_message = "Missing required fields"

    def __init__(self, message: str | None = None, *, fields: list[str] | None = None):
        msg = message or self.default_message
        # Field-level detail is safe to echo back to the caller.
        super().__init__(msg, public_message=msg)
        self.fields = list(fields or [])

    def to_response_body(self) -> dict[str, Any]:
        body = super().to_response_body()
        if self.fields:
            body["fields"] = self.fields
        return body


class NotConfiguredError(ClubSiteError):
    code = "not_configured"
    status_code = 500
    default_message = "Service not configured"

    def __init__(self, component: str, message: str | None = None):
        super().__init__(message or f"{component} is not configured")
        self.component = component


class TransportError(ClubSiteError):
    code = "transport_error"
    status_code = 500
    default_message = "Storage request failed"

    def __init__(self, message: str, *, status: int | None = None, body: str = "", public_message: str | None = None):
        super().__init__(message, public_message=public_message)
        self.status = status
        self.body = body


class DecodeError(ClubSiteError):
    code = "decode_error"
    status_code = 500
    default_message = "Stored document is malformed"


class NotFoundError(ClubSiteError):
    code = "not_found"
    status_code = 404
    default_message = "Not found"

    def __init__(self, message: str | None = None):
        msg = message or self.default_message
        super().__init__(msg, public_message=msg)


class DeliveryFailure(str, Enum):
    CREDENTIALS_INVALID = "credentials_invalid"
    SENDER_DOMAIN_UNVERIFIED = "sender_domain_unverified"
    RECIPIENT_MALFORMED = "recipient_malformed"
    SERVICE_ERROR = "service_error"

    @property
    def user_message(self) -> str:
        return _DELIVERY_MESSAGES[self]


_DELIVERY_MESSAGES = {
    DeliveryFailure.CREDENTIALS_INVALID: (
        "Email service authentication failed. Please contact the site administrator."
    ),
    DeliveryFailure.SENDER_DOMAIN_UNVERIFIED: (
        "Email sender domain is not verified. Please contact the site administrator."
    ),
    DeliveryFailure.RECIPIENT_MALFORMED: (
        "The configured inquiry email address is invalid. Please contact the site administrator."
    ),
    DeliveryFailure.SERVICE_ERROR: "Failed to process contact form. Please try again later.",
}


class DeliveryError(ClubSiteError):
    code = "delivery_error"
    status_code = 500
    default_message = DeliveryFailure.SERVICE_ERROR.user_message

    def __init__(self, reason: DeliveryFailure, *, status: int | None = None, body: str = ""):
        super().__init__(
            f"Email delivery failed ({reason.value}, status={status})",
            public_message=reason.user_message,
        )
        self.reason = reason
        self.status = status
        self.body = body

    def to_response_body(self) -> dict[str, Any]:
        body = super().to_response_body()
        body["reason"] = self.reason.value
        return body
