"""
Error taxonomy for the contact pipeline.

BadRequestError and ValidationError are reported to the caller as 400s.
ConfigurationError and DeliveryError are raised by the delivery channels and
collected into the DeliveryOutcome instead of escaping the endpoint.
"""

from typing import Dict, Optional


class ContactError(Exception):
    """Base class for every error raised by the contact pipeline."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self) -> Dict[str, object]:
        return {"error": self.message}


class BadRequestError(ContactError):
    """Request body could not be parsed."""

    status_code = 400


class ValidationError(ContactError):
    """Submitted fields are missing or malformed."""

    status_code = 400

    def __init__(self, message: str = "Invalid or missing fields", fields: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.fields = fields or {}

    def to_response(self) -> Dict[str, object]:
        body = super().to_response()
        if self.fields:
            body["fields"] = self.fields
        return body


class ConfigurationError(ContactError):
    """A required setting or secret is missing."""

    status_code = 502


class DeliveryError(ContactError):
    """An upstream API or network call failed."""

    status_code = 502

    def __init__(self, message: str, upstream_status: Optional[int] = None, upstream_body: Optional[str] = None):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body
