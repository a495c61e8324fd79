"""
Field validation shared by the form client and the contact endpoint.

The client validates for inline feedback; the endpoint re-runs the same
rules because the client check can be bypassed.
"""

import re
from enum import Enum
from typing import Dict, NamedTuple, Optional
from urllib.parse import urlparse

EMAIL_RX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class FieldErrorKind(str, Enum):
    REQUIRED = "RequiredFieldError"
    INVALID_FORMAT = "InvalidFormatError"
    REQUIRED_CHOICE = "RequiredChoiceError"
    INVALID_URL = "InvalidUrlError"


class FieldError(NamedTuple):
    kind: FieldErrorKind
    message: str


def is_valid_email(value: Optional[str]) -> bool:
    return bool(value) and EMAIL_RX.fullmatch(value) is not None


def is_valid_url(value: Optional[str]) -> bool:
    """True for absolute http/https URLs with a host"""
    if not value:
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_fields(
    name: Optional[str],
    email: Optional[str],
    message: Optional[str],
    require_message: bool = True,
) -> Dict[str, FieldError]:
    errors: Dict[str, FieldError] = {}

    if not (name or "").strip():
        errors["name"] = FieldError(FieldErrorKind.REQUIRED, "Name is required.")

    email = (email or "").strip()
    if not email:
        errors["email"] = FieldError(FieldErrorKind.REQUIRED, "Email is required.")
    elif not is_valid_email(email):
        errors["email"] = FieldError(FieldErrorKind.INVALID_FORMAT, "Enter a valid email.")

    if require_message and not (message or "").strip():
        errors["message"] = FieldError(FieldErrorKind.REQUIRED, "Message is required.")

    return errors


def validate_website(has_website: Optional[str], website: Optional[str]) -> Dict[str, FieldError]:
    """Validate the yes/no choice and, when it is yes, the website URL"""
    if has_website not in ("yes", "no"):
        return {"hasWebsite": FieldError(FieldErrorKind.REQUIRED_CHOICE, "Please choose Yes or No.")}

    if has_website == "yes":
        website = (website or "").strip()
        if not website:
            return {"website": FieldError(FieldErrorKind.REQUIRED, "Website is required if you have one.")}
        if not is_valid_url(website):
            return {"website": FieldError(FieldErrorKind.INVALID_URL, "Enter a valid URL (https://...).")}

    return {}


def validate_draft(draft, require_message: bool = True) -> Dict[str, FieldError]:
    """Run every client-side rule against a SubmissionDraft"""
    errors = validate_fields(draft.name, draft.email, draft.message, require_message)
    errors.update(validate_website(draft.hasWebsite, draft.website))
    return errors
