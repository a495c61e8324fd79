from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Literal, Optional, Union
from datetime import datetime, timezone
import time

from contact_api.core.validation import is_valid_email, is_valid_url


def _now_ms() -> int:
    return int(time.time() * 1000)


class SubmissionDraft(BaseModel):
    """In-progress form state for one form session"""
    name: str = ""
    email: str = ""
    message: str = ""
    hasWebsite: Optional[Literal["yes", "no"]] = None  # unset until the visitor picks one
    website: str = ""
    # Honeypots - hidden from humans, filled by bots
    honey: str = ""
    company: str = ""
    formOpenedAt: int = Field(default_factory=_now_ms, description="Epoch milliseconds when the form mounted")


class SubmissionMeta(BaseModel):
    page: str = "/"
    ts: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    userAgent: str = ""
    timeSpentMs: Optional[int] = None
    source: Optional[str] = None


class SubmissionPayload(BaseModel):
    """Canonical request body sent to POST /api/contact"""
    model_config = ConfigDict(frozen=True)

    name: str
    email: str
    message: str
    hasWebsite: bool
    website: Optional[str] = None
    honey: Optional[str] = None
    meta: SubmissionMeta

    @field_validator("email")
    @classmethod
    def email_must_match_pattern(cls, value: str) -> str:
        if not is_valid_email(value):
            raise ValueError("email must look like local@domain.tld")
        return value

    @field_validator("website")
    @classmethod
    def website_must_be_http_url(cls, value: Optional[str]) -> Optional[str]:
        if value and not is_valid_url(value):
            raise ValueError("website must be an http(s) URL")
        return value


class ContactRequestMeta(BaseModel):
    page: Optional[str] = None
    ts: Optional[str] = None
    userAgent: Optional[str] = None
    timeSpentMs: Optional[Union[int, float, str]] = None
    source: Optional[str] = None


class ContactRequest(BaseModel):
    """Lenient view of the request body; callers send several shapes"""
    name: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None
    hasWebsite: Optional[Union[bool, str]] = None  # true/false or "yes"/"no"
    website: Optional[str] = None
    honey: Optional[str] = None
    company: Optional[str] = None
    meta: Optional[ContactRequestMeta] = None


class ContactSubmission(BaseModel):
    """Server-validated submission handed to both delivery channels"""
    name: str
    email: str
    message: str
    hasWebsite: bool
    website: str = ""
    submittedAt: str
    source: str = ""
    timeSpentMs: Optional[Union[int, float]] = None
    userAgent: str = ""
    page: str = ""
    ip: Optional[str] = None


class DeliveryOutcome(BaseModel):
    excelOk: bool = False
    excelError: Optional[str] = None
    emailOk: bool = False
    emailError: Optional[str] = None
