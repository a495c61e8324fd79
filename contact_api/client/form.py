"""
Form-side half of the contact pipeline.

ContactForm holds one form session (the draft, its inline errors and the
submit status) and runs validation, the anti-spam gate and the payload
builder before anything touches the network. ContactClient performs the
POST to /api/contact.
"""

import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional

import httpx

from contact_api.core.antispam import check_submission, time_spent_ms
from contact_api.core.errors import DeliveryError, ValidationError
from contact_api.core.payload import build_payload
from contact_api.core.validation import FieldError, validate_draft
from contact_api.models.contact import SubmissionDraft, SubmissionPayload

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Sorry, something went wrong. Please try again in a moment."
EMAIL_ISSUE_NOTE = "Received! (Email had an issue, but your info was saved.)"
EXCEL_ISSUE_NOTE = "Received! (Excel logging had an issue; I'll fix it.)"

EDITABLE_FIELDS = ("name", "email", "message", "website", "honey", "company")


class FormStatus(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def label(self) -> str:
        return {
            FormStatus.IDLE: "Send message",
            FormStatus.SENDING: "Sending…",
            FormStatus.SUCCESS: "Sent ✓",
            FormStatus.ERROR: "Try again",
        }[self]


class ContactClient:
    def __init__(self, base_url: str, transport: Optional[httpx.AsyncBaseTransport] = None, timeout: float = 15.0):
        self.base_url = base_url.rstrip("/")
        self.transport = transport
        self.timeout = timeout

    async def post_submission(self, payload: SubmissionPayload) -> Dict[str, Any]:
        async with httpx.AsyncClient(base_url=self.base_url, transport=self.transport, timeout=self.timeout) as client:
            response = await client.post("/api/contact", json=payload.model_dump(exclude_none=True))

        if not response.is_success:
            raise DeliveryError(f"API {response.status_code}: {response.text}", upstream_status=response.status_code, upstream_body=response.text)

        try:
            return response.json()
        except ValueError:
            return {}


class ContactForm:
    def __init__(
        self,
        page: str = "/contact",
        user_agent: str = "",
        source: Optional[str] = None,
        require_message: bool = True,
        min_dwell_ms: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.page = page
        self.user_agent = user_agent
        self.source = source
        self.require_message = require_message
        self.min_dwell_ms = min_dwell_ms  # the home-page modal uses 3000
        self.clock = clock

        self.draft = SubmissionDraft(formOpenedAt=self._now_ms())
        self.errors: Dict[str, FieldError] = {}
        self.status = FormStatus.IDLE
        self.note: Optional[str] = None
        self.error: Optional[str] = None

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def change(self, field: str, value: str):
        if field not in EDITABLE_FIELDS:
            raise KeyError(field)
        setattr(self.draft, field, value)
        self.errors.pop(field, None)

    def set_has_website(self, value: str):
        if value not in ("yes", "no"):
            raise ValueError("hasWebsite must be 'yes' or 'no'")
        self.draft.hasWebsite = value
        if value == "no":
            self.draft.website = ""
        self.errors.pop("hasWebsite", None)
        self.errors.pop("website", None)

    def validate(self) -> bool:
        self.errors = validate_draft(self.draft, self.require_message)
        return not self.errors

    def prepare(self) -> Optional[SubmissionPayload]:
        """
        Validate, screen and build the payload.

        Returns None when the anti-spam gate discards the submission.

        Raises:
            ValidationError: inline errors must be fixed first
        """
        if not self.validate():
            raise ValidationError(fields={field: error.message for field, error in self.errors.items()})

        spent = time_spent_ms(self.draft.formOpenedAt, self._now_ms())
        verdict = check_submission(self.draft.honey, self.draft.company, spent, self.min_dwell_ms)
        if verdict.discarded:
            return None

        return build_payload(self.draft, page=self.page, user_agent=self.user_agent, time_spent_ms=spent, source=self.source)

    async def submit(self, client: ContactClient) -> FormStatus:
        try:
            payload = self.prepare()
        except ValidationError:
            return self.status

        self.note = None
        self.error = None

        if payload is None:
            # Discarded by the gate; look successful to whoever filled the form
            self.status = FormStatus.SUCCESS
            return self.status

        self.status = FormStatus.SENDING
        try:
            result = await client.post_submission(payload)
        except Exception as e:
            logger.error(f"Contact submit error: {str(e)}")
            self.status = FormStatus.ERROR
            self.error = GENERIC_ERROR
            return self.status

        if result.get("ok"):
            if result.get("emailOk") is False and result.get("excelOk") is True:
                self.note = EMAIL_ISSUE_NOTE
            elif result.get("excelOk") is False and result.get("emailOk") is True:
                self.note = EXCEL_ISSUE_NOTE

        self.status = FormStatus.SUCCESS
        return self.status

    def reset(self):
        """Start a new session after a successful submit"""
        self.draft = SubmissionDraft(formOpenedAt=self._now_ms())
        self.errors = {}
        self.status = FormStatus.IDLE
        self.note = None
        self.error = None
