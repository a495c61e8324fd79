"""
Contact form submission endpoint.

One stateless handler: parse, screen for spam, validate, then fan the
submission out to the spreadsheet logger and the email dispatcher. The two
channels are independent; one failing never stops the other from being
attempted, and their outcomes are combined by the response aggregator.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from typing import Any, Awaitable, Dict, Optional, Tuple
from datetime import datetime, timezone
import asyncio
import json
import logging

from pydantic import ValidationError as PydanticValidationError

from contact_api.api.dependencies import get_email_dispatcher, get_spreadsheet_logger
from contact_api.core.aggregator import aggregate
from contact_api.core.antispam import check_submission, coerce_time_spent
from contact_api.core.config import Settings, get_settings
from contact_api.core.errors import BadRequestError, ContactError, ValidationError
from contact_api.core.payload import normalize_has_website
from contact_api.core.validation import is_valid_url, validate_fields
from contact_api.models.contact import ContactRequest, ContactSubmission, DeliveryOutcome
from contact_api.services.mailer import EmailDispatcher
from contact_api.services.spreadsheet import SpreadsheetLogger

router = APIRouter()
logger = logging.getLogger(__name__)


def client_ip(request: Request) -> Optional[str]:
    """First forwarded hop, then proxy headers, then the socket peer"""
    headers = request.headers
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    ip = headers.get("x-real-ip") or headers.get("cf-connecting-ip")
    if ip:
        return ip
    return request.client.host if request.client else None


async def parse_body(request: Request) -> Dict[str, Any]:
    raw = await request.body()
    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise BadRequestError("Invalid JSON body") from e
    if not isinstance(body, dict):
        raise BadRequestError("Invalid JSON body")
    return body


def validate_request(body: Dict[str, Any], settings: Settings) -> ContactRequest:
    try:
        contact = ContactRequest.model_validate(body)
    except PydanticValidationError as e:
        fields = {".".join(str(part) for part in err["loc"]): err["msg"] for err in e.errors()}
        raise ValidationError(fields=fields) from e

    errors = validate_fields(contact.name, contact.email, contact.message, settings.contact_require_message)
    fields = {field: error.message for field, error in errors.items()}

    website = (contact.website or "").strip()
    if website and not is_valid_url(website):
        fields["website"] = "Enter a valid URL (https://...)."

    if fields:
        raise ValidationError(fields=fields)
    return contact


def to_submission(contact: ContactRequest, ip: Optional[str]) -> ContactSubmission:
    meta = contact.meta
    return ContactSubmission(
        name=" ".join(contact.name.split()),
        email=contact.email.strip(),
        message=(contact.message or "").strip(),
        hasWebsite=normalize_has_website(contact.hasWebsite),
        website=(contact.website or "").strip(),
        submittedAt=(meta.ts if meta and meta.ts else datetime.now(timezone.utc).isoformat()),
        source=(meta.source if meta and meta.source else ""),
        timeSpentMs=(coerce_time_spent(meta.timeSpentMs) if meta else None),
        userAgent=(meta.userAgent if meta and meta.userAgent else ""),
        page=(meta.page if meta and meta.page else ""),
        ip=ip,
    )


async def attempt(channel: str, call: Awaitable[None], timeout: float) -> Tuple[bool, Optional[str]]:
    """Run one delivery channel once; never raises"""
    try:
        await asyncio.wait_for(call, timeout=timeout)
        return True, None
    except asyncio.TimeoutError:
        error = f"{channel} timed out after {timeout:g}s"
    except ContactError as e:
        error = e.message
    except Exception as e:
        error = str(e) or type(e).__name__
    logger.error(f"❌ [contact] {channel} failed: {error}")
    return False, error


async def deliver(
    submission: ContactSubmission,
    settings: Settings,
    spreadsheet: SpreadsheetLogger,
    mailer: EmailDispatcher,
) -> DeliveryOutcome:
    timeout = settings.delivery_timeout_seconds
    (excel_ok, excel_error), (email_ok, email_error) = await asyncio.gather(
        attempt("Excel append", spreadsheet.log_submission(submission), timeout),
        attempt("Email", mailer.send_submission(submission), timeout),
    )
    return DeliveryOutcome(excelOk=excel_ok, excelError=excel_error, emailOk=email_ok, emailError=email_error)


@router.post("/contact")
async def submit_contact(
    request: Request,
    settings: Settings = Depends(get_settings),
    spreadsheet: SpreadsheetLogger = Depends(get_spreadsheet_logger),
    mailer: EmailDispatcher = Depends(get_email_dispatcher),
):
    """
    Accept a contact form submission.

    Flow:
    1. Parse the JSON body (400 on failure)
    2. Honeypot / dwell-time screen - silent success without delivery
    3. Re-validate name, email, message and website (400 on failure)
    4. Normalize hasWebsite and resolve the client IP
    5. Attempt the spreadsheet row and both emails, once each
    6. 200 if at least one channel worked, 502 if both failed
    """
    try:
        body = await parse_body(request)

        meta = body.get("meta") if isinstance(body.get("meta"), dict) else {}
        verdict = check_submission(
            body.get("honey"),
            body.get("company"),
            meta.get("timeSpentMs"),
            settings.contact_min_dwell_ms,
        )
        if verdict.discarded:
            return {"ok": True, "skipped": verdict.value}

        contact = validate_request(body, settings)
        submission = to_submission(contact, client_ip(request))
        logger.info(f"Processing contact submission from {submission.email}")

        outcome = await deliver(submission, settings, spreadsheet, mailer)
        status_code, content = aggregate(outcome)
        return JSONResponse(status_code=status_code, content=content)

    except ContactError as e:
        logger.warning(f"[contact] rejected: {e.message}")
        return JSONResponse(status_code=e.status_code, content=e.to_response())
    except Exception as e:
        logger.error(f"[contact] unhandled error: {str(e)}")
        return JSONResponse(status_code=500, content={"error": str(e) or type(e).__name__})
