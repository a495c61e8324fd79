from datetime import datetime, timezone
from typing import Any, Optional

from contact_api.models.contact import SubmissionDraft, SubmissionMeta, SubmissionPayload


def normalize_has_website(value: Any) -> bool:
    """Booleans pass through; only the string "yes" (any case) is True"""
    if isinstance(value, bool):
        return value
    return str(value if value is not None else "").strip().lower() == "yes"


def build_payload(
    draft: SubmissionDraft,
    page: str,
    user_agent: str,
    time_spent_ms: Optional[int],
    now: Optional[datetime] = None,
    source: Optional[str] = None,
) -> SubmissionPayload:
    """
    Turn a validated draft into the wire payload.

    Pure: the caller supplies page, user agent, elapsed time and clock.
    """
    now = now or datetime.now(timezone.utc)
    has_website = normalize_has_website(draft.hasWebsite)
    website = draft.website.strip() if has_website else ""

    return SubmissionPayload(
        name=draft.name.strip(),
        email=draft.email.strip(),
        message=draft.message.strip(),
        hasWebsite=has_website,
        website=website or None,
        honey=draft.honey,
        meta=SubmissionMeta(
            page=page,
            ts=now.isoformat(),
            userAgent=user_agent,
            timeSpentMs=time_spent_ms,
            source=source,
        ),
    )
