from typing import Any, Dict, Tuple

from contact_api.models.contact import DeliveryOutcome

BOTH_FAILED = "Logging and email both failed"


def aggregate(outcome: DeliveryOutcome) -> Tuple[int, Dict[str, Any]]:
    """
    Map the per-channel outcome to an HTTP status and body.

    One working channel is enough for a 200 so leads still arrive while the
    other side is degraded.
    """
    if outcome.excelOk or outcome.emailOk:
        body: Dict[str, Any] = {
            "ok": True,
            "excelOk": outcome.excelOk,
            "emailOk": outcome.emailOk,
        }
        if outcome.excelError:
            body["excelError"] = outcome.excelError
        if outcome.emailError:
            body["emailError"] = outcome.emailError
        return 200, body

    return 502, {
        "error": BOTH_FAILED,
        "excelError": outcome.excelError,
        "emailError": outcome.emailError,
    }
