from contact_api.core.aggregator import BOTH_FAILED, aggregate
from contact_api.models.contact import DeliveryOutcome


def test_both_channels_ok():
    status, body = aggregate(DeliveryOutcome(excelOk=True, emailOk=True))
    assert status == 200
    assert body == {"ok": True, "excelOk": True, "emailOk": True}


def test_spreadsheet_failure_still_succeeds():
    status, body = aggregate(DeliveryOutcome(excelOk=False, excelError="Excel add row error 404: ItemNotFound", emailOk=True))
    assert status == 200
    assert body["ok"] is True
    assert body["excelOk"] is False
    assert body["excelError"]
    assert "emailError" not in body


def test_email_failure_still_succeeds():
    status, body = aggregate(DeliveryOutcome(excelOk=True, emailOk=False, emailError="boom"))
    assert status == 200
    assert body["emailError"] == "boom"


def test_both_failed_is_bad_gateway():
    status, body = aggregate(DeliveryOutcome(excelError="a", emailError="b"))
    assert status == 502
    assert body == {"error": BOTH_FAILED, "excelError": "a", "emailError": "b"}
