from contact_api.core.antispam import SpamVerdict, check_submission, coerce_time_spent, time_spent_ms


def test_time_spent_is_elapsed_milliseconds():
    assert time_spent_ms(1_000, 4_500) == 3_500
    assert time_spent_ms(5_000, 4_000) == 0


def test_either_honeypot_discards():
    assert check_submission("filled", None, 10_000) is SpamVerdict.HONEYPOT
    assert check_submission("", "Acme Corp", 10_000) is SpamVerdict.HONEYPOT
    assert SpamVerdict.HONEYPOT.discarded


def test_too_fast_submission_is_discarded():
    assert check_submission("", "", 1_200, min_dwell_ms=3000) is SpamVerdict.TOO_FAST
    assert check_submission("", "", 3_000, min_dwell_ms=3000) is SpamVerdict.ACCEPT


def test_dwell_check_skipped_without_threshold_or_timing():
    assert check_submission("", "", 10, min_dwell_ms=None) is SpamVerdict.ACCEPT
    assert check_submission("", "", None, min_dwell_ms=3000) is SpamVerdict.ACCEPT
    assert not SpamVerdict.ACCEPT.discarded


def test_time_spent_may_arrive_as_string():
    assert coerce_time_spent("2500") == 2500
    assert coerce_time_spent(1234.5) == 1234.5
    assert coerce_time_spent("soon") is None
    assert coerce_time_spent(True) is None
    assert check_submission(None, None, "2500", min_dwell_ms=3000) is SpamVerdict.TOO_FAST
