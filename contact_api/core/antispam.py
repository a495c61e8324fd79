"""
Anti-spam gate.

Both checks discard silently: callers answer with a success-shaped result.
"""

import logging
import math
import time
from enum import Enum
from typing import Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_MIN_DWELL_MS = 3000


class SpamVerdict(str, Enum):
    ACCEPT = "accept"
    HONEYPOT = "honeypot"
    TOO_FAST = "timing"

    @property
    def discarded(self) -> bool:
        return self is not SpamVerdict.ACCEPT


def time_spent_ms(opened_at_ms: int, now_ms: Optional[int] = None) -> int:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return max(0, now_ms - opened_at_ms)


def coerce_time_spent(value: Union[int, float, str, None]) -> Optional[Union[int, float]]:
    """Read a client-reported timeSpentMs, which may arrive as a string"""
    if value is None or isinstance(value, bool):
        return None
    try:
        spent = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(spent):
        return None
    return int(spent) if spent.is_integer() else spent


def check_submission(
    honey: Optional[str],
    company: Optional[str],
    spent_ms: Union[int, float, str, None] = None,
    min_dwell_ms: Optional[int] = DEFAULT_MIN_DWELL_MS,
) -> SpamVerdict:
    """
    Decide whether a submission should be delivered.

    The honeypot check always runs. The dwell-time check only runs when a
    threshold is configured and the elapsed time is known.
    """
    if honey or company:
        logger.info("Honeypot field filled - discarding submission")
        return SpamVerdict.HONEYPOT

    spent = coerce_time_spent(spent_ms)
    if min_dwell_ms is not None and spent is not None and spent < min_dwell_ms:
        logger.info(f"Form completed in {spent:.0f}ms (< {min_dwell_ms}ms) - discarding submission")
        return SpamVerdict.TOO_FAST

    return SpamVerdict.ACCEPT
