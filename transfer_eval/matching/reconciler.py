"""Final credit arithmetic shared by every matching strategy.

Totals are always recomputed here from the match list and the input courses.
A transferred-credit figure reported by the reasoning service is accepted as
a hint only when it is a usable number.
"""

import logging
import math
from typing import Any, Iterable, Sequence

from ..output.schemas import Course, MatchRecord, MatchType, SummaryStats

logger = logging.getLogger(__name__)

# UW applies at most 90 transfer credits toward the degree.
TRANSFER_CREDIT_CAP = 90


def usable_credit_hint(value: Any) -> float | None:
    """Return ``value`` as a float if it is a finite, non-negative number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return float(value)


def reconcile(
    matches: Sequence[MatchRecord],
    courses: Iterable[Course],
    transferred_hint: Any = None,
) -> SummaryStats:
    """Compute the authoritative summary for a matching run.

    Args:
        matches: Final per-course match records.
        courses: The courses exactly as submitted.
        transferred_hint: Transferred total reported by the reasoning service,
            if any.

    Returns:
        SummaryStats with the transfer cap applied.
    """
    attempted = sum(course.credits for course in courses)

    direct_transfers = 0
    elective_credits = 0.0
    needs_review = 0
    matched_credits = 0.0

    for match in matches:
        if match.match_type == MatchType.REVIEW:
            needs_review += 1
            continue

        matched_credits += match.transfer_credits
        if match.match_type == MatchType.ELECTIVE:
            elective_credits += match.transfer_credits
        else:
            direct_transfers += 1

    hint = usable_credit_hint(transferred_hint)
    if transferred_hint is not None and hint is None:
        logger.warning("Ignoring unusable transferred-credit hint: %r", transferred_hint)

    raw_transferred = hint if hint is not None else matched_credits
    transferred = min(raw_transferred, TRANSFER_CREDIT_CAP)

    return SummaryStats(
        total_credits_attempted=attempted,
        total_credits_transferred=transferred,
        direct_transfers=direct_transfers,
        elective_credits=elective_credits,
        needs_review=needs_review,
        degree_applicable=transferred,
        unapplied_credits=max(raw_transferred - TRANSFER_CREDIT_CAP, 0),
    )
