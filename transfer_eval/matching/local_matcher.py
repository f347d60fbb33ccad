"""Deterministic matching against the equivalency guide.

Used whenever no reasoning service is configured, and as the fallback when
the inference-assisted path fails. It never produces ``semantic`` matches.
"""

from typing import Iterable

from ..equivalency.table import EquivalencyEntry, EquivalencyTable
from ..output.schemas import Course, MatchRecord, MatchType

ELECTIVE_REASONING = "Maps to UW elective per equivalency guide."
EXACT_REASONING = "Direct equivalency found in Bellevue → UW guide."
REVIEW_REASONING = "No direct equivalency found; flag for advisor review."

REVIEW_EQUIVALENT = "Requires Review"
REVIEW_TITLE = "Needs Evaluation"
DEFAULT_ELECTIVE_EQUIVALENT = "Elective Credit"
DEFAULT_ELECTIVE_TITLE = "General Elective"


def match_course(course: Course, table: EquivalencyTable) -> MatchRecord:
    """Resolve a single course by exact code lookup."""
    entry = table.find(course.course_code)

    if entry is None:
        return MatchRecord(
            student_course=course,
            uw_equivalent=REVIEW_EQUIVALENT,
            uw_title=REVIEW_TITLE,
            transfer_credits=course.credits,
            category="",
            match_type=MatchType.REVIEW,
            reasoning=REVIEW_REASONING,
        )

    elective = entry.is_elective
    return MatchRecord(
        student_course=course,
        uw_equivalent=entry.uw_equivalent or DEFAULT_ELECTIVE_EQUIVALENT,
        uw_title=entry.uw_title or DEFAULT_ELECTIVE_TITLE,
        transfer_credits=_transfer_credits(entry, course),
        category=entry.category or "",
        match_type=MatchType.ELECTIVE if elective else MatchType.EXACT,
        reasoning=ELECTIVE_REASONING if elective else EXACT_REASONING,
    )


def match_locally(courses: Iterable[Course], table: EquivalencyTable) -> list[MatchRecord]:
    """One MatchRecord per course, in input order."""
    return [match_course(course, table) for course in courses]


def _transfer_credits(entry: EquivalencyEntry, course: Course) -> float:
    # A guide row without a UW credit count transfers the credits earned.
    if entry.uw_credits is None:
        return course.credits
    return entry.uw_credits
