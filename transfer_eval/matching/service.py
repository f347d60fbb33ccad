"""Course matching entry point.

Strategy is chosen once per request: inference-assisted when a reasoning
client is supplied, deterministic otherwise. Any inference failure falls back
to the deterministic matcher, and both paths finish in the same reconciler.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Sequence

from pydantic import ValidationError

from ..equivalency.table import EquivalencyTable, get_equivalency_table
from ..errors import InferenceError, InvalidCoursesError, MatchingFailedError
from ..output.schemas import Course, MatchRecord, MatchResponse, SummaryStats
from ..reasoning.clients import ReasoningClient, build_reasoning_client
from .inference_matcher import InferenceMatcher
from .local_matcher import match_locally
from .reconciler import reconcile, usable_credit_hint

logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    """Matches plus summary, with the strategy that produced them."""

    matches: list[MatchRecord]
    summary: SummaryStats
    strategy: str = "local"
    model_used: str = ""

    @property
    def response(self) -> MatchResponse:
        return MatchResponse(matches=self.matches, summary=self.summary)


def coerce_course(item: Any) -> Course:
    """Turn one raw course item into a Course.

    Items that fail validation are kept: a missing code becomes an empty
    string that no guide row carries, so the course goes to review, and
    unusable credits count as 0.
    """
    if isinstance(item, Course):
        return item

    raw = item if isinstance(item, dict) else {}
    try:
        return Course.model_validate(raw)
    except ValidationError:
        logger.warning("Unusable course record, sending it to review: %r", item)

    code = raw.get("courseCode")
    title = raw.get("courseTitle")
    grade = raw.get("grade")
    institution = raw.get("institution")
    return Course(
        course_code=code if isinstance(code, str) else ("" if code is None else str(code)),
        course_title=title if isinstance(title, str) else "",
        credits=usable_credit_hint(raw.get("credits")) or 0,
        grade=grade if isinstance(grade, str) else None,
        institution=institution if isinstance(institution, str) else None,
    )


def coerce_courses(courses: Any) -> list[Course]:
    """Validate a raw course payload.

    Raises:
        InvalidCoursesError: If ``courses`` is not a list.
    """
    if not isinstance(courses, list):
        raise InvalidCoursesError("Invalid courses payload")

    return [coerce_course(c) for c in courses]


class CourseMatcher:
    """Resolve student courses to UW equivalents."""

    def __init__(
        self,
        table: EquivalencyTable,
        reasoning_client: ReasoningClient | None = None,
    ):
        """Initialize matcher.

        Args:
            table: Full equivalency guide.
            reasoning_client: Reasoning service for inference-assisted matching.
                None selects deterministic matching only.
        """
        self.table = table
        self.reasoning_client = reasoning_client
        self.inference = InferenceMatcher(reasoning_client) if reasoning_client else None

    def match(self, courses: Any, major: str | None = None) -> MatchResult:
        """Match courses and return a reconciled result.

        Args:
            courses: List of Course objects or course dicts.
            major: Intended UW major, if known.

        Returns:
            MatchResult with one record per course.

        Raises:
            InvalidCoursesError: ``courses`` is not a list.
            MatchingFailedError: The deterministic fallback itself failed.
        """
        courses = coerce_courses(courses)
        relevant = self.table.filter_for_courses(c.course_code for c in courses)

        if self.inference is not None:
            try:
                answer = self.inference.match(courses, relevant, major)
            except InferenceError as e:
                logger.warning("Inference matching failed, using local matcher: %s", e)
            except Exception:
                logger.exception("Unexpected inference failure, using local matcher")
            else:
                summary = reconcile(answer.matches, courses, answer.transferred_hint)
                logger.info(
                    "Matched %d courses via %s: %s transferred, %d need review",
                    len(courses), answer.model_used,
                    summary.total_credits_transferred, summary.needs_review,
                )
                return MatchResult(
                    matches=answer.matches,
                    summary=summary,
                    strategy="inference",
                    model_used=answer.model_used,
                )

        return self._match_locally(courses, relevant)

    def _match_locally(self, courses: Sequence[Course], relevant: EquivalencyTable) -> MatchResult:
        try:
            matches = match_locally(courses, relevant)
            summary = reconcile(matches, courses)
        except Exception as e:
            logger.exception("Local matching failed")
            raise MatchingFailedError("Failed to match courses") from e

        logger.info(
            "Matched %d courses locally: %s transferred, %d need review",
            len(courses), summary.total_credits_transferred, summary.needs_review,
        )
        return MatchResult(matches=matches, summary=summary, strategy="local")


@lru_cache
def get_course_matcher() -> CourseMatcher:
    """Get the process-wide matcher built from settings."""
    return CourseMatcher(
        table=get_equivalency_table(),
        reasoning_client=build_reasoning_client(),
    )
