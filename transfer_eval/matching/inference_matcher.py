"""Inference-assisted matching: exact codes first, then title similarity."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Sequence

from pydantic import ValidationError

from ..equivalency.table import EquivalencyTable
from ..errors import MalformedResponseError
from ..output.schemas import Course, MatchRecord
from ..reasoning.clients import ReasoningClient, strip_code_fences

logger = logging.getLogger(__name__)


# Prompt template for course matching
MATCH_PROMPT = """You are a UW transfer credit evaluator. Match each student course to UW equivalents.

Student's intended major: {major}

Relevant UW Transfer Equivalencies (only for courses the student took):
{equivalencies}

Student's Courses:
{courses}

For each student course:
1. Find exact matches in the database by courseCode
2. If no exact match, use semantic similarity on course titles to find the best UW equivalent
3. If still no match, mark as "Requires Advisor Review"

Return one match per student course, in the same order as the input.
Return a JSON object with this structure:
{{
  "matches": [
    {{
      "studentCourse": {{"courseCode": "...", "courseTitle": "...", "credits": 0, "grade": "..."}},
      "uwEquivalent": "COURSE CODE" or "Elective Credit" or "Requires Review",
      "uwTitle": "Course Title" or "General Elective" or "Needs Evaluation",
      "transferCredits": number,
      "category": "category name",
      "matchType": "exact" | "semantic" | "elective" | "review",
      "reasoning": "brief explanation"
    }}
  ],
  "summary": {{
    "totalCreditsAttempted": number,
    "totalCreditsTransferred": number,
    "directTransfers": number,
    "electiveCredits": number,
    "needsReview": number
  }}
}}

Return ONLY the JSON, no explanations or other text.
"""


@dataclass
class InferenceMatch:
    """Parsed reasoning-service answer."""

    matches: list[MatchRecord]
    transferred_hint: Any = None
    model_used: str = ""


def build_match_prompt(
    courses: Sequence[Course],
    table: EquivalencyTable,
    major: str | None = None,
) -> str:
    """Render the matching prompt for one request."""
    return MATCH_PROMPT.format(
        major=major or "Undeclared",
        equivalencies=json.dumps(table.to_payload(), indent=2, ensure_ascii=False),
        courses=json.dumps(
            [c.model_dump(by_alias=True, exclude_none=True) for c in courses],
            indent=2,
            ensure_ascii=False,
        ),
    )


def parse_match_response(text: str, courses: Sequence[Course]) -> InferenceMatch:
    """Validate the model's reply against the submitted courses.

    The reply is untrusted: the shape is checked, every record is validated,
    and each record is re-attached to the submitted course at the same
    position so the model cannot alter course data.

    Raises:
        MalformedResponseError: If the reply cannot be used as-is.
    """
    try:
        data = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"JSON parse error: {e}") from e

    if not isinstance(data, dict):
        raise MalformedResponseError("Response is not a JSON object")

    raw_matches = data.get("matches")
    if not isinstance(raw_matches, list):
        raise MalformedResponseError("Response has no 'matches' list")

    if len(raw_matches) != len(courses):
        raise MalformedResponseError(
            f"Expected {len(courses)} matches, got {len(raw_matches)}"
        )

    matches = []
    for index, (raw, course) in enumerate(zip(raw_matches, courses)):
        if not isinstance(raw, dict):
            raise MalformedResponseError(f"Match {index} is not an object")

        record = {**raw, "studentCourse": course}
        try:
            matches.append(MatchRecord.model_validate(record))
        except ValidationError as e:
            raise MalformedResponseError(f"Match {index} is invalid: {e}") from e

    summary = data.get("summary")
    hint = summary.get("totalCreditsTransferred") if isinstance(summary, dict) else None

    return InferenceMatch(matches=matches, transferred_hint=hint)


class InferenceMatcher:
    """Match courses with a reasoning service seeded by the filtered guide."""

    def __init__(self, client: ReasoningClient):
        self.client = client

    def match(
        self,
        courses: Sequence[Course],
        table: EquivalencyTable,
        major: str | None = None,
    ) -> InferenceMatch:
        """Run a single matching request.

        Args:
            courses: Submitted courses.
            table: Guide already filtered to the submitted course codes.
            major: Intended UW major, if known.

        Returns:
            InferenceMatch with validated records and the model's transfer hint.

        Raises:
            MalformedResponseError: Unusable reply.
            TransportError: The service call failed.
        """
        prompt = build_match_prompt(courses, table, major)
        logger.debug(
            "Requesting %d matches from %s with %d guide entries",
            len(courses), self.client.name, len(table),
        )

        text = self.client.complete(prompt, max_output_tokens=4096)

        result = parse_match_response(text, courses)
        result.model_used = self.client.name
        return result
