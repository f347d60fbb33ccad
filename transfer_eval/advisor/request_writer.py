"""Advisor email drafting for courses that need a human decision."""

import json
import logging
from typing import Any, Iterable

from pydantic import ValidationError

from ..errors import MalformedResponseError, ServiceUnavailableError
from ..output.schemas import MatchRecord, MatchType
from ..reasoning.clients import ReasoningClient

logger = logging.getLogger(__name__)

ADVISOR_PROMPT = """Generate a professional email to a UW academic advisor requesting review of transfer credits.

Student Name: {student_name}
Intended Major: {major}

Courses needing review:
{courses}

Write a concise, professional email that:
1. Introduces the student and their transfer institution
2. Lists courses that need evaluation
3. Requests clarification on how these credits will transfer
4. Thanks the advisor for their time

Return only the email body text, ready to send."""

REVIEW_TYPES = {MatchType.REVIEW, MatchType.ELECTIVE}


def courses_needing_review(matches: Any) -> list[dict]:
    """Review and elective matches, as JSON-ready dicts.

    Non-list payloads and entries that are not valid match records are ignored.
    """
    if not isinstance(matches, list):
        return []

    selected = []
    for item in matches:
        try:
            record = item if isinstance(item, MatchRecord) else MatchRecord.model_validate(item)
        except ValidationError:
            continue
        if record.match_type in REVIEW_TYPES:
            selected.append(record.model_dump(mode="json", by_alias=True))
    return selected


class AdvisorRequestWriter:
    """Draft the advisor email with the reasoning service."""

    def __init__(self, client: ReasoningClient | None):
        self.client = client

    def generate(
        self,
        matches: Iterable[Any],
        student_name: str | None = None,
        major: str | None = None,
    ) -> str:
        """Return the email body.

        Raises:
            ServiceUnavailableError: No reasoning service configured.
            InferenceError: The service call failed or returned nothing usable.
        """
        if self.client is None:
            raise ServiceUnavailableError("Reasoning service not configured")

        review = courses_needing_review(matches)
        prompt = ADVISOR_PROMPT.format(
            student_name=student_name or "Student",
            major=major or "Undeclared",
            courses=json.dumps(review, indent=2, ensure_ascii=False),
        )

        logger.debug("Drafting advisor email for %d courses", len(review))
        body = self.client.complete(prompt, max_output_tokens=2048).strip()
        if not body:
            raise MalformedResponseError("Empty email body")
        return body
