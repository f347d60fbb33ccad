"""
Pytest configuration and shared fixtures.
"""

import json

import pytest

from transfer_eval.equivalency.table import EquivalencyEntry, EquivalencyTable
from transfer_eval.errors import TransportError
from transfer_eval.output.schemas import Course
from transfer_eval.reasoning.clients import ReasoningClient


class FakeReasoningClient(ReasoningClient):
    """Reasoning client that replays canned replies instead of calling a model."""

    name = "fake/model"

    def __init__(self, replies=None, error: Exception | None = None):
        self.replies = list(replies or [])
        self.error = error
        self.prompts = []
        self.images = []

    def complete(self, prompt, images=None, max_output_tokens=4096):
        self.prompts.append(prompt)
        self.images.append(images)
        if self.error is not None:
            raise self.error
        if not self.replies:
            raise TransportError("no reply queued")
        return self.replies.pop(0)


@pytest.fixture
def fake_client():
    """Factory for fake reasoning clients."""
    def _make(*replies, error=None):
        return FakeReasoningClient(replies=replies, error=error)
    return _make


@pytest.fixture
def guide_rows() -> list[dict]:
    """A small slice of the Bellevue → UW guide."""
    return [
        {"bellevueCourse": "MATH& 151", "uwEquivalent": "MATH 124",
         "uwTitle": "Calculus with Analytic Geometry I", "uwCredits": 5,
         "category": "Mathematics", "directTransfer": True},
        {"bellevueCourse": "HIST& 101", "uwEquivalent": "XX ELECTIVE",
         "uwTitle": "History Elective", "category": "Arts & Humanities",
         "directTransfer": False},
        {"bellevueCourse": "ENGL& 101", "uwEquivalent": "ENGL 131",
         "uwTitle": "Composition: Exposition", "uwCredits": 5,
         "category": "English Composition", "directTransfer": True},
        {"bellevueCourse": "CS 250", "uwEquivalent": "CSE 1XX",
         "uwTitle": "Computer Science Elective", "uwCredits": 5,
         "category": "Computer Science", "directTransfer": True},
        {"bcCourse": "PE 100", "category": "Physical Education", "directTransfer": False},
        {"uwEquivalent": "ORPHAN 100", "uwTitle": "Row without a source code"},
    ]


@pytest.fixture
def table(guide_rows) -> EquivalencyTable:
    return EquivalencyTable(EquivalencyEntry.model_validate(r) for r in guide_rows)


@pytest.fixture
def guide_file(tmp_path, guide_rows):
    path = tmp_path / "guide.json"
    path.write_text(json.dumps({"courses": guide_rows}), encoding="utf-8")
    return path


@pytest.fixture
def courses() -> list[Course]:
    return [
        Course(course_code="MATH& 151", course_title="Calculus I", credits=5, grade="3.7"),
        Course(course_code="HIST& 101", course_title="Western Civilization I", credits=5, grade="3.2"),
        Course(course_code="GAME 110", course_title="Intro to Game Design", credits=3),
    ]


def match_reply(courses, **overrides) -> dict:
    """Build a well-formed model answer for ``courses``."""
    matches = []
    for course in courses:
        match = {
            "studentCourse": course.model_dump(by_alias=True),
            "uwEquivalent": "MATH 124",
            "uwTitle": "Calculus with Analytic Geometry I",
            "transferCredits": course.credits,
            "category": "Mathematics",
            "matchType": "exact",
            "reasoning": "Exact code match.",
        }
        match.update(overrides)
        matches.append(match)
    return {
        "matches": matches,
        "summary": {
            "totalCreditsAttempted": 999,
            "totalCreditsTransferred": sum(c.credits for c in courses),
            "directTransfers": len(courses),
            "electiveCredits": 0,
            "needsReview": 0,
        },
    }


@pytest.fixture
def make_match_reply():
    return match_reply
