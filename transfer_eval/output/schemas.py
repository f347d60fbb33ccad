"""Pydantic schemas for API request/response and data validation."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MatchType(str, Enum):
    """How a student course was resolved against the equivalency guide."""
    EXACT = "exact"
    SEMANTIC = "semantic"
    ELECTIVE = "elective"
    REVIEW = "review"


# ============== Core Records ==============

class Course(BaseModel):
    """A course taken at the prior institution, as extracted from a transcript."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    course_code: str = Field(alias="courseCode", description='e.g. "MATH& 151"')
    course_title: str = Field(default="", alias="courseTitle")
    credits: float = Field(default=0, ge=0)
    grade: str = Field(default="In Progress")
    institution: str | None = None

    @field_validator("credits", mode="before")
    @classmethod
    def _missing_credits_are_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("grade", mode="before")
    @classmethod
    def _missing_grade_in_progress(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return "In Progress"
        return value


class MatchRecord(BaseModel):
    """Resolution of one student course to its UW equivalent."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    student_course: Course = Field(alias="studentCourse")
    uw_equivalent: str = Field(alias="uwEquivalent")
    uw_title: str = Field(alias="uwTitle")
    transfer_credits: float = Field(default=0, ge=0, alias="transferCredits")
    category: str = ""
    match_type: MatchType = Field(alias="matchType")
    reasoning: str = ""

    @field_validator("transfer_credits", mode="before")
    @classmethod
    def _missing_transfer_credits_are_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("category", "reasoning", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class SummaryStats(BaseModel):
    """Aggregate credit figures for one matching run."""

    model_config = ConfigDict(populate_by_name=True)

    total_credits_attempted: float = Field(default=0, alias="totalCreditsAttempted")
    total_credits_transferred: float = Field(default=0, alias="totalCreditsTransferred")
    direct_transfers: int = Field(default=0, alias="directTransfers")
    elective_credits: float = Field(default=0, alias="electiveCredits")
    needs_review: int = Field(default=0, alias="needsReview")
    degree_applicable: float = Field(default=0, alias="degreeApplicable")
    unapplied_credits: float = Field(default=0, alias="unappliedCredits")


# ============== Request Schemas ==============

class MatchRequest(BaseModel):
    """Request to match extracted courses against the equivalency guide."""

    courses: Any = Field(
        default=None,
        description="List of courses. Anything other than a list is rejected.",
    )
    major: str | None = Field(default=None, description="Intended UW major")


class TranscriptTextRequest(BaseModel):
    """Request to parse courses out of pasted transcript text."""

    model_config = ConfigDict(populate_by_name=True)

    transcript_text: Any = Field(default=None, alias="transcriptText")


class AdvisorRequest(BaseModel):
    """Request to draft an advisor email for courses needing review."""

    model_config = ConfigDict(populate_by_name=True)

    matches: Any = None
    student_name: str | None = Field(default=None, alias="studentName")
    major: str | None = None


# ============== Response Schemas ==============

class MatchResponse(BaseModel):
    """Uniform result of a matching run, whichever strategy produced it."""

    matches: list[MatchRecord] = Field(default_factory=list)
    summary: SummaryStats = Field(default_factory=SummaryStats)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "matches": [
                    {
                        "studentCourse": {
                            "courseCode": "MATH& 151",
                            "courseTitle": "Calculus I",
                            "credits": 5,
                            "grade": "3.7",
                        },
                        "uwEquivalent": "MATH 124",
                        "uwTitle": "Calculus with Analytic Geometry I",
                        "transferCredits": 5,
                        "category": "Mathematics",
                        "matchType": "exact",
                        "reasoning": "Direct equivalency found in Bellevue → UW guide.",
                    }
                ],
                "summary": {
                    "totalCreditsAttempted": 5,
                    "totalCreditsTransferred": 5,
                    "directTransfers": 1,
                    "electiveCredits": 0,
                    "needsReview": 0,
                    "degreeApplicable": 5,
                    "unappliedCredits": 0,
                },
            }
        }
    )


class CoursesResponse(BaseModel):
    """Courses extracted from a transcript."""

    courses: list[Course] = Field(default_factory=list)


class AdvisorEmailResponse(BaseModel):
    """Drafted advisor email."""

    model_config = ConfigDict(populate_by_name=True)

    email_body: str = Field(alias="emailBody")


class ErrorResponse(BaseModel):
    """Error body returned by every failing endpoint."""

    error: str
    detail: Any = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    reasoning_backend: str = "local"
    inference_configured: bool = False
    equivalency_entries: int = 0
