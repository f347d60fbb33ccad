"""FastAPI application for transfer credit evaluation."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, FastAPI, File, Query, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .advisor.request_writer import AdvisorRequestWriter
from .config import get_settings
from .equivalency.table import EquivalencyTable, get_equivalency_table
from .errors import (
    DocumentValidationError,
    InferenceError,
    InvalidCoursesError,
    MatchingFailedError,
    ServiceUnavailableError,
)
from .extraction.transcript_parser import TranscriptParser
from .ingestion.loader import DocumentLoader
from .logging_config import configure_logging
from .matching.service import CourseMatcher, get_course_matcher
from .output.schemas import (
    AdvisorEmailResponse,
    AdvisorRequest,
    CoursesResponse,
    ErrorResponse,
    HealthResponse,
    MatchRequest,
    MatchResponse,
    TranscriptTextRequest,
)
from .reasoning.clients import build_reasoning_client

VERSION = "0.1.0"

# Initialize FastAPI app
app = FastAPI(
    title="Transfer Evaluation API",
    description="Bellevue College → UW transfer credit matching and advisor requests",
    version=VERSION,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache
def get_transcript_parser() -> TranscriptParser:
    """Get or create transcript parser."""
    settings = get_settings()
    return TranscriptParser(
        client=build_reasoning_client(settings),
        loader=DocumentLoader(max_file_size_bytes=settings.max_file_size_bytes),
    )


@lru_cache
def get_advisor_writer() -> AdvisorRequestWriter:
    """Get or create advisor email writer."""
    return AdvisorRequestWriter(build_reasoning_client())


def error_response(status_code: int, error: str, detail=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=detail).model_dump(exclude_none=True),
    )


@app.on_event("startup")
async def startup_event():
    """Configure logging and load the equivalency guide once."""
    settings = get_settings()
    configure_logging(settings.log_level)
    get_equivalency_table()


@app.get("/health", response_model=HealthResponse)
async def health_check(table: Annotated[EquivalencyTable, Depends(get_equivalency_table)]):
    """Health check endpoint."""
    settings = get_settings()
    return HealthResponse(
        status="healthy",
        version=VERSION,
        reasoning_backend=settings.model_label,
        inference_configured=settings.inference_configured,
        equivalency_entries=len(table),
    )


@app.post(
    "/match-courses",
    response_model=MatchResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def match_courses(
    request: MatchRequest,
    matcher: Annotated[CourseMatcher, Depends(get_course_matcher)],
):
    """Match transcript courses to UW equivalents.

    Uses the reasoning service when configured and falls back to the
    equivalency guide alone on any failure, so a result is always returned
    for a well-formed course list.
    """
    try:
        result = matcher.match(request.courses, request.major)
    except InvalidCoursesError:
        return error_response(400, "Invalid courses payload")
    except MatchingFailedError:
        return error_response(500, "Failed to match courses")

    return result.response


@app.post(
    "/parse-transcript",
    response_model=CoursesResponse,
    responses={400: {"model": ErrorResponse}},
)
def parse_transcript(
    request: TranscriptTextRequest,
    parser: Annotated[TranscriptParser, Depends(get_transcript_parser)],
):
    """Extract courses from pasted transcript text."""
    text = request.transcript_text
    if not isinstance(text, str) or not text.strip():
        return error_response(400, "No transcript text provided")

    return CoursesResponse(courses=parser.parse_text(text))


@app.post(
    "/parse-transcript-file",
    response_model=CoursesResponse,
    responses={400: {"model": ErrorResponse}},
)
def parse_transcript_file(
    parser: Annotated[TranscriptParser, Depends(get_transcript_parser)],
    file: UploadFile | None = File(default=None),
):
    """Extract courses from an uploaded PDF or image transcript."""
    if file is None:
        return error_response(400, "No file provided")

    # One byte past the limit is enough for the loader to reject the upload.
    content = file.file.read(parser.loader.max_file_size_bytes + 1)
    try:
        courses = parser.parse_file(
            content=content,
            filename=file.filename or "transcript",
            declared_type=file.content_type,
        )
    except DocumentValidationError as e:
        return error_response(400, str(e))

    return CoursesResponse(courses=courses)


@app.post(
    "/generate-advisor-request",
    response_model=AdvisorEmailResponse,
    responses={500: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
def generate_advisor_request(
    request: AdvisorRequest,
    writer: Annotated[AdvisorRequestWriter, Depends(get_advisor_writer)],
):
    """Draft an email asking a UW advisor to review flagged courses."""
    try:
        body = writer.generate(request.matches, request.student_name, request.major)
    except ServiceUnavailableError as e:
        return error_response(503, "Failed to generate advisor request", str(e))
    except InferenceError:
        return error_response(500, "Failed to generate advisor request")

    return AdvisorEmailResponse(email_body=body)


@app.get("/equivalencies")
async def list_equivalencies(
    table: Annotated[EquivalencyTable, Depends(get_equivalency_table)],
    codes: Annotated[list[str], Query(description="Bellevue course codes to look up")] = [],
):
    """Guide entries for the given course codes."""
    return {"courses": table.filter_for_courses(codes).to_payload()}


# Error handlers
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc):
    """Malformed request bodies."""
    detail = [{"loc": list(err["loc"]), "msg": err["msg"]} for err in exc.errors()]
    return error_response(400, "Invalid request payload", detail)


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler."""
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc),
        },
    )


def main():
    """Run the API server."""
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
