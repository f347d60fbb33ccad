"""Course extraction from transcript text, PDFs and images.

Extraction never blocks the student: when no reasoning service is configured,
or any step fails, the bundled demo transcript is returned instead.
"""

import json
import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

from PIL import Image
from pydantic import ValidationError

from ..errors import DocumentValidationError, InferenceError, MalformedResponseError
from ..ingestion.image_parser import ImageParser
from ..ingestion.loader import DocumentLoader, DocumentType, LoadedDocument
from ..ingestion.pdf_parser import PDFParser
from ..output.schemas import Course
from ..reasoning.clients import ReasoningClient

logger = logging.getLogger(__name__)

SAMPLE_TRANSCRIPT_PATH = Path(__file__).resolve().parent.parent / "data" / "sample_transcript.json"

# Prompt template for course extraction
PARSE_PROMPT = """You are a transcript parser. Extract EVERY course from the transcript and return ONLY a JSON array.

Each item must include:
- courseCode (string, e.g. "MATH& 151")
- courseTitle (string)
- credits (number)
- grade (string; use "In Progress" if missing)
- institution (string; use "Unknown" if not present)

Rules:
- Do not drop courses.
- Credits must be numbers (no strings like "5 credits").
- Return raw JSON array, no markdown or prose."""

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


def extract_json_array(raw_text: str) -> list:
    """Pull a JSON array out of a model reply.

    Prefers the first fenced block, then the outermost ``[...]`` span.

    Raises:
        MalformedResponseError: If no JSON array can be parsed.
    """
    json_text = raw_text.strip()

    fenced = _FENCED_BLOCK.search(json_text)
    if fenced and fenced.group(1).strip():
        json_text = fenced.group(1)

    array_match = _JSON_ARRAY.search(json_text)
    if array_match:
        json_text = array_match.group()

    try:
        parsed = json.loads(json_text)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"JSON parse error: {e}") from e

    if not isinstance(parsed, list):
        raise MalformedResponseError("Parsed content is not an array")

    return parsed


def to_courses(items: list[Any]) -> list[Course]:
    """Validate extracted items, skipping any that are not usable courses."""
    courses = []
    for index, item in enumerate(items):
        try:
            courses.append(Course.model_validate(item))
        except ValidationError as e:
            logger.warning("Skipping extracted item %d: %s", index, e.errors()[0]["msg"])
    return courses


@lru_cache
def load_demo_courses(path: Path = SAMPLE_TRANSCRIPT_PATH) -> tuple[Course, ...]:
    """Courses from the bundled demo transcript."""
    data = json.loads(path.read_text(encoding="utf-8"))
    return tuple(Course.model_validate(c) for c in data["courses"])


class TranscriptParser:
    """Turn a transcript into a list of courses using a reasoning service."""

    def __init__(
        self,
        client: ReasoningClient | None,
        loader: DocumentLoader | None = None,
        demo_courses: tuple[Course, ...] | None = None,
    ):
        """Initialize parser.

        Args:
            client: Reasoning client, or None for demo-data mode.
            loader: Upload loader (default: 10MB limit).
            demo_courses: Fallback courses (default: bundled demo transcript).
        """
        self.client = client
        self.loader = loader or DocumentLoader()
        self.pdf_parser = PDFParser()
        self.image_parser = ImageParser()
        self._demo_courses = demo_courses

    @property
    def demo_courses(self) -> list[Course]:
        if self._demo_courses is None:
            self._demo_courses = load_demo_courses()
        return list(self._demo_courses)

    def parse_text(self, transcript_text: str) -> list[Course]:
        """Extract courses from pasted transcript text."""
        if self.client is None:
            return self.demo_courses

        try:
            return self._courses_from_text(transcript_text)
        except InferenceError as e:
            logger.warning("Transcript text parse failed, returning demo data: %s", e)
            return self.demo_courses
        except Exception:
            logger.exception("Unexpected error parsing transcript text, returning demo data")
            return self.demo_courses

    def parse_file(
        self,
        content: bytes,
        filename: str,
        declared_type: str | None = None,
    ) -> list[Course]:
        """Extract courses from an uploaded PDF or image.

        Raises:
            DocumentValidationError: The upload is empty, too large or unsupported.
        """
        document = self.loader.load_from_bytes(content, filename, declared_type)

        if self.client is None:
            return self.demo_courses

        try:
            if document.document_type == DocumentType.PDF:
                return self._courses_from_pdf(document)
            return self._courses_from_images([self.image_parser.parse(document)])
        except (InferenceError, DocumentValidationError) as e:
            logger.warning("Transcript file parse failed, returning demo data: %s", e)
            return self.demo_courses
        except Exception:
            logger.exception("Unexpected error parsing %s, returning demo data", filename)
            return self.demo_courses

    def _courses_from_text(self, transcript_text: str) -> list[Course]:
        reply = self.client.complete(
            f"{PARSE_PROMPT}\n\nTranscript:\n{transcript_text}",
            max_output_tokens=2048,
        )
        return to_courses(extract_json_array(reply))

    def _courses_from_pdf(self, document: LoadedDocument) -> list[Course]:
        # Text-layer PDFs avoid a vision call entirely
        text = self.pdf_parser.extract_text(document)
        if text:
            try:
                return self._courses_from_text(text)
            except InferenceError as e:
                logger.warning("PDF text parse failed, falling back to vision: %s", e)

        pages = self.pdf_parser.render_pages(document)
        return self._courses_from_images([p.image for p in pages])

    def _courses_from_images(self, images: list[Image.Image]) -> list[Course]:
        reply = self.client.complete(
            f"{PARSE_PROMPT}\n\nExtract every course you can read from the attached transcript pages.",
            images=images,
            max_output_tokens=2048,
        )
        return to_courses(extract_json_array(reply))
