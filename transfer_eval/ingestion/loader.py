"""Transcript upload loader with file type detection and validation."""

import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from ..errors import DocumentValidationError


class DocumentType(str, Enum):
    """Supported transcript file types."""
    PDF = "pdf"
    IMAGE = "image"
    UNKNOWN = "unknown"


@dataclass
class LoadedDocument:
    """An uploaded transcript ready for extraction."""

    file_path: Path
    document_type: DocumentType
    file_size: int
    content: bytes
    media_type: str = "application/octet-stream"
    metadata: dict = field(default_factory=dict)


MIME_TYPE_MAP = {
    "application/pdf": DocumentType.PDF,
    "image/jpeg": DocumentType.IMAGE,
    "image/png": DocumentType.IMAGE,
    "image/webp": DocumentType.IMAGE,
    "image/gif": DocumentType.IMAGE,
}

EXTENSION_MAP = {
    ".pdf": ("application/pdf", DocumentType.PDF),
    ".jpg": ("image/jpeg", DocumentType.IMAGE),
    ".jpeg": ("image/jpeg", DocumentType.IMAGE),
    ".png": ("image/png", DocumentType.IMAGE),
    ".webp": ("image/webp", DocumentType.IMAGE),
    ".gif": ("image/gif", DocumentType.IMAGE),
}

# Magic bytes checked when neither extension nor declared type is conclusive
SIGNATURES = (
    (b"%PDF", "application/pdf"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
)


class DocumentLoader:
    """Load and validate transcript uploads."""

    def __init__(self, max_file_size_bytes: int = 10 * 1024 * 1024):
        """Initialize loader with size limit.

        Args:
            max_file_size_bytes: Maximum allowed file size in bytes.
        """
        self.max_file_size_bytes = max_file_size_bytes

    def detect_media_type(
        self,
        file_path: Path,
        content: bytes | None = None,
        declared_type: str | None = None,
    ) -> str | None:
        """Detect the media type from extension, declared type and magic bytes.

        Args:
            file_path: Original filename as a path.
            content: Optional file content for magic byte detection.
            declared_type: Content type sent by the client, if any.

        Returns:
            Supported media type, or None.
        """
        # Try extension first
        ext = file_path.suffix.lower()
        if ext in EXTENSION_MAP:
            return EXTENSION_MAP[ext][0]

        # Browsers send image/jpg for JPEG
        if declared_type == "image/jpg":
            declared_type = "image/jpeg"
        if declared_type in MIME_TYPE_MAP:
            return declared_type

        mime_type, _ = mimetypes.guess_type(str(file_path))
        if mime_type in MIME_TYPE_MAP:
            return mime_type

        if content:
            for signature, media_type in SIGNATURES:
                if content.startswith(signature):
                    return media_type
            if content[:4] == b"RIFF" and content[8:12] == b"WEBP":
                return "image/webp"

        return None

    def load_from_bytes(
        self,
        content: bytes,
        filename: str,
        declared_type: str | None = None,
    ) -> LoadedDocument:
        """Load a transcript from uploaded bytes.

        Args:
            content: File content as bytes.
            filename: Original filename.
            declared_type: Content type sent by the client.

        Returns:
            LoadedDocument instance.

        Raises:
            DocumentValidationError: If the file is empty, too large or unsupported.
        """
        if len(content) == 0:
            raise DocumentValidationError("File is empty")

        if len(content) > self.max_file_size_bytes:
            raise DocumentValidationError(
                f"File size {len(content)} bytes exceeds maximum "
                f"{self.max_file_size_bytes} bytes"
            )

        file_path = Path(filename or "transcript")
        media_type = self.detect_media_type(file_path, content, declared_type)
        if media_type is None:
            raise DocumentValidationError(
                "Unsupported file type. Please upload a PDF or image (JPEG, PNG, WebP, GIF)."
            )

        return LoadedDocument(
            file_path=file_path,
            document_type=MIME_TYPE_MAP[media_type],
            file_size=len(content),
            content=content,
            media_type=media_type,
            metadata={"filename": file_path.name},
        )
