"""Static Bellevue College → UW equivalency guide.

The guide is read once per process and shared read-only between requests.
Entries are matched on their source course code exactly as written in the
guide; no case folding or whitespace normalization is applied.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Iterable

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ..config import get_settings

logger = logging.getLogger(__name__)

DEFAULT_TABLE_PATH = Path(__file__).resolve().parent.parent / "data" / "bellevue_uw_equivalencies.json"

# Marker used by the guide for generic/elective credit, e.g. "HIST 1XX".
ELECTIVE_WILDCARD = "XX"


class EquivalencyEntry(BaseModel):
    """One row of the equivalency guide."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    source_code: str | None = Field(
        default=None,
        validation_alias=AliasChoices("bellevueCourse", "bcCourse", "source_code"),
        serialization_alias="bellevueCourse",
    )
    source_title: str | None = Field(default=None, alias="bellevueTitle")
    uw_equivalent: str | None = Field(default=None, alias="uwEquivalent")
    uw_title: str | None = Field(default=None, alias="uwTitle")
    uw_credits: float | None = Field(default=None, ge=0, alias="uwCredits")
    category: str | None = None
    direct_transfer: bool = Field(default=True, alias="directTransfer")
    notes: str | None = None

    @property
    def is_elective(self) -> bool:
        """Elective-only when flagged non-direct or mapped to a wildcard code."""
        if not self.direct_transfer:
            return True
        return ELECTIVE_WILDCARD in (self.uw_equivalent or "")


class EquivalencyTable:
    """Ordered, immutable collection of equivalency entries."""

    def __init__(self, entries: Iterable[EquivalencyEntry], source: str = "<memory>"):
        self.entries: tuple[EquivalencyEntry, ...] = tuple(entries)
        self.source = source

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def find(self, course_code: str) -> EquivalencyEntry | None:
        """Return the first entry whose source code equals ``course_code``."""
        for entry in self.entries:
            if entry.source_code is not None and entry.source_code == course_code:
                return entry
        return None

    def filter_for_courses(self, course_codes: Iterable[str]) -> "EquivalencyTable":
        """Subset of entries whose source code appears in ``course_codes``.

        Order is preserved from the guide. An empty code set yields an empty
        table, never the full guide.
        """
        wanted = set(course_codes)
        if not wanted:
            return EquivalencyTable((), source=self.source)

        return EquivalencyTable(
            (e for e in self.entries if e.source_code is not None and e.source_code in wanted),
            source=self.source,
        )

    def to_payload(self) -> list[dict]:
        """JSON-ready rows for prompts and API responses."""
        return [e.model_dump(by_alias=True, exclude_none=True) for e in self.entries]

    @classmethod
    def from_json(cls, path: Path) -> "EquivalencyTable":
        """Load a guide file.

        Accepts either ``{"courses": [...]}`` or a bare list of rows.
        """
        data = json.loads(path.read_text(encoding="utf-8"))
        rows = data.get("courses", []) if isinstance(data, dict) else data

        if not isinstance(rows, list):
            raise ValueError(f"Equivalency file {path} has no course list")

        entries = [EquivalencyEntry.model_validate(row) for row in rows]
        logger.info("Loaded %d equivalency entries from %s", len(entries), path)
        return cls(entries, source=str(path))


@lru_cache
def get_equivalency_table() -> EquivalencyTable:
    """Get the process-wide equivalency guide."""
    settings = get_settings()
    return EquivalencyTable.from_json(settings.equivalency_table_path or DEFAULT_TABLE_PATH)
