from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List

from pydantic import BaseModel, Field


def utc_now_iso() -> str:
    """
    UTC timestamp in ISO-8601 with 'Z' suffix, seconds precision.
    Example: 2026-01-08T17:12:34Z
    """
    return (
        datetime.now(timezone.utc)
        .replace(microsecond=0)
        .isoformat()
        .replace("+00:00", "Z")
    )


class ArchivedEntry(BaseModel):
    name: str
    source_path: str
    file_size: int
    compress_size: int
    crc32: int
    utf8_flag: bool = True
    unicode_extra_field: bool = True


class SkippedInput(BaseModel):
    source_path: str
    reason: str  # directory, missing, not_regular_file


class ArchiveResult(BaseModel):
    schema_version: str = "1.0"
    archive_path: str
    timestamp_utc: str = Field(default_factory=utc_now_iso)

    entries: List[ArchivedEntry] = Field(default_factory=list)
    skipped: List[SkippedInput] = Field(default_factory=list)
    tool: Dict[str, Any] = Field(default_factory=dict)

    @property
    def total_bytes(self) -> int:
        return sum(e.file_size for e in self.entries)
