"""
Versioned metadata stored in the JSON columns of raw and content items.

Blobs are validated here on the way in and out of the repository so the rest
of the code works with typed fields instead of dict lookups.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

METADATA_SCHEMA_VERSION = 1


class _VersionedMetadata(BaseModel):
    schema_version: int = METADATA_SCHEMA_VERSION

    @field_validator("schema_version")
    @classmethod
    def _known_version(cls, v: int) -> int:
        if v != METADATA_SCHEMA_VERSION:
            raise ValueError(f"Unsupported metadata schema_version: {v}")
        return v

    def dump(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)


class RawItemMetadata(_VersionedMetadata):
    author: Optional[str] = None
    published_date: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    neighborhood_ids: List[str] = Field(default_factory=list)
    extra: Dict[str, Any] = Field(default_factory=dict)


class ContentMetadata(_VersionedMetadata):
    summary: Optional[str] = None
    word_count: Optional[int] = None
    local_keywords: List[str] = Field(default_factory=list)

    # generation
    source: Optional[str] = None
    model: Optional[str] = None
    generation_attempts: int = 0
    generation_errors: List[str] = Field(default_factory=list)
    fallback_reason: Optional[str] = None

    # last scoring pass
    score: Optional[float] = None
    score_breakdown: Dict[str, float] = Field(default_factory=dict)


def parse_raw_metadata(data: dict | None) -> RawItemMetadata:
    return RawItemMetadata.model_validate(data or {})


def parse_content_metadata(data: dict | None) -> ContentMetadata:
    return ContentMetadata.model_validate(data or {})
