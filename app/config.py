from __future__ import annotations

import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from app.utils.constants import CATEGORIES
from app.utils.lexicon import DEFAULT_LEXICON, Lexicon

load_dotenv()


class PipelineConfig(BaseModel):
    """
    Every threshold and limit used by the moderation pipeline.

    Thresholds are read here and passed down; call sites never hardcode them.
    """

    # collection
    collection_min_score: float = Field(0.6, ge=0, le=1)
    max_raw_items_per_run: int = Field(50, ge=1)

    # validation
    approve_threshold: float = Field(0.85, ge=0, le=1)
    reject_threshold: float = Field(0.40, ge=0, le=1)
    improvement_floor: float = Field(0.5, ge=0, le=1)
    confidence_ceiling: float = Field(0.95, ge=0, le=1)
    min_body_chars: int = 100
    max_body_chars: int = 1000
    min_sentences: int = 3
    min_title_chars: int = 10
    max_title_chars: int = 80

    # approval
    auto_approve_threshold: float = Field(0.85, ge=0, le=1)
    auto_approve_max_items: int = Field(20, ge=1)
    batch_default_threshold: float = Field(0.8, ge=0, le=1)
    batch_max_items: int = Field(50, ge=1)
    review_min_confidence: float = Field(0.85, ge=0, le=1)

    # generation
    fallback_confidence_ceiling: float = Field(0.60, ge=0, le=1)
    generation_max_attempts: int = Field(3, ge=1)
    generation_backoff_seconds: float = Field(1.0, ge=0)
    generation_timeout_seconds: float = Field(30.0, gt=0)
    generation_workers: int = Field(4, ge=1)
    content_types: tuple[str, ...] = CATEGORIES

    # publication
    default_neighborhood_id: str | None = "praha4"
    fallback_neighborhood_count: int = Field(3, ge=1)
    fallback_min_subscribers: int = Field(10, ge=0)

    # run lock
    stale_run_minutes: int = Field(120, ge=1)

    lexicon_path: str | None = None

    @model_validator(mode="after")
    def _check_thresholds(self):
        if self.reject_threshold > self.approve_threshold:
            raise ValueError("reject_threshold must not exceed approve_threshold")
        if self.fallback_confidence_ceiling > self.confidence_ceiling:
            raise ValueError("fallback_confidence_ceiling must not exceed confidence_ceiling")
        if self.min_body_chars > self.max_body_chars:
            raise ValueError("min_body_chars must not exceed max_body_chars")
        unknown = set(self.content_types) - set(CATEGORIES)
        if unknown:
            raise ValueError(f"Unknown content types: {', '.join(sorted(unknown))}")
        return self

    def load_lexicon(self) -> Lexicon:
        if self.lexicon_path:
            return Lexicon.from_file(self.lexicon_path)
        return DEFAULT_LEXICON

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Build config from PIPELINE_<FIELD> environment variables (unset ones keep defaults)."""
        values = {}
        for name in cls.model_fields:
            raw = os.getenv(f"PIPELINE_{name.upper()}")
            if raw is None or raw.strip() == "":
                continue
            raw = raw.strip()
            if name == "content_types":
                values[name] = tuple(x.strip() for x in raw.split(",") if x.strip())
            else:
                values[name] = raw
        return cls(**values)


@lru_cache
def get_config() -> PipelineConfig:
    return PipelineConfig.from_env()
