"""
Generation policy around the external article generator.

Transient failures are retried with exponential backoff; a permanent failure or
exhausted retries fall back to the deterministic template generator, whose
output is tagged `fallback` and capped at the fallback confidence ceiling.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from app.config import PipelineConfig
from app.models.neighborhood import Neighborhood
from app.models.raw_item import RawItem
from app.services.errors import GenerationError, PermanentGenerationError, TransientGenerationError
from app.utils.constants import ORIGIN_AUTOMATIC, ORIGIN_FALLBACK

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceItem:
    """Detached copy of a raw item, safe to hand to worker threads."""

    id: str
    source: str
    title: str
    body: str | None = None
    url: str | None = None
    category_hint: str | None = None
    raw_score: float = 0.0

    @classmethod
    def from_raw(cls, raw: RawItem) -> "SourceItem":
        return cls(
            id=raw.id,
            source=raw.source,
            title=raw.title,
            body=raw.body,
            url=raw.url,
            category_hint=raw.category_hint,
            raw_score=raw.raw_score,
        )


@dataclass(frozen=True)
class TargetNeighborhood:
    id: str
    name: str

    @classmethod
    def from_model(cls, n: Neighborhood) -> "TargetNeighborhood":
        return cls(id=n.id, name=n.name)


@dataclass
class GeneratedArticle:
    title: str
    body: str
    confidence: float
    summary: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class ArticleGenerator(Protocol):
    """
    Produces one article per raw item.

    Implementations that call out to a remote service own the time bound: a call
    must give up after `generation_timeout_seconds` and raise
    TransientGenerationError. GenerationService only retries and falls back.
    """

    def generate(self, raw_item: SourceItem, neighborhood: TargetNeighborhood | None, category: str) -> GeneratedArticle: ...


@dataclass
class GenerationOutcome:
    article: GeneratedArticle
    origin: str
    attempts: int
    errors: list[str] = field(default_factory=list)
    fallback_reason: str | None = None

    @property
    def retry_count(self) -> int:
        return max(self.attempts - 1, 0)


class GenerationService:
    def __init__(
        self,
        primary: ArticleGenerator | None,
        fallback: ArticleGenerator,
        config: PipelineConfig,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.primary = primary
        self.fallback = fallback
        self.config = config
        self.sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        return self.config.generation_backoff_seconds * (2 ** (attempt - 1))

    def generate(self, raw_item: SourceItem, neighborhood: TargetNeighborhood | None, category: str) -> GenerationOutcome:
        errors: list[str] = []
        attempts = 0

        if self.primary is None:
            return self._fall_back(raw_item, neighborhood, category, attempts, errors, "generator not configured")

        max_attempts = self.config.generation_max_attempts
        while attempts < max_attempts:
            attempts += 1
            try:
                article = self.primary.generate(raw_item, neighborhood, category)
            except PermanentGenerationError as e:
                errors.append(f"attempt {attempts}: {e}")
                logger.warning("permanent generation failure raw_item=%s: %s", raw_item.id, e)
                return self._fall_back(raw_item, neighborhood, category, attempts, errors, "permanent error")
            except TransientGenerationError as e:
                errors.append(f"attempt {attempts}: {e}")
                logger.warning(
                    "transient generation failure raw_item=%s attempt=%s/%s: %s",
                    raw_item.id,
                    attempts,
                    max_attempts,
                    e,
                )
                if attempts < max_attempts:
                    self.sleep(self.backoff_delay(attempts))
                continue

            article.confidence = min(article.confidence, self.config.confidence_ceiling)
            return GenerationOutcome(article=article, origin=ORIGIN_AUTOMATIC, attempts=attempts, errors=errors)

        return self._fall_back(raw_item, neighborhood, category, attempts, errors, "retries exhausted")

    def _fall_back(self, raw_item, neighborhood, category, attempts, errors, reason) -> GenerationOutcome:
        try:
            article = self.fallback.generate(raw_item, neighborhood, category)
        except Exception as e:
            raise GenerationError(f"Fallback generation failed for raw item {raw_item.id}: {e}") from e

        article.confidence = min(article.confidence, self.config.fallback_confidence_ceiling)
        logger.info("using fallback article raw_item=%s reason=%s", raw_item.id, reason)
        return GenerationOutcome(
            article=article,
            origin=ORIGIN_FALLBACK,
            attempts=attempts,
            errors=errors,
            fallback_reason=reason,
        )
