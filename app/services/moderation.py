from __future__ import annotations

import logging
from dataclasses import dataclass

from app.config import PipelineConfig
from app.services.clock import Clock, SystemClock
from app.services.errors import ConcurrencyConflict, NotFoundError
from app.services.repository import ContentRepository
from app.services.scoring import ScoreResult, score_content
from app.services.validation import ValidationResult, validate_content
from app.schemas.metadata import parse_content_metadata
from app.utils.constants import APPROVED, LOCAL_CATEGORIES, NEEDS_IMPROVEMENT, REJECTED, REVIEW
from app.utils.lexicon import Lexicon

logger = logging.getLogger(__name__)

VALIDATOR_ACTOR = "auto-validator"


@dataclass
class AssessmentOutcome:
    content_id: str
    previous_status: str
    status: str
    confidence: float
    score: ScoreResult
    validation: ValidationResult


class ModerationService:
    """Score, validate and persist the verdict for one content item."""

    def __init__(
        self,
        repo: ContentRepository,
        config: PipelineConfig,
        lexicon: Lexicon | None = None,
        clock: Clock | None = None,
    ):
        self.repo = repo
        self.config = config
        self.lexicon = lexicon or config.load_lexicon()
        self.clock = clock or SystemClock()

    def classify(self, score: ScoreResult, validation: ValidationResult) -> str:
        # borderline text that also scores poorly goes back for rework, not to reviewers
        if validation.status == REVIEW and score.confidence < self.config.improvement_floor:
            return NEEDS_IMPROVEMENT
        return validation.status

    def assess(self, content_id: str, validated_by: str = "system", validation_type: str = "auto") -> AssessmentOutcome:
        item = self.repo.get_content(content_id)
        if not item:
            raise NotFoundError("content", content_id)
        previous = item.status

        neighborhood_name = None
        if item.neighborhood_id and item.category in LOCAL_CATEGORIES:
            neighborhood = self.repo.get_neighborhood(item.neighborhood_id)
            neighborhood_name = neighborhood.name if neighborhood else None

        score = score_content(item.body, item.title, item.category, self.lexicon)
        validation = validate_content(
            item.title,
            item.body,
            item.category,
            self.config,
            neighborhood_name=neighborhood_name,
            origin=item.origin,
            lexicon=self.lexicon,
        )
        status = self.classify(score, validation)

        meta = parse_content_metadata(item.meta)
        meta.score = score.confidence
        meta.score_breakdown = score.breakdown
        meta.word_count = score.metrics.get("word_count")

        now = self.clock.now()
        notes = "; ".join(validation.notes) or None
        fields = {
            "confidence": validation.confidence,
            "validation_notes": notes,
            "validated_at": now,
            "meta": meta,
        }
        if status == APPROVED:
            fields["approved_at"] = now
            fields["approved_by"] = VALIDATOR_ACTOR
        elif status == REJECTED:
            fields["rejected_at"] = now
            fields["rejection_reason"] = notes or "Confidence below reject threshold"

        if status == previous:
            applied = self.repo.update_fields(content_id, previous, **fields)
        else:
            applied = self.repo.update_status(content_id, previous, status, **fields)
        if not applied:
            raise ConcurrencyConflict(content_id, previous)

        self.repo.add_validation_record(
            content_id,
            checks={**validation.checks, "quality_indicators": validation.quality_indicators, "score": score.breakdown},
            confidence=validation.confidence,
            status=status,
            notes=notes,
            validation_type=validation_type,
            validated_by=validated_by,
        )

        logger.info(
            "validated content id=%s %s -> %s confidence=%.2f score=%.2f",
            content_id,
            previous,
            status,
            validation.confidence,
            score.confidence,
        )
        return AssessmentOutcome(
            content_id=content_id,
            previous_status=previous,
            status=status,
            confidence=validation.confidence,
            score=score,
            validation=validation,
        )
