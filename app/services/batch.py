"""
Batch and auto-approval actions over many content items.

Each item is handled on its own: a missing id, a low confidence or a lost race
is recorded in that item's result and the remaining items still run.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from app.config import PipelineConfig
from app.models.content_item import ContentItem
from app.services.clock import Clock, SystemClock
from app.services.errors import (
    ConcurrencyConflict,
    InvalidTransitionError,
    LowConfidenceError,
    NotFoundError,
    PipelineError,
)
from app.services.publication import PublicationFanout
from app.services.repository import ContentRepository
from app.services.state_machine import ensure_transition
from app.utils.constants import APPROVED, ARCHIVED, GENERATED, ORIGIN_FALLBACK, PUBLISHED, REJECTED, REVIEW

logger = logging.getLogger(__name__)

APPROVE_BY_CONFIDENCE = "approve_by_confidence"
APPROVE = "approve"
REJECT = "reject"
ARCHIVE = "archive"
REPUBLISH = "republish"

ACTIONS = (APPROVE_BY_CONFIDENCE, APPROVE, REJECT, ARCHIVE, REPUBLISH)

DEFAULT_CANDIDATE_STATUSES = (REVIEW, GENERATED)


@dataclass
class ItemResult:
    id: str
    old_status: str | None = None
    new_status: str | None = None
    success: bool = False
    error: str | None = None
    applied: bool = False


@dataclass
class BatchResult:
    action: str
    dry_run: bool = False
    items: list[ItemResult] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.items)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.items if r.success)

    @property
    def failed(self) -> int:
        return self.processed - self.succeeded


@dataclass
class BatchSelector:
    ids: Sequence[str] | None = None
    threshold: float | None = None
    statuses: Sequence[str] | None = None
    category: str | None = None
    neighborhood_id: str | None = None
    max_items: int | None = None


@dataclass
class BatchOptions:
    dry_run: bool = False
    min_confidence: float | None = None
    reason: str | None = None
    actor: str = "admin"
    neighborhood_id: str | None = None  # publication override
    auto: bool = False


def error_reason(exc: Exception) -> str:
    if isinstance(exc, NotFoundError):
        return "not found"
    if isinstance(exc, LowConfidenceError):
        return "low confidence"
    if isinstance(exc, ConcurrencyConflict):
        return "concurrent update"
    return str(exc)


class BatchEngine:
    def __init__(
        self,
        repo: ContentRepository,
        fanout: PublicationFanout,
        config: PipelineConfig,
        clock: Clock | None = None,
    ):
        self.repo = repo
        self.fanout = fanout
        self.config = config
        self.clock = clock or SystemClock()

    def run_batch_action(
        self,
        action: str,
        selector: BatchSelector,
        options: BatchOptions | None = None,
    ) -> BatchResult:
        options = options or BatchOptions()
        if action not in ACTIONS:
            raise ValueError(f"Unknown batch action: {action}")

        result = BatchResult(action=action, dry_run=options.dry_run)

        if action == APPROVE_BY_CONFIDENCE:
            threshold = self.config.batch_default_threshold if selector.threshold is None else selector.threshold
            for item in self.select_by_confidence(selector, threshold):
                # the threshold doubles as the per-item floor, so a concurrent edit cannot sneak under it
                opts = BatchOptions(
                    dry_run=options.dry_run,
                    min_confidence=threshold,
                    actor=options.actor,
                    neighborhood_id=options.neighborhood_id,
                    auto=options.auto,
                )
                result.items.append(self._run_one(APPROVE, item.id, opts))
        else:
            if not selector.ids:
                raise ValueError("ids are required for explicit batch actions")
            for content_id in dict.fromkeys(str(x) for x in selector.ids):
                result.items.append(self._run_one(action, content_id, options))

        logger.info(
            "batch action=%s dry_run=%s processed=%s succeeded=%s failed=%s",
            action,
            options.dry_run,
            result.processed,
            result.succeeded,
            result.failed,
        )
        return result

    def select_by_confidence(self, selector: BatchSelector, threshold: float) -> list[ContentItem]:
        return self.repo.list_content(
            statuses=tuple(selector.statuses or DEFAULT_CANDIDATE_STATUSES),
            min_confidence=threshold,
            exclude_origins=(ORIGIN_FALLBACK,),
            category=selector.category,
            neighborhood_id=selector.neighborhood_id,
            order="confidence",
            limit=selector.max_items or self.config.batch_max_items,
        )

    def _run_one(self, action: str, content_id: str, options: BatchOptions) -> ItemResult:
        res = ItemResult(id=content_id)
        try:
            item = self.repo.get_content(content_id)
            if not item:
                raise NotFoundError("content", content_id)
            res.old_status = item.status

            if action == APPROVE:
                res.new_status = self._approve(item, options)
            elif action == REJECT:
                res.new_status = self._move(item, REJECTED, options, rejected_at=self.clock.now(), rejection_reason=options.reason)
            elif action == ARCHIVE:
                res.new_status = self._move(item, ARCHIVED, options)
            elif action == REPUBLISH:
                res.new_status = self._republish(item, options)

            res.success = True
            res.applied = not options.dry_run
        except PipelineError as e:
            res.error = error_reason(e)
            current = self.repo.get_content(content_id) if res.old_status else None
            res.new_status = current.status if current else None
            logger.info("batch %s skipped id=%s: %s", action, content_id, res.error)
        return res

    def _approve(self, item: ContentItem, options: BatchOptions) -> str:
        if options.min_confidence is not None and (item.confidence or 0) < options.min_confidence:
            raise LowConfidenceError(item.confidence, options.min_confidence)

        old = item.status
        if old != APPROVED:
            ensure_transition(old, APPROVED)
        if options.dry_run:
            return PUBLISHED

        if old != APPROVED:
            applied = self.repo.update_status(
                item.id,
                old,
                APPROVED,
                approved_at=self.clock.now(),
                approved_by=options.actor,
            )
            if not applied:
                raise ConcurrencyConflict(item.id, old)

        self.fanout.publish(item.id, options.neighborhood_id, auto=options.auto)
        return PUBLISHED

    def _move(self, item: ContentItem, target: str, options: BatchOptions, **fields) -> str:
        old = item.status
        ensure_transition(old, target)
        if options.dry_run:
            return target
        if not self.repo.update_status(item.id, old, target, **fields):
            raise ConcurrencyConflict(item.id, old)
        return target

    def _republish(self, item: ContentItem, options: BatchOptions) -> str:
        if item.status != PUBLISHED:
            raise InvalidTransitionError(item.status, PUBLISHED)
        if not options.dry_run:
            self.fanout.publish(item.id, options.neighborhood_id, auto=options.auto, republish=True)
        return PUBLISHED
