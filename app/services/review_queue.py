"""Read-only projection of pending content for the admin review screen."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime

from app.config import PipelineConfig
from app.models.content_item import ContentItem
from app.services.clock import Clock, SystemClock
from app.services.repository import ContentRepository
from app.utils.constants import (
    CATEGORY_PRIORITY_WEIGHTS,
    GENERATED,
    NEEDS_IMPROVEMENT,
    ORIGIN_FALLBACK,
    REVIEW,
)

PENDING_STATUSES = (GENERATED, REVIEW, NEEDS_IMPROVEMENT)

PRIORITY_LEVELS = (
    (70, "urgent"),
    (50, "high"),
    (30, "medium"),
)

CONFIDENCE_BUCKETS = (0.9, 0.8, 0.7)


@dataclass
class QueueEntry:
    item: ContentItem
    priority: str
    priority_score: float
    insights: list[str]
    auto_approve_eligible: bool
    raw_score: float | None = None


@dataclass
class ReviewQueue:
    entries: list[QueueEntry] = field(default_factory=list)
    summary: dict = field(default_factory=dict)


def age_hours(created_at: datetime | None, now: datetime) -> float:
    if created_at is None:
        return 0.0
    return max((now - created_at).total_seconds() / 3600, 0.0)


def priority_score(confidence: float, category: str, hours: float) -> float:
    score = (confidence or 0) * 40
    score += CATEGORY_PRIORITY_WEIGHTS.get(category, 0)
    score += max(0.0, 20 - hours)  # newer first, decays over 20 hours
    return round(score, 2)


def priority_level(score: float) -> str:
    for floor, level in PRIORITY_LEVELS:
        if score >= floor:
            return level
    return "low"


def priority(item: ContentItem, now: datetime) -> str:
    return priority_level(priority_score(item.confidence, item.category, age_hours(item.created_at, now)))


def insights(item: ContentItem, raw_score: float | None = None) -> list[str]:
    out = []
    if (item.confidence or 0) >= 0.9:
        out.append("High AI confidence - likely auto-approvable")
    if raw_score is not None and raw_score >= 0.8:
        out.append("High source relevance score")
    if item.category == "emergency":
        out.append("Emergency content - prioritize review")
    if item.status == REVIEW:
        out.append("Flagged for manual review by validator")
    if item.origin == ORIGIN_FALLBACK:
        out.append("Template fallback content")
    if item.manual_override:
        out.append("Edited by administrator")
    return out


def confidence_bucket(confidence: float) -> int:
    for i, floor in enumerate(CONFIDENCE_BUCKETS):
        if (confidence or 0) >= floor:
            return i
    return len(CONFIDENCE_BUCKETS)


def is_auto_approve_eligible(item: ContentItem, config: PipelineConfig) -> bool:
    return (
        (item.confidence or 0) >= config.auto_approve_threshold
        and item.origin != ORIGIN_FALLBACK
        and item.status in (GENERATED, REVIEW)
    )


def build_review_queue(
    repo: ContentRepository,
    config: PipelineConfig,
    clock: Clock | None = None,
    limit: int = 50,
) -> ReviewQueue:
    now = (clock or SystemClock()).now()

    items = repo.list_content(statuses=PENDING_STATUSES, order="recent")
    # recency order is kept inside each confidence bucket (stable sort)
    items.sort(key=lambda it: confidence_bucket(it.confidence))
    items = items[:limit]

    entries = []
    for item in items:
        raw = repo.get_raw_item(item.raw_item_id) if item.raw_item_id else None
        raw_score = raw.raw_score if raw else None
        score = priority_score(item.confidence, item.category, age_hours(item.created_at, now))
        entries.append(
            QueueEntry(
                item=item,
                priority=priority_level(score),
                priority_score=score,
                insights=insights(item, raw_score),
                auto_approve_eligible=is_auto_approve_eligible(item, config),
                raw_score=raw_score,
            )
        )

    summary = {
        "queue_count": len(entries),
        "high_confidence": sum(1 for e in entries if (e.item.confidence or 0) >= config.review_min_confidence),
        "auto_approve_eligible": sum(1 for e in entries if e.auto_approve_eligible),
        "urgent_review": sum(1 for e in entries if e.priority == "urgent"),
        "by_status": dict(Counter(e.item.status for e in entries)),
        "by_category": dict(Counter(e.item.category for e in entries)),
    }
    return ReviewQueue(entries=entries, summary=summary)
