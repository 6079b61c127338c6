"""
Content repository: the only place that talks to the database.

Every status write is a compare-and-swap on the expected current status, so a
stale read in one worker can never overwrite a transition made by another.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Iterable, Protocol, Sequence

from sqlalchemy import asc, desc, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.content_edit import ContentEditHistory
from app.models.content_item import ContentItem
from app.models.neighborhood import Neighborhood
from app.models.pipeline_run import PipelineRun
from app.models.publication import PublicationRecord
from app.models.raw_item import RawItem
from app.models.validation_record import ValidationRecord
from app.schemas.metadata import (
    ContentMetadata,
    RawItemMetadata,
    parse_content_metadata,
    parse_raw_metadata,
)
from app.services.clock import Clock, SystemClock
from app.services.errors import ConcurrencyConflict, NotFoundError, PipelineError
from app.services.state_machine import ensure_transition
from app.utils.constants import (
    CATEGORIES,
    DRAFT,
    ORIGIN_AUTOMATIC,
    ORIGINS,
    PUBLISHED,
    RUN_FAILED,
    RUN_RUNNING,
    STATES,
    UNCATEGORIZED,
)

logger = logging.getLogger(__name__)


class ContentRepository(Protocol):
    def add_raw_item(self, **fields) -> RawItem: ...
    def get_raw_item(self, raw_item_id: str) -> RawItem | None: ...
    def list_collectable_raw_items(self, min_score: float, limit: int, categories: Sequence[str] | None = None) -> list[RawItem]: ...

    def get_neighborhood(self, neighborhood_id: str) -> Neighborhood | None: ...
    def list_active_neighborhoods(self) -> list[Neighborhood]: ...
    def list_fallback_neighborhoods(self, limit: int, min_subscribers: int) -> list[Neighborhood]: ...

    def add_content(self, **fields) -> ContentItem: ...
    def get_content(self, content_id: str) -> ContentItem | None: ...
    def list_content(self, **filters) -> list[ContentItem]: ...
    def update_status(self, content_id: str, expected_status: str, new_status: str, **fields) -> bool: ...
    def update_fields(self, content_id: str, expected_status: str, **fields) -> bool: ...
    def update_content(self, content_id: str, **fields) -> ContentItem: ...

    def add_validation_record(self, content_id: str, **fields) -> ValidationRecord: ...
    def publish_content(
        self, content_id: str, expected_status: str, neighborhood_ids: Iterable[str], **fields
    ) -> list[PublicationRecord]: ...
    def list_publications(self, content_id: str) -> list[PublicationRecord]: ...

    def start_run(self, trigger: str, stale_after: timedelta) -> PipelineRun | None: ...
    def get_running_run(self) -> PipelineRun | None: ...
    def rollback(self) -> None: ...
    def update_run(self, run_id: str, **fields) -> None: ...
    def request_stop(self, run_id: str) -> bool: ...
    def is_stop_requested(self, run_id: str) -> bool: ...
    def finish_run(self, run_id: str, status: str, error_message: str | None = None, meta: dict | None = None) -> None: ...

    def add_edit_history(self, content_id: str, changes: dict, **fields) -> ContentEditHistory: ...


def _dump_raw_meta(value) -> dict:
    if isinstance(value, RawItemMetadata):
        return value.dump()
    return parse_raw_metadata(value).dump()


def _dump_content_meta(value) -> dict:
    if isinstance(value, ContentMetadata):
        return value.dump()
    return parse_content_metadata(value).dump()


class SqlContentRepository:
    def __init__(self, db: Session, clock: Clock | None = None):
        self.db = db
        self.clock = clock or SystemClock()

    # ---- raw items ----

    def add_raw_item(
        self,
        *,
        source: str,
        title: str,
        body: str | None = None,
        url: str | None = None,
        category_hint: str | None = None,
        raw_score: float = 0.0,
        metadata: RawItemMetadata | dict | None = None,
        collected_at=None,
    ) -> RawItem:
        if not 0 <= raw_score <= 1:
            raise ValueError("raw_score must be within [0, 1]")
        if category_hint is not None and category_hint not in CATEGORIES:
            raise ValueError(f"Unknown category: {category_hint}")

        item = RawItem(
            source=source,
            title=title,
            body=body,
            url=url,
            category_hint=category_hint,
            raw_score=raw_score,
            meta=_dump_raw_meta(metadata),
            collected_at=collected_at or self.clock.now(),
        )
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return item

    def get_raw_item(self, raw_item_id: str) -> RawItem | None:
        return self.db.get(RawItem, raw_item_id)

    def raw_metadata(self, raw: RawItem) -> RawItemMetadata:
        return parse_raw_metadata(raw.meta)

    def list_collectable_raw_items(
        self, min_score: float, limit: int, categories: Sequence[str] | None = None
    ) -> list[RawItem]:
        """
        Raw items at or above `min_score` that no content item was generated from yet.

        With `categories`, only items whose hint is one of them are returned; a
        missing hint counts as "other".
        """
        consumed = select(ContentItem.id).where(ContentItem.raw_item_id == RawItem.id)
        q = (
            select(RawItem)
            .where(RawItem.raw_score >= min_score)
            .where(~consumed.exists())
        )
        if categories is not None:
            q = q.where(func.coalesce(RawItem.category_hint, UNCATEGORIZED).in_(list(categories)))
        q = q.order_by(desc(RawItem.raw_score), desc(RawItem.collected_at)).limit(limit)
        return list(self.db.execute(q).scalars().all())

    # ---- neighborhoods ----

    def add_neighborhood(self, id: str, name: str, is_active: bool = True, subscriber_count: int = 0) -> Neighborhood:
        n = Neighborhood(id=id, name=name, is_active=is_active, subscriber_count=subscriber_count)
        self.db.add(n)
        self.db.commit()
        return n

    def get_neighborhood(self, neighborhood_id: str) -> Neighborhood | None:
        return self.db.get(Neighborhood, neighborhood_id)

    def list_active_neighborhoods(self) -> list[Neighborhood]:
        q = select(Neighborhood).where(Neighborhood.is_active.is_(True)).order_by(asc(Neighborhood.id))
        return list(self.db.execute(q).scalars().all())

    def list_fallback_neighborhoods(self, limit: int, min_subscribers: int) -> list[Neighborhood]:
        q = (
            select(Neighborhood)
            .where(Neighborhood.is_active.is_(True))
            .where(Neighborhood.subscriber_count > min_subscribers)
            .order_by(desc(Neighborhood.subscriber_count), asc(Neighborhood.id))
            .limit(limit)
        )
        return list(self.db.execute(q).scalars().all())

    # ---- content items ----

    def add_content(
        self,
        *,
        title: str,
        body: str,
        category: str,
        status: str = DRAFT,
        confidence: float = 0.0,
        origin: str = ORIGIN_AUTOMATIC,
        neighborhood_id: str | None = None,
        raw_item_id: str | None = None,
        summary: str | None = None,
        retry_count: int = 0,
        admin_notes: str | None = None,
        metadata: ContentMetadata | dict | None = None,
    ) -> ContentItem:
        if category not in CATEGORIES:
            raise ValueError(f"Unknown category: {category}")
        if status not in STATES:
            raise ValueError(f"Unknown state: {status}")
        if origin not in ORIGINS:
            raise ValueError(f"Unknown origin: {origin}")
        if not 0 <= confidence <= 1:
            raise ValueError("confidence must be within [0, 1]")

        now = self.clock.now()
        item = ContentItem(
            title=title,
            body=body,
            category=category,
            status=status,
            confidence=confidence,
            origin=origin,
            neighborhood_id=neighborhood_id,
            raw_item_id=raw_item_id,
            summary=summary,
            retry_count=retry_count,
            admin_notes=admin_notes,
            meta=_dump_content_meta(metadata),
            created_at=now,
            updated_at=now,
        )
        self.db.add(item)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise PipelineError(f"Content for raw item {raw_item_id} already exists") from e
        self.db.refresh(item)
        return item

    def get_content(self, content_id: str) -> ContentItem | None:
        return self.db.get(ContentItem, content_id)

    def content_metadata(self, item: ContentItem) -> ContentMetadata:
        return parse_content_metadata(item.meta)

    def list_content(
        self,
        *,
        statuses: Sequence[str] | None = None,
        category: str | None = None,
        neighborhood_id: str | None = None,
        min_confidence: float | None = None,
        max_confidence: float | None = None,
        exclude_origins: Sequence[str] | None = None,
        order: str = "recent",
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ContentItem]:
        q = select(ContentItem)
        if statuses:
            q = q.where(ContentItem.status.in_(list(statuses)))
        if category:
            q = q.where(ContentItem.category == category)
        if neighborhood_id:
            q = q.where(ContentItem.neighborhood_id == neighborhood_id)
        if min_confidence is not None:
            q = q.where(ContentItem.confidence >= min_confidence)
        if max_confidence is not None:
            q = q.where(ContentItem.confidence <= max_confidence)
        if exclude_origins:
            q = q.where(ContentItem.origin.not_in(list(exclude_origins)))

        if order == "confidence":
            q = q.order_by(desc(ContentItem.confidence), desc(ContentItem.created_at))
        elif order == "recent":
            q = q.order_by(desc(ContentItem.created_at))
        else:
            raise ValueError(f"Unknown order: {order}")

        if offset:
            q = q.offset(offset)
        if limit is not None:
            q = q.limit(limit)
        return list(self.db.execute(q).scalars().all())

    def update_status(self, content_id: str, expected_status: str, new_status: str, **fields) -> bool:
        """
        Move an item from `expected_status` to `new_status` if it is still there.

        Returns False (and changes nothing) when the item moved on meanwhile or
        does not exist. Raises InvalidTransitionError for transitions the state
        machine forbids.
        """
        ensure_transition(expected_status, new_status)

        if "meta" in fields and fields["meta"] is not None:
            fields["meta"] = _dump_content_meta(fields["meta"])

        values = {"status": new_status, "updated_at": self.clock.now(), **fields}
        res = self.db.execute(
            update(ContentItem)
            .where(ContentItem.id == content_id, ContentItem.status == expected_status)
            .values(**values)
        )
        self.db.commit()

        applied = res.rowcount == 1
        if not applied:
            logger.info("status update skipped id=%s expected=%s target=%s", content_id, expected_status, new_status)
        return applied

    def update_fields(self, content_id: str, expected_status: str, **fields) -> bool:
        """
        Write non-status fields only while the item is still in `expected_status`.

        Same contract as update_status for the case where the status stays put.
        """
        if "status" in fields:
            raise ValueError("Use update_status to change status")
        if "meta" in fields and fields["meta"] is not None:
            fields["meta"] = _dump_content_meta(fields["meta"])

        res = self.db.execute(
            update(ContentItem)
            .where(ContentItem.id == content_id, ContentItem.status == expected_status)
            .values(updated_at=self.clock.now(), **fields)
        )
        self.db.commit()

        applied = res.rowcount == 1
        if not applied:
            logger.info("field update skipped id=%s expected=%s", content_id, expected_status)
        return applied

    def update_content(self, content_id: str, **fields) -> ContentItem:
        """Edit non-status fields. Status changes go through update_status."""
        if "status" in fields:
            raise ValueError("Use update_status to change status")

        item = self.get_content(content_id)
        if not item:
            raise NotFoundError("content", content_id)

        if "category" in fields and fields["category"] not in CATEGORIES:
            raise ValueError(f"Unknown category: {fields['category']}")
        if "meta" in fields:
            fields["meta"] = _dump_content_meta(fields["meta"])

        for key, value in fields.items():
            if not hasattr(ContentItem, key):
                raise ValueError(f"Unknown content field: {key}")
            setattr(item, key, value)
        item.updated_at = self.clock.now()

        self.db.commit()
        self.db.refresh(item)
        return item

    # ---- validation history ----

    def add_validation_record(
        self,
        content_id: str,
        *,
        checks: dict,
        confidence: float,
        status: str,
        notes: str | None = None,
        validation_type: str = "auto",
        validated_by: str = "system",
    ) -> ValidationRecord:
        rec = ValidationRecord(
            content_id=content_id,
            checks=checks,
            confidence=confidence,
            status=status,
            notes=notes,
            validation_type=validation_type,
            validated_by=validated_by,
            validated_at=self.clock.now(),
        )
        self.db.add(rec)
        self.db.commit()
        return rec

    def list_validation_records(self, content_id: str) -> list[ValidationRecord]:
        q = (
            select(ValidationRecord)
            .where(ValidationRecord.content_id == content_id)
            .order_by(asc(ValidationRecord.validated_at))
        )
        return list(self.db.execute(q).scalars().all())

    # ---- publication ----

    def publish_content(
        self,
        content_id: str,
        expected_status: str,
        neighborhood_ids: Iterable[str],
        *,
        category: str,
        auto: bool = False,
    ) -> list[PublicationRecord]:
        """
        Mark the item published and add the missing publication records in one
        transaction. `expected_status` is APPROVED, or PUBLISHED for a republish.
        Returns only the records created by this call.
        """
        if expected_status != PUBLISHED:
            ensure_transition(expected_status, PUBLISHED)

        now = self.clock.now()
        values = {"status": PUBLISHED, "updated_at": now}
        if expected_status != PUBLISHED:
            values["published_at"] = now

        created: list[PublicationRecord] = []
        try:
            res = self.db.execute(
                update(ContentItem)
                .where(ContentItem.id == content_id, ContentItem.status == expected_status)
                .values(**values)
            )
            if res.rowcount != 1:
                self.db.rollback()
                raise ConcurrencyConflict(content_id, expected_status)

            existing = set(
                self.db.execute(
                    select(PublicationRecord.neighborhood_id).where(PublicationRecord.content_id == content_id)
                ).scalars()
            )
            for nid in dict.fromkeys(neighborhood_ids):
                if nid in existing:
                    continue
                rec = PublicationRecord(
                    content_id=content_id,
                    neighborhood_id=nid,
                    category=category,
                    auto_published=auto,
                    published_at=now,
                )
                self.db.add(rec)
                created.append(rec)

            self.db.commit()
        except IntegrityError:
            # another worker inserted the same (content, neighborhood) pair first
            self.db.rollback()
            raise ConcurrencyConflict(content_id, expected_status)

        return created

    def list_publications(self, content_id: str) -> list[PublicationRecord]:
        q = (
            select(PublicationRecord)
            .where(PublicationRecord.content_id == content_id)
            .order_by(asc(PublicationRecord.neighborhood_id))
        )
        return list(self.db.execute(q).scalars().all())

    # ---- pipeline runs ----

    def start_run(self, trigger: str, stale_after: timedelta) -> PipelineRun | None:
        """
        Create a running PipelineRun, or return None if another one is running.

        Runs left `running` for longer than `stale_after` (crashed workers) are
        marked failed first so they do not hold the lock forever.
        """
        now = self.clock.now()
        stale = self.db.execute(
            update(PipelineRun)
            .where(PipelineRun.status == RUN_RUNNING, PipelineRun.started_at < now - stale_after)
            .values(status=RUN_FAILED, completed_at=now, error_message="Run exceeded the stale run timeout")
        )
        self.db.commit()
        if stale.rowcount:
            logger.warning("marked %s stale pipeline run(s) as failed", stale.rowcount)

        if self.get_running_run() is not None:
            return None

        run = PipelineRun(trigger=trigger, status=RUN_RUNNING, started_at=now)
        self.db.add(run)
        try:
            self.db.commit()
        except IntegrityError:
            # lost the race against a concurrent trigger; the unique index held
            self.db.rollback()
            return None

        self.db.refresh(run)
        return run

    def get_running_run(self) -> PipelineRun | None:
        q = select(PipelineRun).where(PipelineRun.status == RUN_RUNNING).limit(1)
        return self.db.execute(q).scalars().first()

    def rollback(self) -> None:
        self.db.rollback()

    def get_run(self, run_id: str) -> PipelineRun | None:
        return self.db.get(PipelineRun, run_id)

    def list_runs(self, limit: int = 20) -> list[PipelineRun]:
        q = select(PipelineRun).order_by(desc(PipelineRun.started_at)).limit(limit)
        return list(self.db.execute(q).scalars().all())

    def update_run(self, run_id: str, **fields) -> None:
        self.db.execute(update(PipelineRun).where(PipelineRun.id == run_id).values(**fields))
        self.db.commit()

    def request_stop(self, run_id: str) -> bool:
        """Flag a running run to stop at its next stage boundary. False if it is not running."""
        res = self.db.execute(
            update(PipelineRun)
            .where(PipelineRun.id == run_id, PipelineRun.status == RUN_RUNNING)
            .values(stop_requested=True)
        )
        self.db.commit()
        return res.rowcount == 1

    def is_stop_requested(self, run_id: str) -> bool:
        # read the column, not the identity map: the flag is set from another session
        q = select(PipelineRun.stop_requested).where(PipelineRun.id == run_id)
        return bool(self.db.execute(q).scalar())

    def finish_run(self, run_id: str, status: str, error_message: str | None = None, meta: dict | None = None) -> None:
        values = {"status": status, "completed_at": self.clock.now(), "error_message": error_message}
        if meta is not None:
            values["meta"] = meta
        self.update_run(run_id, **values)

    # ---- edit history ----

    def add_edit_history(
        self,
        content_id: str,
        changes: dict,
        *,
        action: str = "edit",
        override_reason: str | None = None,
        edited_by: str = "admin",
    ) -> ContentEditHistory:
        rec = ContentEditHistory(
            content_id=content_id,
            action=action,
            changes=changes,
            override_reason=override_reason,
            edited_by=edited_by,
            edited_at=self.clock.now(),
        )
        self.db.add(rec)
        self.db.commit()
        return rec

    def list_edit_history(self, content_id: str) -> list[ContentEditHistory]:
        q = (
            select(ContentEditHistory)
            .where(ContentEditHistory.content_id == content_id)
            .order_by(asc(ContentEditHistory.edited_at))
        )
        return list(self.db.execute(q).scalars().all())
