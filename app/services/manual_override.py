from __future__ import annotations

import logging
from dataclasses import dataclass, field

from app.models.content_item import ContentItem
from app.services.clock import Clock, SystemClock
from app.services.errors import ConcurrencyConflict, NotFoundError, PipelineError
from app.services.publication import PublicationFanout
from app.services.repository import ContentRepository
from app.services.state_machine import ensure_transition
from app.utils.constants import APPROVED, CATEGORIES, ORIGIN_HUMAN, PUBLISHED, REJECTED, STATES

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 100
DEFAULT_OVERRIDE_REASON = "Manual admin override"


def _preview(text: str | None) -> str | None:
    if text is None or len(text) <= PREVIEW_CHARS:
        return text
    return text[:PREVIEW_CHARS] + "..."


@dataclass
class OverrideResult:
    item: ContentItem
    changes: dict = field(default_factory=dict)


class ManualOverrideService:
    """Admin edits of a content item, recorded in the edit history."""

    def __init__(self, repo: ContentRepository, fanout: PublicationFanout, clock: Clock | None = None):
        self.repo = repo
        self.fanout = fanout
        self.clock = clock or SystemClock()

    def apply(
        self,
        content_id: str,
        *,
        title: str | None = None,
        body: str | None = None,
        category: str | None = None,
        neighborhood_id: str | None = None,
        admin_notes: str | None = None,
        status: str | None = None,
        override_reason: str | None = None,
        edited_by: str = "admin",
    ) -> OverrideResult:
        item = self.repo.get_content(content_id)
        if not item:
            raise NotFoundError("content", content_id)

        if category is not None and category not in CATEGORIES:
            raise ValueError(f"Invalid category: {category}")
        if status is not None and status not in STATES:
            raise ValueError(f"Invalid status: {status}")
        if neighborhood_id is not None and not self.repo.get_neighborhood(neighborhood_id):
            raise NotFoundError("neighborhood", neighborhood_id)

        edits: dict = {}
        changes: dict = {}

        if title is not None and title != item.title:
            edits["title"] = title
            changes["title"] = {"from": item.title, "to": title}
        if body is not None and body != item.body:
            edits["body"] = body
            changes["body"] = {"from": _preview(item.body), "to": _preview(body)}
        if category is not None and category != item.category:
            edits["category"] = category
            changes["category"] = {"from": item.category, "to": category}
        if neighborhood_id is not None and neighborhood_id != item.neighborhood_id:
            edits["neighborhood_id"] = neighborhood_id
            changes["neighborhood_id"] = {"from": item.neighborhood_id, "to": neighborhood_id}
        if admin_notes is not None and admin_notes != item.admin_notes:
            edits["admin_notes"] = admin_notes
            changes["admin_notes"] = {"from": item.admin_notes, "to": admin_notes}

        current = item.status
        if status is not None and status != current:
            # check before anything is written
            ensure_transition(current, APPROVED if status == PUBLISHED and current != APPROVED else status)
            changes["status"] = {"from": current, "to": status}

        if not changes:
            raise ValueError("No changes provided")

        reason = override_reason or DEFAULT_OVERRIDE_REASON

        if edits:
            if "title" in edits or "body" in edits:
                edits["origin"] = ORIGIN_HUMAN
            self.repo.update_content(content_id, manual_override=True, **edits)

        try:
            if "status" in changes:
                self._change_status(content_id, current, status, reason, edited_by)
        except PipelineError:
            changes.pop("status")
            if changes:
                self.repo.add_edit_history(content_id, changes, action="edit", override_reason=reason, edited_by=edited_by)
            raise

        action = "override" if "status" in changes else "edit"
        self.repo.add_edit_history(content_id, changes, action=action, override_reason=reason, edited_by=edited_by)
        logger.info("manual %s content id=%s by=%s fields=%s", action, content_id, edited_by, sorted(changes))

        return OverrideResult(item=self.repo.get_content(content_id), changes=changes)

    def _change_status(self, content_id: str, current: str, target: str, reason: str, actor: str) -> None:
        now = self.clock.now()
        fields = {"manual_override": True}

        if target in (APPROVED, PUBLISHED) and current != APPROVED:
            fields.update(approved_at=now, approved_by=actor)
            if not self.repo.update_status(content_id, current, APPROVED, **fields):
                raise ConcurrencyConflict(content_id, current)
            current = APPROVED
            if target == APPROVED:
                return
        elif target != PUBLISHED:
            if target == REJECTED:
                fields.update(rejected_at=now, rejection_reason=reason)
            if not self.repo.update_status(content_id, current, target, **fields):
                raise ConcurrencyConflict(content_id, current)
            return

        self.fanout.publish(content_id)
