from __future__ import annotations

import logging
from dataclasses import dataclass, field

from app.config import PipelineConfig
from app.models.content_item import ContentItem
from app.services.errors import InvalidTransitionError, NotFoundError, PublicationTargetError
from app.services.repository import ContentRepository
from app.utils.constants import APPROVED, CITY_WIDE_CATEGORIES, LOCAL_CATEGORIES, PUBLISHED

logger = logging.getLogger(__name__)


@dataclass
class PublicationResult:
    content_id: str
    neighborhood_ids: list[str]
    created: list[str] = field(default_factory=list)
    republished: bool = False


class PublicationFanout:
    """Resolve target neighborhoods for an approved item and publish it to each of them."""

    def __init__(self, repo: ContentRepository, config: PipelineConfig):
        self.repo = repo
        self.config = config

    def _fallback_targets(self) -> list[str]:
        rows = self.repo.list_fallback_neighborhoods(
            self.config.fallback_neighborhood_count,
            self.config.fallback_min_subscribers,
        )
        return [n.id for n in rows]

    def _checked_override(self, neighborhood_id: str) -> str:
        n = self.repo.get_neighborhood(neighborhood_id)
        if not n or not n.is_active:
            raise PublicationTargetError(f"Unknown or inactive neighborhood: {neighborhood_id}")
        return n.id

    def resolve_targets(self, item: ContentItem, override: str | None = None) -> list[str]:
        if item.category in CITY_WIDE_CATEGORIES:
            # city-wide news goes everywhere; an override cannot narrow it
            return [n.id for n in self.repo.list_active_neighborhoods()]

        if override:
            return [self._checked_override(override)]

        if item.category in LOCAL_CATEGORIES and item.neighborhood_id:
            own = self.repo.get_neighborhood(item.neighborhood_id)
            if own and own.is_active:
                return [own.id]

        return self._fallback_targets()

    def publish(
        self,
        content_id: str,
        neighborhood_id: str | None = None,
        auto: bool = False,
        republish: bool = False,
    ) -> PublicationResult:
        item = self.repo.get_content(content_id)
        if not item:
            raise NotFoundError("content", content_id)

        expected = PUBLISHED if republish else APPROVED
        if item.status != expected:
            raise InvalidTransitionError(item.status, PUBLISHED)

        targets = self.resolve_targets(item, neighborhood_id)
        if not targets:
            raise PublicationTargetError(f"No target neighborhoods for content {content_id} ({item.category})")

        created = self.repo.publish_content(content_id, expected, targets, category=item.category, auto=auto)

        logger.info(
            "published content id=%s category=%s targets=%s new_records=%s auto=%s",
            content_id,
            item.category,
            len(targets),
            len(created),
            auto,
        )
        return PublicationResult(
            content_id=content_id,
            neighborhood_ids=targets,
            created=[r.neighborhood_id for r in created],
            republished=republish,
        )
