"""
Pipeline orchestrator: Collect -> Generate -> Score/Validate -> Auto-Approve -> Publish.

One run at a time, guarded by the repository run lock. Item-level failures are
collected in the summary; only infrastructure failures fail the whole run.
Stage counters are committed as each stage finishes, so a crash leaves an
inspectable partial record.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass, field
from datetime import timedelta

from app.config import PipelineConfig
from app.schemas.metadata import ContentMetadata, parse_raw_metadata
from app.services.batch import APPROVE_BY_CONFIDENCE, BatchEngine, BatchOptions, BatchSelector
from app.services.errors import GenerationError, PipelineError, RunStopped
from app.services.generation import GenerationOutcome, GenerationService, SourceItem, TargetNeighborhood
from app.services.moderation import ModerationService
from app.services.publication import PublicationFanout
from app.services.repository import ContentRepository
from app.utils.constants import (
    APPROVED,
    GENERATED,
    REVIEW,
    RUN_COMPLETED,
    RUN_FAILED,
    RUN_RUNNING,
    RUN_SKIPPED,
    TRIGGER_MANUAL,
    UNCATEGORIZED,
)

logger = logging.getLogger(__name__)

AUTO_APPROVAL_ACTOR = "auto-approval"
MAX_REPORTED_ERRORS = 50


@dataclass
class ItemError:
    stage: str
    ref: str
    error: str


@dataclass
class GenerationJob:
    neighborhood: TargetNeighborhood | None
    category: str
    items: list[SourceItem] = field(default_factory=list)


@dataclass
class PipelineRunSummary:
    run_id: str | None
    status: str
    trigger: str
    collected: int = 0
    generated: int = 0
    scored: int = 0
    approved: int = 0
    published: int = 0
    content_ids: list[str] = field(default_factory=list)
    errors: list[ItemError] = field(default_factory=list)
    message: str | None = None

    def error_text(self) -> str | None:
        if not self.errors:
            return None
        head = "; ".join(f"{e.stage} {e.ref}: {e.error}" for e in self.errors[:5])
        more = f" (+{len(self.errors) - 5} more)" if len(self.errors) > 5 else ""
        return f"{len(self.errors)} item error(s): {head}{more}"

    def run_meta(self) -> dict:
        return {
            "approved": self.approved,
            "content_ids": self.content_ids,
            "errors": [asdict(e) for e in self.errors[:MAX_REPORTED_ERRORS]],
        }


class PipelineOrchestrator:
    def __init__(
        self,
        repo: ContentRepository,
        generation: GenerationService,
        moderation: ModerationService,
        batch: BatchEngine,
        fanout: PublicationFanout,
        config: PipelineConfig,
    ):
        self.repo = repo
        self.generation = generation
        self.moderation = moderation
        self.batch = batch
        self.fanout = fanout
        self.config = config

    def run_pipeline(self, trigger: str = TRIGGER_MANUAL) -> PipelineRunSummary:
        run = self.repo.start_run(trigger, timedelta(minutes=self.config.stale_run_minutes))
        if run is None:
            active = self.repo.get_running_run()
            logger.info("pipeline trigger=%s skipped: run %s is in progress", trigger, active.id if active else "?")
            return PipelineRunSummary(
                run_id=active.id if active else None,
                status=RUN_SKIPPED,
                trigger=trigger,
                message="Another pipeline run is in progress",
            )

        run_id = run.id
        summary = PipelineRunSummary(run_id=run_id, status=RUN_RUNNING, trigger=trigger)
        logger.info("pipeline run %s started trigger=%s", run_id, trigger)

        try:
            jobs = self.collect(summary)
            self.repo.update_run(run_id, collected_items=summary.collected)
            self._check_stop(run_id, "collect")

            self.generate(jobs, summary)
            self.repo.update_run(run_id, generated_items=summary.generated)
            self._check_stop(run_id, "generate")

            self.validate(summary)
            self.repo.update_run(run_id, scored_items=summary.scored)
            self._check_stop(run_id, "validate")

            skipped = self.auto_approve(summary)
            self.publish_approved(summary, skip=skipped)
            self.repo.update_run(run_id, published_items=summary.published)
        except RunStopped as e:
            logger.warning("pipeline run %s stopped after %s", run_id, e.stage)
            summary.status = RUN_FAILED
            summary.message = str(e)
            self.repo.finish_run(run_id, RUN_FAILED, error_message=str(e), meta=summary.run_meta())
            return summary
        except Exception as e:
            logger.exception("pipeline run %s failed", run_id)
            self.repo.rollback()
            summary.status = RUN_FAILED
            summary.message = str(e)
            self.repo.finish_run(run_id, RUN_FAILED, error_message=str(e), meta=summary.run_meta())
            return summary

        summary.status = RUN_COMPLETED
        summary.message = summary.error_text()
        self.repo.finish_run(run_id, RUN_COMPLETED, error_message=summary.message, meta=summary.run_meta())
        logger.info(
            "pipeline run %s completed collected=%s generated=%s scored=%s approved=%s published=%s errors=%s",
            run_id,
            summary.collected,
            summary.generated,
            summary.scored,
            summary.approved,
            summary.published,
            len(summary.errors),
        )
        return summary

    def _check_stop(self, run_id: str, stage: str) -> None:
        if self.repo.is_stop_requested(run_id):
            raise RunStopped(run_id, stage)

    # ---- stages ----

    def collect(self, summary: PipelineRunSummary) -> list[GenerationJob]:
        raws = self.repo.list_collectable_raw_items(
            self.config.collection_min_score,
            self.config.max_raw_items_per_run,
            categories=self.config.content_types,
        )
        active = {n.id: TargetNeighborhood.from_model(n) for n in self.repo.list_active_neighborhoods()}
        default = active.get(self.config.default_neighborhood_id or "")

        jobs: dict[tuple[str | None, str], GenerationJob] = {}
        for raw in raws:
            category = raw.category_hint or UNCATEGORIZED
            neighborhood = default
            for nid in parse_raw_metadata(raw.meta).neighborhood_ids:
                if nid in active:
                    neighborhood = active[nid]
                    break

            key = (neighborhood.id if neighborhood else None, category)
            job = jobs.setdefault(key, GenerationJob(neighborhood=neighborhood, category=category))
            job.items.append(SourceItem.from_raw(raw))
            summary.collected += 1

        logger.info("collected %s raw item(s) into %s job(s)", summary.collected, len(jobs))
        return list(jobs.values())

    def _generate_job(self, job: GenerationJob) -> list[tuple[SourceItem, GenerationOutcome | None, str | None]]:
        # runs on a worker thread: no repository access here
        out = []
        for source in job.items:
            try:
                out.append((source, self.generation.generate(source, job.neighborhood, job.category), None))
            except GenerationError as e:
                out.append((source, None, str(e)))
            except Exception as e:
                # any other failure stays with its own item
                logger.exception("unexpected generation failure raw_item=%s", source.id)
                out.append((source, None, f"{type(e).__name__}: {e}"))
        return out

    def generate(self, jobs: list[GenerationJob], summary: PipelineRunSummary) -> None:
        if not jobs:
            return

        with ThreadPoolExecutor(max_workers=self.config.generation_workers, thread_name_prefix="generate") as pool:
            futures = {pool.submit(self._generate_job, job): job for job in jobs}
            for future in as_completed(futures):
                job = futures[future]
                for source, outcome, error in future.result():
                    if error is not None:
                        summary.errors.append(ItemError("generate", source.id, error))
                        continue
                    self._store_generated(job, source, outcome, summary)

    def _store_generated(
        self,
        job: GenerationJob,
        source: SourceItem,
        outcome: GenerationOutcome,
        summary: PipelineRunSummary,
    ) -> None:
        article = outcome.article
        meta = ContentMetadata(
            summary=article.summary,
            source=article.metadata.get("source"),
            model=article.metadata.get("model"),
            generation_attempts=outcome.attempts,
            generation_errors=outcome.errors,
            fallback_reason=outcome.fallback_reason,
        )
        try:
            item = self.repo.add_content(
                title=article.title,
                body=article.body,
                summary=article.summary,
                category=job.category,
                status=GENERATED,
                confidence=article.confidence,
                origin=outcome.origin,
                neighborhood_id=job.neighborhood.id if job.neighborhood else None,
                raw_item_id=source.id,
                retry_count=outcome.retry_count,
                metadata=meta,
            )
        except (PipelineError, ValueError) as e:
            summary.errors.append(ItemError("generate", source.id, str(e)))
            return

        summary.generated += 1
        summary.content_ids.append(item.id)

    def validate(self, summary: PipelineRunSummary) -> None:
        for content_id in summary.content_ids:
            try:
                self.moderation.assess(content_id)
            except PipelineError as e:
                summary.errors.append(ItemError("validate", content_id, str(e)))
                continue
            summary.scored += 1

    def auto_approve(self, summary: PipelineRunSummary) -> set[str]:
        result = self.batch.run_batch_action(
            APPROVE_BY_CONFIDENCE,
            BatchSelector(
                threshold=self.config.auto_approve_threshold,
                statuses=(GENERATED, REVIEW, APPROVED),
                max_items=self.config.auto_approve_max_items,
            ),
            BatchOptions(actor=AUTO_APPROVAL_ACTOR, auto=True),
        )
        summary.approved += result.succeeded
        summary.published += result.succeeded
        failed = set()
        for r in result.items:
            if not r.success:
                failed.add(r.id)
                summary.errors.append(ItemError("approve", r.id, r.error or "unknown error"))
        return failed

    def publish_approved(self, summary: PipelineRunSummary, skip: set[str] = frozenset()) -> None:
        # whatever is still approved: beyond the auto-approval cap, or approved by hand meanwhile
        for item in self.repo.list_content(statuses=(APPROVED,), order="confidence"):
            if item.id in skip:
                continue
            try:
                self.fanout.publish(item.id, auto=True)
            except PipelineError as e:
                summary.errors.append(ItemError("publish", item.id, str(e)))
                continue
            summary.published += 1
