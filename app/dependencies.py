"""FastAPI dependency wiring. Tests override get_db, get_clock, get_config and get_primary_generator."""
from __future__ import annotations

import os
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from app.config import PipelineConfig, get_config
from app.database import get_db
from app.services.ai_generator import OpenAIArticleGenerator
from app.services.batch import BatchEngine
from app.services.clock import Clock, SystemClock
from app.services.generation import ArticleGenerator, GenerationService
from app.services.manual_override import ManualOverrideService
from app.services.moderation import ModerationService
from app.services.orchestrator import PipelineOrchestrator
from app.services.publication import PublicationFanout
from app.services.repository import SqlContentRepository
from app.services.template_generator import TemplateGenerator
from app.utils.lexicon import DEFAULT_LEXICON, Lexicon


def get_clock() -> Clock:
    return SystemClock()


@lru_cache
def _lexicon_from(path: str) -> Lexicon:
    return Lexicon.from_file(path)


def get_lexicon(config: PipelineConfig = Depends(get_config)) -> Lexicon:
    return _lexicon_from(config.lexicon_path) if config.lexicon_path else DEFAULT_LEXICON


def get_primary_generator(config: PipelineConfig = Depends(get_config)) -> ArticleGenerator | None:
    # no key configured: every article comes from the template fallback
    if not os.getenv("OPENAI_API_KEY"):
        return None
    return OpenAIArticleGenerator(timeout=config.generation_timeout_seconds)


def get_repository(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> SqlContentRepository:
    return SqlContentRepository(db, clock)


def get_fanout(
    repo: SqlContentRepository = Depends(get_repository),
    config: PipelineConfig = Depends(get_config),
) -> PublicationFanout:
    return PublicationFanout(repo, config)


def get_batch_engine(
    repo: SqlContentRepository = Depends(get_repository),
    fanout: PublicationFanout = Depends(get_fanout),
    config: PipelineConfig = Depends(get_config),
    clock: Clock = Depends(get_clock),
) -> BatchEngine:
    return BatchEngine(repo, fanout, config, clock)


def get_moderation(
    repo: SqlContentRepository = Depends(get_repository),
    config: PipelineConfig = Depends(get_config),
    lexicon: Lexicon = Depends(get_lexicon),
    clock: Clock = Depends(get_clock),
) -> ModerationService:
    return ModerationService(repo, config, lexicon, clock)


def get_override_service(
    repo: SqlContentRepository = Depends(get_repository),
    fanout: PublicationFanout = Depends(get_fanout),
    clock: Clock = Depends(get_clock),
) -> ManualOverrideService:
    return ManualOverrideService(repo, fanout, clock)


def build_orchestrator(
    repo: SqlContentRepository,
    config: PipelineConfig,
    clock: Clock,
    primary: ArticleGenerator | None,
    lexicon: Lexicon | None = None,
) -> PipelineOrchestrator:
    fanout = PublicationFanout(repo, config)
    return PipelineOrchestrator(
        repo=repo,
        generation=GenerationService(primary, TemplateGenerator(), config),
        moderation=ModerationService(repo, config, lexicon, clock),
        batch=BatchEngine(repo, fanout, config, clock),
        fanout=fanout,
        config=config,
    )


def get_orchestrator(
    repo: SqlContentRepository = Depends(get_repository),
    config: PipelineConfig = Depends(get_config),
    clock: Clock = Depends(get_clock),
    lexicon: Lexicon = Depends(get_lexicon),
    primary: ArticleGenerator | None = Depends(get_primary_generator),
) -> PipelineOrchestrator:
    return build_orchestrator(repo, config, clock, primary, lexicon)
