import threading
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.config import PipelineConfig
from app.database import Base
from app.dependencies import build_orchestrator
from app.services.batch import BatchEngine
from app.services.generation import GeneratedArticle
from app.services.moderation import ModerationService
from app.services.publication import PublicationFanout
from app.services.repository import SqlContentRepository
from app.utils.constants import ORIGIN_AUTOMATIC

GOOD_TITLE = "Uzavírka tramvajové trati ve Vinohradské"
GOOD_BODY = (
    "Dopravní podnik hlavního města Praha dnes od 9:00 uzavře tramvajovou trať ve Vinohradské ulici. "
    "Tramvaje linek 11 a 13 pojedou odklonem přes náměstí Míru. "
    "Náhradní autobusová doprava jezdí každých 10 minut. "
    "Cestující by měli počítat se zdržením až 20 minut. "
    "Omezení potrvá do neděle 18:00."
)

LOCAL_TITLE = "Nová kavárna na Vinohradech otevírá"
LOCAL_BODY = (
    "Na rohu Korunní ulice ve čtvrti Vinohrady v Praze dnes otevírá nová kavárna. "
    "Majitelé slibují místní pražírnu a snídaně od 7:30. "
    "Obyvatelé se mohou zastavit na ochutnávku, sledujte také jejich web. "
    "Kavárna bude otevřena denně do 20:00."
)


class FixedClock:
    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class FakeGenerator:
    """Returns the same well-formed article for every raw item."""

    def __init__(self, title=GOOD_TITLE, body=GOOD_BODY, confidence=0.86):
        self.title = title
        self.body = body
        self.confidence = confidence
        self.calls = []
        self._lock = threading.Lock()

    def generate(self, raw_item, neighborhood, category):
        with self._lock:
            self.calls.append(raw_item.id)
        return GeneratedArticle(
            title=self.title,
            body=self.body,
            summary="Uzavírka trati",
            confidence=self.confidence,
            metadata={"source": "fake", "model": "fake-1"},
        )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=True)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 5, 4, 8, 0, 0))


@pytest.fixture
def config():
    return PipelineConfig(generation_backoff_seconds=0, generation_workers=2)


@pytest.fixture
def repo(db, clock):
    return SqlContentRepository(db, clock)


@pytest.fixture
def neighborhoods(repo):
    return [
        repo.add_neighborhood("praha2", "Vinohrady", subscriber_count=120),
        repo.add_neighborhood("praha4", "Nusle", subscriber_count=80),
        repo.add_neighborhood("praha6", "Dejvice", subscriber_count=40),
        repo.add_neighborhood("praha9", "Vysočany", subscriber_count=5),
        repo.add_neighborhood("praha10", "Strašnice", is_active=False, subscriber_count=500),
    ]


@pytest.fixture
def make_content(repo):
    def _make(**overrides):
        fields = {
            "title": GOOD_TITLE,
            "body": GOOD_BODY,
            "category": "transport",
            "status": "review",
            "confidence": 0.9,
            "origin": ORIGIN_AUTOMATIC,
            "neighborhood_id": "praha2",
        }
        fields.update(overrides)
        return repo.add_content(**fields)

    return _make


@pytest.fixture
def fanout(repo, config):
    return PublicationFanout(repo, config)


@pytest.fixture
def batch(repo, fanout, config, clock):
    return BatchEngine(repo, fanout, config, clock)


@pytest.fixture
def moderation(repo, config, clock):
    return ModerationService(repo, config, clock=clock)


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def orchestrator(repo, config, clock, generator):
    return build_orchestrator(repo, config, clock, generator)
