from types import SimpleNamespace

import httpx
import openai
import pytest

from app.config import PipelineConfig
from app.services.ai_generator import OpenAIArticleGenerator, parse_article
from app.services.errors import GenerationError, PermanentGenerationError, TransientGenerationError
from app.services.generation import GeneratedArticle, GenerationService, SourceItem, TargetNeighborhood
from app.services.template_generator import TemplateGenerator

RAW = SourceItem(id="raw-1", source="dpp.cz", title="Výluka tramvají v Korunní ulici", body="Text zdroje.")
PLACE = TargetNeighborhood(id="praha2", name="Vinohrady")


class ScriptedGenerator:
    """Raises the queued errors in order, then returns an article."""

    def __init__(self, *errors, confidence=0.8):
        self.errors = list(errors)
        self.confidence = confidence
        self.calls = 0

    def generate(self, raw_item, neighborhood, category):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return GeneratedArticle(title="Titulek článku", body="Tělo článku.", confidence=self.confidence)


class BrokenFallback:
    def generate(self, raw_item, neighborhood, category):
        raise RuntimeError("template store missing")


@pytest.fixture
def sleeps():
    return []


def make_service(primary, sleeps, **config):
    cfg = PipelineConfig(generation_backoff_seconds=1.0, **config)
    return GenerationService(primary, TemplateGenerator(), cfg, sleep=sleeps.append)


def test_first_attempt_success(sleeps):
    primary = ScriptedGenerator(confidence=0.99)
    outcome = make_service(primary, sleeps).generate(RAW, PLACE, "transport")

    assert outcome.origin == "automatic"
    assert outcome.attempts == 1
    assert outcome.retry_count == 0
    assert outcome.article.confidence == 0.95
    assert sleeps == []


def test_transient_errors_are_retried_with_backoff(sleeps):
    primary = ScriptedGenerator(TransientGenerationError("timeout"), TransientGenerationError("rate limit"))
    outcome = make_service(primary, sleeps).generate(RAW, PLACE, "transport")

    assert outcome.origin == "automatic"
    assert outcome.attempts == 3
    assert outcome.retry_count == 2
    assert len(outcome.errors) == 2
    assert sleeps == [1.0, 2.0]


def test_exhausted_retries_fall_back(sleeps):
    primary = ScriptedGenerator(*[TransientGenerationError("timeout")] * 3)
    outcome = make_service(primary, sleeps).generate(RAW, PLACE, "transport")

    assert primary.calls == 3
    assert outcome.origin == "fallback"
    assert outcome.fallback_reason == "retries exhausted"
    assert outcome.article.confidence <= 0.60
    # no sleep after the last attempt
    assert sleeps == [1.0, 2.0]


def test_permanent_error_falls_back_immediately(sleeps):
    primary = ScriptedGenerator(PermanentGenerationError("service unavailable"))
    outcome = make_service(primary, sleeps).generate(RAW, PLACE, "transport")

    assert primary.calls == 1
    assert outcome.origin == "fallback"
    assert outcome.fallback_reason == "permanent error"
    assert sleeps == []


def test_missing_primary_uses_fallback(sleeps):
    outcome = make_service(None, sleeps).generate(RAW, PLACE, "weather")
    assert outcome.origin == "fallback"
    assert outcome.attempts == 0
    assert outcome.retry_count == 0


def test_fallback_ceiling_applies_to_fallback_output(sleeps):
    cfg = PipelineConfig(fallback_confidence_ceiling=0.5)
    outcome = GenerationService(None, TemplateGenerator(), cfg, sleep=sleeps.append).generate(RAW, PLACE, "local")
    assert outcome.article.confidence == 0.5


def test_broken_fallback_raises_generation_error(sleeps):
    service = GenerationService(None, BrokenFallback(), PipelineConfig(), sleep=sleeps.append)
    with pytest.raises(GenerationError, match="Fallback generation failed"):
        service.generate(RAW, PLACE, "local")


def test_template_generator_is_deterministic():
    gen = TemplateGenerator()
    first = gen.generate(RAW, PLACE, "transport")
    second = gen.generate(RAW, PLACE, "transport")

    assert first == second
    assert "Vinohrady" in first.body
    assert "Praze" in first.body
    assert first.confidence == 0.60
    assert first.metadata["source"] == "template"


# ---- OpenAI adapter ----

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/responses")


def status_error(cls, code):
    return cls(f"HTTP {code}", response=httpx.Response(code, request=REQUEST), body=None)


def fake_client(result=None, error=None):
    def create(**kwargs):
        if error is not None:
            raise error
        return SimpleNamespace(output_text=result)

    return SimpleNamespace(responses=SimpleNamespace(create=create))


@pytest.mark.parametrize(
    "error,expected",
    [
        (openai.APITimeoutError(request=REQUEST), TransientGenerationError),
        (openai.APIConnectionError(request=REQUEST), TransientGenerationError),
        (status_error(openai.RateLimitError, 429), TransientGenerationError),
        (status_error(openai.InternalServerError, 500), TransientGenerationError),
        (status_error(openai.InternalServerError, 503), PermanentGenerationError),
        (status_error(openai.AuthenticationError, 401), PermanentGenerationError),
        (status_error(openai.BadRequestError, 400), PermanentGenerationError),
        (
            openai.APIResponseValidationError(response=httpx.Response(200, request=REQUEST), body=None),
            TransientGenerationError,
        ),
    ],
)
def test_openai_errors_are_classified(error, expected):
    gen = OpenAIArticleGenerator(client=fake_client(error=error))
    with pytest.raises(expected):
        gen.generate(RAW, PLACE, "transport")


def test_openai_answer_is_parsed():
    answer = '{"title": "Výluka v Korunní", "body": "Tramvaje nejezdí.", "summary": "Výluka.", "confidence": 0.83}'
    gen = OpenAIArticleGenerator(model="gpt-test", client=fake_client(result=answer))
    article = gen.generate(RAW, PLACE, "transport")

    assert article.title == "Výluka v Korunní"
    assert article.confidence == 0.83
    assert article.metadata == {"source": "openai", "model": "gpt-test"}


def test_parse_article_handles_fences_and_garbage():
    fenced = '```json\n{"title": "T", "body": "B"}\n```'
    assert parse_article(fenced).body == "B"

    with pytest.raises(TransientGenerationError):
        parse_article("Sorry, I cannot help with that.")
    with pytest.raises(TransientGenerationError):
        parse_article('{"title": "only a title"}')


def test_openai_client_uses_configured_timeout():
    gen = OpenAIArticleGenerator(api_key="sk-test", timeout=7.0)
    assert gen.client.timeout.read == 7.0
    assert gen.client.max_retries == 0
