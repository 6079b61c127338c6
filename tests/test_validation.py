import pytest

from app.config import PipelineConfig
from app.services.validation import decide_status, validate_content
from app.utils.constants import ORIGIN_FALLBACK

from conftest import GOOD_BODY, GOOD_TITLE, LOCAL_BODY, LOCAL_TITLE


@pytest.mark.parametrize(
    "confidence,expected",
    [
        (0.95, "approved"),
        (0.85, "approved"),
        (0.8499, "review"),
        (0.40, "review"),
        (0.3999, "rejected"),
        (0.0, "rejected"),
    ],
)
def test_status_boundaries(config, confidence, expected):
    assert decide_status(confidence, config) == expected


def test_thresholds_come_from_config():
    strict = PipelineConfig(approve_threshold=0.9, reject_threshold=0.5)
    assert decide_status(0.85, strict) == "review"
    assert decide_status(0.45, strict) == "rejected"


def test_well_formed_article_passes_every_check(config):
    result = validate_content(GOOD_TITLE, GOOD_BODY, "transport", config)
    assert all(result.checks.values())
    assert result.passed == 7
    assert result.confidence == 0.95
    assert result.status == "approved"
    assert result.notes == []


def test_local_article_must_mention_its_neighborhood(config):
    ok = validate_content(LOCAL_TITLE, LOCAL_BODY, "business", config, neighborhood_name="Vinohrady")
    missing = validate_content(LOCAL_TITLE, LOCAL_BODY, "business", config, neighborhood_name="Dejvice")

    assert ok.checks["mentions_neighborhood"] is True
    assert missing.checks["mentions_neighborhood"] is False
    assert missing.confidence < ok.confidence
    assert "Target neighborhood is not mentioned" in missing.notes


def test_placeholders_are_detected(config):
    body = GOOD_BODY + " Lorem ipsum dolor sit amet."
    result = validate_content(GOOD_TITLE, body, "transport", config)
    assert result.checks["no_placeholders"] is False


def test_short_and_empty_content(config):
    short = validate_content("Krátce", "Krátká zpráva.", "local", config)
    assert short.checks["length_ok"] is False
    assert short.checks["sentence_structure"] is False
    assert short.checks["title_length"] is False

    empty = validate_content("", "", "local", config)
    assert empty.status == "rejected"
    assert 0 <= empty.confidence < 0.40


def test_fallback_content_is_capped(config):
    result = validate_content(GOOD_TITLE, GOOD_BODY, "transport", config, origin=ORIGIN_FALLBACK)
    assert result.confidence == 0.60
    assert result.status == "review"


def test_quality_indicators_are_reported(config):
    result = validate_content(LOCAL_TITLE, LOCAL_BODY, "business", config, neighborhood_name="Vinohrady")
    assert "time_relevance" in result.quality_indicators
    assert "contact_info" in result.quality_indicators
    assert result.confidence <= config.confidence_ceiling
