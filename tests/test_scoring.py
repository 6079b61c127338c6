import pytest

from app.services.scoring import score_content, title_alignment
from app.utils.lexicon import Lexicon

from conftest import GOOD_BODY, GOOD_TITLE


@pytest.mark.parametrize(
    "body,title",
    [
        ("", ""),
        ("...", "Titulek"),
        ("!!! ??? ...", ""),
        (GOOD_BODY, GOOD_TITLE),
        ("slovo " * 500, "slovo"),
        ("vinohrady flora korunní blanická americká strašnická riegrovy sady. " * 10, "vinohrady"),
    ],
)
def test_confidence_always_within_bounds(body, title):
    result = score_content(body, title, "transport")
    assert 0 <= result.confidence <= 0.95


def test_zero_sentences_does_not_raise_and_scores_low():
    result = score_content("", "", "local")
    assert result.breakdown["readability"] == 0
    assert result.metrics["sentence_count"] == 0
    assert result.confidence < 0.2


def test_events_article_score():
    body = "Koncert na náměstí míru začne dnes v 18:00. Vstup je zdarma. Přijďte včas."
    result = score_content(body, "Koncert na náměstí", "events")

    assert result.breakdown == {
        "readability": 0.9,
        "local_relevance": 0.15,
        "title_alignment": 1.0,
        "information_density": 0.05,
        "freshness": 0.1,
    }
    assert result.metrics["sentence_count"] == 3
    assert result.confidence == pytest.approx(0.59, abs=0.01)


def test_readability_buckets():
    short = score_content("Jedna dvě tři. Čtyři pět šest.", "", "other")
    medium = score_content(" ".join(["slovo"] * 25) + ".", "", "other")
    long = score_content(" ".join(["slovo"] * 40) + ".", "", "other")
    assert short.breakdown["readability"] == 0.9
    assert medium.breakdown["readability"] == 0.7
    assert long.breakdown["readability"] == 0.5


def test_local_relevance_is_capped():
    body = "Vinohrady, Flora, Korunní, Blanická, Americká a Riegrovy sady."
    result = score_content(body, "", "local")
    assert result.breakdown["local_relevance"] == 0.8


def test_title_alignment_ignores_short_words():
    assert title_alignment("a v na", "cokoliv") == 0.0
    assert title_alignment("Nová tramvaj", "jede nová linka") == pytest.approx(0.5)


def test_freshness_depends_on_category():
    body = "Pozor, aktuálně je uzavřena ulice."
    assert score_content(body, "", "emergency").breakdown["freshness"] == 0.15
    assert score_content(body, "", "transport").breakdown["freshness"] == 0.1
    assert score_content(body, "", "business").breakdown["freshness"] == 0


def test_scoring_is_deterministic():
    first = score_content(GOOD_BODY, GOOD_TITLE, "transport")
    second = score_content(GOOD_BODY, GOOD_TITLE, "transport")
    assert first == second


def test_custom_lexicon_changes_local_relevance():
    lexicon = Lexicon(gazetteer=("karlín", "invalidovn"))
    body = "Nová lávka spojí Karlín s Invalidovnou. Otevírá se dnes."
    assert score_content(body, "", "local", lexicon).breakdown["local_relevance"] == 0.3
    assert score_content(body, "", "local").breakdown["local_relevance"] == 0
