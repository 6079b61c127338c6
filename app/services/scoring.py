"""
Content scoring: a weighted quality estimate for an article body.

Pure and deterministic. All keyword data comes from the Lexicon, so a
different city or language only swaps data, never code.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from app.utils.lexicon import DEFAULT_LEXICON, Lexicon
from app.utils.text import contains_any, count_patterns, count_terms, split_sentences, split_words

MAX_CONFIDENCE = 0.95

WEIGHTS = {
    "readability": 0.25,
    "local_relevance": 0.30,
    "title_alignment": 0.20,
    "information_density": 0.15,
    "freshness": 0.10,
}

LOCAL_TERM_VALUE = 0.15
LOCAL_RELEVANCE_CAP = 0.8
INFO_MARKER_VALUE = 0.05
INFO_DENSITY_CAP = 0.2
STRUCTURE_BONUS = 0.05
VOCABULARY_BONUS = 0.05


@dataclass
class ScoreResult:
    confidence: float
    breakdown: dict[str, float] = field(default_factory=dict)
    metrics: dict[str, int | float] = field(default_factory=dict)


def readability_score(sentence_count: int, word_count: int) -> float:
    if sentence_count == 0:
        return 0.0
    avg = word_count / sentence_count
    if avg <= 20:
        return 0.9
    if avg <= 30:
        return 0.7
    return 0.5


def title_alignment(title: str, body_lower: str) -> float:
    significant = [w for w in split_words((title or "").lower()) if len(w) > 3]
    if not significant:
        return 0.0
    found = sum(1 for w in significant if w in body_lower)
    return found / len(significant)


def freshness_score(category: str, body_lower: str, lexicon: Lexicon) -> float:
    keywords = lexicon.freshness_keywords.get(category, ())
    if keywords and contains_any(body_lower, keywords):
        return lexicon.freshness_bonus.get(category, 0.0)
    return 0.0


def score_content(body: str, title: str, category: str, lexicon: Lexicon = DEFAULT_LEXICON) -> ScoreResult:
    body = body or ""
    body_lower = body.lower()

    sentences = split_sentences(body)
    words = split_words(body)

    breakdown = {
        "readability": readability_score(len(sentences), len(words)),
        "local_relevance": min(count_terms(body_lower, lexicon.gazetteer) * LOCAL_TERM_VALUE, LOCAL_RELEVANCE_CAP),
        "title_alignment": title_alignment(title, body_lower),
        "information_density": min(count_patterns(body, lexicon.info_marker_patterns) * INFO_MARKER_VALUE, INFO_DENSITY_CAP),
        "freshness": freshness_score(category, body_lower, lexicon),
    }

    confidence = sum(breakdown[k] * w for k, w in WEIGHTS.items())

    if 3 <= len(sentences) <= 8:
        confidence += STRUCTURE_BONUS
    if contains_any(body_lower, lexicon.vocabulary_for(category)):
        confidence += VOCABULARY_BONUS

    confidence = max(0.0, min(confidence, MAX_CONFIDENCE))

    return ScoreResult(
        confidence=round(confidence, 2),
        breakdown={k: round(v, 2) for k, v in breakdown.items()},
        metrics={
            "word_count": len(words),
            "sentence_count": len(sentences),
            "avg_words_per_sentence": round(len(words) / len(sentences), 1) if sentences else 0,
        },
    )
